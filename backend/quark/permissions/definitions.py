# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- ORDERS --

ORDER_PERMISSIONS = [
    (
        "VIEW_ORDERS",
        "View Orders",
        "View production orders and their status history",
        PermissionCategory.ORDERS,
    ),
    (
        "CREATE_ORDER",
        "Create Order",
        "Create production orders (allocates an order number)",
        PermissionCategory.ORDERS,
    ),
    (
        "UPDATE_PRODUCTION_STATUS",
        "Update Production Status",
        "Move orders to the next production stage or cancel them",
        PermissionCategory.ORDERS,
    ),
]


# -- STOCK --

STOCK_PERMISSIONS = [
    (
        "VIEW_STOCK",
        "View Stock",
        "View raw-material stock",
        PermissionCategory.STOCK,
    ),
    (
        "MANAGE_STOCK",
        "Manage Stock",
        "Add stock entries and take material out of stock",
        PermissionCategory.STOCK,
    ),
]


# -- INVOICES --

INVOICE_PERMISSIONS = [
    (
        "VIEW_INVOICES",
        "View Invoices",
        "View invoices and preview the next document numbers",
        PermissionCategory.INVOICES,
    ),
    (
        "CREATE_INVOICE",
        "Create Invoice",
        "Issue invoices with their receipts",
        PermissionCategory.INVOICES,
    ),
]


# -- PAYROLL --

PAYROLL_PERMISSIONS = [
    (
        "VIEW_PAYROLL",
        "View Payroll",
        "View payroll periods, items and lock history",
        PermissionCategory.PAYROLL,
    ),
    (
        "SAVE_PAYROLL",
        "Save Payroll",
        "Compute and save payroll items in open periods",
        PermissionCategory.PAYROLL,
    ),
    (
        "MANAGE_PAYROLL_PERIODS",
        "Manage Payroll Periods",
        "Create payroll periods",
        PermissionCategory.PAYROLL,
    ),
    (
        "LOCK_PAYROLL",
        "Lock Payroll",
        "Lock and unlock payroll periods",
        PermissionCategory.PAYROLL,
    ),
]


PERMISSION_DEFINITIONS = (
    ORDER_PERMISSIONS
    + STOCK_PERMISSIONS
    + INVOICE_PERMISSIONS
    + PAYROLL_PERMISSIONS
)
