# Overview: Default role-to-permission assignments.

from .definitions import PERMISSION_DEFINITIONS


DEFAULT_ROLES = {
    "admin": "Workshop owner: every permission including payroll periods",
    "manager": "Production manager: orders, stock, invoices, payroll entry",
    "staff": "Floor staff: read-only view of orders and stock",
}


DEFAULT_ROLE_PERMISSIONS = {
    # Admin gets ALL permissions
    "admin": [perm[0] for perm in PERMISSION_DEFINITIONS],

    "manager": [
        "VIEW_ORDERS",
        "CREATE_ORDER",
        "UPDATE_PRODUCTION_STATUS",
        "VIEW_STOCK",
        "MANAGE_STOCK",
        "VIEW_INVOICES",
        "CREATE_INVOICE",
        "VIEW_PAYROLL",
        "SAVE_PAYROLL",
    ],

    "staff": [
        "VIEW_ORDERS",
        "VIEW_STOCK",
    ],
}
