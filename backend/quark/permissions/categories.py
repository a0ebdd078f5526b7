# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and display."""
    ORDERS = "ORDERS"
    STOCK = "STOCK"
    INVOICES = "INVOICES"
    PAYROLL = "PAYROLL"
