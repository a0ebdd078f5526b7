# Overview: Permission system package.
# Re-exports all public APIs.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    ORDER_PERMISSIONS,
    STOCK_PERMISSIONS,
    INVOICE_PERMISSIONS,
    PAYROLL_PERMISSIONS,
)
from .roles import DEFAULT_ROLES, DEFAULT_ROLE_PERMISSIONS
from .helpers import (
    get_all_permission_codes,
    validate_permission_code,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "ORDER_PERMISSIONS",
    "STOCK_PERMISSIONS",
    "INVOICE_PERMISSIONS",
    "PAYROLL_PERMISSIONS",
    "DEFAULT_ROLES",
    "DEFAULT_ROLE_PERMISSIONS",
    "get_all_permission_codes",
    "validate_permission_code",
]
