from .auth import User, Role, UserRole, Permission, RolePermission, SessionToken
from .security import SecurityEvent
from .documents import DocumentSequence, Invoice, InvoiceItem
from .orders import Order, OrderStatusLog
from .stock import StockEntry
from .payroll import PayrollPeriod, PayrollPeriodLockEvent, PayrollItem

__all__ = [
    'User', 'Role', 'UserRole', 'Permission', 'RolePermission', 'SessionToken',
    'SecurityEvent',
    'DocumentSequence', 'Invoice', 'InvoiceItem',
    'Order', 'OrderStatusLog',
    'StockEntry',
    'PayrollPeriod', 'PayrollPeriodLockEvent', 'PayrollItem',
]
