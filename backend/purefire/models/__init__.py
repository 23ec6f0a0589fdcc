from .accounts import Account, SessionToken, Address
from .admin import AdminUser, RefreshToken, APIKey
from .catalog import Product, DosageOption
from .orders import Order, OrderItem
from .audit import AuditLog

__all__ = [
    'Account', 'SessionToken', 'Address',
    'AdminUser', 'RefreshToken', 'APIKey',
    'Product', 'DosageOption',
    'Order', 'OrderItem',
    'AuditLog',
]
