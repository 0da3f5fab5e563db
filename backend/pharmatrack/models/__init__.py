from .inventory import Supplier, Product
from .sales import Sale, SaleItem, PAYMENT_METHODS
from .auth import User, SessionToken, ROLES

__all__ = [
    'Supplier', 'Product',
    'Sale', 'SaleItem', 'PAYMENT_METHODS',
    'User', 'SessionToken', 'ROLES',
]
