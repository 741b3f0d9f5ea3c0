from .identity import Principal, Customer, StaffMember
from .catalog import Product
from .orders import Order, OrderItem, DeliveryEvent
from .security import SecurityEvent, PasswordResetTicket

__all__ = [
    'Principal', 'Customer', 'StaffMember',
    'Product',
    'Order', 'OrderItem', 'DeliveryEvent',
    'SecurityEvent', 'PasswordResetTicket',
]
