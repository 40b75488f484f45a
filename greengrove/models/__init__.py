"""Domain records"""
from .base import TimeStampedModel
from .product import Category, Product, Service
from .order import Order, OrderItem, OrderStatus
from .booking import Booking, BookingStatus
from .payment import Payment, PaymentMethod, PaymentStatus, PAYMENT_TRANSITIONS

__all__ = [
    'TimeStampedModel',
    'Category',
    'Product',
    'Service',
    'Order',
    'OrderItem',
    'OrderStatus',
    'Booking',
    'BookingStatus',
    'Payment',
    'PaymentMethod',
    'PaymentStatus',
    'PAYMENT_TRANSITIONS',
]
