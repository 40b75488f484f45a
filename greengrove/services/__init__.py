"""Business workflows"""
from .catalog_service import CatalogService
from .order_service import OrderService
from .booking_service import BookingService
from .payment_service import PaymentService

__all__ = [
    'CatalogService',
    'OrderService',
    'BookingService',
    'PaymentService',
]
