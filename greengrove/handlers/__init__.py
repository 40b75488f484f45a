"""HTTP routers and error handlers"""
from .base_handler import register_error_handlers
from .catalog_handlers import category_router, product_router, service_router
from .order_handlers import router as order_router
from .booking_handlers import router as booking_router
from .payment_handlers import router as payment_router
from .system_handlers import router as system_router

ROUTERS = [
    system_router,
    category_router,
    product_router,
    service_router,
    order_router,
    booking_router,
    payment_router,
]

__all__ = [
    'ROUTERS',
    'register_error_handlers',
    'category_router',
    'product_router',
    'service_router',
    'order_router',
    'booking_router',
    'payment_router',
    'system_router',
]
