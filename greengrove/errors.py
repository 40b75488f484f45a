# greengrove/errors.py
"""Exceptions raised by the order, booking and payment workflows."""
from decimal import Decimal
from typing import Iterable, Optional


class GreenGroveError(Exception):
    """Base exception for all business and storage failures."""

    pass


class ValidationError(GreenGroveError):
    """Malformed or missing input, detected before the store is touched."""

    pass


class InvalidPaymentMethod(ValidationError):
    def __init__(self, method, allowed: Iterable[str]):
        self.method = method
        super().__init__(
            f"Invalid payment_method: {method!r} (expected one of {', '.join(allowed)})"
        )


class InvalidStatus(ValidationError):
    def __init__(self, entity: str, status, allowed: Iterable[str]):
        self.entity = entity
        self.status = status
        super().__init__(
            f"Invalid {entity} status: {status!r} (expected one of {', '.join(allowed)})"
        )


class NotFoundError(GreenGroveError):
    """A referenced record does not exist."""

    entity = "Record"

    def __init__(self, record_id):
        self.record_id = record_id
        super().__init__(f"{self.entity} not found: {record_id}")


class ProductNotFound(NotFoundError):
    entity = "Product"


class ServiceNotFound(NotFoundError):
    entity = "Service"


class OrderNotFound(NotFoundError):
    entity = "Order"


class BookingNotFound(NotFoundError):
    entity = "Booking"


class ConflictError(GreenGroveError):
    """The request is well formed but conflicts with the current state."""

    pass


class InsufficientStock(ConflictError):
    def __init__(self, product_id: int, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"requested {requested}, available {available}"
        )


class InvalidTransition(ConflictError):
    def __init__(self, entity: str, current: str, target: str):
        self.entity = entity
        self.current = current
        self.target = target
        super().__init__(f"Cannot move {entity} from {current} to {target}")


class DuplicateRecord(ConflictError):
    def __init__(self, entity: str, field: str, value):
        self.entity = entity
        self.field = field
        self.value = value
        super().__init__(f"{entity} with {field} {value!r} already exists")


class AmountMismatch(ValidationError):
    def __init__(self, supplied: Decimal, expected: Decimal):
        self.supplied = supplied
        self.expected = expected
        super().__init__(f"amount {supplied} does not match expected {expected}")


class StorageFault(GreenGroveError):
    """The store failed or timed out; the transaction was rolled back."""

    def __init__(self, message: str = "Storage failure", cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)
