# greengrove/models/payment.py
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from .base import TimeStampedModel

class PaymentMethod(str, Enum):
    MPESA = "Mpesa"
    CARD = "Card"
    CASH = "Cash"

class PaymentStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"

# pending may move anywhere; success and failed are final
PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PENDING, PaymentStatus.SUCCESS, PaymentStatus.FAILED},
    PaymentStatus.SUCCESS: set(),
    PaymentStatus.FAILED: set(),
}

class Payment(TimeStampedModel):
    """Payment intent linked to an order or a booking"""
    id: int
    user_id: int
    order_id: Optional[int] = None
    booking_id: Optional[int] = None
    amount: Decimal
    payment_date: Optional[datetime] = None
    payment_method: PaymentMethod
    status: PaymentStatus
    provider_ref: Optional[str] = None
    currency: str = "KES"

    @property
    def is_terminal(self) -> bool:
        return not PAYMENT_TRANSITIONS[self.status]

    def can_move_to(self, status: PaymentStatus) -> bool:
        return status in PAYMENT_TRANSITIONS[self.status]
