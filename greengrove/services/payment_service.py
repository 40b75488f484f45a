# greengrove/services/payment_service.py
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional
from ..config import Config
from ..errors import (
    AmountMismatch,
    BookingNotFound,
    GreenGroveError,
    InvalidPaymentMethod,
    InvalidTransition,
    OrderNotFound,
    ValidationError,
)
from ..models.payment import Payment, PaymentMethod, PaymentStatus
from ..utils.formatters import format_price, localize_datetime, to_money
from ..utils.validators import page_limit, parse_amount, parse_id, parse_status

def parse_payment_method(value: Any) -> PaymentMethod:
    allowed = [method.value for method in PaymentMethod]
    if isinstance(value, PaymentMethod):
        return value
    if value not in allowed:
        raise InvalidPaymentMethod(value, allowed)
    return PaymentMethod(value)

def parse_currency(value: Optional[str]) -> str:
    currency = (value or Config.DEFAULT_CURRENCY).strip().upper()
    if len(currency) != 3 or not currency.isalpha():
        raise ValidationError(f"Invalid currency: {value!r}")
    return currency

class PaymentService:
    """Payment intents and their confirmation"""

    def __init__(self, db):
        self.db = db
        self.logger = logging.getLogger(__name__)

    async def create_payment_intent(self, user_id: Any, payment_method: Any, amount: Any = None,
                                    order_id: Any = None, booking_id: Any = None,
                                    provider_ref: Optional[str] = None,
                                    currency: Optional[str] = None) -> Payment:
        """Record a pending payment for an order, a booking, or a bare amount.

        When an order or booking is referenced the amount is taken from it;
        a caller amount that disagrees is rejected. Confirmation happens
        later through update_payment_status.
        """
        method = parse_payment_method(payment_method)
        user_id = parse_id(user_id, "user_id")
        currency = parse_currency(currency)
        if order_id is not None and booking_id is not None:
            raise ValidationError("A payment references an order or a booking, not both")
        order_id = parse_id(order_id, "order_id") if order_id is not None else None
        booking_id = parse_id(booking_id, "booking_id") if booking_id is not None else None
        supplied = parse_amount(amount) if amount is not None else None
        if order_id is None and booking_id is None and not supplied:
            raise ValidationError("amount is required when no order or booking is referenced")

        async def work(tx) -> Payment:
            expected = await self._amount_due(tx, order_id, booking_id)
            if expected is not None and supplied is not None and supplied != expected:
                raise AmountMismatch(supplied, expected)

            payment_id = await tx.ledger.insert_payment(
                user_id,
                order_id,
                booking_id,
                expected if expected is not None else supplied,
                method.value,
                provider_ref or None,
                currency
            )
            return Payment.model_validate(await tx.ledger.lock_payment(payment_id))

        try:
            payment = await self.db.run_transaction(work)
        except GreenGroveError as e:
            self.logger.warning(f"Payment for user {user_id} rejected: {e}")
            raise

        self.logger.info(
            f"Payment {payment.id} pending: {method.value} "
            f"{format_price(payment.amount, payment.currency)}"
        )
        return payment

    async def _amount_due(self, tx, order_id: Optional[int],
                          booking_id: Optional[int]) -> Optional[Decimal]:
        if order_id is not None:
            order = await tx.ledger.get_order(order_id)
            if not order:
                raise OrderNotFound(order_id)
            return to_money(order['total_amount'])
        if booking_id is not None:
            booking = await tx.ledger.get_booking(booking_id)
            if not booking:
                raise BookingNotFound(booking_id)
            return to_money(booking['price'])
        return None

    async def update_payment_status(self, payment_id: Any, status: Any,
                                    provider_ref: Optional[str] = None) -> int:
        """Confirm or fail a pending payment.

        success and failed are final. Repeating the current final status is
        a no-op so redelivered confirmations are harmless.
        """
        new_status = parse_status(PaymentStatus, status, "payment")
        payment_id = parse_id(payment_id, "payment_id")

        async def work(tx) -> int:
            row = await tx.ledger.lock_payment(payment_id)
            if not row:
                return 0
            payment = Payment.model_validate(row)
            if payment.is_terminal and payment.status == new_status:
                return 0
            if not payment.can_move_to(new_status):
                raise InvalidTransition("payment", payment.status.value, new_status.value)
            return await tx.ledger.update_payment_status(
                payment_id, new_status.value, provider_ref or None
            )

        try:
            updated = await self.db.run_transaction(work)
        except GreenGroveError as e:
            self.logger.warning(f"Payment {payment_id} status change rejected: {e}")
            raise

        if updated:
            self.logger.info(f"Payment {payment_id} moved to {new_status.value}")
        return updated

    async def list_payments(self, user_id: Optional[int] = None, order_id: Optional[int] = None,
                            booking_id: Optional[int] = None, status: Optional[str] = None,
                            method: Optional[str] = None, date_from: Optional[datetime] = None,
                            date_to: Optional[datetime] = None, page: Optional[int] = None,
                            limit: Optional[int] = None) -> List[Payment]:
        if status is not None:
            status = parse_status(PaymentStatus, status, "payment").value
        if method is not None:
            method = parse_payment_method(method).value
        limit, offset = page_limit(page, limit)
        async with self.db.session() as session:
            rows = await session.ledger.list_payments(
                user_id=user_id,
                order_id=order_id,
                booking_id=booking_id,
                status=status,
                method=method,
                date_from=localize_datetime(date_from) if date_from else None,
                date_to=localize_datetime(date_to) if date_to else None,
                limit=limit,
                offset=offset
            )
        return [Payment.model_validate(row) for row in rows]
