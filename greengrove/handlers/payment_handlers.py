# greengrove/handlers/payment_handlers.py
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from ..services import PaymentService
from .base_handler import get_payment_service
from .schemas import (
    CreatePaymentRequest,
    PaymentCreatedResponse,
    PaymentResponse,
    PaymentStatusRequest,
    UpdatedResponse,
)

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("", status_code=201, response_model=PaymentCreatedResponse)
async def create_payment(body: CreatePaymentRequest,
                         payments: PaymentService = Depends(get_payment_service)):
    """Record a pending payment intent awaiting provider confirmation."""
    payment = await payments.create_payment_intent(
        user_id=body.user_id,
        payment_method=body.payment_method,
        amount=body.amount,
        order_id=body.order_id,
        booking_id=body.booking_id,
        provider_ref=body.provider_ref,
        currency=body.currency,
    )
    return PaymentCreatedResponse(
        id=payment.id, status=payment.status, amount=payment.amount, currency=payment.currency
    )


@router.get("", response_model=List[PaymentResponse])
async def list_payments(
    user_id: Optional[int] = None,
    order_id: Optional[int] = None,
    booking_id: Optional[int] = None,
    status: Optional[str] = None,
    method: Optional[str] = None,
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    page: int = 1,
    limit: int = 20,
    payments: PaymentService = Depends(get_payment_service),
):
    results = await payments.list_payments(
        user_id=user_id, order_id=order_id, booking_id=booking_id, status=status,
        method=method, date_from=date_from, date_to=date_to, page=page, limit=limit,
    )
    return [PaymentResponse.model_validate(payment) for payment in results]


@router.patch("/{payment_id}/status", response_model=UpdatedResponse)
async def update_payment_status(payment_id: int, body: PaymentStatusRequest,
                                payments: PaymentService = Depends(get_payment_service)):
    """Provider webhook / manual reconciliation of a payment intent."""
    updated = await payments.update_payment_status(payment_id, body.status, body.provider_ref)
    return UpdatedResponse(updated=updated)
