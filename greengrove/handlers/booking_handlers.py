# greengrove/handlers/booking_handlers.py
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from ..services import BookingService
from .base_handler import get_booking_service
from .schemas import (
    BookingCreatedResponse,
    BookingResponse,
    CreateBookingRequest,
    StatusUpdateRequest,
    UpdatedResponse,
)

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", status_code=201, response_model=BookingCreatedResponse)
async def create_booking(body: CreateBookingRequest,
                         bookings: BookingService = Depends(get_booking_service)):
    booking = await bookings.create_booking(
        user_id=body.user_id,
        service_id=body.service_id,
        booking_date=body.booking_date,
        notes=body.notes,
        address=body.address,
    )
    return BookingCreatedResponse(id=booking.id, status=booking.status)


@router.get("", response_model=List[BookingResponse])
async def list_bookings(
    user_id: Optional[int] = None,
    service_id: Optional[int] = None,
    status: Optional[str] = None,
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    page: int = 1,
    limit: int = 20,
    bookings: BookingService = Depends(get_booking_service),
):
    results = await bookings.list_bookings(
        user_id=user_id, service_id=service_id, status=status,
        date_from=date_from, date_to=date_to, page=page, limit=limit,
    )
    return [BookingResponse.model_validate(booking) for booking in results]


@router.patch("/{booking_id}/status", response_model=UpdatedResponse)
async def update_booking_status(booking_id: int, body: StatusUpdateRequest,
                                bookings: BookingService = Depends(get_booking_service)):
    return UpdatedResponse(updated=await bookings.update_booking_status(booking_id, body.status))
