# greengrove/services/booking_service.py
import logging
from datetime import datetime
from typing import Any, List, Optional
from ..errors import BookingNotFound, GreenGroveError, ServiceNotFound, ValidationError
from ..models.booking import Booking, BookingStatus
from ..utils.formatters import format_datetime, localize_datetime, to_money
from ..utils.validators import page_limit, parse_id, parse_status

def parse_booking_date(value: Any) -> datetime:
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip())
        except ValueError:
            raise ValidationError(f"Invalid booking_date: {value!r}")
    if not isinstance(value, datetime):
        raise ValidationError(f"Invalid booking_date: {value!r}")
    return localize_datetime(value)

class BookingService:
    """Gardening service bookings"""

    def __init__(self, db):
        self.db = db
        self.logger = logging.getLogger(__name__)

    async def create_booking(self, user_id: Any, service_id: Any, booking_date: Any,
                             notes: Optional[str] = None,
                             address: Optional[str] = None) -> Booking:
        """Book an active service; the booking starts as pending"""
        user_id = parse_id(user_id, "user_id")
        service_id = parse_id(service_id, "service_id")
        booking_date = parse_booking_date(booking_date)

        async def work(tx) -> Booking:
            service = await tx.catalog.get_service(service_id, active_only=True)
            if not service:
                raise ServiceNotFound(service_id)

            # the price is fixed at booking time
            booking_id = await tx.ledger.insert_booking(
                user_id, service_id, booking_date, to_money(service['price']),
                notes or None, address or None
            )
            return Booking.model_validate(await tx.ledger.get_booking(booking_id))

        try:
            booking = await self.db.run_transaction(work)
        except GreenGroveError as e:
            self.logger.warning(f"Booking for user {user_id} rejected: {e}")
            raise

        self.logger.info(
            f"Booking {booking.id} created for service {service_id} "
            f"at {format_datetime(booking.booking_date)}"
        )
        return booking

    async def get_booking(self, booking_id: Any) -> Booking:
        booking_id = parse_id(booking_id, "booking_id")
        async with self.db.session() as session:
            row = await session.ledger.get_booking(booking_id)
        if not row:
            raise BookingNotFound(booking_id)
        return Booking.model_validate(row)

    async def list_bookings(self, user_id: Optional[int] = None, service_id: Optional[int] = None,
                            status: Optional[str] = None, date_from: Optional[datetime] = None,
                            date_to: Optional[datetime] = None, page: Optional[int] = None,
                            limit: Optional[int] = None) -> List[Booking]:
        """Bookings latest date first, with the service name"""
        if status is not None:
            status = parse_status(BookingStatus, status, "booking").value
        limit, offset = page_limit(page, limit)
        async with self.db.session() as session:
            rows = await session.ledger.list_bookings(
                user_id=user_id,
                service_id=service_id,
                status=status,
                date_from=localize_datetime(date_from) if date_from else None,
                date_to=localize_datetime(date_to) if date_to else None,
                limit=limit,
                offset=offset
            )
        return [Booking.model_validate(row) for row in rows]

    async def update_booking_status(self, booking_id: Any, status: Any) -> int:
        new_status = parse_status(BookingStatus, status, "booking")
        booking_id = parse_id(booking_id, "booking_id")

        async def work(tx) -> int:
            return await tx.ledger.update_booking_status(booking_id, new_status.value)

        updated = await self.db.run_transaction(work)
        if updated:
            self.logger.info(f"Booking {booking_id} moved to {new_status.value}")
        return updated
