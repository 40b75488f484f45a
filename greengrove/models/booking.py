# greengrove/models/booking.py
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from .base import TimeStampedModel

class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class Booking(TimeStampedModel):
    """Gardening service booking"""
    id: int
    user_id: int
    service_id: int
    service_name: Optional[str] = None
    booking_date: datetime
    price: Decimal
    status: BookingStatus
    notes: Optional[str] = None
    address: Optional[str] = None
