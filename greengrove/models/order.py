# greengrove/models/order.py
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict
from enum import Enum
from typing import List, Optional
from .base import TimeStampedModel

class OrderStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class OrderItem(BaseModel):
    """Individual item in an order, priced at purchase time"""
    id: int
    product_id: int
    name: Optional[str] = None
    quantity: int
    price: Decimal

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @property
    def total_price(self) -> Decimal:
        return self.price * self.quantity

class Order(TimeStampedModel):
    """Customer order"""
    id: int
    user_id: int
    order_date: Optional[datetime] = None
    total_amount: Decimal
    status: OrderStatus
    delivery_address: Optional[str] = None
    items: List[OrderItem] = []

    @property
    def items_total(self) -> Decimal:
        return sum((item.total_price for item in self.items), Decimal(0))
