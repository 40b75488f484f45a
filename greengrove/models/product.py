# greengrove/models/product.py
from decimal import Decimal
from typing import Optional
from pydantic import Field
from .base import TimeStampedModel

class Category(TimeStampedModel):
    """Product category"""
    id: int
    name: str

class Product(TimeStampedModel):
    """Grocery product with authoritative price and stock"""
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    price: Decimal = Field(ge=0)
    stock_quantity: int = Field(ge=0)
    category_id: Optional[int] = None
    is_active: bool = True

    def has_stock(self, quantity: int) -> bool:
        return self.is_active and self.stock_quantity >= quantity

class Service(TimeStampedModel):
    """Bookable gardening service"""
    id: int
    service_name: str
    description: Optional[str] = None
    price: Decimal = Field(ge=0)
    is_active: bool = True
