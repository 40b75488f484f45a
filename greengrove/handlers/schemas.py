# greengrove/handlers/schemas.py
"""Request and response bodies of the HTTP API.

Money leaves the API as JSON numbers; inside the services it stays Decimal.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, StrictInt
from ..models.booking import BookingStatus
from ..models.order import OrderStatus
from ..models.payment import PaymentMethod, PaymentStatus


class ResponseModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------
class StatusUpdateRequest(BaseModel):
    status: str


class UpdatedResponse(BaseModel):
    updated: int


class HealthResponse(BaseModel):
    ok: bool


class ClientLogRequest(BaseModel):
    action: str = "log"

    model_config = ConfigDict(extra="allow")


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderLineRequest(BaseModel):
    product_id: int = Field(gt=0, strict=True)
    quantity: int = Field(gt=0, strict=True)


class PlaceOrderRequest(BaseModel):
    user_id: int = Field(gt=0, strict=True)
    delivery_address: Optional[str] = None
    items: List[OrderLineRequest] = Field(min_length=1)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "user_id": 7,
                    "delivery_address": "12 Riverside Dr, Nairobi",
                    "items": [{"product_id": 1, "quantity": 3}],
                }
            ]
        }
    }


class OrderCreatedResponse(BaseModel):
    id: int
    total_amount: float
    status: OrderStatus


class OrderItemResponse(ResponseModel):
    id: int
    product_id: int
    name: Optional[str] = None
    quantity: int
    price: float


class OrderResponse(ResponseModel):
    id: int
    user_id: int
    order_date: Optional[datetime] = None
    total_amount: float
    status: OrderStatus
    delivery_address: Optional[str] = None
    items: List[OrderItemResponse] = []


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------
class CreateBookingRequest(BaseModel):
    user_id: int = Field(gt=0, strict=True)
    service_id: int = Field(gt=0, strict=True)
    booking_date: datetime
    notes: Optional[str] = None
    address: Optional[str] = None


class BookingCreatedResponse(BaseModel):
    id: int
    status: BookingStatus


class BookingResponse(ResponseModel):
    id: int
    user_id: int
    service_id: int
    service_name: Optional[str] = None
    booking_date: datetime
    price: float
    status: BookingStatus
    notes: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class CreatePaymentRequest(BaseModel):
    user_id: int = Field(gt=0, strict=True)
    order_id: Optional[StrictInt] = Field(None, gt=0)
    booking_id: Optional[StrictInt] = Field(None, gt=0)
    amount: Optional[Decimal] = None
    payment_method: str
    provider_ref: Optional[str] = None
    currency: Optional[str] = None


class PaymentStatusRequest(BaseModel):
    status: str
    provider_ref: Optional[str] = None


class PaymentCreatedResponse(BaseModel):
    id: int
    status: PaymentStatus
    amount: float
    currency: str


class PaymentResponse(ResponseModel):
    id: int
    user_id: int
    order_id: Optional[int] = None
    booking_id: Optional[int] = None
    amount: float
    payment_date: Optional[datetime] = None
    payment_method: PaymentMethod
    status: PaymentStatus
    provider_ref: Optional[str] = None
    currency: str


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------
class CreateCategoryRequest(BaseModel):
    name: str


class CategoryResponse(ResponseModel):
    id: int
    name: str


class CreateProductRequest(BaseModel):
    name: str
    slug: str
    description: Optional[str] = None
    price: Decimal
    stock_quantity: int = Field(0, strict=True)
    category_id: Optional[int] = None
    is_active: bool = True


class UpdateProductRequest(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = None
    stock_quantity: Optional[StrictInt] = None
    category_id: Optional[int] = None
    is_active: Optional[bool] = None


class ProductResponse(ResponseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    price: float
    stock_quantity: int
    category_id: Optional[int] = None
    is_active: bool


class CreateServiceRequest(BaseModel):
    service_name: str
    description: Optional[str] = None
    price: Decimal
    is_active: bool = True


class UpdateServiceRequest(BaseModel):
    service_name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = None
    is_active: Optional[bool] = None


class ServiceResponse(ResponseModel):
    id: int
    service_name: str
    description: Optional[str] = None
    price: float
    is_active: bool
    created_at: Optional[datetime] = None
