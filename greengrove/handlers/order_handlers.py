# greengrove/handlers/order_handlers.py
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from ..services import OrderService
from .base_handler import get_order_service
from .schemas import (
    OrderCreatedResponse,
    OrderResponse,
    PlaceOrderRequest,
    StatusUpdateRequest,
    UpdatedResponse,
)

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", status_code=201, response_model=OrderCreatedResponse)
async def place_order(body: PlaceOrderRequest,
                      orders: OrderService = Depends(get_order_service)) -> OrderCreatedResponse:
    """Place an order; totals come from current catalog prices, never the client."""
    order = await orders.place_order(
        user_id=body.user_id,
        items=[item.model_dump() for item in body.items],
        delivery_address=body.delivery_address,
    )
    return OrderCreatedResponse(id=order.id, total_amount=order.total_amount, status=order.status)


@router.get("", response_model=List[OrderResponse])
async def list_orders(
    user_id: Optional[int] = None,
    status: Optional[str] = None,
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    page: int = 1,
    limit: int = 20,
    orders: OrderService = Depends(get_order_service),
):
    results = await orders.list_orders(
        user_id=user_id, status=status, date_from=date_from, date_to=date_to,
        page=page, limit=limit,
    )
    return [OrderResponse.model_validate(order) for order in results]


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: int, orders: OrderService = Depends(get_order_service)):
    return OrderResponse.model_validate(await orders.get_order(order_id))


@router.patch("/{order_id}/status", response_model=UpdatedResponse)
async def update_order_status(order_id: int, body: StatusUpdateRequest,
                              orders: OrderService = Depends(get_order_service)):
    return UpdatedResponse(updated=await orders.update_order_status(order_id, body.status))
