# greengrove/services/order_service.py
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional
from ..errors import GreenGroveError, InsufficientStock, OrderNotFound, ProductNotFound
from ..models.order import Order, OrderItem, OrderStatus
from ..models.product import Product
from ..utils.formatters import format_price, localize_datetime, to_money
from ..utils.validators import page_limit, parse_id, parse_items, parse_status

class OrderService:
    """Places orders against locked stock and manages their status"""

    def __init__(self, db):
        self.db = db
        self.logger = logging.getLogger(__name__)

    async def place_order(self, user_id: Any, items: Any,
                          delivery_address: Optional[str] = None) -> Order:
        """Create an order and reserve its stock in one transaction.

        Each product row is locked before its stock is checked, so two
        concurrent orders for the last units of a product cannot both pass the
        check. Products are locked in the order the items are given. Any
        failure rolls back the order row, its items and every decrement.
        """
        user_id = parse_id(user_id, "user_id")
        lines = parse_items(items)

        async def work(tx) -> Order:
            order_id = await tx.ledger.insert_order(user_id, delivery_address or None)

            total = Decimal(0)
            for product_id, quantity in lines:
                row = await tx.catalog.lock_product(product_id)
                if not row or not row['is_active']:
                    raise ProductNotFound(product_id)
                product = Product.model_validate(row)
                if not product.has_stock(quantity):
                    raise InsufficientStock(product_id, quantity, product.stock_quantity)

                price = to_money(product.price)
                total += price * quantity

                await tx.ledger.insert_order_item(order_id, product_id, quantity, price)
                await tx.catalog.decrement_stock(product_id, quantity)

            total = to_money(total)
            await tx.ledger.set_order_total(order_id, total)
            return await self._load_order(tx, order_id)

        try:
            order = await self.db.run_transaction(work)
        except GreenGroveError as e:
            self.logger.warning(f"Order for user {user_id} rejected: {e}")
            raise

        self.logger.info(
            f"Order {order.id} placed for user {user_id}: "
            f"{len(order.items)} items, {format_price(order.total_amount)}"
        )
        return order

    async def _load_order(self, tx, order_id: int) -> Order:
        row = await tx.ledger.get_order(order_id)
        if not row:
            raise OrderNotFound(order_id)
        items = await tx.ledger.get_order_items(order_id)
        return Order.model_validate({
            **row,
            'items': [OrderItem.model_validate(item) for item in items]
        })

    async def get_order(self, order_id: Any) -> Order:
        """Order with its line items"""
        order_id = parse_id(order_id, "order_id")
        async with self.db.session() as session:
            return await self._load_order(session, order_id)

    async def list_orders(self, user_id: Optional[int] = None, status: Optional[str] = None,
                          date_from: Optional[datetime] = None, date_to: Optional[datetime] = None,
                          page: Optional[int] = None, limit: Optional[int] = None) -> List[Order]:
        """Orders newest first, without line items"""
        if status is not None:
            status = parse_status(OrderStatus, status, "order").value
        limit, offset = page_limit(page, limit)
        async with self.db.session() as session:
            rows = await session.ledger.list_orders(
                user_id=user_id,
                status=status,
                date_from=localize_datetime(date_from) if date_from else None,
                date_to=localize_datetime(date_to) if date_to else None,
                limit=limit,
                offset=offset
            )
        return [Order.model_validate(row) for row in rows]

    async def update_order_status(self, order_id: Any, status: Any) -> int:
        """Set any legal order status; returns the number of rows updated"""
        new_status = parse_status(OrderStatus, status, "order")
        order_id = parse_id(order_id, "order_id")

        async def work(tx) -> int:
            return await tx.ledger.update_order_status(order_id, new_status.value)

        updated = await self.db.run_transaction(work)
        if updated:
            self.logger.info(f"Order {order_id} moved to {new_status.value}")
        return updated

