# greengrove/database/ledger_store.py
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from .catalog_store import affected_rows, build_where

ORDER_COLUMNS = "o.id, o.user_id, o.order_date, o.total_amount, o.status, o.delivery_address, o.created_at"
BOOKING_COLUMNS = (
    "b.id, b.user_id, b.service_id, b.booking_date, b.price, b.status, b.notes, b.address, "
    "b.created_at, s.service_name"
)
PAYMENT_COLUMNS = (
    "p.id, p.user_id, p.order_id, p.booking_id, p.amount, p.payment_date, "
    "p.payment_method, p.status, p.provider_ref, p.currency, p.created_at"
)


class PostgresLedgerStore:
    """Order, booking and payment rows on one connection"""

    def __init__(self, conn):
        self.conn = conn

    # Orders

    async def insert_order(self, user_id: int, delivery_address: Optional[str]) -> int:
        return await self.conn.fetchval("""
            INSERT INTO orders (user_id, order_date, total_amount, status, delivery_address)
            VALUES ($1, NOW(), 0, 'pending', $2)
            RETURNING id
        """, user_id, delivery_address)

    async def insert_order_item(self, order_id: int, product_id: int,
                                quantity: int, price: Decimal) -> int:
        return await self.conn.fetchval("""
            INSERT INTO order_items (order_id, product_id, quantity, price)
            VALUES ($1, $2, $3, $4)
            RETURNING id
        """, order_id, product_id, quantity, price)

    async def set_order_total(self, order_id: int, total: Decimal) -> None:
        await self.conn.execute(
            "UPDATE orders SET total_amount = $1 WHERE id = $2", total, order_id
        )

    async def get_order(self, order_id: int) -> Optional[Dict[str, Any]]:
        row = await self.conn.fetchrow(
            f"SELECT {ORDER_COLUMNS} FROM orders o WHERE o.id = $1", order_id
        )
        return dict(row) if row else None

    async def get_order_items(self, order_id: int) -> List[Dict[str, Any]]:
        rows = await self.conn.fetch("""
            SELECT oi.id, oi.product_id, p.name, oi.quantity, oi.price
            FROM order_items oi
            JOIN products p ON p.id = oi.product_id
            WHERE oi.order_id = $1
            ORDER BY oi.id
        """, order_id)
        return [dict(row) for row in rows]

    async def list_orders(self, user_id: Optional[int] = None, status: Optional[str] = None,
                          date_from: Optional[datetime] = None, date_to: Optional[datetime] = None,
                          limit: int = 20, offset: int = 0) -> List[Dict[str, Any]]:
        where, params = build_where([
            ("o.user_id = {}", user_id),
            ("o.status = {}", status),
            ("o.order_date >= {}", date_from),
            ("o.order_date < {}", date_to),
        ])
        rows = await self.conn.fetch(f"""
            SELECT {ORDER_COLUMNS}
            FROM orders o
            {where}
            ORDER BY o.order_date DESC, o.id DESC
            LIMIT ${len(params) + 1} OFFSET ${len(params) + 2}
        """, *params, limit, offset)
        return [dict(row) for row in rows]

    async def update_order_status(self, order_id: int, status: str) -> int:
        result = await self.conn.execute(
            "UPDATE orders SET status = $1 WHERE id = $2", status, order_id
        )
        return affected_rows(result)

    # Bookings

    async def insert_booking(self, user_id: int, service_id: int, booking_date: datetime,
                             price: Decimal, notes: Optional[str], address: Optional[str]) -> int:
        return await self.conn.fetchval("""
            INSERT INTO service_bookings (
                user_id, service_id, booking_date, price, status, notes, address
            ) VALUES ($1, $2, $3, $4, 'pending', $5, $6)
            RETURNING id
        """, user_id, service_id, booking_date, price, notes, address)

    async def get_booking(self, booking_id: int) -> Optional[Dict[str, Any]]:
        row = await self.conn.fetchrow(f"""
            SELECT {BOOKING_COLUMNS}
            FROM service_bookings b JOIN gardening_services s ON s.id = b.service_id
            WHERE b.id = $1
        """, booking_id)
        return dict(row) if row else None

    async def list_bookings(self, user_id: Optional[int] = None, service_id: Optional[int] = None,
                            status: Optional[str] = None, date_from: Optional[datetime] = None,
                            date_to: Optional[datetime] = None, limit: int = 20,
                            offset: int = 0) -> List[Dict[str, Any]]:
        where, params = build_where([
            ("b.user_id = {}", user_id),
            ("b.service_id = {}", service_id),
            ("b.status = {}", status),
            ("b.booking_date >= {}", date_from),
            ("b.booking_date < {}", date_to),
        ])
        rows = await self.conn.fetch(f"""
            SELECT {BOOKING_COLUMNS}
            FROM service_bookings b JOIN gardening_services s ON s.id = b.service_id
            {where}
            ORDER BY b.booking_date DESC, b.id DESC
            LIMIT ${len(params) + 1} OFFSET ${len(params) + 2}
        """, *params, limit, offset)
        return [dict(row) for row in rows]

    async def update_booking_status(self, booking_id: int, status: str) -> int:
        result = await self.conn.execute(
            "UPDATE service_bookings SET status = $1 WHERE id = $2", status, booking_id
        )
        return affected_rows(result)

    # Payments

    async def insert_payment(self, user_id: int, order_id: Optional[int], booking_id: Optional[int],
                             amount: Decimal, payment_method: str, provider_ref: Optional[str],
                             currency: str) -> int:
        return await self.conn.fetchval("""
            INSERT INTO payments (
                user_id, order_id, booking_id, amount, payment_date,
                payment_method, status, provider_ref, currency
            ) VALUES ($1, $2, $3, $4, NOW(), $5, 'pending', $6, $7)
            RETURNING id
        """, user_id, order_id, booking_id, amount, payment_method, provider_ref, currency)

    async def lock_payment(self, payment_id: int) -> Optional[Dict[str, Any]]:
        row = await self.conn.fetchrow(
            f"SELECT {PAYMENT_COLUMNS} FROM payments p WHERE p.id = $1 FOR UPDATE", payment_id
        )
        return dict(row) if row else None

    async def update_payment_status(self, payment_id: int, status: str,
                                    provider_ref: Optional[str] = None) -> int:
        result = await self.conn.execute("""
            UPDATE payments
            SET status = $1, provider_ref = COALESCE($2, provider_ref)
            WHERE id = $3
        """, status, provider_ref, payment_id)
        return affected_rows(result)

    async def list_payments(self, user_id: Optional[int] = None, order_id: Optional[int] = None,
                            booking_id: Optional[int] = None, status: Optional[str] = None,
                            method: Optional[str] = None, date_from: Optional[datetime] = None,
                            date_to: Optional[datetime] = None, limit: int = 20,
                            offset: int = 0) -> List[Dict[str, Any]]:
        where, params = build_where([
            ("p.user_id = {}", user_id),
            ("p.order_id = {}", order_id),
            ("p.booking_id = {}", booking_id),
            ("p.status = {}", status),
            ("p.payment_method = {}", method),
            ("p.payment_date >= {}", date_from),
            ("p.payment_date < {}", date_to),
        ])
        rows = await self.conn.fetch(f"""
            SELECT {PAYMENT_COLUMNS}
            FROM payments p
            {where}
            ORDER BY p.payment_date DESC, p.id DESC
            LIMIT ${len(params) + 1} OFFSET ${len(params) + 2}
        """, *params, limit, offset)
        return [dict(row) for row in rows]
