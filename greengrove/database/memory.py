# greengrove/database/memory.py
"""In-process store backend.

Rows live in plain dicts shared by every transaction. A transaction stages
its inserts and updates privately and applies them in one step on commit, so
other transactions only ever see committed data. Row locks are per-row
``asyncio.Lock`` objects held until the transaction ends, which gives the same
read-check-write serialization as ``SELECT ... FOR UPDATE``.
"""
import asyncio
import itertools
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple
from ..errors import DuplicateRecord, ValidationError
from .catalog_store import PRODUCT_FIELDS, SERVICE_FIELDS
from .database import BaseDatabase, Session

TABLES = (
    "product_categories",
    "products",
    "gardening_services",
    "orders",
    "order_items",
    "service_bookings",
    "payments",
)

RowKey = Tuple[str, int]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class _RowLock:
    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class MemoryTables:
    """Committed rows, id sequences and the row lock registry"""

    def __init__(self):
        self.reset()

    def reset(self):
        self.rows: Dict[str, Dict[int, Dict[str, Any]]] = {name: {} for name in TABLES}
        self._sequences = {name: itertools.count(1) for name in TABLES}
        self._locks: Dict[RowKey, _RowLock] = {}

    def next_id(self, table: str) -> int:
        return next(self._sequences[table])

    async def acquire(self, key: RowKey):
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = _RowLock()
        entry.users += 1
        try:
            await entry.lock.acquire()
        except BaseException:
            self._forget(key)
            raise

    def release(self, key: RowKey):
        self._locks[key].lock.release()
        self._forget(key)

    def _forget(self, key: RowKey):
        # Locks only live while someone holds or waits for them
        entry = self._locks[key]
        entry.users -= 1
        if entry.users == 0:
            del self._locks[key]


class MemoryTransaction:
    """Staged writes and held row locks of one transaction"""

    def __init__(self, tables: MemoryTables):
        self.tables = tables
        self._staged: Dict[str, Dict[int, Dict[str, Any]]] = {}
        self._held: List[RowKey] = []

    def get(self, table: str, row_id: int) -> Optional[Dict[str, Any]]:
        staged = self._staged.get(table, {})
        row = staged.get(row_id, self.tables.rows[table].get(row_id))
        return dict(row) if row is not None else None

    def select(self, table: str) -> List[Dict[str, Any]]:
        merged = dict(self.tables.rows[table])
        merged.update(self._staged.get(table, {}))
        return [dict(row) for _, row in sorted(merged.items())]

    def insert(self, table: str, row: Dict[str, Any]) -> int:
        row_id = self.tables.next_id(table)
        self._staged.setdefault(table, {})[row_id] = {**row, "id": row_id}
        return row_id

    async def lock(self, table: str, row_id: int):
        key = (table, row_id)
        if key in self._held:
            return
        await self.tables.acquire(key)
        self._held.append(key)
        # stands in for the round trip of a real row lock
        await asyncio.sleep(0)

    async def update(self, table: str, row_id: int, changes: Dict[str, Any]) -> int:
        await self.lock(table, row_id)
        row = self.get(table, row_id)
        if row is None:
            return 0
        row.update(changes)
        self._staged.setdefault(table, {})[row_id] = row
        return 1

    def commit(self):
        for table, rows in self._staged.items():
            self.tables.rows[table].update(rows)
        self._staged = {}

    def rollback(self):
        self._staged = {}

    def release(self):
        while self._held:
            self.tables.release(self._held.pop())


def _page(rows: List[Dict[str, Any]], limit: int, offset: int) -> List[Dict[str, Any]]:
    return rows[offset:offset + limit]


def _matches(row: Dict[str, Any], **criteria) -> bool:
    return all(value is None or row.get(field) == value for field, value in criteria.items())


def _in_range(value: Optional[datetime], date_from: Optional[datetime],
              date_to: Optional[datetime]) -> bool:
    if date_from is not None and (value is None or value < date_from):
        return False
    if date_to is not None and (value is None or value >= date_to):
        return False
    return True


class MemoryCatalogStore:
    """Catalog rows held by a MemoryTransaction"""

    def __init__(self, tx: MemoryTransaction):
        self.tx = tx

    async def list_categories(self) -> List[Dict[str, Any]]:
        return sorted(self.tx.select("product_categories"), key=lambda row: row["name"])

    async def insert_category(self, name: str) -> int:
        if any(row["name"] == name for row in self.tx.select("product_categories")):
            raise DuplicateRecord("Category", "name", name)
        return self.tx.insert("product_categories", {"name": name, "created_at": _now()})

    def _check_product(self, fields: Dict[str, Any], product_id: Optional[int] = None):
        slug = fields.get("slug")
        if slug is not None and any(
            row["slug"] == slug and row["id"] != product_id
            for row in self.tx.select("products")
        ):
            raise DuplicateRecord("Product", "slug", slug)
        category_id = fields.get("category_id")
        if category_id is not None and self.tx.get("product_categories", category_id) is None:
            raise ValidationError(f"Unknown category_id: {category_id}")

    async def insert_product(self, fields: Dict[str, Any]) -> int:
        self._check_product(fields)
        return self.tx.insert("products", {
            "name": fields["name"],
            "slug": fields["slug"],
            "description": fields.get("description"),
            "price": Decimal(fields["price"]),
            "stock_quantity": fields.get("stock_quantity", 0),
            "category_id": fields.get("category_id"),
            "is_active": fields.get("is_active", True),
            "created_at": _now(),
        })

    async def list_products(self, category_id: Optional[int] = None, q: Optional[str] = None,
                            active: Optional[bool] = None, limit: int = 20,
                            offset: int = 0) -> List[Dict[str, Any]]:
        rows = [
            row for row in self.tx.select("products")
            if _matches(row, category_id=category_id, is_active=active)
            and (not q or q.lower() in row["name"].lower())
        ]
        rows.sort(key=lambda row: row["id"], reverse=True)
        return _page(rows, limit, offset)

    async def get_product(self, product_id: int) -> Optional[Dict[str, Any]]:
        return self.tx.get("products", product_id)

    async def get_product_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        for row in self.tx.select("products"):
            if row["slug"] == slug:
                return row
        return None

    async def lock_product(self, product_id: int) -> Optional[Dict[str, Any]]:
        await self.tx.lock("products", product_id)
        return self.tx.get("products", product_id)

    async def decrement_stock(self, product_id: int, quantity: int) -> None:
        row = await self.lock_product(product_id)
        if row is None:
            return
        await self.tx.update("products", product_id, {
            "stock_quantity": row["stock_quantity"] - quantity
        })

    async def update_product(self, product_id: int, fields: Dict[str, Any]) -> int:
        changes = {name: fields[name] for name in PRODUCT_FIELDS if name in fields}
        if not changes:
            raise ValidationError("No fields to update")
        self._check_product(changes, product_id)
        return await self.tx.update("products", product_id, changes)

    async def insert_service(self, fields: Dict[str, Any]) -> int:
        return self.tx.insert("gardening_services", {
            "service_name": fields["service_name"],
            "description": fields.get("description"),
            "price": Decimal(fields["price"]),
            "is_active": fields.get("is_active", True),
            "created_at": _now(),
        })

    async def list_services(self, active: Optional[bool] = None) -> List[Dict[str, Any]]:
        rows = [row for row in self.tx.select("gardening_services") if _matches(row, is_active=active)]
        return sorted(rows, key=lambda row: row["service_name"])

    async def get_service(self, service_id: int, active_only: bool = False) -> Optional[Dict[str, Any]]:
        row = self.tx.get("gardening_services", service_id)
        if row is None or (active_only and not row["is_active"]):
            return None
        return row

    async def update_service(self, service_id: int, fields: Dict[str, Any]) -> int:
        changes = {name: fields[name] for name in SERVICE_FIELDS if name in fields}
        if not changes:
            raise ValidationError("No fields to update")
        return await self.tx.update("gardening_services", service_id, changes)


class MemoryLedgerStore:
    """Order, booking and payment rows held by a MemoryTransaction"""

    def __init__(self, tx: MemoryTransaction):
        self.tx = tx

    # Orders

    async def insert_order(self, user_id: int, delivery_address: Optional[str]) -> int:
        now = _now()
        return self.tx.insert("orders", {
            "user_id": user_id,
            "order_date": now,
            "total_amount": Decimal(0),
            "status": "pending",
            "delivery_address": delivery_address,
            "created_at": now,
        })

    async def insert_order_item(self, order_id: int, product_id: int,
                                quantity: int, price: Decimal) -> int:
        return self.tx.insert("order_items", {
            "order_id": order_id,
            "product_id": product_id,
            "quantity": quantity,
            "price": price,
            "created_at": _now(),
        })

    async def set_order_total(self, order_id: int, total: Decimal) -> None:
        await self.tx.update("orders", order_id, {"total_amount": total})

    async def get_order(self, order_id: int) -> Optional[Dict[str, Any]]:
        return self.tx.get("orders", order_id)

    async def get_order_items(self, order_id: int) -> List[Dict[str, Any]]:
        items = []
        for row in self.tx.select("order_items"):
            if row["order_id"] != order_id:
                continue
            product = self.tx.get("products", row["product_id"]) or {}
            items.append({
                "id": row["id"],
                "product_id": row["product_id"],
                "name": product.get("name"),
                "quantity": row["quantity"],
                "price": row["price"],
            })
        return items

    async def list_orders(self, user_id: Optional[int] = None, status: Optional[str] = None,
                          date_from: Optional[datetime] = None, date_to: Optional[datetime] = None,
                          limit: int = 20, offset: int = 0) -> List[Dict[str, Any]]:
        rows = [
            row for row in self.tx.select("orders")
            if _matches(row, user_id=user_id, status=status)
            and _in_range(row["order_date"], date_from, date_to)
        ]
        rows.sort(key=lambda row: (row["order_date"], row["id"]), reverse=True)
        return _page(rows, limit, offset)

    async def update_order_status(self, order_id: int, status: str) -> int:
        return await self.tx.update("orders", order_id, {"status": status})

    # Bookings

    def _with_service(self, row: Dict[str, Any]) -> Dict[str, Any]:
        service = self.tx.get("gardening_services", row["service_id"]) or {}
        row["service_name"] = service.get("service_name")
        return row

    async def insert_booking(self, user_id: int, service_id: int, booking_date: datetime,
                             price: Decimal, notes: Optional[str], address: Optional[str]) -> int:
        return self.tx.insert("service_bookings", {
            "user_id": user_id,
            "service_id": service_id,
            "booking_date": booking_date,
            "price": price,
            "status": "pending",
            "notes": notes,
            "address": address,
            "created_at": _now(),
        })

    async def get_booking(self, booking_id: int) -> Optional[Dict[str, Any]]:
        row = self.tx.get("service_bookings", booking_id)
        return self._with_service(row) if row else None

    async def list_bookings(self, user_id: Optional[int] = None, service_id: Optional[int] = None,
                            status: Optional[str] = None, date_from: Optional[datetime] = None,
                            date_to: Optional[datetime] = None, limit: int = 20,
                            offset: int = 0) -> List[Dict[str, Any]]:
        rows = [
            self._with_service(row) for row in self.tx.select("service_bookings")
            if _matches(row, user_id=user_id, service_id=service_id, status=status)
            and _in_range(row["booking_date"], date_from, date_to)
        ]
        rows.sort(key=lambda row: (row["booking_date"], row["id"]), reverse=True)
        return _page(rows, limit, offset)

    async def update_booking_status(self, booking_id: int, status: str) -> int:
        return await self.tx.update("service_bookings", booking_id, {"status": status})

    # Payments

    async def insert_payment(self, user_id: int, order_id: Optional[int], booking_id: Optional[int],
                             amount: Decimal, payment_method: str, provider_ref: Optional[str],
                             currency: str) -> int:
        now = _now()
        return self.tx.insert("payments", {
            "user_id": user_id,
            "order_id": order_id,
            "booking_id": booking_id,
            "amount": amount,
            "payment_date": now,
            "payment_method": payment_method,
            "status": "pending",
            "provider_ref": provider_ref,
            "currency": currency,
            "created_at": now,
        })

    async def lock_payment(self, payment_id: int) -> Optional[Dict[str, Any]]:
        await self.tx.lock("payments", payment_id)
        return self.tx.get("payments", payment_id)

    async def update_payment_status(self, payment_id: int, status: str,
                                    provider_ref: Optional[str] = None) -> int:
        changes: Dict[str, Any] = {"status": status}
        if provider_ref is not None:
            changes["provider_ref"] = provider_ref
        return await self.tx.update("payments", payment_id, changes)

    async def list_payments(self, user_id: Optional[int] = None, order_id: Optional[int] = None,
                            booking_id: Optional[int] = None, status: Optional[str] = None,
                            method: Optional[str] = None, date_from: Optional[datetime] = None,
                            date_to: Optional[datetime] = None, limit: int = 20,
                            offset: int = 0) -> List[Dict[str, Any]]:
        rows = [
            row for row in self.tx.select("payments")
            if _matches(row, user_id=user_id, order_id=order_id, booking_id=booking_id,
                        status=status, payment_method=method)
            and _in_range(row["payment_date"], date_from, date_to)
        ]
        rows.sort(key=lambda row: (row["payment_date"], row["id"]), reverse=True)
        return _page(rows, limit, offset)


class MemoryDatabase(BaseDatabase):
    """Store backend without PostgreSQL, for tests and local development"""

    def __init__(self):
        super().__init__()
        self.tables = MemoryTables()

    async def ping(self) -> bool:
        return True

    def session(self):
        return self.transaction()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Session]:
        tx = MemoryTransaction(self.tables)
        try:
            yield Session(MemoryCatalogStore(tx), MemoryLedgerStore(tx))
            tx.commit()
        except BaseException:
            tx.rollback()
            self.logger.debug("Memory transaction rolled back")
            raise
        finally:
            tx.release()
