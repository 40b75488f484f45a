# greengrove/database/catalog_store.py
from typing import Any, Dict, List, Optional, Tuple
import asyncpg
from ..errors import DuplicateRecord, ValidationError

PRODUCT_COLUMNS = "id, name, slug, description, price, stock_quantity, category_id, is_active, created_at"
SERVICE_COLUMNS = "id, service_name, description, price, is_active, created_at"

PRODUCT_FIELDS = ("name", "slug", "description", "price", "stock_quantity", "category_id", "is_active")
SERVICE_FIELDS = ("service_name", "description", "price", "is_active")


def build_where(conditions: List[Tuple[str, Any]], start: int = 1) -> Tuple[str, List[Any]]:
    """[("p.status = {}", value), ...] -> ("WHERE p.status = $1 AND ...", [value, ...])"""
    clauses = []
    params = []
    param_index = start
    for template, value in conditions:
        if value is None:
            continue
        clauses.append(template.format(f"${param_index}"))
        params.append(value)
        param_index += 1
    if not clauses:
        return "", params
    return "WHERE " + " AND ".join(clauses), params


def build_set(fields: Dict[str, Any], allowed: Tuple[str, ...]) -> Tuple[str, List[Any]]:
    columns = [name for name in allowed if name in fields]
    if not columns:
        raise ValidationError("No fields to update")
    assignments = ", ".join(f"{name} = ${index}" for index, name in enumerate(columns, 1))
    return assignments, [fields[name] for name in columns]


def affected_rows(status: str) -> int:
    """asyncpg command tag ("UPDATE 1") -> 1"""
    try:
        return int(status.split()[-1])
    except (AttributeError, IndexError, ValueError):
        return 0


class PostgresCatalogStore:
    """Catalog rows (categories, products, services) on one connection"""

    def __init__(self, conn):
        self.conn = conn

    async def list_categories(self) -> List[Dict[str, Any]]:
        rows = await self.conn.fetch(
            "SELECT id, name, created_at FROM product_categories ORDER BY name"
        )
        return [dict(row) for row in rows]

    async def insert_category(self, name: str) -> int:
        try:
            return await self.conn.fetchval(
                "INSERT INTO product_categories (name) VALUES ($1) RETURNING id", name
            )
        except asyncpg.UniqueViolationError:
            raise DuplicateRecord("Category", "name", name)

    async def insert_product(self, fields: Dict[str, Any]) -> int:
        try:
            return await self.conn.fetchval("""
                INSERT INTO products (
                    name, slug, description, price, stock_quantity, category_id, is_active
                ) VALUES ($1, $2, $3, $4, $5, $6, $7)
                RETURNING id
            """,
                fields['name'],
                fields['slug'],
                fields.get('description'),
                fields['price'],
                fields.get('stock_quantity', 0),
                fields.get('category_id'),
                fields.get('is_active', True)
            )
        except asyncpg.UniqueViolationError:
            raise DuplicateRecord("Product", "slug", fields.get("slug"))
        except asyncpg.ForeignKeyViolationError:
            raise ValidationError(f"Unknown category_id: {fields.get('category_id')}")

    async def list_products(self, category_id: Optional[int] = None, q: Optional[str] = None,
                            active: Optional[bool] = None, limit: int = 20,
                            offset: int = 0) -> List[Dict[str, Any]]:
        where, params = build_where([
            ("category_id = {}", category_id),
            ("name ILIKE {}", f"%{q}%" if q else None),
            ("is_active = {}", active),
        ])
        rows = await self.conn.fetch(f"""
            SELECT {PRODUCT_COLUMNS}
            FROM products
            {where}
            ORDER BY id DESC
            LIMIT ${len(params) + 1} OFFSET ${len(params) + 2}
        """, *params, limit, offset)
        return [dict(row) for row in rows]

    async def get_product(self, product_id: int) -> Optional[Dict[str, Any]]:
        row = await self.conn.fetchrow(
            f"SELECT {PRODUCT_COLUMNS} FROM products WHERE id = $1", product_id
        )
        return dict(row) if row else None

    async def get_product_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        row = await self.conn.fetchrow(
            f"SELECT {PRODUCT_COLUMNS} FROM products WHERE slug = $1", slug
        )
        return dict(row) if row else None

    async def lock_product(self, product_id: int) -> Optional[Dict[str, Any]]:
        """Read a product row and hold its exclusive lock until the transaction ends"""
        row = await self.conn.fetchrow(
            f"SELECT {PRODUCT_COLUMNS} FROM products WHERE id = $1 FOR UPDATE", product_id
        )
        return dict(row) if row else None

    async def decrement_stock(self, product_id: int, quantity: int) -> None:
        await self.conn.execute("""
            UPDATE products
            SET stock_quantity = stock_quantity - $1
            WHERE id = $2
        """, quantity, product_id)

    async def update_product(self, product_id: int, fields: Dict[str, Any]) -> int:
        assignments, params = build_set(fields, PRODUCT_FIELDS)
        try:
            result = await self.conn.execute(
                f"UPDATE products SET {assignments} WHERE id = ${len(params) + 1}",
                *params, product_id
            )
        except asyncpg.UniqueViolationError:
            raise DuplicateRecord("Product", "slug", fields.get("slug"))
        except asyncpg.ForeignKeyViolationError:
            raise ValidationError(f"Unknown category_id: {fields.get('category_id')}")
        return affected_rows(result)

    async def insert_service(self, fields: Dict[str, Any]) -> int:
        return await self.conn.fetchval("""
            INSERT INTO gardening_services (service_name, description, price, is_active)
            VALUES ($1, $2, $3, $4)
            RETURNING id
        """,
            fields['service_name'],
            fields.get('description'),
            fields['price'],
            fields.get('is_active', True)
        )

    async def list_services(self, active: Optional[bool] = None) -> List[Dict[str, Any]]:
        where, params = build_where([("is_active = {}", active)])
        rows = await self.conn.fetch(
            f"SELECT {SERVICE_COLUMNS} FROM gardening_services {where} ORDER BY service_name",
            *params
        )
        return [dict(row) for row in rows]

    async def get_service(self, service_id: int, active_only: bool = False) -> Optional[Dict[str, Any]]:
        query = f"SELECT {SERVICE_COLUMNS} FROM gardening_services WHERE id = $1"
        if active_only:
            query += " AND is_active = true"
        row = await self.conn.fetchrow(query, service_id)
        return dict(row) if row else None

    async def update_service(self, service_id: int, fields: Dict[str, Any]) -> int:
        assignments, params = build_set(fields, SERVICE_FIELDS)
        result = await self.conn.execute(
            f"UPDATE gardening_services SET {assignments} WHERE id = ${len(params) + 1}",
            *params, service_id
        )
        return affected_rows(result)
