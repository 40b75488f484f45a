# greengrove/services/catalog_service.py
import logging
from typing import Any, Dict, List, Optional
from ..errors import ProductNotFound, ServiceNotFound, ValidationError
from ..models.product import Category, Product, Service
from ..utils.validators import page_limit, parse_amount, parse_id

def _text(value: Any, field: str) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ValidationError(f"{field} required")
    return text

def _stock(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"Invalid stock_quantity: {value!r}")
    return value

def clean_product_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Validate the product columns present in fields"""
    cleaned = {}
    for name, value in fields.items():
        if name in ('name', 'slug'):
            cleaned[name] = _text(value, name)
        elif name == 'description':
            cleaned[name] = None if value is None else str(value)
        elif name == 'price':
            cleaned[name] = parse_amount(value, 'price')
        elif name == 'stock_quantity':
            cleaned[name] = _stock(value)
        elif name == 'category_id':
            cleaned[name] = None if value is None else parse_id(value, 'category_id')
        elif name == 'is_active':
            cleaned[name] = bool(value)
    return cleaned

def clean_service_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    cleaned = {}
    for name, value in fields.items():
        if name == 'service_name':
            cleaned[name] = _text(value, name)
        elif name == 'description':
            cleaned[name] = None if value is None else str(value)
        elif name == 'price':
            cleaned[name] = parse_amount(value, 'price')
        elif name == 'is_active':
            cleaned[name] = bool(value)
    return cleaned

class CatalogService:
    """Categories, products and gardening services"""

    def __init__(self, db):
        self.db = db
        self.logger = logging.getLogger(__name__)

    # Categories

    async def list_categories(self) -> List[Category]:
        async with self.db.session() as session:
            rows = await session.catalog.list_categories()
        return [Category.model_validate(row) for row in rows]

    async def create_category(self, name: Any) -> Category:
        name = _text(name, 'name')

        async def work(tx) -> int:
            return await tx.catalog.insert_category(name)

        category_id = await self.db.run_transaction(work)
        self.logger.info(f"Category {category_id} created: {name}")
        return Category(id=category_id, name=name)

    # Products

    async def create_product(self, fields: Dict[str, Any]) -> Product:
        cleaned = clean_product_fields(fields)
        for required in ('name', 'slug', 'price'):
            if required not in cleaned:
                raise ValidationError(f"{required} required")

        async def work(tx) -> Product:
            product_id = await tx.catalog.insert_product(cleaned)
            return Product.model_validate(await tx.catalog.get_product(product_id))

        product = await self.db.run_transaction(work)
        self.logger.info(f"Product {product.id} created: {product.slug}")
        return product

    async def list_products(self, category_id: Optional[int] = None, q: Optional[str] = None,
                            active: Optional[bool] = None, page: Optional[int] = None,
                            limit: Optional[int] = None) -> List[Product]:
        limit, offset = page_limit(page, limit)
        async with self.db.session() as session:
            rows = await session.catalog.list_products(
                category_id=category_id,
                q=q or None,
                active=active,
                limit=limit,
                offset=offset
            )
        return [Product.model_validate(row) for row in rows]

    async def get_product(self, product_id: Any) -> Product:
        product_id = parse_id(product_id, 'product_id')
        async with self.db.session() as session:
            row = await session.catalog.get_product(product_id)
        if not row:
            raise ProductNotFound(product_id)
        return Product.model_validate(row)

    async def get_product_by_slug(self, slug: str) -> Product:
        async with self.db.session() as session:
            row = await session.catalog.get_product_by_slug(slug)
        if not row:
            raise ProductNotFound(slug)
        return Product.model_validate(row)

    async def update_product(self, product_id: Any, fields: Dict[str, Any]) -> int:
        """Partial admin update; returns the number of rows updated"""
        product_id = parse_id(product_id, 'product_id')
        cleaned = clean_product_fields(fields)
        if not cleaned:
            raise ValidationError("No fields to update")

        async def work(tx) -> int:
            return await tx.catalog.update_product(product_id, cleaned)

        updated = await self.db.run_transaction(work)
        if updated:
            self.logger.info(f"Product {product_id} updated: {', '.join(sorted(cleaned))}")
        return updated

    # Services

    async def create_service(self, fields: Dict[str, Any]) -> Service:
        cleaned = clean_service_fields(fields)
        for required in ('service_name', 'price'):
            if required not in cleaned:
                raise ValidationError(f"{required} required")

        async def work(tx) -> Service:
            service_id = await tx.catalog.insert_service(cleaned)
            return Service.model_validate(await tx.catalog.get_service(service_id))

        service = await self.db.run_transaction(work)
        self.logger.info(f"Service {service.id} created: {service.service_name}")
        return service

    async def list_services(self, active: Optional[bool] = None) -> List[Service]:
        async with self.db.session() as session:
            rows = await session.catalog.list_services(active=active)
        return [Service.model_validate(row) for row in rows]

    async def get_service(self, service_id: Any) -> Service:
        service_id = parse_id(service_id, 'service_id')
        async with self.db.session() as session:
            row = await session.catalog.get_service(service_id)
        if not row:
            raise ServiceNotFound(service_id)
        return Service.model_validate(row)

    async def update_service(self, service_id: Any, fields: Dict[str, Any]) -> int:
        service_id = parse_id(service_id, 'service_id')
        cleaned = clean_service_fields(fields)
        if not cleaned:
            raise ValidationError("No fields to update")

        async def work(tx) -> int:
            return await tx.catalog.update_service(service_id, cleaned)

        updated = await self.db.run_transaction(work)
        if updated:
            self.logger.info(f"Service {service_id} updated: {', '.join(sorted(cleaned))}")
        return updated
