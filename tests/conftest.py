"""Pytest fixtures for GreenGrove tests."""

import asyncio
from decimal import Decimal

import pytest

from greengrove.config import Config
from greengrove.database import MemoryDatabase
from greengrove.services import (
    BookingService,
    CatalogService,
    OrderService,
    PaymentService,
)


def run(coro):
    """Drive one coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)


@pytest.fixture(autouse=True)
def shop_settings(monkeypatch):
    monkeypatch.setattr(Config, "TIMEZONE", "Africa/Nairobi")
    monkeypatch.setattr(Config, "DEFAULT_CURRENCY", "KES")
    monkeypatch.setattr(Config, "API_PREFIX", "/api")


@pytest.fixture
def db():
    return MemoryDatabase()


@pytest.fixture
def catalog(db):
    return CatalogService(db)


@pytest.fixture
def orders(db):
    return OrderService(db)


@pytest.fixture
def bookings(db):
    return BookingService(db)


@pytest.fixture
def payments(db):
    return PaymentService(db)


@pytest.fixture
def seeded(catalog):
    """A small catalog: two live products, one retired product, two services."""

    async def seed():
        vegetables = await catalog.create_category("Vegetables")
        tomatoes = await catalog.create_product({
            "name": "Tomatoes (1kg)",
            "slug": "tomatoes-1kg",
            "price": Decimal("150"),
            "stock_quantity": 5,
            "category_id": vegetables.id,
        })
        kale = await catalog.create_product({
            "name": "Sukuma Wiki bunch",
            "slug": "sukuma-wiki",
            "price": Decimal("49.50"),
            "stock_quantity": 20,
            "category_id": vegetables.id,
        })
        retired = await catalog.create_product({
            "name": "Old seed mix",
            "slug": "old-seed-mix",
            "price": Decimal("300"),
            "stock_quantity": 10,
            "is_active": False,
        })
        lawn = await catalog.create_service({
            "service_name": "Lawn mowing",
            "price": Decimal("1200"),
        })
        hedge = await catalog.create_service({
            "service_name": "Hedge trimming",
            "price": Decimal("800"),
            "is_active": False,
        })
        return {
            "category": vegetables.id,
            "tomatoes": tomatoes.id,
            "kale": kale.id,
            "retired": retired.id,
            "lawn": lawn.id,
            "hedge": hedge.id,
        }

    return run(seed())


def stock_of(db, product_id):
    return db.tables.rows["products"][product_id]["stock_quantity"]
