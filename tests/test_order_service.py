"""Tests for order placement, the stock-reserving transaction."""

import asyncio
from decimal import Decimal

import pytest
from conftest import run, stock_of

from greengrove.config import Config
from greengrove.errors import (
    ConflictError,
    InsufficientStock,
    InvalidStatus,
    NotFoundError,
    OrderNotFound,
    ProductNotFound,
    StorageFault,
    ValidationError,
)
from greengrove.models.order import OrderStatus


class TestPlaceOrder:
    def test_total_is_computed_from_catalog_prices(self, db, orders, seeded):
        order = run(orders.place_order(7, [{"product_id": seeded["tomatoes"], "quantity": 3}]))

        assert order.total_amount == Decimal("450.00")
        assert order.status == OrderStatus.PENDING
        assert stock_of(db, seeded["tomatoes"]) == 2

    def test_multi_item_total_matches_line_items(self, orders, seeded):
        order = run(orders.place_order(7, [
            {"product_id": seeded["tomatoes"], "quantity": 2},
            {"product_id": seeded["kale"], "quantity": 3},
        ], delivery_address="12 Riverside Dr"))

        assert order.total_amount == Decimal("448.50")
        assert order.total_amount == order.items_total
        assert [(i.product_id, i.quantity) for i in order.items] == [
            (seeded["tomatoes"], 2),
            (seeded["kale"], 3),
        ]
        assert order.delivery_address == "12 Riverside Dr"

    def test_line_items_keep_price_at_purchase_time(self, catalog, orders, seeded):
        order = run(orders.place_order(7, [{"product_id": seeded["kale"], "quantity": 2}]))
        run(catalog.update_product(seeded["kale"], {"price": Decimal("80")}))

        reloaded = run(orders.get_order(order.id))
        assert reloaded.items[0].price == Decimal("49.50")
        assert reloaded.total_amount == Decimal("99.00")
        assert reloaded.items[0].name == "Sukuma Wiki bunch"

    def test_unknown_product_leaves_store_unchanged(self, db, orders, seeded):
        with pytest.raises(ProductNotFound) as exc_info:
            run(orders.place_order(7, [
                {"product_id": seeded["tomatoes"], "quantity": 1},
                {"product_id": 999, "quantity": 1},
            ]))

        assert isinstance(exc_info.value, NotFoundError)
        assert stock_of(db, seeded["tomatoes"]) == 5
        assert db.tables.rows["orders"] == {}
        assert db.tables.rows["order_items"] == {}

    def test_inactive_product_cannot_be_ordered(self, db, orders, seeded):
        with pytest.raises(ProductNotFound):
            run(orders.place_order(7, [{"product_id": seeded["retired"], "quantity": 1}]))
        assert stock_of(db, seeded["retired"]) == 10

    def test_insufficient_stock_leaves_store_unchanged(self, db, orders, seeded):
        with pytest.raises(InsufficientStock) as exc_info:
            run(orders.place_order(7, [
                {"product_id": seeded["kale"], "quantity": 4},
                {"product_id": seeded["tomatoes"], "quantity": 6},
            ]))

        assert isinstance(exc_info.value, ConflictError)
        assert exc_info.value.available == 5
        assert stock_of(db, seeded["kale"]) == 20
        assert stock_of(db, seeded["tomatoes"]) == 5
        assert db.tables.rows["orders"] == {}

    def test_exact_stock_can_be_bought(self, db, orders, seeded):
        run(orders.place_order(7, [{"product_id": seeded["tomatoes"], "quantity": 5}]))
        assert stock_of(db, seeded["tomatoes"]) == 0

    def test_same_product_twice_in_one_order(self, db, orders, seeded):
        with pytest.raises(InsufficientStock):
            run(orders.place_order(7, [
                {"product_id": seeded["tomatoes"], "quantity": 3},
                {"product_id": seeded["tomatoes"], "quantity": 3},
            ]))
        assert stock_of(db, seeded["tomatoes"]) == 5

    @pytest.mark.parametrize("quantity", [0, -2, 1.5, "many", None, True])
    def test_invalid_quantity_is_rejected(self, db, orders, seeded, quantity):
        with pytest.raises(ValidationError):
            run(orders.place_order(7, [{"product_id": seeded["tomatoes"], "quantity": quantity}]))
        assert db.tables.rows["orders"] == {}

    @pytest.mark.parametrize("items", [[], None, "tomatoes", [42]])
    def test_malformed_items_are_rejected(self, orders, items):
        with pytest.raises(ValidationError):
            run(orders.place_order(7, items))

    def test_missing_user_is_rejected(self, orders, seeded):
        with pytest.raises(ValidationError):
            run(orders.place_order(None, [{"product_id": seeded["tomatoes"], "quantity": 1}]))


class TestConcurrentOrders:
    def test_second_order_for_remaining_stock_conflicts(self, db, orders, seeded):
        line = [{"product_id": seeded["tomatoes"], "quantity": 3}]

        async def scenario():
            return await asyncio.gather(
                orders.place_order(1, line),
                orders.place_order(2, line),
                return_exceptions=True,
            )

        first, second = run(scenario())

        assert first.total_amount == Decimal("450.00")
        assert isinstance(second, InsufficientStock)
        assert stock_of(db, seeded["tomatoes"]) == 2
        assert len(db.tables.rows["orders"]) == 1

    def test_no_oversell_under_contention(self, db, orders, seeded):
        async def scenario():
            return await asyncio.gather(*(
                orders.place_order(user_id, [
                    {"product_id": seeded["kale"], "quantity": 3},
                    {"product_id": seeded["tomatoes"], "quantity": 1},
                ])
                for user_id in range(1, 11)
            ), return_exceptions=True)

        results = run(scenario())
        placed = [r for r in results if not isinstance(r, Exception)]
        failed = [r for r in results if isinstance(r, Exception)]

        assert len(placed) == 5
        assert all(isinstance(r, InsufficientStock) for r in failed)
        assert stock_of(db, seeded["tomatoes"]) == 0
        assert stock_of(db, seeded["kale"]) == 20 - 3 * len(placed)
        assert len(db.tables.rows["order_items"]) == 2 * len(placed)

    def test_lock_timeout_rolls_back(self, db, orders, seeded, monkeypatch):
        monkeypatch.setattr(Config, "TRANSACTION_TIMEOUT", 0.05)

        async def scenario():
            async with db.transaction() as holder:
                await holder.catalog.lock_product(seeded["tomatoes"])
                with pytest.raises(StorageFault):
                    await orders.place_order(1, [{"product_id": seeded["tomatoes"], "quantity": 1}])

        run(scenario())

        assert db.tables.rows["orders"] == {}
        assert stock_of(db, seeded["tomatoes"]) == 5


class TestOrderQueries:
    def test_get_missing_order(self, orders):
        with pytest.raises(OrderNotFound):
            run(orders.get_order(404))

    def test_list_orders_filters_by_user_and_status(self, orders, seeded):
        line = [{"product_id": seeded["kale"], "quantity": 1}]
        first = run(orders.place_order(1, line))
        run(orders.place_order(2, line))
        third = run(orders.place_order(1, line))
        run(orders.update_order_status(first.id, "cancelled"))

        mine = run(orders.list_orders(user_id=1))
        assert [o.id for o in mine] == [third.id, first.id]

        cancelled = run(orders.list_orders(status="cancelled"))
        assert [o.id for o in cancelled] == [first.id]

    def test_list_orders_pages(self, orders, seeded):
        line = [{"product_id": seeded["kale"], "quantity": 1}]
        ids = [run(orders.place_order(1, line)).id for _ in range(3)]

        assert [o.id for o in run(orders.list_orders(page=1, limit=2))] == ids[::-1][:2]
        assert [o.id for o in run(orders.list_orders(page=2, limit=2))] == ids[:1]


class TestOrderStatus:
    def test_any_listed_status_is_accepted(self, orders, seeded):
        order = run(orders.place_order(1, [{"product_id": seeded["kale"], "quantity": 1}]))

        assert run(orders.update_order_status(order.id, "completed")) == 1
        assert run(orders.update_order_status(order.id, "pending")) == 1
        assert run(orders.get_order(order.id)).status == OrderStatus.PENDING

    def test_unknown_status_leaves_row_unchanged(self, orders, seeded):
        order = run(orders.place_order(1, [{"product_id": seeded["kale"], "quantity": 1}]))

        with pytest.raises(InvalidStatus):
            run(orders.update_order_status(order.id, "shipped"))
        assert run(orders.get_order(order.id)).status == OrderStatus.PENDING

    def test_missing_order_updates_nothing(self, orders):
        assert run(orders.update_order_status(404, "completed")) == 0
