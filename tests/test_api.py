"""HTTP tests for the REST surface, backed by the in-process store."""

import pytest
from conftest import stock_of
from fastapi.testclient import TestClient

from greengrove.app import create_app
from greengrove.database import MemoryDatabase
from greengrove.errors import StorageFault


@pytest.fixture
def client(db, seeded):
    with TestClient(create_app(db)) as client:
        yield client


def place(client, product_id, quantity, user_id=7):
    return client.post("/api/orders", json={
        "user_id": user_id,
        "delivery_address": "12 Riverside Dr",
        "items": [{"product_id": product_id, "quantity": quantity}],
    })


class TestOrdersAPI:
    def test_place_order(self, client, db, seeded):
        response = place(client, seeded["tomatoes"], 3)

        assert response.status_code == 201
        assert response.json()["total_amount"] == 450.0
        assert response.json()["status"] == "pending"
        assert stock_of(db, seeded["tomatoes"]) == 2

    def test_second_order_conflicts(self, client, seeded):
        assert place(client, seeded["tomatoes"], 3).status_code == 201

        response = place(client, seeded["tomatoes"], 3)
        assert response.status_code == 409
        assert response.json()["error_type"] == "InsufficientStock"

    def test_unknown_product_is_404(self, client):
        response = place(client, 999, 1)
        assert response.status_code == 404
        assert response.json() == {"error": "Product not found: 999", "error_type": "ProductNotFound"}

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "lots", True, "2"])
    def test_bad_quantity_is_400(self, client, db, seeded, quantity):
        response = place(client, seeded["tomatoes"], quantity)

        assert response.status_code == 400
        assert response.json()["error_type"] == "ValidationError"
        assert db.tables.rows["orders"] == {}

    def test_boolean_ids_are_400(self, client, db, seeded):
        response = client.post("/api/orders", json={
            "user_id": True,
            "items": [{"product_id": seeded["tomatoes"], "quantity": 1}],
        })
        assert response.status_code == 400

        response = place(client, True, 1)
        assert response.status_code == 400

        assert db.tables.rows["orders"] == {}
        assert stock_of(db, seeded["tomatoes"]) == 5

    def test_empty_items_is_400(self, client):
        response = client.post("/api/orders", json={"user_id": 7, "items": []})
        assert response.status_code == 400

    def test_get_order_with_items(self, client, seeded):
        order_id = place(client, seeded["kale"], 2).json()["id"]

        body = client.get(f"/api/orders/{order_id}").json()
        assert body["total_amount"] == 99.0
        assert body["items"] == [{
            "id": 1,
            "product_id": seeded["kale"],
            "name": "Sukuma Wiki bunch",
            "quantity": 2,
            "price": 49.5,
        }]

    def test_list_and_update_status(self, client, seeded):
        order_id = place(client, seeded["kale"], 1).json()["id"]

        response = client.patch(f"/api/orders/{order_id}/status", json={"status": "completed"})
        assert response.json() == {"updated": 1}

        listed = client.get("/api/orders", params={"status": "completed"}).json()
        assert [o["id"] for o in listed] == [order_id]

        response = client.patch(f"/api/orders/{order_id}/status", json={"status": "shipped"})
        assert response.status_code == 400
        assert response.json()["error_type"] == "InvalidStatus"

    def test_missing_order_is_404(self, client):
        assert client.get("/api/orders/404").status_code == 404


class TestBookingsAPI:
    def test_create_and_list(self, client, seeded):
        response = client.post("/api/bookings", json={
            "user_id": 3,
            "service_id": seeded["lawn"],
            "booking_date": "2026-11-02T09:30:00",
            "address": "4 Garden Lane",
        })
        assert response.status_code == 201
        assert response.json()["status"] == "pending"

        [booking] = client.get("/api/bookings", params={"user_id": 3}).json()
        assert booking["service_name"] == "Lawn mowing"
        assert booking["address"] == "4 Garden Lane"

    def test_inactive_service_is_404(self, client, seeded):
        response = client.post("/api/bookings", json={
            "user_id": 3,
            "service_id": seeded["hedge"],
            "booking_date": "2026-11-02T09:30:00",
        })
        assert response.status_code == 404

    def test_boolean_service_id_is_400(self, client, db, seeded):
        response = client.post("/api/bookings", json={
            "user_id": 3,
            "service_id": True,
            "booking_date": "2026-11-02T09:30:00",
        })
        assert response.status_code == 400
        assert db.tables.rows["service_bookings"] == {}

    def test_status_update(self, client, seeded):
        booking_id = client.post("/api/bookings", json={
            "user_id": 3,
            "service_id": seeded["lawn"],
            "booking_date": "2026-11-02T09:30:00",
        }).json()["id"]

        response = client.patch(f"/api/bookings/{booking_id}/status", json={"status": "confirmed"})
        assert response.json() == {"updated": 1}


class TestPaymentsAPI:
    def test_payment_lifecycle(self, client, seeded):
        order_id = place(client, seeded["tomatoes"], 3).json()["id"]

        response = client.post("/api/payments", json={
            "user_id": 7,
            "order_id": order_id,
            "payment_method": "Mpesa",
        })
        assert response.status_code == 201
        payment = response.json()
        assert payment["amount"] == 450.0
        assert payment["status"] == "pending"
        assert payment["currency"] == "KES"

        url = f"/api/payments/{payment['id']}/status"
        assert client.patch(url, json={"status": "success", "provider_ref": "QK71XYZ"}).json() == {"updated": 1}

        response = client.patch(url, json={"status": "failed"})
        assert response.status_code == 409
        assert response.json()["error_type"] == "InvalidTransition"

        [listed] = client.get("/api/payments", params={"order_id": order_id}).json()
        assert listed["status"] == "success"
        assert listed["provider_ref"] == "QK71XYZ"

    def test_unknown_method_is_400(self, client, db, seeded):
        order_id = place(client, seeded["tomatoes"], 1).json()["id"]

        response = client.post("/api/payments", json={
            "user_id": 7,
            "order_id": order_id,
            "payment_method": "Bitcoin",
        })
        assert response.status_code == 400
        assert response.json()["error_type"] == "InvalidPaymentMethod"
        assert db.tables.rows["payments"] == {}

    def test_boolean_order_id_is_400(self, client, db, seeded):
        place(client, seeded["tomatoes"], 1)

        response = client.post("/api/payments", json={
            "user_id": 7,
            "order_id": True,
            "payment_method": "Mpesa",
        })
        assert response.status_code == 400
        assert db.tables.rows["payments"] == {}

    def test_unknown_payment_updates_nothing(self, client):
        response = client.patch("/api/payments/77/status", json={"status": "success"})
        assert response.json() == {"updated": 0}


class TestCatalogAPI:
    def test_products(self, client, seeded):
        assert client.get("/api/products/sukuma-wiki").json()["id"] == seeded["kale"]
        assert client.get(f"/api/products/id/{seeded['kale']}").json()["price"] == 49.5
        assert client.get("/api/products/no-such-slug").status_code == 404

        listed = client.get("/api/products", params={"active": "true"}).json()
        assert {p["slug"] for p in listed} == {"tomatoes-1kg", "sukuma-wiki"}

    def test_create_and_update_product(self, client, seeded):
        response = client.post("/api/products", json={
            "name": "Spinach",
            "slug": "spinach",
            "price": 35,
            "stock_quantity": 8,
            "category_id": seeded["category"],
        })
        assert response.status_code == 201
        product_id = response.json()["id"]

        assert client.patch(f"/api/products/{product_id}", json={"stock_quantity": 3}).json() == {"updated": 1}
        assert client.get(f"/api/products/id/{product_id}").json()["stock_quantity"] == 3

        response = client.patch(f"/api/products/{product_id}", json={"stock_quantity": True})
        assert response.status_code == 400

    def test_duplicate_slug_is_409(self, client, seeded):
        response = client.post("/api/products", json={"name": "Kale", "slug": "sukuma-wiki", "price": 10})
        assert response.status_code == 409
        assert response.json()["error_type"] == "DuplicateRecord"

    def test_categories_and_services(self, client, seeded):
        assert client.post("/api/categories", json={"name": "Herbs"}).status_code == 201
        assert [c["name"] for c in client.get("/api/categories").json()] == ["Herbs", "Vegetables"]

        services = client.get("/api/services", params={"active": "true"}).json()
        assert [s["service_name"] for s in services] == ["Lawn mowing"]
        assert client.get(f"/api/services/{seeded['lawn']}").json()["price"] == 1200.0

        response = client.post("/api/services", json={"service_name": "Weeding", "price": 400})
        assert response.status_code == 201


class TestSystemAPI:
    def test_health(self, client):
        assert client.get("/api/health").json() == {"ok": True}

    def test_client_log(self, client):
        assert client.post("/api/logs", json={"action": "view", "page": "/cart"}).status_code == 204

    def test_storage_fault_is_opaque(self, monkeypatch):
        db = MemoryDatabase()

        async def broken(*args, **kwargs):
            raise StorageFault("connection refused by 10.0.0.5")

        monkeypatch.setattr(db, "run_transaction", broken)
        with TestClient(create_app(db)) as client:
            response = client.post("/api/categories", json={"name": "Herbs"})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "error_type": "StorageFault"}
