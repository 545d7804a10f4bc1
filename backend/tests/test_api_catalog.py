"""Products, orders, profile and the admin surface."""
from datetime import datetime, timedelta, timezone

import pytest

from storefront.schemas.principal import Principal

ADMIN = Principal(uid="root", role="admin", email="root@example.com")


@pytest.fixture
def dated_products(store):
    now = datetime.now(timezone.utc)
    products = store.collection("products")
    products["old"] = {"name": "Old", "description": "", "price": 1.0, "createdAt": now - timedelta(days=1)}
    products["new"] = {"name": "New", "description": "", "price": 2.5, "createdAt": now}
    return products


@pytest.fixture
def orders(store):
    now = datetime.now(timezone.utc)
    docs = store.collection("orders")
    docs["o1"] = {"userId": "alice", "items": [], "totalPrice": 5.0, "itemCount": 1,
                  "status": "Pending", "createdAt": now - timedelta(hours=2)}
    docs["o2"] = {"userId": "bob", "items": [], "totalPrice": 3.0, "itemCount": 1,
                  "status": "Pending", "createdAt": now - timedelta(hours=1)}
    docs["o3"] = {"userId": "alice", "items": [], "totalPrice": 9.0, "itemCount": 2,
                  "status": "Shipped", "createdAt": now}
    return docs


class TestProducts:
    async def test_list_newest_first(self, client, dated_products):
        res = await client.get("/products/")
        assert res.status_code == 200
        assert [p["id"] for p in res.json()] == ["new", "old"]

    async def test_get_one(self, client, seeded_products):
        res = await client.get("/products/p1")
        assert res.json()["name"] == "Shirt"
        assert res.json()["image_url"] == "https://img/p1.png"

    async def test_get_missing(self, client):
        assert (await client.get("/products/missing")).status_code == 404


class TestAdminProducts:
    async def test_regular_user_is_forbidden(self, client):
        res = await client.post("/admin/products/", json={"name": "Hat", "price": 12})
        assert res.status_code == 403

    async def test_admin_claim_creates_product(self, client, store, current_principal):
        current_principal["principal"] = ADMIN

        res = await client.post("/admin/products/", json={"name": "Hat", "price": 12.5})

        assert res.status_code == 201
        body = res.json()
        assert body["name"] == "Hat"
        assert body["created_at"] is not None
        assert store.collection("products")[body["id"]]["price"] == 12.5

    async def test_stored_admin_role_is_accepted(self, client, store):
        store.collection("users")["alice"] = {"role": "admin"}
        res = await client.post("/admin/products/", json={"name": "Hat", "price": 1})
        assert res.status_code == 201

    async def test_guest_is_forbidden_even_with_stored_role(self, client, store, current_principal):
        store.collection("users")["anon"] = {"role": "admin"}
        current_principal["principal"] = Principal(uid="anon", role="guest")
        res = await client.post("/admin/products/", json={"name": "Hat", "price": 1})
        assert res.status_code == 403


class TestOrders:
    async def test_my_orders_newest_first(self, client, orders):
        res = await client.get("/orders/my")
        assert [o["id"] for o in res.json()] == ["o3", "o1"]

    async def test_admin_lists_every_order(self, client, orders, current_principal):
        current_principal["principal"] = ADMIN
        res = await client.get("/admin/orders/")
        assert [o["id"] for o in res.json()] == ["o3", "o2", "o1"]

    async def test_admin_updates_status(self, client, store, orders, current_principal):
        current_principal["principal"] = ADMIN

        res = await client.post("/admin/orders/o1/status", json={"status": "Shipped"})

        assert res.status_code == 200
        assert res.json()["status"] == "Shipped"
        assert store.collection("orders")["o1"]["updatedAt"] is not None

    async def test_unknown_status_is_422(self, client, orders, current_principal):
        current_principal["principal"] = ADMIN
        res = await client.post("/admin/orders/o1/status", json={"status": "Lost"})
        assert res.status_code == 422

    async def test_unknown_order_is_404(self, client, current_principal):
        current_principal["principal"] = ADMIN
        res = await client.post("/admin/orders/nope/status", json={"status": "Shipped"})
        assert res.status_code == 404

    async def test_user_cannot_update_status(self, client, orders):
        res = await client.post("/admin/orders/o1/status", json={"status": "Shipped"})
        assert res.status_code == 403


class TestProfile:
    async def test_default_role(self, client):
        res = await client.get("/users/me")
        assert res.json() == {"id": "alice", "email": "alice@example.com", "display_name": "Alice", "role": "user"}

    async def test_stored_role(self, client, store):
        store.collection("users")["alice"] = {"role": "admin"}
        assert (await client.get("/users/me")).json()["role"] == "admin"

    async def test_role_lookup_failure_falls_back(self, client, store):
        store.fail_get = True
        assert (await client.get("/users/me")).json()["role"] == "user"
