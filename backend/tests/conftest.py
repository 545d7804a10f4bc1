"""
Shared fixtures.

The whole suite runs against the in-memory document store; no Firebase
project or credentials are needed.
"""
import os

os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("ALLOW_MOCK_TOKENS", "false")

import pytest
from httpx import ASGITransport, AsyncClient

from storefront.core.auth import get_principal
from storefront.main import create_app
from storefront.schemas.principal import Principal
from storefront.services.cart_sync import CartSyncService
from storefront.services.identity import AuthStateStream

from helpers import FlakyStore, GatedStore, settle


@pytest.fixture
def store() -> FlakyStore:
    return FlakyStore()


@pytest.fixture
def gated_store() -> GatedStore:
    return GatedStore()


@pytest.fixture
def alice() -> Principal:
    return Principal(uid="alice", role="user", email="alice@example.com", display_name="Alice")


@pytest.fixture
def bob() -> Principal:
    return Principal(uid="bob", role="user", email="bob@example.com")


@pytest.fixture
def auth_stream() -> AuthStateStream:
    return AuthStateStream()


@pytest.fixture
async def cart(auth_stream, store):
    """Cart service with nobody signed in yet."""
    service = CartSyncService(auth_stream, store)
    await settle(service)
    yield service
    service.dispose()
    await service.flush()


@pytest.fixture
async def signed_in_cart(cart, auth_stream, alice):
    auth_stream.sign_in(alice)
    await settle(cart)
    return cart


# ---------- HTTP ----------
@pytest.fixture
def current_principal(alice):
    """Mutable holder: tests swap the caller by assigning ["principal"]."""
    return {"principal": alice}


@pytest.fixture
async def app(store, current_principal):
    test_app = create_app(store=store)
    test_app.dependency_overrides[get_principal] = lambda: current_principal["principal"]
    yield test_app
    await test_app.state.sessions.close_all()


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def seeded_products(store):
    products = store.collection("products")
    products["p1"] = {"name": "Shirt", "description": "Cotton", "price": 19.99, "imageUrl": "https://img/p1.png"}
    products["p2"] = {"name": "Mug", "description": "", "price": 7.5, "imageUrl": None}
    return products
