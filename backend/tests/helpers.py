"""Test doubles and helpers shared by the test modules."""
import asyncio

from storefront.core.errors import StoreFailure
from storefront.services.cart_sync import CartSyncService
from storefront.services.document_store import InMemoryDocumentStore


class FlakyStore(InMemoryDocumentStore):
    """In-memory store whose reads/writes can be switched to fail."""

    def __init__(self):
        super().__init__()
        self.fail_get = False
        self.fail_set = False
        self.fail_add = False
        self.set_calls = []

    async def get(self, collection, key):
        if self.fail_get:
            raise StoreFailure("get", collection, key)
        return await super().get(collection, key)

    async def set(self, collection, key, record):
        self.set_calls.append((collection, key, record))
        if self.fail_set:
            raise StoreFailure("set", collection, key)
        await super().set(collection, key, record)

    async def add(self, collection, record):
        if self.fail_add:
            raise StoreFailure("add", collection)
        return await super().add(collection, record)


class GatedStore(InMemoryDocumentStore):
    """Cart reads for a gated key block until the gate is opened."""

    def __init__(self):
        super().__init__()
        self.gates = {}

    def gate(self, key: str) -> asyncio.Event:
        return self.gates.setdefault(key, asyncio.Event())

    async def get(self, collection, key):
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        return await super().get(collection, key)


async def settle(service: CartSyncService) -> None:
    """Let the identity task consume queued events, then wait for the fetch."""
    for _ in range(3):
        await asyncio.sleep(0)
    await service.wait_settled()


def cart_record(*items):
    return {"cartItems": [dict(it) for it in items]}


SHIRT = {"id": "p1", "name": "Shirt", "price": 19.99, "quantity": 1}
MUG = {"id": "p2", "name": "Mug", "price": 7.5, "quantity": 2}
