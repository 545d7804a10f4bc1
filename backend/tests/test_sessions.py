import asyncio
from unittest.mock import AsyncMock, MagicMock

from google.auth.exceptions import RefreshError

from storefront.config import Settings
from storefront.services.document_store import FirestoreDocumentStore
from storefront.services.sessions import CartSessionRegistry

from helpers import MUG, SHIRT, cart_record


def _registry(store):
    return CartSessionRegistry(store, Settings(store_backend="memory"))


async def test_open_loads_stored_cart(store, alice):
    store.collection("userCarts")["alice"] = cart_record(SHIRT, MUG)
    sessions = _registry(store)

    cart = await sessions.open(alice)

    assert [it.id for it in cart.items] == ["p1", "p2"]
    assert "alice" in sessions
    await sessions.close_all()


async def test_open_reuses_the_session(store, alice):
    sessions = _registry(store)
    first = await sessions.open(alice)
    first.add_item("p1", "Shirt", 19.99)

    second = await sessions.open(alice)

    assert second is first
    assert second.item_count == 1
    await sessions.close_all()


async def test_close_flushes_and_forgets(store, alice):
    sessions = _registry(store)
    cart = await sessions.open(alice)
    cart.add_item("p1", "Shirt", 19.99)

    assert await sessions.close("alice") is True

    assert "alice" not in sessions
    assert store.collection("userCarts")["alice"] == cart_record(SHIRT)
    assert await sessions.close("alice") is False


async def test_prune_idle_closes_stale_sessions(store, alice, bob):
    sessions = _registry(store)
    await sessions.open(alice)
    await sessions.open(bob)

    assert await sessions.prune_idle(max_idle_seconds=3600) == 0
    assert await sessions.prune_idle(max_idle_seconds=0) == 2
    assert len(sessions) == 0


async def test_concurrent_opens_wait_for_stored_cart(gated_store, alice):
    gated_store.collection("userCarts")["alice"] = cart_record(SHIRT)
    gate = gated_store.gate("alice")
    sessions = _registry(gated_store)

    first = asyncio.ensure_future(sessions.open(alice))
    before_identity = asyncio.ensure_future(sessions.open(alice))
    for _ in range(3):
        await asyncio.sleep(0)
    during_fetch = asyncio.ensure_future(sessions.open(alice))
    await asyncio.sleep(0)
    assert not any(t.done() for t in (first, before_identity, during_fetch))

    gate.set()
    carts = await asyncio.wait_for(asyncio.gather(first, before_identity, during_fetch), timeout=1)

    assert carts[0] is carts[1] is carts[2]
    carts[1].add_item("p2", "Mug", 7.5, 2)
    await carts[1].flush()
    assert gated_store.collection("userCarts")["alice"] == cart_record(SHIRT, MUG)
    await sessions.close_all()


async def test_open_survives_credential_failure(alice):
    client = MagicMock()
    client.collection.return_value.document.return_value.get = AsyncMock(side_effect=RefreshError("expired"))
    sessions = _registry(FirestoreDocumentStore(client))

    cart = await asyncio.wait_for(sessions.open(alice), timeout=1)

    assert cart.items == ()
    assert cart.identity.uid == "alice"
    await sessions.close_all()


async def test_session_in_use_is_not_pruned(store, alice):
    sessions = _registry(store)

    async with sessions.use(alice) as cart:
        assert await sessions.prune_idle(max_idle_seconds=0) == 0
        cart.add_item("p1", "Shirt", 19.99)

    assert "alice" in sessions
    assert await sessions.prune_idle(max_idle_seconds=0) == 1
    assert store.collection("userCarts")["alice"] == cart_record(SHIRT)
