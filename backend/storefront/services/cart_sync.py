# storefront/services/cart_sync.py
"""
Cart synchronization service.

Keeps the signed-in user's cart in memory, mirrors it to `userCarts/{uid}`
and notifies listeners on every change.

- Mutations (add/remove/clear) update memory and notify synchronously; the
  write to the store runs as a background task the caller does not await.
- Sync failures (fetch, save, clear) are logged and degrade to local state.
  Checkout failures are raised to the caller.
- Each fetch carries the generation it was issued for; a result arriving
  after another identity event is dropped.
- Mutations made while the signed-in user's cart is still loading are not
  written; they are replayed on top of the loaded items and saved once.
"""
from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from functools import partial
from typing import Any, Awaitable, Callable, List, Optional, Set, Tuple

from storefront.core.errors import CartEmpty, IdentityAbsent, InvalidLineItem, StoreFailure
from storefront.schemas.cart import CART_ITEMS_FIELD, LineItem, decode_cart, encode_cart
from storefront.schemas.order import OrderItem, OrderSnapshot
from storefront.schemas.principal import Principal
from storefront.services.document_store import DocumentStore
from storefront.services.identity import IdentitySource

logger = logging.getLogger("storefront.cart")

Listener = Callable[[], None]


def _to_price(value: Any) -> Decimal:
    try:
        price = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (ArithmeticError, TypeError, ValueError) as exc:
        raise InvalidLineItem(f"unit_price is not a number: {value!r}") from exc
    if not price.is_finite() or price < 0:
        raise InvalidLineItem(f"unit_price must be >= 0, got {value!r}")
    return price


def _merge_line(items: List[LineItem], id: str, name: str, unit_price: Decimal, quantity: int) -> List[LineItem]:
    for item in items:
        if item.id == id:
            item.quantity += quantity
            break
    else:
        items.append(LineItem(id=id, name=name, unit_price=unit_price, quantity=quantity))
    return items


def _drop_line(items: List[LineItem], id: str) -> List[LineItem]:
    return [item for item in items if item.id != id]


def _empty(items: List[LineItem]) -> List[LineItem]:
    return []


class CartSyncService:
    def __init__(
        self,
        identity_source: IdentitySource,
        store: DocumentStore,
        *,
        carts_collection: str = "userCarts",
        orders_collection: str = "orders",
    ):
        self._store = store
        self._carts = carts_collection
        self._orders = orders_collection

        self._items: List[LineItem] = []
        self._identity: Optional[Principal] = None
        self._listeners: List[Listener] = []
        # Mutations issued before the current identity's cart has loaded
        self._deferred: List[Callable[[List[LineItem]], List[LineItem]]] = []

        self._pending: Set[asyncio.Task] = set()
        self._write_lock = asyncio.Lock()
        self._generation = 0
        self._settled = asyncio.Event()
        self._disposed = False

        logger.debug("CartSyncService initialized")
        self._subscription = asyncio.get_running_loop().create_task(self._follow(identity_source))

    # ---------- read accessors ----------
    @property
    def identity(self) -> Optional[Principal]:
        return self._identity

    @property
    def items(self) -> Tuple[LineItem, ...]:
        return tuple(item.model_copy() for item in self._items)

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self._items)

    @property
    def total_price(self) -> Decimal:
        return sum((item.line_total for item in self._items), Decimal("0"))

    # ---------- listeners ----------
    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Register a no-argument callback; returns a function that unregisters it."""
        self._listeners.append(listener)
        return lambda: self.remove_listener(listener)

    def remove_listener(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Cart listener %r failed", listener)

    # ---------- identity ----------
    async def _follow(self, source: IdentitySource) -> None:
        stream = source.subscribe()
        try:
            async for identity in stream:
                self.on_identity_changed(identity)
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

    def on_identity_changed(self, identity: Optional[Principal]) -> None:
        if identity is None:
            logger.info("User logged out -> clearing cart")
            self._generation += 1
            self._identity = None
            self._items = []
            self._deferred = []
            self._settled.set()
            self._notify()
            return

        if self._identity is not None and self._identity.uid == identity.uid:
            # Same user re-emitted (token refresh); keep the live cart
            self._identity = identity
            return

        logger.info("User logged in: %s -> fetching cart", identity.uid)
        self._identity = identity
        self._items = []
        self._deferred = []
        self._generation += 1
        self._settled.clear()
        self._spawn(self._fetch_cart(identity.uid, self._generation))
        self._notify()

    async def _fetch_cart(self, uid: str, generation: int) -> None:
        try:
            record = await self._store.get(self._carts, uid)
            items = decode_cart(record)
        except StoreFailure:
            logger.warning("Error fetching cart for %s; falling back to empty cart", uid, exc_info=True)
            items = []
        except ValueError:
            logger.warning("Unreadable cart record for %s; falling back to empty cart", uid, exc_info=True)
            items = []
        except Exception:
            logger.exception("Unexpected error fetching cart for %s; falling back to empty cart", uid)
            items = []

        if generation != self._generation:
            logger.debug("Dropping stale cart fetch for %s", uid)
            return

        deferred, self._deferred = self._deferred, []
        for apply in deferred:
            items = apply(items)
        self._items = items
        logger.info("Cart fetched for %s: %d items", uid, len(items))
        self._settled.set()
        self._notify()
        if deferred:
            logger.debug("Replayed %d cart changes for %s", len(deferred), uid)
            self._schedule_save()

    # ---------- persistence ----------
    def _spawn(self, coro: Awaitable[None]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def _loading(self) -> bool:
        return self._identity is not None and not self._settled.is_set()

    def _schedule_save(self) -> None:
        if self._identity is None or self._loading():
            return
        # Snapshot now; the write may run after further mutations
        self._spawn(self._save_cart(self._identity.uid, encode_cart(self._items)))

    async def _save_cart(self, uid: str, record: dict) -> None:
        async with self._write_lock:
            try:
                await self._store.set(self._carts, uid, record)
            except StoreFailure:
                logger.warning("Error saving cart for %s", uid, exc_info=True)
                return
        logger.debug("Cart saved for %s (%d lines)", uid, len(record[CART_ITEMS_FIELD]))

    async def flush(self) -> None:
        """Wait for every background fetch/save issued so far."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def wait_settled(self) -> None:
        """Wait until the cart for the latest identity event has been loaded (or cleared)."""
        await self._settled.wait()

    # ---------- mutations ----------
    def add_item(self, id: str, name: str, unit_price: Any, quantity: int = 1) -> None:
        if not isinstance(id, str) or not id.strip():
            raise InvalidLineItem("id cannot be empty")
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise InvalidLineItem(f"quantity must be >= 1, got {quantity!r}")
        price = _to_price(unit_price)
        if self._identity is None:
            raise IdentityAbsent("Sign in to add items to the cart.")

        change = partial(_merge_line, id=id, name=name, unit_price=price, quantity=quantity)
        if self._loading():
            self._deferred.append(change)
        self._items = change(self._items)

        self._notify()
        self._schedule_save()

    def remove_item(self, id: str) -> None:
        change = partial(_drop_line, id=id)
        if self._loading():
            # The line may only exist in the record still being fetched
            self._deferred.append(change)
        remaining = change(self._items)
        if len(remaining) == len(self._items):
            return
        self._items = remaining
        self._notify()
        self._schedule_save()

    def clear_cart(self) -> None:
        if self._loading():
            self._deferred.append(_empty)
        self._items = []
        # Best-effort: a failed overwrite is only logged
        self._schedule_save()
        self._notify()

    async def place_order(self) -> str:
        """
        Write an immutable order snapshot of the current cart and return its id.
        The cart itself is left untouched; callers clear it explicitly.
        """
        if self._loading():
            await self._settled.wait()
        if self._identity is None:
            raise IdentityAbsent("Cart is empty or user is not logged in.")
        if not self._items:
            raise CartEmpty("Cart is empty or user is not logged in.")

        uid = self._identity.uid
        snapshot = OrderSnapshot(
            user_id=uid,
            items=[OrderItem.model_validate(item.to_record()) for item in self._items],
            total_price=self.total_price,
            item_count=self.item_count,
        )
        try:
            order_id = await self._store.add(self._orders, snapshot.to_record(self._store.server_timestamp()))
        except StoreFailure:
            logger.error("Error placing order for %s", uid, exc_info=True)
            raise
        logger.info("Order %s placed for %s (%d items)", order_id, uid, snapshot.item_count)
        return order_id

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._subscription.cancel()
        self._listeners.clear()
