# storefront/services/sessions.py
"""
Per-user cart sessions for the HTTP surface.

Each signed-in uid gets its own `AuthStateStream` + `CartSyncService` pair.
Sessions live in memory; idle ones are closed by the scheduler
(`prune_idle`), which only drops local state: the stored cart stays.
A session held through `use()` is never pruned.
"""
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, Optional

from storefront.config import Settings
from storefront.schemas.principal import Principal
from storefront.services.cart_sync import CartSyncService
from storefront.services.document_store import DocumentStore
from storefront.services.identity import AuthStateStream

logger = logging.getLogger("storefront.sessions")


@dataclass
class CartSession:
    auth: AuthStateStream
    service: CartSyncService
    last_seen: float = field(default_factory=time.monotonic)
    in_use: int = 0

    def touch(self) -> None:
        self.last_seen = time.monotonic()


class CartSessionRegistry:
    def __init__(self, store: DocumentStore, settings: Settings):
        self._store = store
        self._settings = settings
        self._sessions: Dict[str, CartSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, uid: str) -> bool:
        return uid in self._sessions

    def get(self, uid: str) -> Optional[CartSession]:
        return self._sessions.get(uid)

    def _session_for(self, principal: Principal) -> CartSession:
        session = self._sessions.get(principal.uid)
        if session is None:
            auth = AuthStateStream(principal)
            service = CartSyncService(
                auth,
                self._store,
                carts_collection=self._settings.carts,
                orders_collection=self._settings.orders,
            )
            session = CartSession(auth=auth, service=service)
            self._sessions[principal.uid] = session
            logger.info("Cart session opened for %s", principal.uid)
        elif session.auth.current is None or session.auth.current != principal:
            # Fresh token for the same uid (claims may have changed)
            session.auth.sign_in(principal)
        return session

    async def open(self, principal: Principal) -> CartSyncService:
        """
        Return the caller's cart service once the stored cart has loaded.
        Concurrent callers for one uid share the session and all wait for the load.
        """
        session = self._session_for(principal)
        session.touch()
        await session.service.wait_settled()
        return session.service

    @asynccontextmanager
    async def use(self, principal: Principal) -> AsyncIterator[CartSyncService]:
        """`open()` for the length of a request; the session is not pruned meanwhile."""
        session = self._session_for(principal)
        session.in_use += 1
        try:
            session.touch()
            await session.service.wait_settled()
            yield session.service
        finally:
            session.in_use -= 1
            session.touch()

    async def close(self, uid: str) -> bool:
        session = self._sessions.pop(uid, None)
        if session is None:
            return False
        session.auth.sign_out()
        await session.service.flush()
        session.service.dispose()
        logger.info("Cart session closed for %s", uid)
        return True

    async def prune_idle(self, max_idle_seconds: Optional[float] = None) -> int:
        if max_idle_seconds is None:
            max_idle_seconds = self._settings.session_idle_minutes * 60
        cutoff = time.monotonic() - max_idle_seconds
        stale = [
            uid for uid, s in self._sessions.items()
            if s.in_use == 0 and s.last_seen <= cutoff
        ]
        for uid in stale:
            await self.close(uid)
        if stale:
            logger.info("Pruned %d idle cart sessions", len(stale))
        return len(stale)

    async def close_all(self) -> None:
        for uid in list(self._sessions):
            await self.close(uid)
