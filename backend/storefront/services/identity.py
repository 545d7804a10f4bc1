# storefront/services/identity.py
"""
Identity source: a stream of "who is signed in" events.

Subscribers first receive the current identity (or None), then every
sign-in / sign-out after that.
"""
from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, List, Optional, Protocol

from storefront.schemas.principal import Principal

logger = logging.getLogger("storefront.identity")


class IdentitySource(Protocol):
    def subscribe(self) -> AsyncIterator[Optional[Principal]]:
        ...


class AuthStateStream:
    """In-process auth state broadcaster fed with verified principals."""

    def __init__(self, initial: Optional[Principal] = None):
        self._current = initial
        self._queues: List[asyncio.Queue] = []

    @property
    def current(self) -> Optional[Principal]:
        return self._current

    @property
    def subscriber_count(self) -> int:
        return len(self._queues)

    def sign_in(self, principal: Principal) -> None:
        logger.debug("sign-in: %s", principal.uid)
        self._publish(principal)

    def sign_out(self) -> None:
        logger.debug("sign-out")
        self._publish(None)

    def _publish(self, identity: Optional[Principal]) -> None:
        self._current = identity
        for queue in list(self._queues):
            queue.put_nowait(identity)

    async def subscribe(self) -> AsyncIterator[Optional[Principal]]:
        queue: asyncio.Queue = asyncio.Queue()
        self._queues.append(queue)
        try:
            yield self._current
            while True:
                yield await queue.get()
        finally:
            self._queues.remove(queue)
