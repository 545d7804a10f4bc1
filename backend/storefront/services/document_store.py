# storefront/services/document_store.py
"""
Document store seam.

Services talk to `DocumentStore` only; `FirestoreDocumentStore` is the real
backend (Firebase Admin async client), `InMemoryDocumentStore` backs local
development (`STORE_BACKEND=memory`) and the test-suite.

Every backend error surfaces as `StoreFailure`; callers decide whether to
swallow it (cart sync) or raise it (checkout).
"""
from __future__ import annotations

import asyncio
import copy
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from google.api_core.exceptions import FailedPrecondition, GoogleAPIError, NotFound
from google.auth.exceptions import GoogleAuthError
from google.cloud import firestore as gcf
from google.cloud.firestore_v1 import SERVER_TIMESTAMP
from google.cloud.firestore_v1.base_query import FieldFilter

from storefront.config import Settings, get_firestore_client
from storefront.core.errors import RecordNotFound, StoreFailure

logger = logging.getLogger("storefront.store")

Record = Dict[str, Any]
Where = Tuple[str, Any]

# Credential refresh and transport problems are not GoogleAPIError subclasses
BACKEND_ERRORS = (GoogleAPIError, GoogleAuthError)


def _sort_key(field: str):
    # Records without the field go last when sorting newest first
    def key(item: Tuple[str, Record]):
        value = item[1].get(field)
        return (value is not None, value if value is not None else 0)
    return key


class DocumentStore(ABC):
    """Collection + key addressed JSON-like records."""

    @abstractmethod
    async def get(self, collection: str, key: str) -> Optional[Record]:
        """Return the record or None when absent."""

    @abstractmethod
    async def set(self, collection: str, key: str, record: Record) -> None:
        """Overwrite the whole record (no merge)."""

    @abstractmethod
    async def add(self, collection: str, record: Record) -> str:
        """Append a record under a generated key and return the key."""

    @abstractmethod
    async def update(self, collection: str, key: str, patch: Record) -> None:
        """Patch fields of an existing record; RecordNotFound when missing."""

    @abstractmethod
    async def query(
        self,
        collection: str,
        where: Optional[Where] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Tuple[str, Record]]:
        """Equality filter on one field plus optional ordering."""

    @abstractmethod
    def server_timestamp(self) -> Any:
        """Sentinel the backend replaces with its own clock on write."""


class FirestoreDocumentStore(DocumentStore):
    def __init__(self, client):
        self._db = client

    async def get(self, collection: str, key: str) -> Optional[Record]:
        try:
            snap = await self._db.collection(collection).document(key).get()
        except BACKEND_ERRORS as exc:
            raise StoreFailure("get", collection, key) from exc
        if not snap.exists:
            return None
        return snap.to_dict() or {}

    async def set(self, collection: str, key: str, record: Record) -> None:
        try:
            await self._db.collection(collection).document(key).set(record)
        except BACKEND_ERRORS as exc:
            raise StoreFailure("set", collection, key) from exc

    async def add(self, collection: str, record: Record) -> str:
        try:
            _, ref = await self._db.collection(collection).add(record)
        except BACKEND_ERRORS as exc:
            raise StoreFailure("add", collection) from exc
        return ref.id

    async def update(self, collection: str, key: str, patch: Record) -> None:
        try:
            await self._db.collection(collection).document(key).update(patch)
        except NotFound as exc:
            raise RecordNotFound(collection, key) from exc
        except BACKEND_ERRORS as exc:
            raise StoreFailure("update", collection, key) from exc

    async def _stream(self, q) -> List[Tuple[str, Record]]:
        return [(snap.id, snap.to_dict() or {}) async for snap in q.stream()]

    async def query(
        self,
        collection: str,
        where: Optional[Where] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Tuple[str, Record]]:
        q = self._db.collection(collection)
        if where is not None:
            field, value = where
            q = q.where(filter=FieldFilter(field, "==", value))
        try:
            if order_by is None:
                return await self._stream(q)
            direction = gcf.Query.DESCENDING if descending else gcf.Query.ASCENDING
            try:
                return await self._stream(q.order_by(order_by, direction=direction))
            except FailedPrecondition:
                # Composite index missing: unordered query + in-process sort
                logger.warning("No index for %s ordered by %s; sorting in process", collection, order_by)
                rows = await self._stream(q)
                return sorted(rows, key=_sort_key(order_by), reverse=descending)
        except BACKEND_ERRORS as exc:
            raise StoreFailure("query", collection) from exc

    def server_timestamp(self) -> Any:
        return SERVER_TIMESTAMP


class InMemoryDocumentStore(DocumentStore):
    """Process-local store with Firestore-like overwrite semantics."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, Record]] = {}

    def _resolve(self, record: Record) -> Record:
        out = copy.deepcopy(record)
        for k, v in out.items():
            if v is SERVER_TIMESTAMP:
                out[k] = datetime.now(timezone.utc)
        return out

    def collection(self, name: str) -> Dict[str, Record]:
        """Raw access for seeding and inspection."""
        return self._collections.setdefault(name, {})

    async def get(self, collection: str, key: str) -> Optional[Record]:
        await asyncio.sleep(0)
        record = self.collection(collection).get(key)
        return copy.deepcopy(record) if record is not None else None

    async def set(self, collection: str, key: str, record: Record) -> None:
        await asyncio.sleep(0)
        self.collection(collection)[key] = self._resolve(record)

    async def add(self, collection: str, record: Record) -> str:
        await asyncio.sleep(0)
        key = uuid.uuid4().hex[:20]
        self.collection(collection)[key] = self._resolve(record)
        return key

    async def update(self, collection: str, key: str, patch: Record) -> None:
        await asyncio.sleep(0)
        docs = self.collection(collection)
        if key not in docs:
            raise RecordNotFound(collection, key)
        docs[key].update(self._resolve(patch))

    async def query(
        self,
        collection: str,
        where: Optional[Where] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Tuple[str, Record]]:
        await asyncio.sleep(0)
        rows = [(k, copy.deepcopy(v)) for k, v in self.collection(collection).items()]
        if where is not None:
            field, value = where
            rows = [row for row in rows if row[1].get(field) == value]
        if order_by is not None:
            rows.sort(key=_sort_key(order_by), reverse=descending)
        return rows

    def server_timestamp(self) -> Any:
        return SERVER_TIMESTAMP


def build_store(cfg: Settings) -> DocumentStore:
    """Store selected by STORE_BACKEND (`firestore` | `memory`)."""
    if cfg.store_backend == "memory":
        logger.warning("Using in-memory document store; data is lost on restart")
        return InMemoryDocumentStore()
    return FirestoreDocumentStore(get_firestore_client())
