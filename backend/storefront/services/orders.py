# storefront/services/orders.py
"""Order history and admin-side status changes (checkout lives in cart_sync)."""
from __future__ import annotations

import logging
from typing import List

from storefront.config import settings
from storefront.schemas.order import OrderOut, OrderStatus, order_record_to_out
from storefront.services.document_store import DocumentStore

logger = logging.getLogger("storefront.orders")


async def list_orders_for_user(store: DocumentStore, uid: str) -> List[OrderOut]:
    rows = await store.query(settings.orders, where=("userId", uid), order_by="createdAt", descending=True)
    return [order_record_to_out(oid, d) for oid, d in rows]


async def list_all_orders(store: DocumentStore) -> List[OrderOut]:
    rows = await store.query(settings.orders, order_by="createdAt", descending=True)
    return [order_record_to_out(oid, d) for oid, d in rows]


async def update_order_status(store: DocumentStore, order_id: str, status: OrderStatus) -> OrderOut:
    """Raises RecordNotFound for an unknown order."""
    await store.update(settings.orders, order_id, {"status": status, "updatedAt": store.server_timestamp()})
    logger.info("Order %s -> %s", order_id, status)
    d = await store.get(settings.orders, order_id)
    return order_record_to_out(order_id, d or {})
