# storefront/services/catalog.py
"""Product catalog reads/writes (home screen listing, admin panel)."""
from __future__ import annotations

import logging
from typing import List, Optional

from storefront.config import settings
from storefront.schemas.product import ProductCreate, ProductOut, product_record_to_out
from storefront.services.document_store import DocumentStore

logger = logging.getLogger("storefront.catalog")


async def list_products(store: DocumentStore) -> List[ProductOut]:
    """All products, newest first."""
    rows = await store.query(settings.products, order_by="createdAt", descending=True)
    return [product_record_to_out(pid, src) for pid, src in rows]


async def get_product(store: DocumentStore, product_id: str) -> Optional[ProductOut]:
    src = await store.get(settings.products, product_id)
    if src is None:
        return None
    return product_record_to_out(product_id, src)


async def create_product(store: DocumentStore, payload: ProductCreate) -> ProductOut:
    record = {
        "name": payload.name,
        "description": payload.description,
        "price": float(payload.price),
        "imageUrl": payload.image_url,
        "createdAt": store.server_timestamp(),
    }
    product_id = await store.add(settings.products, record)
    logger.info("Product %s created: %s", product_id, payload.name)
    saved = await store.get(settings.products, product_id)
    return product_record_to_out(product_id, saved or record)
