"""
# `storefront/schemas/product.py` — Product schemas

Products are written from the admin panel and listed on the home screen.

| Field       | Type    | Required | Notes |
|-------------|---------|----------|-------|
| name        | `str`   | ✔        | Display name (denormalized into cart lines) |
| description | `str`   | ✖        | |
| price       | `float` | ✔        | Unit price (≥0) |
| imageUrl    | `str`   | ✖        | Public image URL |
| createdAt   | timestamp | server | Used for newest-first listing |
"""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(..., ge=0)
    image_url: Optional[str] = None


class ProductOut(BaseModel):
    id: str
    name: str
    description: str = ""
    price: float
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None


def product_record_to_out(product_id: str, src: Dict[str, Any]) -> ProductOut:
    created = src.get("createdAt")
    if created is not None and not isinstance(created, datetime):
        to_dt = getattr(created, "to_datetime", None)
        created = to_dt() if callable(to_dt) else None
    return ProductOut(
        id=product_id,
        name=str(src.get("name", "")),
        description=str(src.get("description", "") or ""),
        price=float(src.get("price", 0) or 0),
        image_url=src.get("imageUrl"),
        created_at=created,
    )
