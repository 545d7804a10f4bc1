# storefront/schemas/order.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

# Order statuses (checkout always starts at "Pending")
OrderStatus = Literal[
    "Pending",
    "Processing",
    "Shipped",
    "Delivered",
    "Cancelled",
]

INITIAL_STATUS: OrderStatus = "Pending"


class OrderItem(BaseModel):
    id: str
    name: str
    price: float
    quantity: int = 1


class OrderSnapshot(BaseModel):
    """
    Immutable checkout snapshot, built from the in-memory cart.
    `to_record` produces the stored document; `created_at` is left to the server.
    """
    model_config = {"frozen": True}

    user_id: str
    items: List[OrderItem]
    total_price: Decimal
    item_count: int
    status: OrderStatus = INITIAL_STATUS

    def to_record(self, created_at: Any) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "items": [it.model_dump() for it in self.items],
            "totalPrice": float(self.total_price),
            "itemCount": self.item_count,
            "status": self.status,
            "createdAt": created_at,
        }


class OrderOut(BaseModel):
    id: str
    user_id: str
    items: List[OrderItem] = Field(default_factory=list)
    total_price: float
    item_count: int
    status: str
    created_at: Optional[datetime] = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


def order_record_to_out(order_id: str, d: Dict[str, Any]) -> OrderOut:
    """Stored order document -> API model (tolerates missing fields)."""
    created = d.get("createdAt")
    if created is not None and not isinstance(created, datetime):
        # Firestore Timestamp-like values
        to_dt = getattr(created, "to_datetime", None)
        created = to_dt() if callable(to_dt) else None
    return OrderOut(
        id=order_id,
        user_id=str(d.get("userId", "")),
        items=[OrderItem.model_validate(it) for it in (d.get("items") or [])],
        total_price=float(d.get("totalPrice", 0) or 0),
        item_count=int(d.get("itemCount", 0) or 0),
        status=str(d.get("status") or INITIAL_STATUS),
        created_at=created,
    )
