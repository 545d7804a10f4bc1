"""
storefront/schemas/cart.py - Pydantic models for the cart and its stored record.

A cart is stored as one document per user:

    userCarts/{uid} = {"cartItems": [{"id", "name", "price", "quantity"}, ...]}

`encode_cart` / `decode_cart` are the only places that know this layout.
"""
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

CART_ITEMS_FIELD = "cartItems"


class LineItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1, description="Product ID")
    name: str = Field(..., description="Product name at the time of adding to cart")
    unit_price: Decimal = Field(..., ge=0, alias="price", description="Price per unit at the time of adding to cart")
    quantity: int = Field(1, ge=1, description="Quantity of the product in the cart")

    @field_validator("unit_price", mode="before")
    @classmethod
    def _float_via_str(cls, v: Any) -> Any:
        # Firestore hands prices back as floats; 19.99 must stay Decimal("19.99")
        if isinstance(v, float):
            return Decimal(str(v))
        return v

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": float(self.unit_price),
            "quantity": int(self.quantity),
        }


def encode_cart(items: Iterable[LineItem]) -> Dict[str, Any]:
    """Whole-document representation of a cart."""
    return {CART_ITEMS_FIELD: [item.to_record() for item in items]}


def decode_cart(record: Optional[Dict[str, Any]]) -> List[LineItem]:
    """
    Parse a stored cart document.
    - missing document or missing/null `cartItems` -> empty cart
    - repeated ids are merged (quantities summed), first position wins
    Raises `ValueError` (pydantic ValidationError) on malformed items.
    """
    if not record:
        return []
    raw = record.get(CART_ITEMS_FIELD) or []
    if not isinstance(raw, list):
        raise ValueError(f"{CART_ITEMS_FIELD} must be a list, got {type(raw).__name__}")

    items: List[LineItem] = []
    by_id: Dict[str, LineItem] = {}
    for entry in raw:
        item = LineItem.model_validate(entry)
        existing = by_id.get(item.id)
        if existing is not None:
            existing.quantity += item.quantity
            continue
        by_id[item.id] = item
        items.append(item)
    return items


# ---------- HTTP payloads ----------
class AddItemBody(BaseModel):
    """Add to cart by ID; name and price come from the catalog."""
    product_id: str = Field(..., description="Product ID (the same 'id' you see in /products).")
    quantity: int = Field(1, ge=1, le=10000, description="Quantity (>=1).")

    @field_validator("product_id")
    @classmethod
    def _clean_pid(cls, v: str) -> str:
        v = (v or "").strip()
        for ch in ("\u200b", "\u200c", "\u200d", "\ufeff", "\xa0"):
            v = v.replace(ch, "")
        if not v:
            raise ValueError("product_id cannot be empty")
        return v


class CartLineOut(BaseModel):
    id: str
    name: str
    price: float
    quantity: int
    line_total: float


class CartOut(BaseModel):
    user_id: Optional[str] = None
    items: List[CartLineOut] = Field(default_factory=list)
    item_count: int = 0
    total_price: float = 0.0


class CheckoutOut(BaseModel):
    order_id: str
