"""
storefront/routers/cart.py
Cart endpoints (logged-in users): get cart, add by id, remove one line, clear, checkout.

Behavior
- Every request works on the caller's in-memory cart session; the first request
  of a session loads `userCarts/{uid}` from the store.
- Add uses product_id + quantity; name and price are denormalized from the catalog
  at add time (unknown product -> 404).
- Removing an id that is not in the cart returns the unchanged cart.
- Writes to the store happen in the background; the response reflects memory.
- Checkout writes an order snapshot and leaves the cart as is unless
  `clear_cart_on_success=true` is passed.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from storefront.core.errors import IdentityAbsent, InvalidLineItem, InvalidOperation, StoreFailure
from storefront.core.security import get_cart, get_store
from storefront.schemas.cart import AddItemBody, CartLineOut, CartOut, CheckoutOut
from storefront.services.cart_sync import CartSyncService
from storefront.services.catalog import get_product
from storefront.services.document_store import DocumentStore

router = APIRouter(prefix="/cart", tags=["Cart"])


def _cart_out(cart: CartSyncService) -> CartOut:
    identity = cart.identity
    return CartOut(
        user_id=identity.uid if identity else None,
        items=[
            CartLineOut(
                id=it.id,
                name=it.name,
                price=float(it.unit_price),
                quantity=it.quantity,
                line_total=float(it.line_total),
            )
            for it in cart.items
        ],
        item_count=cart.item_count,
        total_price=float(cart.total_price),
    )


# ---------- routes ----------
@router.get("", response_model=CartOut)
async def get_cart_no_slash(cart: CartSyncService = Depends(get_cart)):
    """Get cart endpoint without trailing slash."""
    return _cart_out(cart)


@router.get("/", response_model=CartOut)
async def get_cart_with_slash(cart: CartSyncService = Depends(get_cart)):
    """Get cart endpoint with trailing slash."""
    return _cart_out(cart)


@router.post("/items", response_model=CartOut)
async def add_to_cart(
    payload: AddItemBody,
    cart: CartSyncService = Depends(get_cart),
    store: DocumentStore = Depends(get_store),
):
    """Add product to the cart by ID; repeated adds increase the quantity."""
    product = await get_product(store, payload.product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found.")
    try:
        cart.add_item(product.id, product.name, product.price, payload.quantity)
    except InvalidLineItem as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except IdentityAbsent as exc:
        raise HTTPException(status_code=401, detail=str(exc))
    return _cart_out(cart)


@router.delete("/items/{product_id}", response_model=CartOut)
async def remove_cart_item(product_id: str, cart: CartSyncService = Depends(get_cart)):
    """Remove one line by its product_id (no-op when it is not in the cart)."""
    cart.remove_item(product_id)
    return _cart_out(cart)


@router.delete("", status_code=204)
@router.delete("/", status_code=204, include_in_schema=False)
async def clear_cart(cart: CartSyncService = Depends(get_cart)):
    """Clear the entire cart."""
    cart.clear_cart()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/checkout", response_model=CheckoutOut, status_code=status.HTTP_201_CREATED)
async def checkout(
    clear_cart_on_success: bool = Query(False, description="Clear the cart once the order is stored."),
    cart: CartSyncService = Depends(get_cart),
):
    """Place an order from the current cart (status 'Pending')."""
    try:
        order_id = await cart.place_order()
    except InvalidOperation as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except StoreFailure:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Order could not be placed. Please try again.",
        )
    if clear_cart_on_success:
        cart.clear_cart()
    return CheckoutOut(order_id=order_id)
