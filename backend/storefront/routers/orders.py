"""
# `storefront/routers/orders.py` — Orders

Orders are created by `POST /cart/checkout`; this router only reads them and
lets admins move them through their statuses.

## User
### `GET /orders/my`
The caller's orders, newest first.

## Admin (prefix `/admin`)
### `GET /admin/orders/`
Every order, newest first.

### `POST /admin/orders/{order_id}/status`
Body `{"status": "Pending" | "Processing" | "Shipped" | "Delivered" | "Cancelled"}`.
`404` for an unknown order.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from storefront.core.auth import get_principal
from storefront.core.errors import RecordNotFound
from storefront.core.security import get_store, require_admin
from storefront.schemas.order import OrderOut, OrderStatusUpdate
from storefront.schemas.principal import Principal
from storefront.services import orders as order_service
from storefront.services.document_store import DocumentStore

router = APIRouter(prefix="/orders", tags=["Orders"])
admin_router = APIRouter(prefix="/orders", tags=["Admin Orders"])


@router.get("/my", response_model=List[OrderOut])
async def list_my_orders(
    principal: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    return await order_service.list_orders_for_user(store, principal.uid)


@admin_router.get("/", response_model=List[OrderOut], dependencies=[Depends(require_admin)])
async def admin_list_orders(store: DocumentStore = Depends(get_store)):
    return await order_service.list_all_orders(store)


@admin_router.post("/{order_id}/status", response_model=OrderOut, dependencies=[Depends(require_admin)])
async def admin_set_status(
    order_id: str,
    payload: OrderStatusUpdate,
    store: DocumentStore = Depends(get_store),
):
    try:
        return await order_service.update_order_status(store, order_id, payload.status)
    except RecordNotFound:
        raise HTTPException(status_code=404, detail="Order not found.")
