"""
# `storefront/core/security.py` — Dependencies & authorization

FastAPI dependencies shared by the routers:

- `get_store` / `get_sessions`: the document store and cart session registry
  created by `create_app` (kept on `app.state`, so tests can swap them).
- `get_cart`: the caller's `CartSyncService` (opened on first use, held for the
  length of the request so the idle sweep leaves it alone).
- `require_admin`: accepts the caller when the token carries the `admin`
  custom claim **or** `users/{uid}.role == "admin"`; otherwise `403`.
"""
from typing import AsyncIterator

from fastapi import Depends, HTTPException, Request, status

from storefront.core.auth import get_principal
from storefront.schemas.principal import Principal
from storefront.services.cart_sync import CartSyncService
from storefront.services.document_store import DocumentStore
from storefront.services.sessions import CartSessionRegistry
from storefront.services.users import fetch_user_role


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_sessions(request: Request) -> CartSessionRegistry:
    return request.app.state.sessions


async def get_cart(
    principal: Principal = Depends(get_principal),
    sessions: CartSessionRegistry = Depends(get_sessions),
) -> AsyncIterator[CartSyncService]:
    async with sessions.use(principal) as cart:
        yield cart


async def require_admin(
    principal: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
) -> Principal:
    """
    Only admin users pass.
    """
    if principal.role == "admin":
        return principal
    if principal.role != "guest" and await fetch_user_role(store, principal.uid) == "admin":
        return principal.model_copy(update={"role": "admin"})
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Admin privilege required."
    )
