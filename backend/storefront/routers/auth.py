"""
storefront/routers/auth.py
Sign-out for the cart session. Sign-in itself happens against Firebase
Authentication on the client; every request carries the resulting ID token.

### `POST /auth/logout`
Drops the caller's in-memory cart session (the stored cart is kept) → `204`.
"""
from fastapi import APIRouter, Depends, Response, status

from storefront.core.auth import get_principal
from storefront.core.security import get_sessions
from storefront.schemas.principal import Principal
from storefront.services.sessions import CartSessionRegistry

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/logout", status_code=204)
async def logout(
    principal: Principal = Depends(get_principal),
    sessions: CartSessionRegistry = Depends(get_sessions),
):
    await sessions.close(principal.uid)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
