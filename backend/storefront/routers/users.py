"""
# `storefront/routers/users.py` — Profile

### `GET /users/me`
The caller's identity plus the resolved role:
- token `admin` claim → `admin`
- anonymous sign-in → `guest`
- otherwise `users/{uid}.role` (missing → `user`)
"""
from fastapi import APIRouter, Depends

from storefront.core.auth import get_principal
from storefront.core.security import get_store
from storefront.schemas.principal import Principal
from storefront.schemas.user import UserProfile
from storefront.services.document_store import DocumentStore
from storefront.services.users import fetch_user_role

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserProfile)
async def get_my_profile(
    principal: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_store),
):
    role = principal.role
    if role == "user":
        role = await fetch_user_role(store, principal.uid)
    return UserProfile(
        id=principal.uid,
        email=principal.email,
        display_name=principal.display_name,
        role=role,
    )
