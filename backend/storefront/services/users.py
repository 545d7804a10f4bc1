# storefront/services/users.py
from __future__ import annotations

import logging

from storefront.config import settings
from storefront.core.errors import RecordNotFound, StoreFailure
from storefront.schemas.principal import Role
from storefront.services.document_store import DocumentStore

logger = logging.getLogger("storefront.users")

DEFAULT_ROLE: Role = "user"
_ROLES = ("guest", "user", "admin")


async def fetch_user_role(store: DocumentStore, uid: str) -> Role:
    """
    Stored role from users/{uid}.role.
    Missing record, missing field and store failure all fall back to "user";
    the log line tells them apart.
    """
    try:
        doc = await store.get(settings.users, uid)
    except StoreFailure:
        logger.warning("Error fetching role for %s; defaulting to %s", uid, DEFAULT_ROLE, exc_info=True)
        return DEFAULT_ROLE
    if doc is None:
        logger.debug("No user record for %s; defaulting to %s", uid, DEFAULT_ROLE)
        return DEFAULT_ROLE
    role = doc.get("role")
    if role not in _ROLES:
        logger.debug("User %s has no usable role (%r); defaulting to %s", uid, role, DEFAULT_ROLE)
        return DEFAULT_ROLE
    return role


async def set_user_role(store: DocumentStore, uid: str, role: Role) -> None:
    """Patch only the role field; a missing user record is created."""
    try:
        await store.update(settings.users, uid, {"role": role})
    except RecordNotFound:
        logger.info("No user record for %s; creating one with role %s", uid, role)
        await store.set(settings.users, uid, {"role": role})
