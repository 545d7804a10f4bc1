#!/usr/bin/env python3
"""
Grant admin rights to a user through the Firebase Admin SDK.

Sets the `admin` custom claim and `users/{uid}.role = "admin"`; the admin
panel accepts either one.

Usage: python set_admin_claim.py <user_email>
"""
import asyncio
import logging
import sys

from firebase_admin import auth

from storefront.config import get_firebase_app, settings
from storefront.services.document_store import DocumentStore, build_store
from storefront.services.users import set_user_role

logger = logging.getLogger("storefront.set_admin_claim")

async def set_admin_claim(user_email: str, store: DocumentStore) -> str:
    """Promote the user with this e-mail and return its uid."""
    app = get_firebase_app()
    user = auth.get_user_by_email(user_email, app=app)
    logger.info("User found: %s - %s", user.uid, user.email)

    claims = dict(user.custom_claims or {})
    claims["admin"] = True
    auth.set_custom_user_claims(user.uid, claims, app=app)
    await set_user_role(store, user.uid, "admin")
    logger.info("Admin claim and role set for %s", user_email)
    return user.uid

def main(argv) -> int:
    if len(argv) != 2:
        print("Usage: python set_admin_claim.py <user_email>")
        return 1

    user_email = argv[1]
    try:
        uid = asyncio.run(set_admin_claim(user_email, build_store(settings)))
    except auth.UserNotFoundError:
        print(f"User not found: {user_email}")
        return 1
    print(f"Admin claim set for {user_email} ({uid}).")
    print("The user will need to sign out and sign in again for the changes to take effect.")
    return 0

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(main(sys.argv))
