"""
storefront/config.py - Application configuration and Firebase initialization.

This module defines a Pydantic BaseSettings class to load configuration from environment,
and initializes the Firebase Admin SDK lazily (on first use) from the provided credentials.
Other modules import `settings` from here, and ask for the Firestore client through
`get_firestore_client()` instead of creating their own.
"""
from functools import lru_cache
from typing import Optional

import firebase_admin
from firebase_admin import credentials, firestore_async
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""
    firebase_cred_file: str = Field('firebase_service_account.json', description="Service account JSON path")
    firebase_project_id: Optional[str] = Field(None, description="Firebase project id")

    # Firebase credentials from environment variables (for Cloud Run)
    firebase_private_key_id: Optional[str] = None
    firebase_private_key: Optional[str] = None
    firebase_client_email: Optional[str] = None
    firebase_client_id: Optional[str] = None
    firebase_auth_uri: Optional[str] = None
    firebase_token_uri: Optional[str] = None
    firebase_auth_provider_x509_cert_url: Optional[str] = None
    firebase_client_x509_cert_url: Optional[str] = None

    # Collections (all of them honour FIREBASE_COLLECTION_PREFIX)
    firebase_collection_prefix: str = ""
    carts_collection: str = "userCarts"
    orders_collection: str = "orders"
    products_collection: str = "products"
    users_collection: str = "users"

    store_backend: str = Field("firestore", description="firestore | memory")
    allow_mock_tokens: bool = False

    session_idle_minutes: int = 30
    session_sweep_minutes: int = 5

    debug: bool = False
    log_level: str = "INFO"
    allowed_origins: str = Field('*', description="Comma-separated list or '*' for all")

    def collection(self, name: str) -> str:
        prefix = (self.firebase_collection_prefix or "").strip()
        return f"{prefix}{name}" if prefix else name

    @property
    def carts(self) -> str:
        return self.collection(self.carts_collection)

    @property
    def orders(self) -> str:
        return self.collection(self.orders_collection)

    @property
    def products(self) -> str:
        return self.collection(self.products_collection)

    @property
    def users(self) -> str:
        return self.collection(self.users_collection)

    class Config:
        env_file = ".env"
        case_sensitive = False


# Load settings from environment (.env file, etc.)
settings = Settings()


def _credential(cfg: Settings):
    # Check if we have environment variables for Firebase credentials (Cloud Run)
    if all([
        cfg.firebase_private_key_id,
        cfg.firebase_private_key,
        cfg.firebase_client_email,
        cfg.firebase_client_id,
        cfg.firebase_auth_uri,
        cfg.firebase_token_uri,
        cfg.firebase_auth_provider_x509_cert_url,
        cfg.firebase_client_x509_cert_url,
    ]):
        cred_dict = {
            "type": "service_account",
            "project_id": cfg.firebase_project_id,
            "private_key_id": cfg.firebase_private_key_id,
            "private_key": cfg.firebase_private_key.replace("\\n", "\n"),
            "client_email": cfg.firebase_client_email,
            "client_id": cfg.firebase_client_id,
            "auth_uri": cfg.firebase_auth_uri,
            "token_uri": cfg.firebase_token_uri,
            "auth_provider_x509_cert_url": cfg.firebase_auth_provider_x509_cert_url,
            "client_x509_cert_url": cfg.firebase_client_x509_cert_url,
        }
        return credentials.Certificate(cred_dict)
    # Use service account file (local development)
    return credentials.Certificate(cfg.firebase_cred_file)


@lru_cache(maxsize=1)
def get_firebase_app() -> firebase_admin.App:
    """Initialize the Firebase Admin SDK once and return the default app."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        # Not initialized yet
        pass
    options = {'projectId': settings.firebase_project_id} if settings.firebase_project_id else None
    return firebase_admin.initialize_app(_credential(settings), options)


@lru_cache(maxsize=1)
def get_firestore_client():
    """Async Firestore client bound to the default Firebase app."""
    return firestore_async.client(get_firebase_app())
