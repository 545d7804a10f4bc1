# storefront/core/errors.py
"""
Exception hierarchy shared by the services.

Routers translate these into `HTTPException`; the cart service decides which
of them are swallowed (sync) and which are raised (checkout).
"""


class StorefrontError(Exception):
    """Base class for every error raised by the storefront services."""


class InvalidOperation(StorefrontError):
    """The operation is not allowed in the current cart state."""


class IdentityAbsent(InvalidOperation):
    """A cart-scoped operation needs a signed-in identity."""


class CartEmpty(InvalidOperation):
    """Checkout was attempted with no line items."""


class InvalidLineItem(StorefrontError, ValueError):
    """Line item arguments violate the cart constraints."""


class StoreFailure(StorefrontError):
    """A document store read or write failed."""

    def __init__(self, operation: str, collection: str, key=None):
        self.operation = operation
        self.collection = collection
        self.key = key
        target = f"{collection}/{key}" if key else collection
        super().__init__(f"Document store {operation} failed for {target}")


class RecordNotFound(StorefrontError):
    """The addressed record does not exist."""

    def __init__(self, collection: str, key: str):
        self.collection = collection
        self.key = key
        super().__init__(f"{collection}/{key} not found")
