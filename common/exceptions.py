"""
VibeCart - Custom Exceptions
=============================
Business-level exceptions that can be caught and converted to HTTP responses.
Each class carries its HTTP status and a stable machine-readable error code.
"""

from fastapi import Request
from fastapi.responses import JSONResponse


class StoreError(Exception):
    """Base exception for all business logic errors."""
    status_code = 500
    code = "server_error"
    default_message = "Something went wrong"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(StoreError):
    """Raised for malformed or out-of-range input."""
    status_code = 400
    code = "validation_error"
    default_message = "Invalid request"


class AuthenticationError(StoreError):
    """Raised when authentication fails."""
    status_code = 401
    code = "authentication_error"
    default_message = "User not authenticated"


class AuthorizationError(StoreError):
    """Raised when user lacks permission."""
    status_code = 403
    code = "authorization_error"
    default_message = "You are not authorized to perform this action"


class DuplicateError(StoreError):
    """Raised for unique constraint violations at the business level."""
    status_code = 400
    code = "duplicate"
    default_message = "Resource already exists"


class NotFoundError(StoreError):
    """Raised when a requested resource doesn't exist."""
    status_code = 404
    code = "not_found"
    default_message = "Resource not found"


class ProductNotFoundError(NotFoundError):
    code = "product_not_found"
    default_message = "Product not found"


class CartNotFoundError(NotFoundError):
    code = "cart_not_found"
    default_message = "Cart not found"


class ItemNotFoundError(NotFoundError):
    """Raised when an update targets a product that is not in the cart."""
    code = "item_not_found"
    default_message = "Item not found in cart"


class InsufficientStockError(StoreError):
    """Raised when the requested quantity exceeds catalog stock."""
    status_code = 400
    code = "insufficient_stock"

    def __init__(self, available: int):
        self.available = available
        super().__init__(f"Only {available} items available in stock")


def error_body(message: str, error: str = None, **extra) -> dict:
    """Standard failure envelope."""
    body = {"success": False, "message": message, "data": None}
    if error:
        body["error"] = error
    body.update(extra)
    return body


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    """Convert a business exception to a JSON error envelope."""
    return JSONResponse(error_body(exc.message, exc.code), status_code=exc.status_code)
