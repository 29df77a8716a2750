"""
API Error Taxonomy

Every error the routes raise on purpose derives from BistroError and is
rendered by the exception handler in main.py as ``{"message": ...}``.
Database and unexpected failures are left to the catch-all handler (500).
"""

from typing import Optional


class BistroError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, headers: Optional[dict] = None):
        self.message = message or self.default_message
        self.headers = headers
        super().__init__(self.message)


class UnauthorizedError(BistroError):
    """Missing, malformed, invalid or expired bearer token."""

    status_code = 401
    default_message = "Unauthorized"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenError(BistroError):
    """Valid token, but the caller may not perform this operation."""

    status_code = 403
    default_message = "Forbidden Access"


class DuplicateCartItemError(BistroError):
    status_code = 400
    default_message = "Item already added to the cart"


class PaymentGatewayError(BistroError):
    """The payment provider refused to create a payment intent."""

    status_code = 502
    default_message = "Payment processing error"
