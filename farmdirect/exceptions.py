"""Marketplace error taxonomy.

Every error carries the HTTP status it is rendered with at the request
boundary, where it becomes ``{"success": false, "message": ...}``.
"""


class MarketplaceError(Exception):
    """Base class for errors reported to API callers."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MarketplaceError):
    """Missing or malformed fields."""
    status_code = 400


class AuthenticationError(MarketplaceError):
    """Missing, malformed or expired credentials."""
    status_code = 401


class ForbiddenError(MarketplaceError):
    """Role or ownership mismatch."""
    status_code = 403


class NotFoundError(MarketplaceError):
    status_code = 404


class InsufficientStockError(MarketplaceError):
    """Requested quantity exceeds the product's stock."""
    status_code = 400

    def __init__(self, product_name: str, requested: int, available: int):
        super().__init__(f"Insufficient stock for {product_name}")
        self.product_name = product_name
        self.requested = requested
        self.available = available


class InvalidStateError(MarketplaceError):
    """Operation not allowed in the order's current status."""
    status_code = 400
