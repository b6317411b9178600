"""
Storefront error taxonomy.

Errors are carried inside Result objects rather than raised into callers;
only the local validation helpers raise them directly.
"""

from typing import Optional


class StorefrontError(Exception):
    """Base exception for storefront client errors"""

    retryable: bool = False

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(StorefrontError):
    """Input rejected locally, before any request was made"""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class OperationInProgress(StorefrontError):
    """A request for the same action is still in flight"""
    pass


class SupersededRequest(StorefrontError):
    """A newer request for the same resource replaced this one"""
    pass


class RejectedByServer(StorefrontError):
    """The store API answered with an unsuccessful envelope"""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)


class InventoryError(RejectedByServer):
    """Rejected because the requested quantity is not in stock"""
    pass


class InvalidDiscountCode(RejectedByServer):
    """Discount code unknown, expired or used up"""
    pass


class NetworkFailure(StorefrontError):
    """Request could not complete"""

    retryable = True


class RequestTimeout(NetworkFailure):
    """Request exceeded the configured timeout"""
    pass
