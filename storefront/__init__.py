# Storefront checkout core

from .exceptions import StorefrontError
from .session import StorefrontSession

__all__ = ["StorefrontError", "StorefrontSession"]
