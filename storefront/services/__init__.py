# Store services

from .api_client import ApiResponse, StoreApiClient
from .cart_store import CartStore
from .checkout import CheckoutWizard
from .discounts import DiscountResolver
from .loyalty import LoyaltyRedeemer

__all__ = [
    "ApiResponse",
    "StoreApiClient",
    "CartStore",
    "CheckoutWizard",
    "DiscountResolver",
    "LoyaltyRedeemer",
]
