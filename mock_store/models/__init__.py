# Mock Store Models

from .product import ProductVariant
from .cart import Cart, CartItem, AddToCartRequest, UpdateCartItemRequest
from .order import (
    DiscountCode,
    DiscountType,
    PaymentMethod,
    VerifyDiscountRequest,
    LoyaltyPointsRequest,
    ShippingAddress,
    CreateOrderRequest,
    OrderItem,
    Order,
)
from .user import Address, AddressRequest, User

__all__ = [
    "ProductVariant",
    "Cart",
    "CartItem",
    "AddToCartRequest",
    "UpdateCartItemRequest",
    "DiscountCode",
    "DiscountType",
    "PaymentMethod",
    "VerifyDiscountRequest",
    "LoyaltyPointsRequest",
    "ShippingAddress",
    "CreateOrderRequest",
    "OrderItem",
    "Order",
    "Address",
    "AddressRequest",
    "User",
]
