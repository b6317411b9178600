"""Cart API routes for the mock store"""

import logging

from fastapi import APIRouter, Depends

from ..models.cart import AddToCartRequest, UpdateCartItemRequest
from ..database.carts import cart_db
from ..database.products import product_db
from ..responses import ApiError, success
from ..security.auth import Shopper, require_shopper

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cart", tags=["Cart"])


@router.get("")
async def get_cart(shopper: Shopper = Depends(require_shopper)):
    """Get the caller's cart"""
    return success(cart_db.get_cart(shopper.cart_key))


@router.post("/items")
async def add_to_cart(
    request: AddToCartRequest,
    shopper: Shopper = Depends(require_shopper),
):
    """Add an item to the cart"""
    variant = product_db.get_variant(request.product_variant_id)
    if not variant:
        raise ApiError("Product not available", 404)

    existing = cart_db.find_item(shopper.cart_key, variant.id)
    wanted = request.quantity + (existing.quantity if existing else 0)
    if variant.inventory < wanted:
        raise ApiError(f"Only {variant.inventory} items available", 400)

    cart = cart_db.add_item(shopper.cart_key, variant, request.quantity)
    logger.info(f"Added {request.quantity}x {variant.id} to {shopper.cart_key}")
    return success(cart, "Item added to cart")


@router.put("/items/{variant_id}")
async def update_cart_item(
    variant_id: str,
    request: UpdateCartItemRequest,
    shopper: Shopper = Depends(require_shopper),
):
    """Update item quantity in cart"""
    variant = product_db.get_variant(variant_id)
    if not variant:
        raise ApiError("Product not available", 404)

    if variant.inventory < request.quantity:
        raise ApiError(f"Only {variant.inventory} items available", 400)

    cart = cart_db.update_item_quantity(shopper.cart_key, variant_id, request.quantity)
    if not cart:
        raise ApiError("Item not in cart", 404)
    return success(cart, "Cart updated")


@router.delete("/items/{variant_id}")
async def remove_from_cart(
    variant_id: str,
    shopper: Shopper = Depends(require_shopper),
):
    """Remove an item from the cart"""
    cart = cart_db.remove_item(shopper.cart_key, variant_id)
    if not cart:
        raise ApiError("Item not in cart", 404)
    return success(cart, "Item removed from cart")


@router.delete("")
async def clear_cart(shopper: Shopper = Depends(require_shopper)):
    """Clear all items from cart"""
    return success(cart_db.clear_cart(shopper.cart_key), "Cart cleared")
