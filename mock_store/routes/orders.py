"""Order API routes for the mock store"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from ..models.cart import Cart
from ..models.order import (
    CreateOrderRequest,
    DiscountCode,
    LoyaltyPointsRequest,
    OrderItem,
    PaymentMethod,
    VerifyDiscountRequest,
)
from ..models.user import User
from ..database.carts import cart_db
from ..database.discounts import discount_db
from ..database.orders import order_db
from ..database.products import product_db
from ..database.users import user_db
from ..responses import ApiError, success
from ..security.auth import Shopper, require_shopper, require_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["Orders"])


def resolve_discount(code: Optional[str]) -> DiscountCode:
    """Look up a usable discount code or raise"""
    if not code:
        raise ApiError("Discount code is required", 400)

    discount = discount_db.get_code(code)
    if not discount:
        raise ApiError("Invalid discount code", 400)
    if not discount.is_valid:
        raise ApiError("Discount code has reached its usage limit", 400)
    return discount


def redeem_points(user: User, points: int, subtotal: int, discount_amount: int) -> tuple[int, int]:
    """
    Convert points into (points_applied, points_value).

    The value never exceeds subtotal - discount, and only whole points are
    spent.
    """
    if user.loyalty_points < points:
        raise ApiError(
            f"You only have {user.loyalty_points} loyalty points available",
            400,
        )
    max_applicable = max(0, subtotal - discount_amount)
    applied_value = min(points * user_db.POINT_VALUE, max_applicable)
    points_applied = applied_value // user_db.POINT_VALUE
    return points_applied, points_applied * user_db.POINT_VALUE


def require_items(cart: Cart) -> None:
    if not cart.items:
        raise ApiError("Your cart is empty. Please add items before checking out.", 400)


@router.post("/verify-discount")
async def verify_discount(
    request: VerifyDiscountRequest,
    shopper: Shopper = Depends(require_shopper),
):
    """Check a discount code against the caller's cart"""
    discount = resolve_discount(request.code)
    cart = cart_db.get_cart(shopper.cart_key)
    discount_amount = discount.calculate_discount(cart.total)

    return success(
        {
            "code": discount.code,
            "discountType": discount.discount_type.value,
            "discountValue": discount.discount_value,
            "discountAmount": discount_amount,
            "remainingUses": discount.remaining_uses,
        }
    )


@router.post("/user/apply-loyalty-points")
async def apply_loyalty_points(
    request: LoyaltyPointsRequest,
    shopper: Shopper = Depends(require_user),
):
    """Price the caller's cart with the given points redeemed"""
    if not request.points or request.points < 0:
        raise ApiError("Valid points value required", 400)

    cart = cart_db.get_cart(shopper.cart_key)
    discount_amount = 0
    if request.discount_code:
        discount = discount_db.get_code(request.discount_code)
        if discount and discount.is_valid:
            discount_amount = discount.calculate_discount(cart.subtotal)

    points_applied, points_value = redeem_points(
        shopper.user, request.points, cart.subtotal, discount_amount
    )
    original_total = cart.subtotal - discount_amount

    return success(
        {
            "originalTotal": original_total,
            "pointsApplied": points_applied,
            "pointsValue": points_value,
            "newTotal": original_total - points_value,
        }
    )


@router.post("", status_code=201)
async def create_order(
    request: CreateOrderRequest,
    shopper: Shopper = Depends(require_shopper),
):
    """
    Place an order for the caller's cart.

    Every amount is recomputed here from the cart, the discount code and the
    user's point balance; the client's own figures are never trusted.
    """
    if not request.shipping_address or not request.payment_method:
        raise ApiError("Missing required fields", 400)

    try:
        payment_method = PaymentMethod(request.payment_method)
    except ValueError:
        raise ApiError(f"Unsupported payment method: {request.payment_method}", 400)

    cart = cart_db.get_cart(shopper.cart_key)
    require_items(cart)

    email = (request.email or "").strip() or None
    if not shopper.is_authenticated and not email:
        raise ApiError("Email is required for guest checkout", 400)

    items = []
    for item in cart.items:
        variant = product_db.get_variant(item.product_variant_id)
        if not variant:
            raise ApiError(f"{item.name} is no longer available", 400)
        if variant.inventory < item.quantity:
            raise ApiError(
                f"Not enough inventory: only {variant.inventory} units of {variant.display_name} available",
                400,
            )
        items.append(
            OrderItem(
                product_variant_id=item.product_variant_id,
                name=item.name,
                price=item.price,
                quantity=item.quantity,
                total_price=item.price * item.quantity,
            )
        )
    subtotal = sum(i.total_price for i in items)

    discount = None
    discount_amount = 0
    if request.discount_code:
        discount = resolve_discount(request.discount_code)
        discount_amount = discount.calculate_discount(subtotal)

    points_used, points_value = 0, 0
    if shopper.is_authenticated and request.loyalty_points_used > 0:
        points_used, points_value = redeem_points(
            shopper.user, request.loyalty_points_used, subtotal, discount_amount
        )

    shipping_fee = order_db.shipping_fee
    total = max(0, subtotal + shipping_fee - discount_amount - points_value)
    points_earned = order_db.points_earned(total) if shopper.is_authenticated else 0

    for item in items:
        product_db.update_inventory(item.product_variant_id, -item.quantity)
    if discount is not None:
        discount.use()
    if shopper.is_authenticated:
        user_db.adjust_points(shopper.user, points_used, points_earned)

    order = order_db.create_order(
        user_id=shopper.user.id if shopper.user else None,
        email=email or (shopper.user.email if shopper.user else None),
        items=items,
        subtotal=subtotal,
        shipping_fee=shipping_fee,
        discount_code=discount.code if discount else None,
        discount_amount=discount_amount,
        loyalty_points_used=points_used,
        loyalty_points_earned=points_earned,
        total=total,
        payment_method=payment_method,
        shipping_address=request.shipping_address,
        notes=request.notes or "",
    )
    cart_db.clear_cart(shopper.cart_key)

    logger.info(
        f"Order {order.order_number} created: {order.total} VND - "
        f"{'user ' + shopper.user.id if shopper.user else 'guest'} checkout"
    )

    return success(
        {"order": order, "message": "Order placed successfully"},
        "Order created successfully",
    )


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    shopper: Shopper = Depends(require_user),
):
    """Get one of the caller's orders"""
    order = order_db.get_order(order_id)
    if not order or order.user_id != shopper.user.id:
        raise ApiError("Order not found", 404)
    return success(order)
