"""
Pricing primitives.

Pure functions over integer minor units. Nothing here talks to the store API;
the cart summary, the checkout wizard and the tests all compute totals
through these functions.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

CURRENCY_SYMBOLS = {
    "VND": "₫",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
}

ZERO_DECIMAL_CURRENCIES = {"VND", "JPY"}


@dataclass(frozen=True)
class PriceBreakdown:
    """Order summary lines as displayed to the shopper"""
    subtotal: int
    shipping_fee: int
    discount_amount: int
    loyalty_value: int
    total: int


def compute_total(
    subtotal: int,
    shipping_fee: int,
    discount_amount: int = 0,
    loyalty_value: int = 0,
) -> int:
    """Payable total, clamped so adjustments can never make it negative"""
    return max(0, subtotal + shipping_fee - discount_amount - loyalty_value)


def summarize(
    subtotal: int,
    shipping_fee: int,
    discount_amount: int = 0,
    loyalty_value: int = 0,
) -> PriceBreakdown:
    """Build a PriceBreakdown from the current pricing inputs"""
    return PriceBreakdown(
        subtotal=subtotal,
        shipping_fee=shipping_fee,
        discount_amount=discount_amount,
        loyalty_value=loyalty_value,
        total=compute_total(subtotal, shipping_fee, discount_amount, loyalty_value),
    )


def line_total(unit_price: int, quantity: int) -> int:
    return unit_price * quantity


def cart_subtotal(lines: Iterable) -> int:
    """Client-side subtotal, for pre-validation only; the server's value wins"""
    return sum(line_total(line.unit_price, line.quantity) for line in lines)


def cart_item_count(lines: Iterable) -> int:
    return sum(line.quantity for line in lines)


def clamp_quantity(quantity: int, inventory_cap: int) -> int:
    """Clamp a requested line quantity to [1, inventory_cap]"""
    return max(1, min(quantity, max(1, inventory_cap)))


def clamp_points(points: int, available_points: int) -> int:
    """Clamp a requested redemption to [0, available_points]"""
    return max(0, min(points, max(0, available_points)))


def points_to_value(points: int, point_value: int) -> int:
    return points * point_value


def redeemable_cap(subtotal: int, discount_amount: int) -> int:
    """Most loyalty value that may be applied once the discount is taken off"""
    return max(0, subtotal - discount_amount)


def preview_redemption(
    points: int,
    point_value: int,
    subtotal: int,
    discount_amount: int = 0,
) -> tuple[int, int]:
    """
    Advisory (points_applied, points_value) for a redemption request.

    Mirrors the server rule: the value is capped at subtotal - discount and
    only whole points are spent. The server's answer replaces this preview.
    """
    if points <= 0 or point_value <= 0:
        return 0, 0
    applied_value = min(points_to_value(points, point_value), redeemable_cap(subtotal, discount_amount))
    points_applied = applied_value // point_value
    return points_applied, points_applied * point_value


def format_price(amount: Optional[int], currency: str = "VND") -> str:
    """
    Format an amount with thousands separators for display.

    VND is shown without decimals and with the symbol after the number,
    other currencies put the symbol first. Amounts are minor units.
    """
    if amount is None:
        amount = 0
    symbol = CURRENCY_SYMBOLS.get(currency, currency)
    if currency == "VND":
        return f"{amount:,}{symbol}"
    if currency in ZERO_DECIMAL_CURRENCIES:
        return f"{symbol}{amount:,}"
    return f"{symbol}{amount / 100:,.2f}"
