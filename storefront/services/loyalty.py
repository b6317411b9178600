"""Loyalty point redemption"""

import asyncio
import logging
from typing import Optional

from pydantic import ValidationError as SchemaError

from .. import pricing
from ..core.config import settings
from ..core.state import CartAction, DiscountState, LoyaltyRedemption, Result
from ..debounce import Debouncer
from ..exceptions import RejectedByServer, SupersededRequest
from ..models import Cart, LoyaltyBalance, LoyaltyQuote
from .api_client import StoreApiClient
from .cart_store import CartStore
from .discounts import DiscountResolver

logger = logging.getLogger(__name__)

RECOMPUTE_KEY = "loyalty-points"


class LoyaltyRedeemer:
    """
    Converts requested loyalty points into a discount value.

    The server has the final say on the value because the cap
    (subtotal - discount) is only authoritative there. Client previews are
    advisory. Only the most recently dispatched request may update the
    applied value.
    """

    def __init__(
        self,
        api: StoreApiClient,
        cart_store: Optional[CartStore] = None,
        discounts: Optional[DiscountResolver] = None,
        point_value: Optional[int] = None,
        debounce_delay: Optional[float] = None,
    ):
        self._api = api
        self._cart_store = cart_store
        self._discounts = discounts
        self.point_value = point_value or settings.point_value
        self.state = LoyaltyRedemption()
        self.error: Optional[str] = None
        self._in_flight = 0
        self._sequence = 0
        self._debouncer = Debouncer(
            settings.loyalty_debounce_seconds if debounce_delay is None else debounce_delay
        )
        if cart_store is not None:
            cart_store.add_listener(self._on_cart_committed)
        if discounts is not None:
            discounts.add_listener(self._on_discount_changed)

    @property
    def applying(self) -> bool:
        return self._in_flight > 0

    @property
    def applied_value(self) -> int:
        """Value to subtract from the total; zero while redemption is off"""
        return self.state.applied_value if self.state.enabled else 0

    @property
    def points_used(self) -> int:
        return self.state.applied_points if self.state.enabled else 0

    @property
    def _discount_amount(self) -> int:
        return self._discounts.amount if self._discounts is not None else 0

    @property
    def _subtotal(self) -> Optional[int]:
        return self._cart_store.subtotal if self._cart_store is not None else None

    def preview(self, points: Optional[int] = None) -> tuple[int, int]:
        """Advisory (points_applied, points_value) computed locally"""
        if points is None:
            points = self.state.requested_points
        points = pricing.clamp_points(points, self.state.available_points)
        subtotal = self._subtotal
        if subtotal is None:
            return points, pricing.points_to_value(points, self.point_value)
        return pricing.preview_redemption(points, self.point_value, subtotal, self._discount_amount)

    def _next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    async def load_balance(self) -> Result:
        """Fetch the shopper's point balance"""
        response = await self._api.get_loyalty_points()
        if not response.success:
            error = response.to_error("Failed to load loyalty points")
            self.error = error.message
            return Result.fail(error)

        try:
            balance = LoyaltyBalance.model_validate(response.data or {})
        except SchemaError as e:
            logger.error(f"Could not parse loyalty balance: {e}")
            error = RejectedByServer("The loyalty balance could not be read")
            self.error = error.message
            return Result.fail(error)

        self.state.available_points = balance.loyalty_points
        self.state.requested_points = pricing.clamp_points(
            self.state.requested_points, balance.loyalty_points
        )
        return Result.ok(balance)

    async def apply_points(self, points: int) -> Result:
        """
        Redeem points against the current order.

        Points are clamped to [0, available] before anything is sent, and
        zero is answered locally.
        """
        requested = pricing.clamp_points(points, self.state.available_points)
        if requested != points:
            logger.info(f"Clamped loyalty request from {points} to {requested} points")

        self.state.requested_points = requested
        self.state.enabled = True
        self.error = None
        sequence = self._next_sequence()

        if requested == 0:
            self.state.clear_applied()
            return Result.ok(LoyaltyQuote(points_applied=0, points_value=0))

        discount_code = self._discounts.state.code if self._discounts is not None else None
        self._in_flight += 1
        try:
            response = await self._api.apply_loyalty_points(requested, discount_code)
        finally:
            self._in_flight -= 1

        if sequence != self._sequence:
            logger.debug(f"Discarding stale loyalty response #{sequence}")
            return Result.fail(SupersededRequest("A newer loyalty request replaced this one"))

        if not response.success:
            error = response.to_error("Failed to apply loyalty points")
            self.error = error.message
            logger.warning(f"Loyalty redemption of {requested} points failed: {error.message}")
            return Result.fail(error)

        try:
            quote = self._within_cap(LoyaltyQuote.model_validate(response.data or {}))
        except SchemaError as e:
            logger.error(f"Could not parse loyalty quote: {e}")
            error = RejectedByServer("The loyalty redemption could not be read")
            self.error = error.message
            return Result.fail(error)

        self.state.applied_points = quote.points_applied
        self.state.applied_value = quote.points_value
        logger.info(f"Loyalty points applied: {quote.points_applied} worth {quote.points_value}")
        return Result.ok(quote)

    def _within_cap(self, quote: LoyaltyQuote) -> LoyaltyQuote:
        subtotal = self._subtotal
        if subtotal is None:
            return quote
        cap = pricing.redeemable_cap(subtotal, self._discount_amount)
        if quote.points_value <= cap:
            return quote
        points_applied = cap // self.point_value
        logger.warning(f"Server loyalty value {quote.points_value} exceeds cap {cap}")
        return quote.model_copy(
            update={
                "points_applied": points_applied,
                "points_value": points_applied * self.point_value,
            }
        )

    async def use_all_points(self) -> Result:
        """Request every available point through the normal redemption path"""
        self._debouncer.cancel(RECOMPUTE_KEY)
        return await self.apply_points(self.state.available_points)

    def request_points(self, points: int) -> Optional[asyncio.Task]:
        """Change the requested points; while enabled, recompute once input settles"""
        self.state.requested_points = pricing.clamp_points(points, self.state.available_points)
        self.error = None
        if not self.state.enabled:
            return None
        return self._debouncer.schedule(RECOMPUTE_KEY, self.apply_points, self.state.requested_points)

    async def enable(self) -> Result:
        """Turn redemption on, defaulting to every available point"""
        self._debouncer.cancel(RECOMPUTE_KEY)
        points = self.state.requested_points or self.state.available_points
        return await self.apply_points(points)

    def disable(self) -> None:
        """Turn redemption off locally; any in-flight answer is discarded"""
        self._debouncer.cancel(RECOMPUTE_KEY)
        self._next_sequence()
        self.state.enabled = False
        self.state.clear_applied()
        self.error = None

    async def recompute(self) -> Result:
        if not self.state.enabled:
            return Result.ok(None)
        self._debouncer.cancel(RECOMPUTE_KEY)
        return await self.apply_points(self.state.requested_points)

    def close(self) -> None:
        self._debouncer.cancel_all()

    async def _on_discount_changed(self, discount: DiscountState) -> None:
        await self.recompute()

    async def _on_cart_committed(self, cart: Cart, action: CartAction) -> None:
        if action == CartAction.CLEAR:
            self._debouncer.cancel(RECOMPUTE_KEY)
            self._next_sequence()
            self.state.reset()
            self.error = None
            return
        await self.recompute()
