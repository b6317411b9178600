"""
Cart State Store

Holds the confirmed cart snapshot. Mutations wait for the server and then
replace the whole snapshot with the server's answer; nothing is applied
speculatively to the aggregates. The only local, tentative state is the
quantity shown for a line while its update is pending.
"""

import asyncio
import logging
import time
from collections import Counter
from typing import Any, Awaitable, Callable, Optional, Union

from pydantic import ValidationError as SchemaError

from ..core.config import settings
from ..core.state import CartAction, Result
from ..debounce import Debouncer
from ..exceptions import (
    InventoryError,
    RejectedByServer,
    StorefrontError,
    SupersededRequest,
    ValidationError,
)
from ..models import Cart
from ..pricing import clamp_quantity
from .api_client import ApiResponse, StoreApiClient

logger = logging.getLogger(__name__)

CartListener = Callable[[Cart, CartAction], Awaitable[None]]

FETCH_RETRY_KEY = "cart-fetch"


class CartStore:
    """
    Canonical cart state for one shopper.

    Responses are ordered by a monotonic request sequence: a snapshot older
    than the one already committed is discarded, so a slow response can never
    overwrite a newer one.

    A fetch that is not forced is answered from the current snapshot when the
    last successful fetch is younger than `refetch_interval`. A fetch that
    fails with a retryable error is tried once more after `retry_delay`.
    """

    def __init__(
        self,
        api: StoreApiClient,
        debounce_delay: Optional[float] = None,
        refetch_interval: Optional[float] = None,
        retry_delay: Optional[float] = None,
    ):
        self._api = api
        self.cart: Cart = Cart.empty()
        self.loading = False
        self.error: Optional[StorefrontError] = None
        self.line_errors: dict[str, str] = {}
        self._in_flight: Counter = Counter()
        # variant_id -> (quantity, sequence); sequence is None while debouncing
        self._tentative: dict[str, tuple[int, Optional[int]]] = {}
        self._sequence = 0
        self._committed_sequence = 0
        self._fetch_task: Optional[asyncio.Task] = None
        self._debouncer = Debouncer(
            settings.quantity_debounce_seconds if debounce_delay is None else debounce_delay
        )
        self.refetch_interval = (
            settings.cart_refetch_interval_seconds if refetch_interval is None else refetch_interval
        )
        self._last_fetched: Optional[float] = None
        self._retry = Debouncer(
            settings.cart_fetch_retry_seconds if retry_delay is None else retry_delay
        )
        self._listeners: list[CartListener] = []

    def add_listener(self, listener: CartListener) -> None:
        """Call listener(cart, action) after every committed snapshot"""
        self._listeners.append(listener)

    @property
    def subtotal(self) -> int:
        return self.cart.subtotal

    @property
    def item_count(self) -> int:
        return self.cart.item_count

    @property
    def updating(self) -> set[str]:
        """Variant IDs with a mutation in flight"""
        return {
            variant_id
            for variant_id, count in self._in_flight.items()
            if variant_id is not None and count > 0
        }

    @property
    def is_busy(self) -> bool:
        return self.loading or bool(self.updating) or self._in_flight[None] > 0

    def display_quantity(self, variant_id: str) -> Optional[int]:
        """Quantity to show for a line: the pending edit if any, else confirmed"""
        if variant_id in self._tentative:
            return self._tentative[variant_id][0]
        line = self.cart.find_line(variant_id)
        return line.quantity if line else None

    def _next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    # ==================== Operations ====================

    async def fetch(self, force: bool = False) -> Result:
        """Load the cart, cancelling a fetch that is still in flight"""
        if not force and self._fetched_recently():
            logger.debug("Cart fetched recently; reusing the current snapshot")
            return Result.ok(self.cart)

        result = await self._fetch()
        if not result.success and result.error.retryable:
            if not self._retry.is_pending(FETCH_RETRY_KEY):
                logger.info(f"Retrying cart fetch in {self._retry.delay}s")
                self._retry.schedule(FETCH_RETRY_KEY, self._fetch)
        return result

    def _fetched_recently(self) -> bool:
        if self._last_fetched is None or self.error is not None:
            return False
        return time.monotonic() - self._last_fetched < self.refetch_interval

    async def _fetch(self) -> Result:
        if self._fetch_task is not None and not self._fetch_task.done():
            self._fetch_task.cancel()

        sequence = self._next_sequence()
        task = asyncio.ensure_future(self._api.get_cart())
        self._fetch_task = task
        self.loading = True
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            if self._fetch_task is task:
                self._fetch_task = None
                self.loading = False

        if task.cancelled():
            logger.debug(f"Cart fetch #{sequence} superseded")
            return Result.fail(SupersededRequest("A newer cart fetch replaced this one"))

        result = await self._commit(task.result(), sequence, CartAction.FETCH)
        if result.success:
            self._last_fetched = time.monotonic()
            self._retry.cancel(FETCH_RETRY_KEY)
        return result

    async def add_item(self, variant_id: str, quantity: int = 1) -> Result:
        """Add quantity units of a variant"""
        if quantity < 1:
            return Result.fail(ValidationError("Quantity must be at least 1", field="quantity"))
        return await self._mutate(
            CartAction.ADD, variant_id, self._api.add_cart_item, variant_id, quantity
        )

    async def update_item(self, variant_id: str, quantity: int) -> Result:
        """Set a line's quantity, clamped to [1, inventory] before sending"""
        line = self.cart.find_line(variant_id)
        if line is None:
            return Result.fail(ValidationError("Item is not in the cart", field="quantity"))

        requested = clamp_quantity(quantity, line.inventory_cap)
        if requested != quantity:
            logger.info(f"Clamped quantity for {variant_id} from {quantity} to {requested}")

        self.line_errors.pop(variant_id, None)
        return await self._mutate(
            CartAction.UPDATE,
            variant_id,
            self._api.update_cart_item,
            variant_id,
            requested,
            tentative=requested,
        )

    def enter_quantity(self, variant_id: str, raw: Union[str, int]) -> Optional[asyncio.Task]:
        """
        Free-text quantity entry: show the value now, send it once typing stops.

        Returns the debounced task, or None if the input was rejected locally.
        """
        line = self.cart.find_line(variant_id)
        if line is None:
            return None
        try:
            quantity = int(str(raw).strip())
        except ValueError:
            self._tentative.pop(variant_id, None)
            self._debouncer.cancel(variant_id)
            self.line_errors[variant_id] = "Please enter a whole number"
            return None

        self.line_errors.pop(variant_id, None)
        self._tentative[variant_id] = (clamp_quantity(quantity, line.inventory_cap), None)
        return self._debouncer.schedule(variant_id, self.update_item, variant_id, quantity)

    async def increment(self, variant_id: str) -> Result:
        return await self._step(variant_id, 1)

    async def decrement(self, variant_id: str) -> Result:
        return await self._step(variant_id, -1)

    async def _step(self, variant_id: str, delta: int) -> Result:
        line = self.cart.find_line(variant_id)
        if line is None:
            return Result.fail(ValidationError("Item is not in the cart", field="quantity"))
        current = self.display_quantity(variant_id)
        target = current + delta
        if target < 1:
            return Result.fail(ValidationError("Quantity must be at least 1", field="quantity"))
        if target > line.inventory_cap:
            return Result.fail(
                ValidationError(f"Only {line.inventory_cap} items available", field="quantity")
            )
        self._debouncer.cancel(variant_id)
        return await self.update_item(variant_id, target)

    async def remove_item(self, variant_id: str) -> Result:
        """Remove a line from the cart"""
        self._debouncer.cancel(variant_id)
        return await self._mutate(
            CartAction.REMOVE, variant_id, self._api.remove_cart_item, variant_id
        )

    async def clear(self) -> Result:
        """Remove every line; listeners reset discount and loyalty state"""
        self._debouncer.cancel_all()
        return await self._mutate(CartAction.CLEAR, None, self._api.clear_cart)

    async def reset(self) -> None:
        """Drop the local snapshot without a request, e.g. after an order"""
        self._debouncer.cancel_all()
        self._committed_sequence = self._next_sequence()
        self.cart = Cart.empty()
        self._last_fetched = None
        self._tentative.clear()
        self.line_errors.clear()
        self.error = None
        await self._notify(CartAction.CLEAR)

    def close(self) -> None:
        """Abandon in-flight fetches and pending edits"""
        if self._fetch_task is not None and not self._fetch_task.done():
            self._fetch_task.cancel()
        self._debouncer.cancel_all()
        self._retry.cancel_all()

    # ==================== Internals ====================

    async def _mutate(
        self,
        action: CartAction,
        variant_id: Optional[str],
        call: Callable[..., Awaitable[ApiResponse]],
        *args: Any,
        tentative: Optional[int] = None,
    ) -> Result:
        sequence = self._next_sequence()
        if variant_id is not None and tentative is not None:
            self._tentative[variant_id] = (tentative, sequence)

        self._in_flight[variant_id] += 1
        try:
            response = await call(*args)
        finally:
            self._in_flight[variant_id] -= 1

        return await self._commit(response, sequence, action, variant_id)

    async def _commit(
        self,
        response: ApiResponse,
        sequence: int,
        action: CartAction,
        variant_id: Optional[str] = None,
    ) -> Result:
        if variant_id is not None and self._tentative.get(variant_id, (None, None))[1] == sequence:
            # The pending edit resolves either way; confirmed state decides what is shown
            del self._tentative[variant_id]

        if not response.success:
            error = response.to_error("Failed to update cart")
            if variant_id is not None and isinstance(error, InventoryError):
                self.line_errors[variant_id] = error.message
            if sequence > self._committed_sequence:
                self.error = error
            logger.warning(f"Cart {action.value} failed: {error.message}")
            return Result.fail(error)

        if sequence < self._committed_sequence:
            logger.debug(f"Discarding stale cart snapshot #{sequence}")
            return Result.fail(SupersededRequest("A newer cart update replaced this one"))

        try:
            cart = Cart.model_validate(response.data or {})
        except SchemaError as e:
            error = RejectedByServer(f"Malformed cart snapshot: {e.error_count()} errors")
            self.error = error
            logger.error(f"Could not parse cart snapshot: {e}")
            return Result.fail(error)

        self._committed_sequence = sequence
        self.cart = cart
        self.error = None
        if variant_id is not None:
            self.line_errors.pop(variant_id, None)
        if action == CartAction.CLEAR:
            self._tentative.clear()
            self.line_errors.clear()

        logger.info(
            f"Cart {action.value} committed: {cart.item_count} items, subtotal {cart.subtotal}"
        )
        await self._notify(action)
        return Result.ok(cart)

    async def _notify(self, action: CartAction) -> None:
        for listener in self._listeners:
            await listener(self.cart, action)
