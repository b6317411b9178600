"""Discount code resolution"""

import logging
from typing import Awaitable, Callable, Optional

from pydantic import ValidationError as SchemaError

from ..core.state import CartAction, DiscountState, Result
from ..exceptions import InvalidDiscountCode, OperationInProgress, RejectedByServer, ValidationError
from ..models import Cart, DiscountQuote
from ..validation import validate_discount_code
from .api_client import ApiResponse, StoreApiClient
from .cart_store import CartStore

logger = logging.getLogger(__name__)

DiscountListener = Callable[[DiscountState], Awaitable[None]]


class DiscountResolver:
    """
    Applies one discount code at a time.

    The code is format-checked locally, then verified by the server, which
    computes the amount from the current cart. Listeners (loyalty redemption)
    are told whenever the applied amount changes, since the redemption cap
    depends on it.
    """

    def __init__(self, api: StoreApiClient, cart_store: Optional[CartStore] = None):
        self._api = api
        self.state = DiscountState()
        self.error: Optional[str] = None
        self.applying = False
        self._listeners: list[DiscountListener] = []
        if cart_store is not None:
            cart_store.add_listener(self._on_cart_committed)

    def add_listener(self, listener: DiscountListener) -> None:
        self._listeners.append(listener)

    @property
    def amount(self) -> int:
        return self.state.amount

    def input_changed(self) -> None:
        """The shopper edited the code field; drop the inline error"""
        self.error = None

    async def apply(self, code: str) -> Result:
        """Verify code with the server and make it the active discount"""
        if self.applying:
            return Result.fail(OperationInProgress("A discount check is already in progress"))

        try:
            normalized = validate_discount_code(code)
        except ValidationError as e:
            self.error = e.message
            return Result.fail(e)

        self.error = None
        self.applying = True
        try:
            response = await self._api.verify_discount(normalized)
        finally:
            self.applying = False

        if not response.success:
            return await self._reject(normalized, response)

        quote = self._parse_quote(normalized, response)
        if quote is None:
            return Result.fail(RejectedByServer(self.error))
        self.state.code = normalized
        self.state.amount = quote.discount_amount
        logger.info(f"Discount {normalized} applied: {quote.discount_amount}")
        await self._notify()
        return Result.ok(quote)

    async def reverify(self) -> Result:
        """Re-check the active code against the current cart"""
        if not self.state.is_active or self.applying:
            return Result.ok(None)

        code = self.state.code
        self.applying = True
        try:
            response = await self._api.verify_discount(code)
        finally:
            self.applying = False

        if not response.success:
            return await self._reject(code, response)

        quote = self._parse_quote(code, response)
        if quote is None:
            return Result.fail(RejectedByServer(self.error))
        if self.state.code == code and quote.discount_amount != self.state.amount:
            logger.info(f"Discount {code} re-priced: {self.state.amount} -> {quote.discount_amount}")
            self.state.amount = quote.discount_amount
            await self._notify()
        return Result.ok(quote)

    async def remove(self) -> None:
        """Drop the active code without a request"""
        was_active = self.state.is_active
        self.state.reset()
        self.error = None
        if was_active:
            await self._notify()

    def _parse_quote(self, code: str, response: ApiResponse) -> Optional[DiscountQuote]:
        """Read the server quote; an unreadable one leaves the current discount as is"""
        try:
            return DiscountQuote.model_validate(response.data or {})
        except SchemaError as e:
            logger.error(f"Could not parse discount quote for {code}: {e}")
            self.error = "The discount check returned an unreadable answer"
            return None

    async def _reject(self, code: str, response: ApiResponse) -> Result:
        if response.is_network_error:
            # Keep whatever was applied before; the shopper can retry
            error = response.to_error()
            self.error = error.message
            return Result.fail(error)

        error = InvalidDiscountCode(response.message or "Invalid discount code", status=response.status)
        self.error = error.message
        logger.warning(f"Discount {code} rejected: {error.message}")
        was_active = self.state.is_active
        self.state.reset()
        if was_active:
            await self._notify()
        return Result.fail(error)

    async def _on_cart_committed(self, cart: Cart, action: CartAction) -> None:
        if action == CartAction.CLEAR or cart.is_empty:
            # Loyalty resets itself on clear, so no notification here
            self.state.reset()
            self.error = None
            return
        if self.state.is_active:
            await self.reverify()

    async def _notify(self) -> None:
        for listener in self._listeners:
            await listener(self.state)
