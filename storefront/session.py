"""Per-shopper wiring of the cart, discount, loyalty and checkout stores"""

import logging
import uuid
from typing import Optional

import httpx

from . import pricing
from .core.config import settings
from .core.state import Result
from .services.api_client import StoreApiClient
from .services.cart_store import CartStore
from .services.checkout import CheckoutWizard
from .services.discounts import DiscountResolver
from .services.loyalty import LoyaltyRedeemer

logger = logging.getLogger(__name__)


class StorefrontSession:
    """
    One shopper's storefront state.

    The cart store is the single source of cart truth; the discount resolver
    and loyalty redeemer subscribe to its commits, and every checkout wizard
    started here reads the same instances.

    Usage:
        async with StorefrontSession.create(auth_token=token) as session:
            await session.start()
            await session.cart.add_item("variant-1", 2)
            wizard = session.start_checkout()
    """

    def __init__(
        self,
        api: StoreApiClient,
        shipping_fee: Optional[int] = None,
        quantity_debounce: Optional[float] = None,
        loyalty_debounce: Optional[float] = None,
    ):
        self.api = api
        self.shipping_fee = settings.shipping_fee if shipping_fee is None else shipping_fee
        self.cart = CartStore(api, debounce_delay=quantity_debounce)
        self.discounts = DiscountResolver(api, self.cart)
        self.loyalty = LoyaltyRedeemer(
            api,
            self.cart,
            self.discounts,
            debounce_delay=loyalty_debounce,
        )
        self.checkout: Optional[CheckoutWizard] = None

    @classmethod
    def create(
        cls,
        base_url: Optional[str] = None,
        auth_token: Optional[str] = None,
        session_id: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs,
    ) -> "StorefrontSession":
        """Build a session with its own API client; guests get a fresh session ID"""
        auth_token = auth_token if auth_token is not None else settings.auth_token
        session_id = session_id if session_id is not None else settings.session_id
        if not auth_token and not session_id:
            session_id = str(uuid.uuid4())
        api = StoreApiClient(
            base_url=base_url,
            auth_token=auth_token,
            session_id=session_id,
            transport=transport,
        )
        return cls(api, **kwargs)

    @property
    def is_guest(self) -> bool:
        return not self.api.is_authenticated

    async def start(self) -> Result:
        """Load the cart, and the point balance for signed-in shoppers"""
        result = await self.cart.fetch()
        if not self.is_guest:
            balance = await self.loyalty.load_balance()
            if not balance.success:
                logger.warning(f"Loyalty balance unavailable: {balance.message}")
        return result

    def summary(self) -> pricing.PriceBreakdown:
        """Cart page breakdown; the same numbers the checkout wizard shows"""
        return pricing.summarize(
            self.cart.subtotal,
            self.shipping_fee,
            self.discounts.amount,
            0 if self.is_guest else self.loyalty.applied_value,
        )

    def start_checkout(self) -> CheckoutWizard:
        self.checkout = CheckoutWizard(
            self.api,
            self.cart,
            self.discounts,
            self.loyalty,
            is_guest=self.is_guest,
            shipping_fee=self.shipping_fee,
        )
        return self.checkout

    async def close(self) -> None:
        """Cancel pending work and release the HTTP client"""
        self.cart.close()
        self.loyalty.close()
        await self.api.close()

    async def __aenter__(self) -> "StorefrontSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
