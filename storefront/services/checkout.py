"""
Checkout Wizard

Three gated steps (shipping, payment, review) ending in one order
submission. Moving forward requires the current step to validate; moving
back is always allowed. The price breakdown is recomputed from the live
discount and loyalty state on every transition.
"""

import logging
from typing import Optional, Union

from pydantic import ValidationError as SchemaError

from .. import pricing
from ..core.config import settings
from ..core.state import CheckoutState, CheckoutStep, PaymentMethod, Result
from ..exceptions import OperationInProgress, RejectedByServer, ValidationError
from ..models import Order, SavedAddress
from ..validation import address_errors, validate_email
from .api_client import StoreApiClient
from .cart_store import CartStore
from .discounts import DiscountResolver
from .loyalty import LoyaltyRedeemer

logger = logging.getLogger(__name__)


class CheckoutWizard:
    """Shipping -> Payment -> Review -> Submitted"""

    def __init__(
        self,
        api: StoreApiClient,
        cart_store: CartStore,
        discounts: DiscountResolver,
        loyalty: LoyaltyRedeemer,
        is_guest: Optional[bool] = None,
        shipping_fee: Optional[int] = None,
    ):
        self._api = api
        self._cart = cart_store
        self._discounts = discounts
        self._loyalty = loyalty
        self.is_guest = (not api.is_authenticated) if is_guest is None else is_guest
        self.shipping_fee = settings.shipping_fee if shipping_fee is None else shipping_fee
        self.state = CheckoutState(discount=discounts.state, loyalty=loyalty.state)
        self.errors: dict[str, str] = {}
        self.error: Optional[str] = None
        self.submitting = False
        self.order: Optional[Order] = None
        self.breakdown = self.recompute()

    @property
    def step(self) -> CheckoutStep:
        return self.state.step

    @property
    def is_submitted(self) -> bool:
        return self.state.step == CheckoutStep.SUBMITTED

    def recompute(self) -> pricing.PriceBreakdown:
        """Rebuild the price breakdown from the current cart, discount and loyalty state"""
        self.breakdown = pricing.summarize(
            self._cart.subtotal,
            self.shipping_fee,
            self._discounts.amount,
            self._loyalty.applied_value if not self.is_guest else 0,
        )
        return self.breakdown

    # ==================== Inputs ====================

    async def load_addresses(self) -> Result:
        """Load saved addresses and preselect the default one"""
        if self.is_guest:
            return Result.ok([])

        response = await self._api.get_addresses()
        if not response.success:
            error = response.to_error("Failed to load addresses")
            logger.warning(f"Falling back to the address form: {error.message}")
            self.state.selected_address_id = None
            return Result.fail(error)

        try:
            addresses = [SavedAddress.model_validate(a) for a in response.data or []]
        except SchemaError as e:
            logger.error(f"Could not parse saved addresses: {e}")
            self.state.saved_addresses = []
            self.state.selected_address_id = None
            return Result.fail(RejectedByServer("Saved addresses could not be read"))

        self.state.saved_addresses = addresses
        default = next((a for a in addresses if a.is_default), None)
        if default is None and addresses:
            default = addresses[0]
        self.state.selected_address_id = default.id if default else None
        return Result.ok(addresses)

    def select_address(self, address_id: Optional[str]) -> Result:
        """Ship to a saved address, or to the form when address_id is None"""
        if address_id is not None and not any(a.id == address_id for a in self.state.saved_addresses):
            return Result.fail(ValidationError("Unknown address", field="address"))
        self.state.selected_address_id = address_id
        self._clear_errors("address", *self._address_error_keys())
        return Result.ok(address_id)

    def update_address(self, **fields: str) -> None:
        """Edit the new-address form; selecting the form over any saved address"""
        self.state.address_form = self.state.address_form.model_copy(update=fields)
        self.state.selected_address_id = None
        self._clear_errors(*fields)

    def set_email(self, email: str) -> None:
        self.state.email = email
        self._clear_errors("email")

    def set_payment_method(self, method: Union[str, PaymentMethod, None]) -> Result:
        if method is None:
            self.state.payment_method = None
            return Result.ok(None)
        try:
            self.state.payment_method = PaymentMethod(method)
        except ValueError:
            return Result.fail(ValidationError(f"Unknown payment method: {method}", field="payment_method"))
        self._clear_errors("payment_method")
        return Result.ok(self.state.payment_method)

    def set_notes(self, notes: str) -> None:
        self.state.notes = notes

    # ==================== Transitions ====================

    def validate_step(self, step: Optional[CheckoutStep] = None) -> dict[str, str]:
        """Field -> message for everything blocking the given step"""
        step = step or self.state.step
        errors: dict[str, str] = {}

        if step == CheckoutStep.SHIPPING:
            self._check_email(errors)
            errors.update(address_errors(self.state.resolved_address()))
        elif step == CheckoutStep.PAYMENT:
            self._check_payment(errors)
        elif step == CheckoutStep.REVIEW:
            self._check_payment(errors)
            self._check_email(errors)
        return errors

    def next(self) -> Result:
        """Advance one step if the current one validates"""
        if self.state.step >= CheckoutStep.REVIEW:
            return Result.fail(ValidationError("Confirm the order to continue"))

        errors = self.validate_step()
        if errors:
            return self._blocked(errors)

        self._go_to(CheckoutStep(self.state.step + 1))
        return Result.ok(self.state.step)

    def back(self) -> Result:
        """Return to the previous step; never leaves the submitted state"""
        if self.state.step in (CheckoutStep.SHIPPING, CheckoutStep.SUBMITTED):
            return Result.ok(self.state.step)
        self._go_to(CheckoutStep(self.state.step - 1))
        return Result.ok(self.state.step)

    def build_order_payload(self) -> dict:
        """The single consolidated order-creation request"""
        payload = {
            "shippingAddress": self.state.resolved_address().to_payload(),
            "paymentMethod": self.state.payment_method.value if self.state.payment_method else None,
            "discountCode": self.state.discount.code,
            "loyaltyPointsUsed": 0 if self.is_guest else self._loyalty.points_used,
            "notes": self.state.notes,
        }
        if self.is_guest:
            payload["email"] = self.state.email.strip()
        return payload

    async def confirm(self) -> Result:
        """Submit the order from the review step"""
        if self.state.step != CheckoutStep.REVIEW:
            return Result.fail(ValidationError("Review the order before confirming"))
        if self.submitting:
            return Result.fail(OperationInProgress("The order is already being submitted"))

        errors = self.validate_step(CheckoutStep.SHIPPING)
        errors.update(self.validate_step(CheckoutStep.REVIEW))
        if errors:
            return self._blocked(errors)
        if self._cart.cart.is_empty:
            return self._blocked({"cart": "Your cart is empty"})

        self.recompute()
        payload = self.build_order_payload()
        self.submitting = True
        self.error = None
        try:
            response = await self._api.create_order(payload)
        finally:
            self.submitting = False

        if not response.success:
            error = response.to_error("Failed to create order")
            self.error = error.message
            logger.warning(f"Order submission failed: {error.message}")
            return Result.fail(error)

        data = response.data or {}
        try:
            order = Order.model_validate(data.get("order", data))
        except SchemaError as e:
            logger.error(f"Could not parse order confirmation: {e}")
            error = RejectedByServer("The order confirmation could not be read")
            self.error = error.message
            return Result.fail(error)

        self.order = order
        logger.info(f"Order {order.order_number} placed, total {order.total}")

        cleared = await self._cart.clear()
        if not cleared.success:
            logger.warning(f"Cart clear after order failed: {cleared.message}")
            await self._cart.reset()

        self.state.step = CheckoutStep.SUBMITTED
        self._clear_errors()
        return Result.ok(order)

    # ==================== Internals ====================

    def _go_to(self, step: CheckoutStep) -> None:
        logger.debug(f"Checkout step {self.state.step.name} -> {step.name}")
        self.state.step = step
        self._clear_errors()
        self.recompute()

    def _blocked(self, errors: dict[str, str]) -> Result:
        self.errors = errors
        field, message = next(iter(errors.items()))
        self.error = message
        return Result.fail(ValidationError(message, field=field))

    def _clear_errors(self, *fields: str) -> None:
        if not fields:
            self.errors.clear()
            self.error = None
            return
        for field in fields:
            self.errors.pop(field, None)
        if not self.errors:
            self.error = None

    def _check_email(self, errors: dict[str, str]) -> None:
        if not self.is_guest:
            return
        try:
            validate_email(self.state.email)
        except ValidationError as e:
            errors[e.field] = e.message

    def _check_payment(self, errors: dict[str, str]) -> None:
        if self.state.payment_method is None:
            errors["payment_method"] = "Please select a payment method"

    @staticmethod
    def _address_error_keys() -> tuple[str, ...]:
        return (
            "full_name",
            "phone_number",
            "address_line1",
            "city",
            "state",
            "postal_code",
            "country",
        )
