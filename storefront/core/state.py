"""State records shared by the cart summary and the checkout wizard"""

from typing import Any, Optional
from dataclasses import dataclass, field
from enum import Enum, IntEnum

from ..exceptions import StorefrontError
from ..models import SavedAddress, ShippingAddress


class CheckoutStep(IntEnum):
    """Checkout wizard step"""
    SHIPPING = 1
    PAYMENT = 2
    REVIEW = 3
    SUBMITTED = 4


class PaymentMethod(str, Enum):
    """Payment method label sent with the order"""
    COD = "cod"
    BANK = "bank"
    CREDIT = "credit"

    @property
    def label(self) -> str:
        return {
            PaymentMethod.COD: "Cash on Delivery",
            PaymentMethod.BANK: "Bank Transfer",
            PaymentMethod.CREDIT: "Credit/Debit Card",
        }[self]


class CartAction(str, Enum):
    """What produced a committed cart snapshot"""
    FETCH = "fetch"
    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"
    CLEAR = "clear"


@dataclass
class Result:
    """Outcome of a storefront operation"""
    success: bool
    data: Any = None
    error: Optional[StorefrontError] = None

    @classmethod
    def ok(cls, data: Any = None) -> "Result":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: StorefrontError) -> "Result":
        return cls(success=False, error=error)

    @property
    def message(self) -> Optional[str]:
        return self.error.message if self.error else None


@dataclass
class DiscountState:
    """Active discount code; amount is only set after server verification"""
    code: Optional[str] = None
    amount: int = 0

    def reset(self) -> None:
        self.code = None
        self.amount = 0

    @property
    def is_active(self) -> bool:
        return self.code is not None


@dataclass
class LoyaltyRedemption:
    """Loyalty points requested and applied against the current order"""
    available_points: int = 0
    requested_points: int = 0
    applied_points: int = 0
    applied_value: int = 0
    enabled: bool = False

    def clear_applied(self) -> None:
        self.applied_points = 0
        self.applied_value = 0

    def reset(self) -> None:
        self.requested_points = 0
        self.enabled = False
        self.clear_applied()


@dataclass
class CheckoutState:
    """Everything the wizard accumulates before submitting"""
    step: CheckoutStep = CheckoutStep.SHIPPING
    saved_addresses: list[SavedAddress] = field(default_factory=list)
    selected_address_id: Optional[str] = None
    address_form: ShippingAddress = field(default_factory=ShippingAddress)
    email: str = ""
    payment_method: Optional[PaymentMethod] = None
    notes: str = ""
    discount: DiscountState = field(default_factory=DiscountState)
    loyalty: LoyaltyRedemption = field(default_factory=LoyaltyRedemption)

    @property
    def selected_address(self) -> Optional[SavedAddress]:
        if not self.selected_address_id:
            return None
        return next(
            (a for a in self.saved_addresses if a.id == self.selected_address_id),
            None,
        )

    def resolved_address(self) -> ShippingAddress:
        """The address the order ships to: saved selection, else the form"""
        selected = self.selected_address
        if selected is not None:
            return selected.to_shipping_address()
        return self.address_form
