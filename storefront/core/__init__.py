# Core modules

from .config import settings
from .state import CheckoutState, CheckoutStep, PaymentMethod, Result

__all__ = ["settings", "CheckoutState", "CheckoutStep", "PaymentMethod", "Result"]
