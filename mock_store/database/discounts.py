"""Discount code storage for the mock store"""

from typing import Optional

from ..models.order import DiscountCode

DISCOUNT_CODES: list[dict] = [
    {"code": "SAVE5", "discountType": "fixed", "discountValue": 50000, "usageLimit": 100},
    {"code": "TENPC", "discountType": "percentage", "discountValue": 10, "usageLimit": 100},
    {"code": "HALF5", "discountType": "percentage", "discountValue": 50, "usageLimit": 100},
    {"code": "FLAT1", "discountType": "fixed", "discountValue": 100000, "usageLimit": 100},
    {"code": "ONCE1", "discountType": "fixed", "discountValue": 20000, "usageLimit": 1},
    {"code": "OLD01", "discountType": "fixed", "discountValue": 50000, "usageLimit": 10, "isActive": False},
]


class DiscountDatabase:
    """In-memory discount codes"""

    def __init__(self):
        self.codes: dict[str, DiscountCode] = {}
        self.reset()

    def reset(self) -> None:
        self.codes = {
            c["code"]: DiscountCode.model_validate(c) for c in DISCOUNT_CODES
        }

    def get_code(self, code: str) -> Optional[DiscountCode]:
        """Get an active code, case-insensitively"""
        discount = self.codes.get(code.strip().upper())
        if not discount or not discount.is_active:
            return None
        return discount


# Singleton instance
discount_db = DiscountDatabase()
