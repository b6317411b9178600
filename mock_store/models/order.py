"""Order and discount models for the mock store"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class PaymentMethod(str, Enum):
    COD = "cod"
    BANK = "bank"
    CREDIT = "credit"


class DiscountCode(BaseModel):
    """Discount code with a usage limit"""
    code: str
    discount_type: DiscountType = Field(alias="discountType")
    discount_value: int = Field(alias="discountValue", ge=0)
    usage_limit: int = Field(alias="usageLimit", ge=0)
    used_count: int = Field(0, alias="usedCount", ge=0)
    is_active: bool = Field(True, alias="isActive")

    class Config:
        populate_by_name = True

    @property
    def is_valid(self) -> bool:
        return self.is_active and self.used_count < self.usage_limit

    @property
    def remaining_uses(self) -> int:
        return max(0, self.usage_limit - self.used_count)

    def calculate_discount(self, total: int) -> int:
        """Discount on total; percentages cap at 100%, fixed amounts at the total"""
        if not self.is_valid:
            return 0
        if self.discount_type == DiscountType.PERCENTAGE:
            return total * min(self.discount_value, 100) // 100
        return min(self.discount_value, total)

    def use(self) -> None:
        self.used_count += 1
        if self.used_count >= self.usage_limit:
            self.is_active = False


class VerifyDiscountRequest(BaseModel):
    code: Optional[str] = None


class LoyaltyPointsRequest(BaseModel):
    points: Optional[int] = None
    discount_code: Optional[str] = Field(None, alias="discountCode")

    class Config:
        populate_by_name = True


class ShippingAddress(BaseModel):
    """Shipping address for order"""
    full_name: str = Field(alias="fullName")
    phone_number: str = Field(alias="phoneNumber")
    address_line1: str = Field(alias="addressLine1")
    address_line2: str = Field("", alias="addressLine2")
    city: str
    state: str
    postal_code: str = Field(alias="postalCode")
    country: str

    class Config:
        populate_by_name = True


class CreateOrderRequest(BaseModel):
    """Request to place an order for the current cart"""
    shipping_address: Optional[ShippingAddress] = Field(None, alias="shippingAddress")
    payment_method: Optional[str] = Field(None, alias="paymentMethod")
    discount_code: Optional[str] = Field(None, alias="discountCode")
    loyalty_points_used: int = Field(0, alias="loyaltyPointsUsed", ge=0)
    notes: Optional[str] = ""
    email: Optional[str] = None

    class Config:
        populate_by_name = True


class OrderItem(BaseModel):
    """Item in an order"""
    product_variant_id: str = Field(alias="productVariantId")
    name: str
    price: int
    quantity: int
    total_price: int = Field(alias="totalPrice")

    class Config:
        populate_by_name = True


class Order(BaseModel):
    """Placed order"""
    id: str = Field(alias="_id")
    order_number: str = Field(alias="orderNumber")
    user_id: Optional[str] = Field(None, alias="userId")
    email: Optional[str] = None
    items: list[OrderItem]
    subtotal: int
    shipping_fee: int = Field(alias="shippingFee")
    discount_code: Optional[str] = Field(None, alias="discountCode")
    discount_amount: int = Field(0, alias="discountAmount")
    loyalty_points_used: int = Field(0, alias="loyaltyPointsUsed")
    loyalty_points_earned: int = Field(0, alias="loyaltyPointsEarned")
    total: int
    payment_method: PaymentMethod = Field(alias="paymentMethod")
    shipping_address: ShippingAddress = Field(alias="shippingAddress")
    notes: str = ""
    created_at: datetime = Field(alias="createdAt")

    class Config:
        populate_by_name = True
