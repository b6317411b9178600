"""Wire models for store API payloads"""

import math
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from . import pricing


class CartLine(BaseModel):
    """One line of the server's cart snapshot"""
    variant_id: str = Field(alias="productVariantId")
    name: Optional[str] = None
    unit_price: int = Field(alias="price", ge=0)
    quantity: int = Field(ge=1)
    inventory_cap: int = Field(alias="inventory", ge=0)

    class Config:
        populate_by_name = True
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def flatten_variant(cls, data: Any) -> Any:
        """Accept a populated variant object in place of its ID"""
        if not isinstance(data, dict):
            return data
        variant = data.get("productVariantId")
        if isinstance(variant, dict):
            data = dict(data)
            data["productVariantId"] = variant.get("_id") or variant.get("id")
            data.setdefault("price", variant.get("price"))
            data.setdefault("inventory", variant.get("inventory", 0))
            data.setdefault("name", variant.get("name"))
        return data

    @property
    def line_total(self) -> int:
        return pricing.line_total(self.unit_price, self.quantity)


class Cart(BaseModel):
    """Authoritative cart snapshot"""
    lines: list[CartLine] = Field(default_factory=list, alias="items")
    subtotal: int = 0
    item_count: int = Field(0, alias="itemCount")
    total: int = 0

    class Config:
        populate_by_name = True
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def fill_aggregates(cls, data: Any) -> Any:
        """Derive aggregates only when the server omitted them"""
        if not isinstance(data, dict) or not data.get("items"):
            return data
        lines = [CartLine.model_validate(item) for item in data["items"]]
        data = dict(data)
        data["items"] = lines
        if "subtotal" not in data:
            data["subtotal"] = pricing.cart_subtotal(lines)
        if "itemCount" not in data and "item_count" not in data:
            data["itemCount"] = pricing.cart_item_count(lines)
        data.setdefault("total", data["subtotal"])
        return data

    @classmethod
    def empty(cls) -> "Cart":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def find_line(self, variant_id: str) -> Optional[CartLine]:
        return next((line for line in self.lines if line.variant_id == variant_id), None)


class ShippingAddress(BaseModel):
    """Shipping address as sent with an order"""
    full_name: str = Field("", alias="fullName")
    phone_number: str = Field("", alias="phoneNumber")
    address_line1: str = Field("", alias="addressLine1")
    address_line2: str = Field("", alias="addressLine2")
    city: str = ""
    state: str = ""
    postal_code: str = Field("", alias="postalCode")
    country: str = ""

    class Config:
        populate_by_name = True

    def to_payload(self) -> dict[str, str]:
        return self.model_dump(by_alias=True)


class SavedAddress(ShippingAddress):
    """Address stored on the user's account"""
    id: str = Field(alias="_id")
    is_default: bool = Field(False, alias="isDefault")

    def to_shipping_address(self) -> ShippingAddress:
        return ShippingAddress.model_validate(self.model_dump(exclude={"id", "is_default"}))


class DiscountQuote(BaseModel):
    """Server verification of a discount code"""
    code: Optional[str] = None
    discount_type: Optional[str] = Field(None, alias="discountType")
    discount_value: Optional[float] = Field(None, alias="discountValue")
    discount_amount: int = Field(0, alias="discountAmount", ge=0)
    remaining_uses: Optional[int] = Field(None, alias="remainingUses")

    class Config:
        populate_by_name = True

    @field_validator("discount_amount", mode="before")
    @classmethod
    def whole_units(cls, value: Any) -> Any:
        """Percentage discounts can come back fractional; floor to minor units"""
        if isinstance(value, float) and math.isfinite(value):
            return math.floor(value)
        return value


class LoyaltyQuote(BaseModel):
    """Server computation of a loyalty redemption"""
    points_applied: int = Field(0, alias="pointsApplied", ge=0)
    points_value: int = Field(0, alias="pointsValue", ge=0)
    original_total: Optional[int] = Field(None, alias="originalTotal")
    new_total: Optional[int] = Field(None, alias="newTotal")

    class Config:
        populate_by_name = True


class LoyaltyBalance(BaseModel):
    """User's loyalty point balance"""
    loyalty_points: int = Field(0, alias="loyaltyPoints", ge=0)
    equivalent_value: int = Field(0, alias="equivalentValue", ge=0)

    class Config:
        populate_by_name = True


class OrderItem(BaseModel):
    """Line of a placed order"""
    variant_id: str = Field(alias="productVariantId")
    name: Optional[str] = None
    unit_price: int = Field(alias="price")
    quantity: int

    class Config:
        populate_by_name = True


class Order(BaseModel):
    """Order as confirmed by the server"""
    id: Optional[str] = Field(None, alias="_id")
    order_number: str = Field(alias="orderNumber")
    subtotal: Optional[int] = None
    shipping_fee: Optional[int] = Field(None, alias="shippingFee")
    discount_code: Optional[str] = Field(None, alias="discountCode")
    discount_amount: int = Field(0, alias="discountAmount")
    loyalty_points_used: int = Field(0, alias="loyaltyPointsUsed")
    total: int
    payment_method: Optional[str] = Field(None, alias="paymentMethod")
    shipping_address: Optional[ShippingAddress] = Field(None, alias="shippingAddress")
    items: list[OrderItem] = Field(default_factory=list)
    notes: Optional[str] = None
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    class Config:
        populate_by_name = True
        frozen = True
