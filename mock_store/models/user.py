"""User and address models for the mock store"""

from typing import Optional

from pydantic import BaseModel, Field

from .order import ShippingAddress


class Address(ShippingAddress):
    """Saved address on a user account"""
    id: str = Field(alias="_id")
    is_default: bool = Field(False, alias="isDefault")


class AddressRequest(ShippingAddress):
    """Request to add or replace a saved address"""
    is_default: Optional[bool] = Field(None, alias="isDefault")


class User(BaseModel):
    """Registered shopper"""
    id: str = Field(alias="_id")
    email: str
    full_name: str = Field(alias="fullName")
    loyalty_points: int = Field(0, alias="loyaltyPoints", ge=0)
    addresses: list[Address] = []

    class Config:
        populate_by_name = True
