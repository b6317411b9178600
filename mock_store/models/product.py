"""Catalog models for the mock store"""

from pydantic import BaseModel, Field


class ProductVariant(BaseModel):
    """Purchasable variant of a product"""
    id: str = Field(alias="_id")
    product_name: str = Field(alias="productName")
    name: str
    sku: str
    price: int = Field(ge=0)
    inventory: int = Field(ge=0, default=0)
    is_active: bool = Field(True, alias="isActive")

    class Config:
        populate_by_name = True

    @property
    def display_name(self) -> str:
        return f"{self.product_name} - {self.name}"
