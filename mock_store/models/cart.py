"""Cart models for the mock store"""

from pydantic import BaseModel, Field


class CartItem(BaseModel):
    """Line in a shopping cart"""
    product_variant_id: str = Field(alias="productVariantId")
    name: str
    price: int
    quantity: int = Field(gt=0)
    inventory: int = 0

    class Config:
        populate_by_name = True


class Cart(BaseModel):
    """Shopping cart"""
    items: list[CartItem] = []
    subtotal: int = 0
    item_count: int = Field(0, alias="itemCount")
    total: int = 0

    class Config:
        populate_by_name = True


class AddToCartRequest(BaseModel):
    """Request to add item to cart"""
    product_variant_id: str = Field(alias="productVariantId")
    quantity: int = Field(default=1, gt=0)

    class Config:
        populate_by_name = True


class UpdateCartItemRequest(BaseModel):
    """Request to update cart item quantity"""
    quantity: int = Field(gt=0)
