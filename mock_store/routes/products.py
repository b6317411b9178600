"""Catalog API routes for the mock store"""

from fastapi import APIRouter, Query

from ..database.products import product_db
from ..responses import ApiError, success

router = APIRouter(prefix="/api/products", tags=["Products"])


@router.get("")
async def list_variants(
    in_stock_only: bool = Query(False, description="Only show in-stock variants"),
):
    """List purchasable variants"""
    return success(product_db.list_variants(in_stock_only=in_stock_only))


@router.get("/{variant_id}")
async def get_variant(variant_id: str):
    """Get variant details"""
    variant = product_db.get_variant(variant_id)
    if not variant:
        raise ApiError("Product not available", 404)
    return success(variant)
