"""Mock product variant catalog"""

from typing import Optional

from ..models.product import ProductVariant

# Seed catalog, prices in VND
VARIANTS: list[dict] = [
    {
        "_id": "var-tee-m",
        "productName": "Essential Cotton Tee",
        "name": "White / M",
        "sku": "TEE-WHT-M",
        "price": 150000,
        "inventory": 20,
    },
    {
        "_id": "var-tee-l",
        "productName": "Essential Cotton Tee",
        "name": "White / L",
        "sku": "TEE-WHT-L",
        "price": 150000,
        "inventory": 5,
    },
    {
        "_id": "var-hoodie",
        "productName": "Fleece Hoodie",
        "name": "Charcoal / M",
        "sku": "HOOD-CHR-M",
        "price": 450000,
        "inventory": 10,
    },
    {
        "_id": "var-cap",
        "productName": "Canvas Cap",
        "name": "Navy",
        "sku": "CAP-NVY",
        "price": 120000,
        "inventory": 2,
    },
    {
        "_id": "var-sneaker-42",
        "productName": "Court Sneaker",
        "name": "EU 42",
        "sku": "SNK-CRT-42",
        "price": 1250000,
        "inventory": 3,
    },
    {
        "_id": "var-socks",
        "productName": "Crew Socks",
        "name": "3-pack",
        "sku": "SCK-CRW-3",
        "price": 50000,
        "inventory": 40,
    },
    {
        "_id": "var-gloves",
        "productName": "Knit Gloves",
        "name": "Black",
        "sku": "GLV-BLK",
        "price": 80000,
        "inventory": 0,
    },
    {
        "_id": "var-scarf",
        "productName": "Wool Scarf",
        "name": "Grey",
        "sku": "SCF-GRY",
        "price": 300000,
        "inventory": 8,
        "isActive": False,
    },
]


class ProductDatabase:
    """In-memory variant storage"""

    def __init__(self):
        self.variants: dict[str, ProductVariant] = {}
        self.reset()

    def reset(self) -> None:
        """Restore the seed catalog"""
        self.variants = {
            v["_id"]: ProductVariant.model_validate(v) for v in VARIANTS
        }

    def get_variant(self, variant_id: str) -> Optional[ProductVariant]:
        """Get an active variant by ID"""
        variant = self.variants.get(variant_id)
        if not variant or not variant.is_active:
            return None
        return variant

    def list_variants(self, in_stock_only: bool = False) -> list[ProductVariant]:
        variants = [v for v in self.variants.values() if v.is_active]
        if in_stock_only:
            variants = [v for v in variants if v.inventory > 0]
        return variants

    def set_inventory(self, variant_id: str, inventory: int) -> bool:
        variant = self.variants.get(variant_id)
        if not variant:
            return False
        variant.inventory = max(0, inventory)
        return True

    def update_inventory(self, variant_id: str, quantity_change: int) -> bool:
        """
        Update variant inventory.

        Args:
            variant_id: Variant to update
            quantity_change: Positive to add, negative to remove

        Returns:
            True if successful
        """
        variant = self.variants.get(variant_id)
        if not variant:
            return False

        new_inventory = variant.inventory + quantity_change
        if new_inventory < 0:
            return False

        variant.inventory = new_inventory
        return True


# Singleton instance
product_db = ProductDatabase()
