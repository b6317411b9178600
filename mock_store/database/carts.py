"""Cart storage for the mock store"""

from typing import Optional

from ..models.cart import Cart, CartItem
from ..models.product import ProductVariant
from .products import product_db


class CartDatabase:
    """In-memory carts keyed by shopper (user ID or guest session ID)"""

    def __init__(self):
        self.carts: dict[str, Cart] = {}

    def reset(self) -> None:
        self.carts.clear()

    def get_cart(self, cart_key: str) -> Cart:
        """Get the shopper's cart, creating an empty one on first use"""
        cart = self.carts.get(cart_key)
        if cart is None:
            cart = Cart()
            self.carts[cart_key] = cart
        self._recalculate_totals(cart)
        return cart

    def find_item(self, cart_key: str, variant_id: str) -> Optional[CartItem]:
        cart = self.get_cart(cart_key)
        return next(
            (item for item in cart.items if item.product_variant_id == variant_id),
            None,
        )

    def add_item(
        self,
        cart_key: str,
        variant: ProductVariant,
        quantity: int = 1,
    ) -> Cart:
        """Add an item to the cart, merging with an existing line"""
        cart = self.get_cart(cart_key)

        existing_item = self.find_item(cart_key, variant.id)
        if existing_item:
            existing_item.quantity += quantity
            existing_item.price = variant.price
        else:
            cart.items.append(
                CartItem(
                    product_variant_id=variant.id,
                    name=variant.display_name,
                    price=variant.price,
                    quantity=quantity,
                    inventory=variant.inventory,
                )
            )

        self._recalculate_totals(cart)
        return cart

    def update_item_quantity(
        self,
        cart_key: str,
        variant_id: str,
        quantity: int,
    ) -> Optional[Cart]:
        """Set a line's quantity; zero removes the line"""
        cart = self.get_cart(cart_key)
        item = self.find_item(cart_key, variant_id)
        if not item:
            return None

        if quantity <= 0:
            cart.items = [i for i in cart.items if i.product_variant_id != variant_id]
        else:
            item.quantity = quantity

        self._recalculate_totals(cart)
        return cart

    def remove_item(self, cart_key: str, variant_id: str) -> Optional[Cart]:
        """Remove an item from the cart"""
        return self.update_item_quantity(cart_key, variant_id, 0)

    def clear_cart(self, cart_key: str) -> Cart:
        """Clear all items from cart"""
        cart = self.get_cart(cart_key)
        cart.items = []
        self._recalculate_totals(cart)
        return cart

    def _recalculate_totals(self, cart: Cart) -> None:
        """Recalculate aggregates and refresh each line's stock level"""
        for item in cart.items:
            variant = product_db.variants.get(item.product_variant_id)
            item.inventory = variant.inventory if variant else 0
        cart.subtotal = sum(item.price * item.quantity for item in cart.items)
        cart.item_count = sum(item.quantity for item in cart.items)
        cart.total = cart.subtotal


# Singleton instance
cart_db = CartDatabase()
