# Database modules

from .products import product_db, ProductDatabase
from .carts import cart_db, CartDatabase
from .discounts import discount_db, DiscountDatabase
from .users import user_db, UserDatabase
from .orders import order_db, OrderDatabase


def reset_all() -> None:
    """Restore every store to its seed data"""
    product_db.reset()
    cart_db.reset()
    discount_db.reset()
    user_db.reset()
    order_db.reset()


__all__ = [
    "product_db",
    "ProductDatabase",
    "cart_db",
    "CartDatabase",
    "discount_db",
    "DiscountDatabase",
    "user_db",
    "UserDatabase",
    "order_db",
    "OrderDatabase",
    "reset_all",
]
