# Request identity

from .auth import Shopper, ShopperDependency, optional_shopper, require_shopper, require_user

__all__ = ["Shopper", "ShopperDependency", "optional_shopper", "require_shopper", "require_user"]
