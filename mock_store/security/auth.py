"""
Shopper identification

Signed-in shoppers send a bearer token; guests send an X-Session-Id header.
The cart and every pricing endpoint are scoped to whichever identity the
request carries.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from ..database.users import user_db
from ..models.user import User
from ..responses import ApiError

logger = logging.getLogger(__name__)


@dataclass
class Shopper:
    """Identity of the caller"""
    user: Optional[User] = None
    session_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def cart_key(self) -> Optional[str]:
        if self.user is not None:
            return f"user:{self.user.id}"
        if self.session_id:
            return f"session:{self.session_id}"
        return None


class ShopperDependency:
    """
    FastAPI dependency resolving the caller's identity.

    A bearer token that matches no user is always rejected, even on routes
    that allow guests.
    """

    def __init__(self, require_identity: bool = False, require_user: bool = False):
        """
        Args:
            require_identity: If True, reject requests with neither token nor session
            require_user: If True, reject requests without a signed-in user
        """
        self.require_identity = require_identity
        self.require_user = require_user

    async def __call__(self, request: Request) -> Shopper:
        user = None
        authorization = request.headers.get("Authorization", "")
        if authorization.lower().startswith("bearer "):
            token = authorization[7:].strip()
            user = user_db.get_user_by_token(token)
            if user is None:
                logger.warning("Rejected request with an unknown bearer token")
                raise ApiError("Invalid or expired token", 401)

        shopper = Shopper(user=user, session_id=request.headers.get("X-Session-Id"))

        if self.require_user and not shopper.is_authenticated:
            raise ApiError("Authentication required", 401)

        if self.require_identity and shopper.cart_key is None:
            raise ApiError("A session ID or sign-in is required", 401)

        return shopper


# Dependency instances
optional_shopper = ShopperDependency()
require_shopper = ShopperDependency(require_identity=True)
require_user = ShopperDependency(require_identity=True, require_user=True)
