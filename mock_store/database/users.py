"""User storage for the mock store"""

import uuid
from typing import Optional

from ..models.user import Address, AddressRequest, User

DEMO_TOKEN = "demo-token"
NEW_USER_TOKEN = "new-user-token"

USERS: list[dict] = [
    {
        "_id": "user-001",
        "email": "linh.nguyen@example.com",
        "fullName": "Linh Nguyen",
        "loyaltyPoints": 200,
        "addresses": [
            {
                "_id": "addr-home",
                "fullName": "Linh Nguyen",
                "phoneNumber": "0901234567",
                "addressLine1": "12 Nguyen Hue",
                "city": "Ho Chi Minh City",
                "state": "District 1",
                "postalCode": "700000",
                "country": "Vietnam",
                "isDefault": False,
            },
            {
                "_id": "addr-office",
                "fullName": "Linh Nguyen",
                "phoneNumber": "+84 28 3822 1111",
                "addressLine1": "88 Dong Khoi",
                "addressLine2": "Floor 9",
                "city": "Ho Chi Minh City",
                "state": "District 1",
                "postalCode": "700000",
                "country": "Vietnam",
                "isDefault": True,
            },
        ],
    },
    {
        "_id": "user-002",
        "email": "minh.tran@example.com",
        "fullName": "Minh Tran",
        "loyaltyPoints": 0,
        "addresses": [],
    },
]

TOKENS = {
    DEMO_TOKEN: "user-001",
    NEW_USER_TOKEN: "user-002",
}


class UserDatabase:
    """In-memory users, bearer tokens and saved addresses"""

    POINT_VALUE = 1000

    def __init__(self):
        self.users: dict[str, User] = {}
        self.tokens: dict[str, str] = {}
        self.reset()

    def reset(self) -> None:
        self.users = {u["_id"]: User.model_validate(u) for u in USERS}
        self.tokens = dict(TOKENS)

    def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    def get_user_by_token(self, token: str) -> Optional[User]:
        user_id = self.tokens.get(token)
        return self.users.get(user_id) if user_id else None

    def get_address(self, user: User, address_id: str) -> Optional[Address]:
        return next((a for a in user.addresses if a.id == address_id), None)

    def add_address(self, user: User, request: AddressRequest) -> Address:
        """Save an address; the first one saved becomes the default"""
        make_default = bool(request.is_default) or not user.addresses
        address = Address(
            id=f"addr-{uuid.uuid4().hex[:8]}",
            is_default=False,
            **request.model_dump(exclude={"is_default"}),
        )
        user.addresses.append(address)
        if make_default:
            self._set_default(user, address.id)
        return address

    def update_address(
        self,
        user: User,
        address_id: str,
        request: AddressRequest,
    ) -> Optional[Address]:
        address = self.get_address(user, address_id)
        if not address:
            return None

        for field, value in request.model_dump(exclude={"is_default"}).items():
            setattr(address, field, value)
        if request.is_default:
            self._set_default(user, address_id)
        return address

    def delete_address(self, user: User, address_id: str) -> bool:
        """Delete an address, promoting the first remaining one if it was the default"""
        address = self.get_address(user, address_id)
        if not address:
            return False

        user.addresses = [a for a in user.addresses if a.id != address_id]
        if address.is_default and user.addresses:
            self._set_default(user, user.addresses[0].id)
        return True

    def set_default_address(self, user: User, address_id: str) -> Optional[Address]:
        if not self.get_address(user, address_id):
            return None
        self._set_default(user, address_id)
        return self.get_address(user, address_id)

    def _set_default(self, user: User, address_id: str) -> None:
        for address in user.addresses:
            address.is_default = address.id == address_id

    def adjust_points(self, user: User, used: int, earned: int) -> int:
        """Spend and award loyalty points; returns the new balance"""
        user.loyalty_points = max(0, user.loyalty_points - used) + earned
        return user.loyalty_points


# Singleton instance
user_db = UserDatabase()
