"""Order storage for the mock store"""

import os
import uuid
from datetime import datetime, timezone
from typing import Optional

from ..models.order import Order


class OrderDatabase:
    """In-memory order storage"""

    EARN_PERCENT = 10
    POINT_VALUE = 1000

    def __init__(self):
        self.orders: dict[str, Order] = {}

    def reset(self) -> None:
        self.orders.clear()

    @property
    def shipping_fee(self) -> int:
        """Flat shipping fee in VND"""
        return int(os.getenv("MOCK_STORE_SHIPPING_FEE", "35000"))

    def points_earned(self, total: int) -> int:
        """10% of the paid total, in whole points"""
        return total * self.EARN_PERCENT // 100 // self.POINT_VALUE

    def create_order(self, **fields) -> Order:
        """Create and store an order"""
        now = datetime.now(timezone.utc)
        order = Order(
            id=str(uuid.uuid4()),
            order_number=f"ORD-{now:%Y%m%d}-{uuid.uuid4().hex[:6].upper()}",
            created_at=now,
            **fields,
        )
        self.orders[order.id] = order
        return order

    def get_order(self, order_id: str) -> Optional[Order]:
        """Get an order by ID"""
        return self.orders.get(order_id)

    def list_orders(self, user_id: Optional[str] = None, limit: int = 50) -> list[Order]:
        """List recent orders, optionally for one user"""
        orders = list(self.orders.values())
        if user_id:
            orders = [o for o in orders if o.user_id == user_id]
        orders.sort(key=lambda o: o.created_at, reverse=True)
        return orders[:limit]


# Singleton instance
order_db = OrderDatabase()
