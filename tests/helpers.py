"""Builders and a scripted transport shared by the test modules."""

import asyncio
import inspect
import json
from typing import Any, Optional

import httpx

from mock_store.main import app
from storefront.services.api_client import StoreApiClient

BASE_URL = "http://testserver/api"
DEMO_TOKEN = "demo-token"


def ok(data: Any = None, message: str = "Success") -> tuple[int, dict]:
    """Success envelope."""
    return 200, {"success": True, "message": message, "data": data}


def fail(status: int, message: str) -> tuple[int, dict]:
    """Failure envelope."""
    return status, {"success": False, "message": message}


def cart_data(*lines: tuple[str, int, int, int]) -> dict:
    """Cart snapshot from (variant_id, price, quantity, inventory) tuples."""
    items = [
        {
            "productVariantId": variant_id,
            "name": variant_id,
            "price": price,
            "quantity": quantity,
            "inventory": inventory,
        }
        for variant_id, price, quantity, inventory in lines
    ]
    subtotal = sum(price * quantity for _, price, quantity, _ in lines)
    return {
        "items": items,
        "subtotal": subtotal,
        "itemCount": sum(quantity for _, _, quantity, _ in lines),
        "total": subtotal,
    }


def address_data(**overrides: str) -> dict:
    """A valid shipping address, as the API spells it."""
    address = {
        "fullName": "An Pham",
        "phoneNumber": "0912345678",
        "addressLine1": "1 Le Loi",
        "addressLine2": "",
        "city": "Hanoi",
        "state": "Hoan Kiem",
        "postalCode": "100000",
        "country": "Vietnam",
    }
    address.update(overrides)
    return address


def order_data(total: int = 535000, number: str = "ORD-TEST-0001") -> dict:
    return {
        "order": {
            "_id": "order-1",
            "orderNumber": number,
            "subtotal": total - 35000,
            "shippingFee": 35000,
            "total": total,
            "paymentMethod": "cod",
            "shippingAddress": address_data(),
            "items": [],
            "createdAt": "2026-10-19T08:00:00Z",
        },
        "message": "Order placed successfully",
    }


class FakeApi:
    """
    Scripted MockTransport handler keyed by (method, path).

    Each route holds a queue of replies; the last one repeats. A reply is a
    (status, payload) tuple, an exception to raise, or a callable (sync or
    async) taking the request and returning either.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], list] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, path: str, *replies: Any) -> "FakeApi":
        self.routes[(method, path)] = list(replies)
        return self

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api")
        queue = self.routes.get((request.method, path))
        if not queue:
            return httpx.Response(404, json={"success": False, "message": "Not found"})

        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(reply):
            reply = reply(request)
            if inspect.isawaitable(reply):
                reply = await reply
        if isinstance(reply, Exception):
            raise reply
        status, payload = reply
        return httpx.Response(status, json=payload)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path.removeprefix("/api") == path
        ]

    def bodies(self, method: str, path: str) -> list[dict]:
        return [json.loads(r.content) for r in self.calls(method, path)]

    def client(
        self,
        auth_token: Optional[str] = None,
        session_id: Optional[str] = "guest-session",
        **kwargs: Any,
    ) -> StoreApiClient:
        return StoreApiClient(
            base_url=BASE_URL,
            auth_token=auth_token,
            session_id=session_id,
            transport=httpx.MockTransport(self),
            **kwargs,
        )


def delayed(seconds: float, reply: Any):
    """Reply after a delay, for out-of-order completions."""
    async def respond(request: httpx.Request):
        await asyncio.sleep(seconds)
        return reply
    return respond


def held(event: asyncio.Event, reply: Any):
    """Reply once event is set, to observe in-flight state."""
    async def respond(request: httpx.Request):
        await event.wait()
        return reply
    return respond


def store_client(
    auth_token: Optional[str] = None,
    session_id: Optional[str] = "guest-session",
) -> StoreApiClient:
    """Client wired to the in-process mock store."""
    return StoreApiClient(
        base_url=BASE_URL,
        auth_token=auth_token,
        session_id=session_id,
        transport=httpx.ASGITransport(app=app),
    )
