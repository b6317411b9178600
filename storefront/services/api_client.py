"""
Store API Client

HTTP client for the storefront REST API.
Every call resolves to an ApiResponse; HTTP failures are never raised.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Any

import httpx

from ..core.config import settings
from ..exceptions import (
    StorefrontError,
    RejectedByServer,
    InventoryError,
    NetworkFailure,
    RequestTimeout,
)

logger = logging.getLogger(__name__)

INVENTORY_MARKERS = ("inventory", "in stock", "items available")


@dataclass
class ApiResponse:
    """Uniform {success, data, message} envelope"""
    success: bool
    data: Any = None
    message: Optional[str] = None
    status: Optional[int] = None
    errors: Any = None
    is_inventory_error: bool = False
    is_network_error: bool = False
    is_timeout: bool = False

    @property
    def retryable(self) -> bool:
        return self.is_network_error

    def to_error(self, default_message: str = "An error occurred") -> StorefrontError:
        """Map an unsuccessful response onto the error taxonomy"""
        message = self.message or default_message
        if self.is_timeout:
            return RequestTimeout(message)
        if self.is_network_error:
            return NetworkFailure(message)
        if self.is_inventory_error:
            return InventoryError(message, status=self.status)
        return RejectedByServer(message, status=self.status)


def error_message(payload: dict) -> str:
    """Failure text from an envelope or a framework error body"""
    message = payload.get("message") or payload.get("detail")
    if not message:
        return "An error occurred"
    if isinstance(message, str):
        return message
    if isinstance(message, list):
        # [{"loc": [...], "msg": "..."}] validation details
        return "; ".join(
            item.get("msg", str(item)) if isinstance(item, dict) else str(item) for item in message
        )
    return str(message)


def is_inventory_message(status: int, message: Optional[str]) -> bool:
    if status != 400 or not isinstance(message, str) or not message:
        return False
    lowered = message.lower()
    return any(marker in lowered for marker in INVENTORY_MARKERS)


class StoreApiClient:
    """
    Client for the storefront REST API.

    Usage:
        client = StoreApiClient("http://localhost:3000/api", auth_token=token)
        response = await client.get_cart()
        if response.success:
            cart = Cart.model_validate(response.data)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        auth_token: Optional[str] = None,
        session_id: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize store API client.

        Args:
            base_url: Base URL of the store API, including the /api prefix
            auth_token: Bearer token of a signed-in user; None for guests
            session_id: Guest session identifier sent as X-Session-Id
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests, ASGI apps)
        """
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.auth_token = auth_token if auth_token is not None else settings.auth_token
        self.session_id = session_id if session_id is not None else settings.session_id
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self._http_client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.auth_token)

    async def close(self) -> None:
        """Close HTTP client"""
        await self._http_client.aclose()

    async def __aenter__(self) -> "StoreApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _generate_headers(self) -> dict[str, str]:
        """Generate headers including auth token if available"""
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        if self.session_id:
            headers["X-Session-Id"] = self.session_id
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        body: Optional[dict] = None,
    ) -> ApiResponse:
        """Make an HTTP request and translate the reply into an ApiResponse"""
        url = f"{self.base_url}{path}"

        try:
            response = await self._http_client.request(
                method=method,
                url=url,
                headers=self._generate_headers(),
                json=body,
            )
        except httpx.TimeoutException:
            logger.error(f"Request timed out after {self.timeout}s: {method} {path}")
            return ApiResponse(
                success=False,
                message="The request timed out, please try again",
                is_network_error=True,
                is_timeout=True,
            )
        except httpx.HTTPError as e:
            logger.error(f"Request failed: {method} {path} - {e}")
            return ApiResponse(
                success=False,
                message=str(e) or "Network error",
                is_network_error=True,
            )

        return self._handle_response(response)

    def _handle_response(self, response: httpx.Response) -> ApiResponse:
        try:
            payload = response.json()
        except ValueError:
            payload = {"message": response.text or None}
        if not isinstance(payload, dict):
            payload = {"data": payload}

        if response.is_success:
            return ApiResponse(
                success=payload.get("success", True),
                data=payload.get("data"),
                message=payload.get("message"),
                status=response.status_code,
            )

        message = error_message(payload)
        inventory = is_inventory_message(response.status_code, message)
        logger.warning(f"Request rejected: {response.status_code} - {message}")
        return ApiResponse(
            success=False,
            message=message,
            status=response.status_code,
            errors=payload.get("errors"),
            is_inventory_error=inventory,
        )

    # ==================== Cart APIs ====================

    async def get_cart(self) -> ApiResponse:
        """Get current cart"""
        return await self._request("GET", "/cart")

    async def add_cart_item(self, variant_id: str, quantity: int) -> ApiResponse:
        """Add item to cart"""
        return await self._request(
            "POST",
            "/cart/items",
            body={"productVariantId": variant_id, "quantity": quantity},
        )

    async def update_cart_item(self, variant_id: str, quantity: int) -> ApiResponse:
        """Update item quantity in cart"""
        return await self._request(
            "PUT",
            f"/cart/items/{variant_id}",
            body={"quantity": quantity},
        )

    async def remove_cart_item(self, variant_id: str) -> ApiResponse:
        """Remove item from cart"""
        return await self._request("DELETE", f"/cart/items/{variant_id}")

    async def clear_cart(self) -> ApiResponse:
        """Remove all items from cart"""
        return await self._request("DELETE", "/cart")

    # ==================== Order APIs ====================

    async def verify_discount(self, code: str) -> ApiResponse:
        """Verify a discount code against the current cart"""
        return await self._request("POST", "/orders/verify-discount", body={"code": code})

    async def apply_loyalty_points(
        self,
        points: int,
        discount_code: Optional[str] = None,
    ) -> ApiResponse:
        """Ask the server what the given points are worth on the current cart"""
        body: dict[str, Any] = {"points": points}
        if discount_code:
            body["discountCode"] = discount_code
        return await self._request("POST", "/orders/user/apply-loyalty-points", body=body)

    async def create_order(self, order_data: dict) -> ApiResponse:
        """Place an order for the current cart"""
        return await self._request("POST", "/orders", body=order_data)

    # ==================== User APIs ====================

    async def get_addresses(self) -> ApiResponse:
        """Get saved addresses"""
        return await self._request("GET", "/users/addresses")

    async def add_address(self, address: dict) -> ApiResponse:
        return await self._request("POST", "/users/addresses", body=address)

    async def update_address(self, address_id: str, address: dict) -> ApiResponse:
        return await self._request("PUT", f"/users/addresses/{address_id}", body=address)

    async def delete_address(self, address_id: str) -> ApiResponse:
        return await self._request("DELETE", f"/users/addresses/{address_id}")

    async def set_default_address(self, address_id: str) -> ApiResponse:
        return await self._request("PUT", f"/users/addresses/{address_id}/default")

    async def get_loyalty_points(self) -> ApiResponse:
        """Get loyalty point balance"""
        return await self._request("GET", "/users/loyalty-points")
