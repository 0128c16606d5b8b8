"""Async HTTP client for the marketplace REST API."""
import logging
from typing import Any, Callable, Dict, List, Optional

import httpx
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

from farmdirect.config import OTEL_ENABLED

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000/api"


class ApiError(Exception):
    """Non-2xx API response, carrying the server's message."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def create_http_client(base_url: str = DEFAULT_BASE_URL, timeout: float = 10.0) -> httpx.AsyncClient:
    """Build the shared async HTTP client, traced when OpenTelemetry is on."""
    http_client = httpx.AsyncClient(base_url=base_url, timeout=timeout)
    if OTEL_ENABLED:
        HTTPXClientInstrumentor().instrument_client(http_client)
    return http_client


def _query(params: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in params.items() if value is not None}


class MarketplaceClient:
    """Thin wrapper over every marketplace route."""

    def __init__(self, http_client: httpx.AsyncClient, token_provider: Callable[[], Optional[str]]):
        """
        Initialize marketplace client.

        Args:
            http_client: Async HTTP client whose base URL points at ``/api``
            token_provider: Returns the current bearer token, or None when logged out
        """
        self.http_client = http_client
        self.token_provider = token_provider

    async def request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Send a request and unwrap the JSON envelope.

        Raises:
            ApiError: On transport failure or a non-2xx response
        """
        headers = {}
        token = self.token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self.http_client.request(
                method, path, json=json, params=_query(params or {}), headers=headers
            )
        except httpx.HTTPError as e:
            logger.error("API request failed", extra={"method": method, "path": path, "error": str(e)})
            raise ApiError(f"Network error: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_error:
            message = body.get("message") if isinstance(body, dict) else None
            logger.warning("API returned error", extra={
                "method": method,
                "path": path,
                "status_code": response.status_code
            })
            raise ApiError(message or "API request failed", response.status_code)

        return body

    # Auth
    async def register(self, user_data: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request("POST", "/auth/register", json=user_data)

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        return await self.request("POST", "/auth/login", json={"email": email, "password": password})

    async def get_current_user(self) -> Dict[str, Any]:
        return await self.request("GET", "/auth/me")

    # Products
    async def list_products(
        self,
        category: Optional[str] = None,
        search: Optional[str] = None,
        farmer_id: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        result = await self.request(
            "GET", "/products", params={"category": category, "search": search, "farmerId": farmer_id}
        )
        return result["products"]

    async def get_product(self, product_id: int) -> Dict[str, Any]:
        return (await self.request("GET", f"/products/{product_id}"))["product"]

    async def create_product(self, product_data: Dict[str, Any]) -> Dict[str, Any]:
        return (await self.request("POST", "/products", json=product_data))["product"]

    async def update_product(self, product_id: int, product_data: Dict[str, Any]) -> Dict[str, Any]:
        return (await self.request("PUT", f"/products/{product_id}", json=product_data))["product"]

    async def update_stock(self, product_id: int, stock: int) -> Dict[str, Any]:
        return (await self.request("PATCH", f"/products/{product_id}/stock", json={"stock": stock}))["product"]

    async def delete_product(self, product_id: int) -> Dict[str, Any]:
        return await self.request("DELETE", f"/products/{product_id}")

    # Orders
    async def list_orders(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        return (await self.request("GET", "/orders", params={"status": status}))["orders"]

    async def get_order(self, order_id: Any) -> Dict[str, Any]:
        return (await self.request("GET", f"/orders/{order_id}"))["order"]

    async def create_order(self, items: List[Dict[str, Any]]) -> Dict[str, Any]:
        return (await self.request("POST", "/orders", json={"items": items}))["order"]

    async def update_order_status(self, order_id: Any, status: str) -> Dict[str, Any]:
        return (await self.request("PATCH", f"/orders/{order_id}/status", json={"status": status}))["order"]

    async def cancel_order(self, order_id: Any) -> Dict[str, Any]:
        return await self.request("DELETE", f"/orders/{order_id}")

    # Market prices
    async def list_market_prices(self, category: Optional[str] = None) -> List[Dict[str, Any]]:
        return (await self.request("GET", "/market-prices", params={"category": category}))["prices"]

    async def update_market_price(self, price_id: int, price_data: Dict[str, Any]) -> Dict[str, Any]:
        return (await self.request("PUT", f"/market-prices/{price_id}", json=price_data))["price"]
