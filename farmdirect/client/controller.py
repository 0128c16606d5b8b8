"""Client application controller.

Owns the ``AppState`` and the persisted session. Every user-facing
operation reports failures through the toast callback instead of raising,
and always clears the loading flag.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, List, Optional

from farmdirect.client import chatbot
from farmdirect.client.api import ApiError, MarketplaceClient
from farmdirect.client.i18n import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES
from farmdirect.client.price_ticker import TICK_INTERVAL_SECONDS, run_ticker
from farmdirect.client.state import AppState
from farmdirect.client.storage import (
    AUTH_TOKEN_KEY,
    DARK_MODE_KEY,
    LANGUAGE_KEY,
    USER_KEY,
    LocalStorage,
)

logger = logging.getLogger(__name__)

Toast = Callable[[str, str], None]


def _log_toast(message: str, kind: str) -> None:
    logger.info("Toast", extra={"toast": message, "kind": kind})


class MarketplaceApp:
    """Headless marketplace client."""

    def __init__(
        self,
        http_client: Any,
        storage: Optional[LocalStorage] = None,
        toast: Optional[Toast] = None
    ):
        """
        Initialize the client application.

        Args:
            http_client: ``httpx.AsyncClient`` pointed at the API base URL
            storage: Persistent key/value store, in-memory when omitted
            toast: Called with ``(message, kind)`` where kind is "success" or "error"
        """
        self.storage = storage or LocalStorage()
        self.toast = toast or _log_toast
        self.api = MarketplaceClient(http_client, lambda: self.storage.get(AUTH_TOKEN_KEY))
        self.state = AppState(
            current_user=self.storage.get(USER_KEY),
            language=self.storage.get(LANGUAGE_KEY, DEFAULT_LANGUAGE),
            dark_mode=bool(self.storage.get(DARK_MODE_KEY, False)),
        )
        self._ticker: Optional[asyncio.Task] = None

    @asynccontextmanager
    async def _busy(self):
        self.state.loading = True
        try:
            yield
        finally:
            self.state.loading = False

    async def _run(self, operation, success_message: Optional[str] = None) -> Any:
        """Run an API call, toasting its outcome. Returns None on failure."""
        async with self._busy():
            try:
                result = await operation()
            except ApiError as e:
                self.toast(e.message, "error")
                return None
        if success_message:
            self.toast(success_message, "success")
        return result

    # Session
    def _store_session(self, response: Dict[str, Any]) -> Dict[str, Any]:
        self.storage.set(AUTH_TOKEN_KEY, response["token"])
        self.storage.set(USER_KEY, response["user"])
        self.state.current_user = response["user"]
        return response["user"]

    def _clear_session(self) -> None:
        self.storage.remove(AUTH_TOKEN_KEY)
        self.storage.remove(USER_KEY)
        self.state.current_user = None
        self.state.orders = []

    async def restore_session(self) -> Optional[Dict[str, Any]]:
        """Revalidate a stored token; a rejected token logs the session out."""
        if not self.storage.get(AUTH_TOKEN_KEY):
            self.state.current_user = None
            return None

        async with self._busy():
            try:
                response = await self.api.get_current_user()
            except ApiError as e:
                logger.info("Stored session rejected", extra={"status_code": e.status_code})
                self._clear_session()
                return None

        self.state.current_user = response["user"]
        self.storage.set(USER_KEY, response["user"])
        return self.state.current_user

    async def login(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        response = await self._run(lambda: self.api.login(email, password))
        if response is None:
            return None
        user = self._store_session(response)
        self.toast(f"Welcome back, {user['name']}!", "success")
        return user

    async def register(self, user_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        response = await self._run(lambda: self.api.register(user_data))
        if response is None:
            return None
        user = self._store_session(response)
        self.toast("Account created successfully!", "success")
        return user

    def logout(self) -> None:
        self._clear_session()
        self.toast("Logged out successfully", "success")

    # Catalog
    async def load_products(
        self,
        category: Optional[str] = None,
        search: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        if category is not None:
            self.state.category_filter = category
        if search is not None:
            self.state.search = search

        products = await self._run(lambda: self.api.list_products(
            category=self.state.category_filter,
            search=self.state.search or None,
        ))
        if products is not None:
            self.state.products = products
        return self.state.products

    async def load_my_products(self) -> List[Dict[str, Any]]:
        if not self.state.is_farmer:
            return []
        products = await self._run(lambda: self.api.list_products(farmer_id=self.state.current_user["id"]))
        return products or []

    async def add_product(self, product_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        product = await self._run(lambda: self.api.create_product(product_data), "Product added successfully!")
        if product is not None:
            self.state.products.insert(0, product)
        return product

    async def update_product(self, product_id: int, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        product = await self._run(lambda: self.api.update_product(product_id, changes), "Product updated successfully!")
        if product is not None:
            self._replace_product(product)
        return product

    async def update_stock(self, product_id: int, stock: int) -> Optional[Dict[str, Any]]:
        product = await self._run(lambda: self.api.update_stock(product_id, stock), "Stock updated successfully!")
        if product is not None:
            self._replace_product(product)
        return product

    async def delete_product(self, product_id: int) -> bool:
        result = await self._run(lambda: self.api.delete_product(product_id), "Product deleted successfully!")
        if result is None:
            return False
        self.state.products = [p for p in self.state.products if p["id"] != product_id]
        return True

    def _replace_product(self, product: Dict[str, Any]) -> None:
        self.state.products = [product if p["id"] == product["id"] else p for p in self.state.products]

    # Orders
    async def load_orders(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        orders = await self._run(lambda: self.api.list_orders(status=status))
        if orders is not None:
            self.state.orders = orders
        return self.state.orders

    async def place_order(self, items: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """Place an order from ``[{"productId": ..., "quantity": ...}]`` and refresh the catalog."""
        order = await self._run(lambda: self.api.create_order(items))
        if order is None:
            return None
        self.toast(f"Order {order['orderId']} placed successfully!", "success")
        self.state.orders.insert(0, order)
        await self.load_products()
        return order

    async def cancel_order(self, order_id: Any) -> Optional[Dict[str, Any]]:
        result = await self._run(lambda: self.api.cancel_order(order_id))
        if result is None:
            return None
        self.toast(result.get("message", "Order cancelled"), "success")
        self._replace_order(result["order"])
        return result["order"]

    async def update_order_status(self, order_id: Any, status: str) -> Optional[Dict[str, Any]]:
        order = await self._run(
            lambda: self.api.update_order_status(order_id, status), f"Order marked as {status}"
        )
        if order is not None:
            self._replace_order(order)
        return order

    def _replace_order(self, order: Dict[str, Any]) -> None:
        self.state.orders = [order if o["id"] == order["id"] else o for o in self.state.orders]

    # Market prices
    async def load_market_prices(self, category: Optional[str] = None) -> List[Dict[str, Any]]:
        prices = await self._run(lambda: self.api.list_market_prices(category=category))
        if prices is not None:
            self.state.market_prices = prices
        return self.state.market_prices

    def start_price_ticker(self, interval: float = TICK_INTERVAL_SECONDS) -> asyncio.Task:
        """Start the cosmetic ticker on the running event loop."""
        if self._ticker is None or self._ticker.done():
            self._ticker = asyncio.create_task(run_ticker(
                lambda: self.state.market_prices,
                self._set_market_prices,
                interval=interval,
            ))
        return self._ticker

    async def stop_price_ticker(self) -> None:
        if self._ticker is None:
            return
        self._ticker.cancel()
        try:
            await self._ticker
        except asyncio.CancelledError:
            pass
        self._ticker = None

    def _set_market_prices(self, prices: List[Dict[str, Any]]) -> None:
        self.state.market_prices = prices

    # Preferences
    def set_language(self, language: str) -> str:
        if language not in SUPPORTED_LANGUAGES:
            language = DEFAULT_LANGUAGE
        self.state.language = language
        self.storage.set(LANGUAGE_KEY, language)
        return language

    def toggle_dark_mode(self) -> bool:
        self.state.dark_mode = not self.state.dark_mode
        self.storage.set(DARK_MODE_KEY, self.state.dark_mode)
        return self.state.dark_mode

    def ask_chatbot(self, message: str) -> str:
        return chatbot.answer(message, self.state.language)
