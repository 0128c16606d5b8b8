import asyncio
import json

import httpx
import pytest

from farmdirect.client import ApiError, MarketplaceApp, MarketplaceClient
from farmdirect.client.storage import AUTH_TOKEN_KEY, DARK_MODE_KEY, LANGUAGE_KEY, USER_KEY, LocalStorage

BASE_URL = "http://marketplace.test/api"

BUYER = {"id": 7, "name": "Hotel Annapurna", "email": "hotel@buyer.in", "type": "buyer"}


class FakeApi:
    """Minimal stand-in for the REST API behind httpx.MockTransport."""

    def __init__(self):
        self.requests = []
        self.valid_token = "good-token"

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.replace("/api", "", 1)
        authorized = request.headers.get("authorization") == f"Bearer {self.valid_token}"

        if path == "/auth/login":
            body = json.loads(request.content)
            if body["password"] != "secret123":
                return httpx.Response(401, json={"success": False, "message": "Invalid credentials"})
            return httpx.Response(200, json={"success": True, "token": self.valid_token, "user": BUYER})
        if path == "/auth/me":
            if not authorized:
                return httpx.Response(401, json={"success": False, "message": "Invalid token"})
            return httpx.Response(200, json={"success": True, "user": BUYER})
        if path == "/products":
            products = [{"id": 1, "name": "Tomatoes", "stock": 5}]
            return httpx.Response(200, json={"success": True, "count": 1, "products": products})
        if path == "/orders" and request.method == "POST":
            if not authorized:
                return httpx.Response(401, json={"success": False, "message": "Not authorized, no token"})
            return httpx.Response(400, json={"success": False, "message": "Insufficient stock for Tomatoes"})
        if path == "/market-prices":
            prices = [{"id": 1, "commodity": "Tomatoes", "marketPrice": 45, "farmerPrice": 38, "change": 2.5}]
            return httpx.Response(200, json={"success": True, "count": 1, "prices": prices})
        if path == "/boom":
            return httpx.Response(500, text="not json")
        return httpx.Response(404, json={"success": False, "message": "Not found"})


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
def toasts():
    return []


def make_app(fake_api, toasts, storage=None):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_api), base_url=BASE_URL)
    return MarketplaceApp(http_client, storage=storage, toast=lambda message, kind: toasts.append((kind, message)))


def test_login_persists_session(fake_api, toasts, tmp_path):
    storage = LocalStorage(str(tmp_path / "storage.json"))
    app = make_app(fake_api, toasts, storage)

    user = asyncio.run(app.login("hotel@buyer.in", "secret123"))

    assert user == BUYER
    assert app.state.current_user == BUYER
    assert app.state.loading is False
    assert toasts[-1][0] == "success"

    reloaded = LocalStorage(str(tmp_path / "storage.json"))
    assert reloaded.get(AUTH_TOKEN_KEY) == "good-token"
    assert reloaded.get(USER_KEY) == BUYER


def test_login_failure_toasts_message(fake_api, toasts):
    app = make_app(fake_api, toasts)
    assert asyncio.run(app.login("hotel@buyer.in", "wrong")) is None
    assert toasts == [("error", "Invalid credentials")]
    assert app.state.loading is False
    assert app.state.current_user is None


def test_restore_session_discards_rejected_token(fake_api, toasts):
    storage = LocalStorage()
    storage.set(AUTH_TOKEN_KEY, "stale-token")
    storage.set(USER_KEY, BUYER)
    app = make_app(fake_api, toasts, storage)
    assert app.state.is_logged_in

    assert asyncio.run(app.restore_session()) is None
    assert storage.get(AUTH_TOKEN_KEY) is None
    assert storage.get(USER_KEY) is None
    assert not app.state.is_logged_in


def test_restore_session_keeps_valid_token(fake_api, toasts):
    storage = LocalStorage()
    storage.set(AUTH_TOKEN_KEY, "good-token")
    app = make_app(fake_api, toasts, storage)
    assert asyncio.run(app.restore_session()) == BUYER


def test_place_order_error_surfaces_server_message(fake_api, toasts):
    storage = LocalStorage()
    storage.set(AUTH_TOKEN_KEY, "good-token")
    app = make_app(fake_api, toasts, storage)

    assert asyncio.run(app.place_order([{"productId": 1, "quantity": 9}])) is None
    assert toasts == [("error", "Insufficient stock for Tomatoes")]
    assert app.state.loading is False
    assert fake_api.requests[-1].headers["authorization"] == "Bearer good-token"


def test_load_products_and_prices(fake_api, toasts):
    app = make_app(fake_api, toasts)

    async def load():
        await app.load_products(category="vegetables", search="tom")
        await app.load_market_prices()

    asyncio.run(load())
    assert app.state.products[0]["name"] == "Tomatoes"
    assert app.state.market_prices[0]["commodity"] == "Tomatoes"
    assert "authorization" not in fake_api.requests[0].headers
    assert fake_api.requests[0].url.params["category"] == "vegetables"
    assert fake_api.requests[0].url.params["search"] == "tom"


def test_non_json_error_gets_generic_message(fake_api):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_api), base_url=BASE_URL)
    api = MarketplaceClient(http_client, lambda: None)

    with pytest.raises(ApiError) as exc:
        asyncio.run(api.request("GET", "/boom"))
    assert exc.value.status_code == 500
    assert exc.value.message == "API request failed"


def test_preferences_persist(fake_api, toasts):
    storage = LocalStorage()
    app = make_app(fake_api, toasts, storage)

    assert app.toggle_dark_mode() is True
    assert app.set_language("te") == "te"
    assert app.set_language("xx") == "en"
    assert storage.get(DARK_MODE_KEY) is True
    assert storage.get(LANGUAGE_KEY) == "en"
    assert app.ask_chatbot("Tell me about delivery").startswith("We provide logistics support")


def test_logout_clears_session(fake_api, toasts):
    storage = LocalStorage()
    app = make_app(fake_api, toasts, storage)
    asyncio.run(app.login("hotel@buyer.in", "secret123"))

    app.logout()
    assert storage.get(AUTH_TOKEN_KEY) is None
    assert app.state.current_user is None


def test_price_ticker_task_updates_state(fake_api, toasts):
    app = make_app(fake_api, toasts)

    async def run():
        await app.load_market_prices()
        app.start_price_ticker(interval=0)
        await asyncio.sleep(0.01)
        await app.stop_price_ticker()

    asyncio.run(run())
    assert app.state.market_prices[0]["commodity"] == "Tomatoes"
    assert app.state.market_prices[0]["marketPrice"] >= 10
