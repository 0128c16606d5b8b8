import farmdirect.auth
from farmdirect.database import SEED_PRICES, seed_market_prices


def prices(client, **params):
    return client.get("/api/market-prices", params=params).json()


def price_id(client, commodity):
    return next(p["id"] for p in prices(client)["prices"] if p["commodity"] == commodity)


def test_seed_is_idempotent(db):
    assert seed_market_prices(db) == len(SEED_PRICES)
    assert seed_market_prices(db) == 0


def test_list_is_alphabetical_with_savings(client, seeded_prices):
    body = prices(client)
    assert body["success"] is True
    assert body["count"] == len(SEED_PRICES)
    names = [p["commodity"] for p in body["prices"]]
    assert names == sorted(names)

    tomatoes = next(p for p in body["prices"] if p["commodity"] == "Tomatoes")
    assert tomatoes["savings"] == 7
    assert tomatoes["savingsPercent"] == 16


def test_list_by_category(client, seeded_prices):
    grains = prices(client, category="grains")
    assert [p["commodity"] for p in grains["prices"]] == ["Rice", "Wheat"]
    assert prices(client, category="all")["count"] == len(SEED_PRICES)


def test_update_price_publicly(client, seeded_prices):
    pid = price_id(client, "Onions")
    response = client.put(f"/api/market-prices/{pid}", json={"marketPrice": 32, "change": -1.5})
    assert response.status_code == 200
    updated = response.json()["price"]
    assert updated["marketPrice"] == 32
    assert updated["farmerPrice"] == 25
    assert updated["change"] == -1.5


def test_update_price_validation(client, seeded_prices):
    pid = price_id(client, "Onions")
    assert client.put(f"/api/market-prices/{pid}", json={"category": "spices"}).status_code == 400
    assert client.put(f"/api/market-prices/{pid}", json={"marketPrice": "cheap"}).status_code == 400

    duplicate = client.put(f"/api/market-prices/{pid}", json={"commodity": "Tomatoes"})
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "Commodity already exists"


def test_update_missing_price(client, seeded_prices):
    response = client.put("/api/market-prices/999", json={"marketPrice": 10})
    assert response.status_code == 404


def test_update_requires_admin_token_when_configured(client, seeded_prices, monkeypatch):
    monkeypatch.setattr(farmdirect.auth, "ADMIN_TOKENS", {"board-admin"})
    pid = price_id(client, "Wheat")

    assert client.put(f"/api/market-prices/{pid}", json={"change": 1}).status_code == 401
    forbidden = client.put(f"/api/market-prices/{pid}", json={"change": 1},
                           headers={"Authorization": "Bearer nope"})
    assert forbidden.status_code == 403
    assert forbidden.json()["message"] == "Admin access required"

    allowed = client.put(f"/api/market-prices/{pid}", json={"change": 1},
                         headers={"Authorization": "Bearer board-admin"})
    assert allowed.status_code == 200
