"""Shared fixtures: an in-memory database per test and registered users."""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OTEL_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["PROFILING_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["ORDER_STATUS_MODE"] = "permissive"
os.environ["ADMIN_TOKENS"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from farmdirect.database import get_db, seed_market_prices
from farmdirect.main import app
from farmdirect.models import Base


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seeded_prices(db):
    seed_market_prices(db)
    return db


def register(client, user_type, email, name=None, farm_location=None):
    payload = {
        "name": name or email.split("@")[0].title(),
        "email": email,
        "password": "secret123",
        "type": user_type,
        "phone": "9876543210",
    }
    if farm_location:
        payload["farmLocation"] = farm_location
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201, response.text
    body = response.json()
    return {
        "token": body["token"],
        "user": body["user"],
        "headers": {"Authorization": f"Bearer {body['token']}"},
    }


@pytest.fixture
def farmer(client):
    return register(client, "farmer", "ravi@farm.in", name="Ravi Kumar", farm_location="Nashik, Maharashtra")


@pytest.fixture
def other_farmer(client):
    return register(client, "farmer", "lakshmi@farm.in", name="Lakshmi Devi", farm_location="Mysuru, Karnataka")


@pytest.fixture
def buyer(client):
    return register(client, "buyer", "hotel@buyer.in", name="Hotel Annapurna")


@pytest.fixture
def other_buyer(client):
    return register(client, "buyer", "cafe@buyer.in", name="Cafe Chai")


@pytest.fixture
def make_product(client, farmer):
    def _make(owner=None, **overrides):
        payload = {
            "name": "Tomatoes",
            "category": "vegetables",
            "farmerPrice": 38,
            "marketPrice": 45,
            "stock": 50,
            "description": "Vine-ripened",
        }
        payload.update(overrides)
        response = client.post("/api/products", json=payload, headers=(owner or farmer)["headers"])
        assert response.status_code == 201, response.text
        return response.json()["product"]
    return _make
