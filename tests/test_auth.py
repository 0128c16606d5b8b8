from datetime import timedelta

from farmdirect.auth import create_access_token
from farmdirect.models import User


def test_register_returns_token_and_public_user(client, farmer):
    user = farmer["user"]
    assert farmer["token"]
    assert user["type"] == "farmer"
    assert user["farmLocation"] == "Nashik, Maharashtra"
    assert "password" not in user
    assert "passwordHash" not in user


def test_register_farmer_requires_location(client):
    response = client.post("/api/auth/register", json={
        "name": "No Farm",
        "email": "nofarm@farm.in",
        "password": "secret123",
        "type": "farmer",
    })
    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Please provide farm location"}


def test_register_duplicate_email_rejected(client, buyer):
    response = client.post("/api/auth/register", json={
        "name": "Again",
        "email": "HOTEL@buyer.in",
        "password": "secret123",
        "type": "buyer",
    })
    assert response.status_code == 400
    assert response.json()["message"] == "User already exists"


def test_register_validation_error_names_field(client):
    response = client.post("/api/auth/register", json={
        "name": "Short",
        "email": "short@buyer.in",
        "password": "123",
        "type": "buyer",
    })
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"].startswith("password:")


def test_login_and_me(client, buyer):
    response = client.post("/api/auth/login", json={"email": "hotel@buyer.in", "password": "secret123"})
    assert response.status_code == 200
    token = response.json()["token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "hotel@buyer.in"


def test_login_wrong_password(client, buyer):
    response = client.post("/api/auth/login", json={"email": "hotel@buyer.in", "password": "wrong-pass"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"


def test_me_without_token(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Not authorized, no token"}


def test_me_with_garbage_token(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token"


def test_me_with_expired_token(client, db, buyer):
    user = db.get(User, buyer["user"]["id"])
    token = create_access_token(user, expires_delta=timedelta(minutes=-1))
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["message"] == "Token expired"
