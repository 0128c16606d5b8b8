from farmdirect.models import DEFAULT_PRODUCT_IMAGE


def test_create_product_fills_owner_and_derived_fields(client, farmer, make_product):
    product = make_product(farmerName="Someone Else", location="Elsewhere", availability="available", stock=5)

    assert product["farmerId"] == farmer["user"]["id"]
    assert product["farmerName"] == "Ravi Kumar"
    assert product["location"] == "Nashik, Maharashtra"
    assert product["availability"] == "limited"
    assert product["savings"] == 7
    assert product["savingsPercent"] == 16
    assert product["image"] == DEFAULT_PRODUCT_IMAGE


def test_buyer_cannot_create_product(client, buyer):
    response = client.post("/api/products", json={
        "name": "Apples", "category": "fruits", "farmerPrice": 95, "marketPrice": 120, "stock": 10,
    }, headers=buyer["headers"])
    assert response.status_code == 403


def test_create_product_requires_token(client):
    response = client.post("/api/products", json={"name": "Apples"})
    assert response.status_code == 401


def test_create_product_validation(client, farmer):
    response = client.post("/api/products", json={
        "name": "Mangoes", "category": "tropical", "farmerPrice": 80, "marketPrice": 100, "stock": -1,
    }, headers=farmer["headers"])
    assert response.status_code == 400
    message = response.json()["message"]
    assert "category" in message
    assert "stock" in message


def test_list_filters_and_search(client, farmer, other_farmer, make_product):
    make_product(name="Tomatoes")
    make_product(name="Apples", category="fruits")
    make_product(owner=other_farmer, name="Rice", category="grains")

    everything = client.get("/api/products").json()
    assert everything["count"] == 3
    # Newest first
    assert [p["name"] for p in everything["products"]] == ["Rice", "Apples", "Tomatoes"]

    assert client.get("/api/products", params={"category": "all"}).json()["count"] == 3
    fruits = client.get("/api/products", params={"category": "fruits"}).json()
    assert [p["name"] for p in fruits["products"]] == ["Apples"]

    by_location = client.get("/api/products", params={"search": "MYSURU"}).json()
    assert [p["name"] for p in by_location["products"]] == ["Rice"]

    by_farmer_name = client.get("/api/products", params={"search": "ravi"}).json()
    assert by_farmer_name["count"] == 2

    mine = client.get("/api/products", params={"farmerId": other_farmer["user"]["id"]}).json()
    assert [p["name"] for p in mine["products"]] == ["Rice"]


def test_get_product_not_found(client):
    response = client.get("/api/products/999")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Product not found"}


def test_update_product_recomputes_availability(client, farmer, make_product):
    product = make_product(stock=50)
    response = client.put(f"/api/products/{product['id']}", json={
        "stock": 0,
        "farmerPrice": 40,
        "availability": "available",
        "farmerId": 999,
    }, headers=farmer["headers"])

    assert response.status_code == 200
    updated = response.json()["product"]
    assert updated["stock"] == 0
    assert updated["availability"] == "out-of-stock"
    assert updated["farmerPrice"] == 40
    assert updated["farmerId"] == farmer["user"]["id"]


def test_update_rejects_empty_required_field(client, farmer, make_product):
    product = make_product()
    response = client.put(f"/api/products/{product['id']}", json={"name": None}, headers=farmer["headers"])
    assert response.status_code == 400


def test_non_owner_forbidden_even_with_invalid_payload(client, other_farmer, buyer, make_product):
    product = make_product()

    response = client.put(f"/api/products/{product['id']}", json={"stock": "lots"}, headers=other_farmer["headers"])
    assert response.status_code == 403
    assert response.json()["message"] == "Not authorized to modify this product"

    response = client.patch(f"/api/products/{product['id']}/stock", json={}, headers=buyer["headers"])
    assert response.status_code == 403

    response = client.delete(f"/api/products/{product['id']}", headers=other_farmer["headers"])
    assert response.status_code == 403


def test_stock_patch_sets_absolute_value(client, farmer, make_product):
    product = make_product(stock=50)
    response = client.patch(f"/api/products/{product['id']}/stock", json={"stock": 3}, headers=farmer["headers"])
    assert response.status_code == 200
    assert response.json()["product"]["stock"] == 3
    assert response.json()["product"]["availability"] == "limited"


def test_stock_patch_rejects_negative(client, farmer, make_product):
    product = make_product()
    response = client.patch(f"/api/products/{product['id']}/stock", json={"stock": -4}, headers=farmer["headers"])
    assert response.status_code == 400


def test_delete_product(client, farmer, make_product):
    product = make_product()
    response = client.delete(f"/api/products/{product['id']}", headers=farmer["headers"])
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Product deleted successfully"}
    assert client.get(f"/api/products/{product['id']}").status_code == 404


def test_buyer_create_product_rejected_by_role(client, buyer):
    response = client.post("/api/products", json={"name": "Apples"}, headers=buyer["headers"])
    assert response.status_code == 403
    assert response.json() == {
        "success": False,
        "message": "User type 'buyer' is not authorized to access this route",
    }
