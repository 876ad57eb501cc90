"""
API tests for /api/cart: envelopes, status codes and the expanded cart body.
"""
import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def product_p(make_product):
    return make_product(name="Product P", price="10.00", stock=5)


@pytest.fixture
def product_q(make_product):
    return make_product(name="Product Q", price="3.50", stock=500)


class TestAuthRequired:

    @pytest.mark.parametrize("method,path", [
        ("get", "/api/cart"),
        ("post", "/api/cart/add"),
        ("put", "/api/cart/update/1"),
        ("delete", "/api/cart/remove/1"),
        ("delete", "/api/cart/clear"),
    ])
    def test_requires_token(self, client: TestClient, method, path):
        response = getattr(client, method)(path)

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "authentication_error"

    def test_rejects_bad_token(self, client: TestClient):
        response = client.get("/api/cart", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401


class TestGetCart:

    def test_empty_cart_is_created(self, client, auth_headers, user):
        response = client.get("/api/cart", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert data["user"] == user.id
        assert data["items"] == []
        assert data["totalItems"] == 0
        assert data["totalPrice"] == 0
        assert data["createdAt"]

    def test_same_cart_on_repeat(self, client, auth_headers):
        first = client.get("/api/cart", headers=auth_headers).json()["data"]["id"]
        second = client.get("/api/cart", headers=auth_headers).json()["data"]["id"]
        assert first == second


class TestAdd:

    def test_add_returns_expanded_cart(self, client, auth_headers, product_p):
        response = client.post("/api/cart/add", json={"productId": product_p.id, "quantity": 2}, headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Item added to cart"
        item = body["data"]["items"][0]
        assert item["productId"] == product_p.id
        assert item["quantity"] == 2
        assert item["price"] == 10.0
        assert item["product"]["name"] == "Product P"
        assert item["product"]["stock"] == 5
        assert body["data"]["totalItems"] == 2
        assert body["data"]["totalPrice"] == 20.0

    def test_quantity_defaults_to_one(self, client, auth_headers, product_p):
        response = client.post("/api/cart/add", json={"productId": product_p.id}, headers=auth_headers)
        assert response.json()["data"]["totalItems"] == 1

    def test_merge(self, client, auth_headers, product_p):
        client.post("/api/cart/add", json={"productId": product_p.id, "quantity": 2}, headers=auth_headers)
        response = client.post("/api/cart/add", json={"productId": product_p.id, "quantity": 3}, headers=auth_headers)

        data = response.json()["data"]
        assert len(data["items"]) == 1
        assert data["totalItems"] == 5
        assert data["totalPrice"] == 50.0

    def test_missing_product_id(self, client, auth_headers):
        response = client.post("/api/cart/add", json={"quantity": 1}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Product ID is required"

    def test_unknown_product(self, client, auth_headers):
        response = client.post("/api/cart/add", json={"productId": 9999}, headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "product_not_found"
        assert response.json()["message"] == "Product not found"

    def test_insufficient_stock(self, client, auth_headers, product_p):
        response = client.post("/api/cart/add", json={"productId": product_p.id, "quantity": 6}, headers=auth_headers)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "insufficient_stock"
        assert body["message"] == "Only 5 items available in stock"

    def test_zero_quantity_rejected(self, client, auth_headers, product_p):
        response = client.post("/api/cart/add", json={"productId": product_p.id, "quantity": 0}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_clamped_at_100(self, client, auth_headers, product_q):
        for _ in range(3):
            response = client.post("/api/cart/add", json={"productId": product_q.id, "quantity": 40}, headers=auth_headers)

        data = response.json()["data"]
        assert data["items"][0]["quantity"] == 100
        assert data["totalPrice"] == 350.0


class TestUpdate:

    def test_update_quantity(self, client, auth_headers, product_q):
        client.post("/api/cart/add", json={"productId": product_q.id, "quantity": 1}, headers=auth_headers)
        response = client.put(f"/api/cart/update/{product_q.id}", json={"quantity": 4}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Cart updated"
        assert response.json()["data"]["totalPrice"] == 14.0

    def test_update_to_zero_removes(self, client, auth_headers, product_p):
        client.post("/api/cart/add", json={"productId": product_p.id, "quantity": 2}, headers=auth_headers)
        response = client.put(f"/api/cart/update/{product_p.id}", json={"quantity": 0}, headers=auth_headers)

        data = response.json()["data"]
        assert data["items"] == []
        assert data["totalItems"] == 0
        assert data["totalPrice"] == 0

    @pytest.mark.parametrize("payload", [{}, {"quantity": -1}])
    def test_invalid_quantity(self, client, auth_headers, product_p, payload):
        response = client.put(f"/api/cart/update/{product_p.id}", json=payload, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Valid quantity is required"

    def test_above_stock(self, client, auth_headers, product_p):
        client.post("/api/cart/add", json={"productId": product_p.id}, headers=auth_headers)
        response = client.put(f"/api/cart/update/{product_p.id}", json={"quantity": 6}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "insufficient_stock"

    def test_without_cart(self, client, auth_headers, product_p):
        response = client.put(f"/api/cart/update/{product_p.id}", json={"quantity": 1}, headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "cart_not_found"

    def test_item_not_in_cart(self, client, auth_headers, product_p, product_q):
        client.post("/api/cart/add", json={"productId": product_q.id}, headers=auth_headers)
        response = client.put(f"/api/cart/update/{product_p.id}", json={"quantity": 1}, headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "item_not_found"
        assert response.json()["message"] == "Item not found in cart"


class TestRemoveAndClear:

    def test_remove(self, client, auth_headers, product_p, product_q):
        client.post("/api/cart/add", json={"productId": product_p.id}, headers=auth_headers)
        client.post("/api/cart/add", json={"productId": product_q.id, "quantity": 2}, headers=auth_headers)

        response = client.delete(f"/api/cart/remove/{product_p.id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Item removed from cart"
        data = response.json()["data"]
        assert [i["productId"] for i in data["items"]] == [product_q.id]
        assert data["totalPrice"] == 7.0

    def test_remove_absent_item_is_ok(self, client, auth_headers):
        client.get("/api/cart", headers=auth_headers)
        response = client.delete("/api/cart/remove/12345", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["totalItems"] == 0

    def test_remove_without_cart(self, client, auth_headers):
        response = client.delete("/api/cart/remove/1", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "cart_not_found"

    def test_clear(self, client, auth_headers, product_p, product_q):
        client.post("/api/cart/add", json={"productId": product_p.id}, headers=auth_headers)
        client.post("/api/cart/add", json={"productId": product_q.id}, headers=auth_headers)

        response = client.delete("/api/cart/clear", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Cart cleared"
        data = response.json()["data"]
        assert data["items"] == []
        assert data["totalItems"] == 0
        assert data["totalPrice"] == 0

    def test_clear_without_cart(self, client, auth_headers):
        response = client.delete("/api/cart/clear", headers=auth_headers)
        assert response.status_code == 404


class TestProductLifecycle:

    def test_deleted_product_keeps_snapshot(self, client, auth_headers, product_p):
        client.post("/api/cart/add", json={"productId": product_p.id, "quantity": 2}, headers=auth_headers)
        client.delete(f"/api/products/{product_p.id}", headers=auth_headers)

        data = client.get("/api/cart", headers=auth_headers).json()["data"]

        assert data["items"] == [{"productId": product_p.id, "product": None, "quantity": 2, "price": 10.0}]
        assert data["totalPrice"] == 20.0

    def test_price_change_does_not_reprice_line(self, client, auth_headers, product_p):
        client.post("/api/cart/add", json={"productId": product_p.id}, headers=auth_headers)
        client.put(f"/api/products/{product_p.id}", data={"price": "12.00"}, headers=auth_headers)

        item = client.get("/api/cart", headers=auth_headers).json()["data"]["items"][0]

        assert item["price"] == 10.0
        assert item["product"]["price"] == 12.0

    def test_carts_are_per_user(self, client, auth_headers, make_user, product_q):
        _, other_token = make_user(name="Other User")
        other = {"Authorization": f"Bearer {other_token}"}

        client.post("/api/cart/add", json={"productId": product_q.id, "quantity": 3}, headers=auth_headers)
        response = client.get("/api/cart", headers=other)

        assert response.json()["data"]["totalItems"] == 0


class TestServerErrors:

    def test_unexpected_error_uses_json_envelope(self, auth_headers, product_p, monkeypatch):
        from sqlalchemy.exc import OperationalError

        from main import app
        from modules.cart.service import cart_service

        def broken_lookup(db, product_id):
            raise OperationalError("SELECT 1", {}, Exception("database is down"))

        monkeypatch.setattr(cart_service.catalog, "get", broken_lookup)

        with TestClient(app, raise_server_exceptions=False) as c:
            response = c.post("/api/cart/add", json={"productId": product_p.id}, headers=auth_headers)

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("application/json")
        assert response.json() == {
            "success": False,
            "message": "Something went wrong",
            "data": None,
            "error": "server_error",
        }
