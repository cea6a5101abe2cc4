"""
Tests for the protected product endpoints
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import app
from database import get_db
from models import Product
from security import create_token

WIDGET = {"name": "Widget", "sku": "W1", "quantity": 3, "minQuantity": 5}


def create(client, headers, **overrides):
    return client.post("/products", json=dict(WIDGET, **overrides), headers=headers)


class TestCreateProduct:
    """Test POST /products"""

    def test_create_returns_persisted_row(self, client, auth_headers):
        response = create(client, auth_headers, category="tools")

        assert response.status_code == 201
        body = response.json()
        assert isinstance(body["id"], int)
        assert body["name"] == "Widget"
        assert body["sku"] == "W1"
        assert body["quantity"] == 3
        assert body["minQuantity"] == 5
        assert body["category"] == "tools"
        assert body["createdAt"] and body["lastUpdated"]
        assert body["status"] == "low_stock"

    @pytest.mark.parametrize("missing", ["name", "sku", "quantity", "minQuantity"])
    def test_required_fields(self, client, auth_headers, missing):
        body = {k: v for k, v in WIDGET.items() if k != missing}
        response = client.post("/products", json=body, headers=auth_headers)
        assert response.status_code == 400

    def test_negative_quantity_rejected_by_server(self, client, auth_headers, session_factory):
        """The API refuses negative stock even when no client checked it"""
        assert create(client, auth_headers, quantity=-1).status_code == 400
        assert create(client, auth_headers, minQuantity=-1).status_code == 400
        with session_factory() as db:
            assert db.query(Product).count() == 0

    def test_duplicate_sku_is_a_conflict(self, client, auth_headers):
        assert create(client, auth_headers).status_code == 201
        response = create(client, auth_headers, name="Other widget")

        assert response.status_code == 409
        assert response.json()["detail"] == "A product with this SKU already exists"
        assert len(client.get("/products", headers=auth_headers).json()) == 1

    def test_category_defaults_to_empty(self, client, auth_headers):
        assert create(client, auth_headers).json()["category"] == ""

    @pytest.mark.parametrize("field", ["quantity", "minQuantity"])
    @pytest.mark.parametrize("value", [True, False])
    def test_booleans_are_not_numbers(self, client, auth_headers, session_factory, field, value):
        response = create(client, auth_headers, **{field: value})
        assert response.status_code == 400
        with session_factory() as db:
            assert db.query(Product).count() == 0


class TestListProducts:
    """Test GET /products and stock status"""

    def test_empty_list(self, client, auth_headers):
        response = client.get("/products", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.parametrize(
        "quantity,min_quantity,status",
        [(5, 10, "low_stock"), (0, 10, "out_of_stock"), (0, 0, "out_of_stock"), (10, 5, "ok"), (5, 5, "low_stock")],
    )
    def test_stock_status(self, client, auth_headers, quantity, min_quantity, status):
        create(client, auth_headers, quantity=quantity, minQuantity=min_quantity)
        (product,) = client.get("/products", headers=auth_headers).json()
        assert product["status"] == status

    def test_numeric_fields_are_numbers(self, client, auth_headers):
        create(client, auth_headers, quantity="7", minQuantity="2")
        (product,) = client.get("/products", headers=auth_headers).json()
        assert product["quantity"] == 7
        assert product["minQuantity"] == 2

    def test_get_single_product(self, client, auth_headers):
        product_id = create(client, auth_headers).json()["id"]
        response = client.get(f"/products/{product_id}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["sku"] == "W1"

        assert client.get("/products/999", headers=auth_headers).status_code == 404


class TestUpdateProduct:
    """Test PUT /products/{id}"""

    def test_partial_update(self, client, auth_headers):
        created = create(client, auth_headers).json()
        response = client.put(f"/products/{created['id']}", json={"quantity": 20}, headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["quantity"] == 20
        assert body["name"] == "Widget"
        assert body["minQuantity"] == 5
        assert body["status"] == "ok"

    def test_unknown_id(self, client, auth_headers):
        response = client.put("/products/999", json={"quantity": 1}, headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Product not found"

    def test_negative_values_rejected(self, client, auth_headers):
        product_id = create(client, auth_headers).json()["id"]
        response = client.put(f"/products/{product_id}", json={"quantity": -4}, headers=auth_headers)
        assert response.status_code == 400
        assert client.get(f"/products/{product_id}", headers=auth_headers).json()["quantity"] == 3

    def test_boolean_quantity_rejected(self, client, auth_headers):
        product_id = create(client, auth_headers).json()["id"]
        response = client.put(f"/products/{product_id}", json={"quantity": True}, headers=auth_headers)
        assert response.status_code == 400
        assert client.get(f"/products/{product_id}", headers=auth_headers).json()["quantity"] == 3

    def test_null_for_required_field_rejected(self, client, auth_headers):
        product_id = create(client, auth_headers).json()["id"]
        response = client.put(f"/products/{product_id}", json={"name": None}, headers=auth_headers)
        assert response.status_code == 400

    def test_sku_taken_by_another_product(self, client, auth_headers):
        create(client, auth_headers)
        second = create(client, auth_headers, sku="W2").json()
        response = client.put(f"/products/{second['id']}", json={"sku": "W1"}, headers=auth_headers)
        assert response.status_code == 409

    def test_keeping_own_sku_is_fine(self, client, auth_headers):
        product = create(client, auth_headers).json()
        response = client.put(f"/products/{product['id']}", json=WIDGET, headers=auth_headers)
        assert response.status_code == 200


class TestDeleteProduct:
    """Test DELETE /products/{id}"""

    def test_delete(self, client, auth_headers):
        product_id = create(client, auth_headers).json()["id"]
        response = client.delete(f"/products/{product_id}", headers=auth_headers)

        assert response.status_code == 204
        assert response.content == b""
        assert client.get("/products", headers=auth_headers).json() == []

    def test_delete_unknown_id_is_a_no_op(self, client, auth_headers):
        assert client.delete("/products/999", headers=auth_headers).status_code == 204


class TestStoreFailures:
    """Test database failures are reported as 500 without crashing"""

    @pytest.fixture
    def broken_client(self):
        # tables never created, every query fails
        engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
        factory = sessionmaker(bind=engine)

        def override_get_db():
            db = factory()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        yield TestClient(app)
        app.dependency_overrides.clear()
        engine.dispose()

    def test_list_products_store_error(self, broken_client):
        headers = {"Authorization": f"Bearer {create_token(1)}"}
        response = broken_client.get("/products", headers=headers)
        assert response.status_code == 500
        assert response.json() == {"detail": "Failed to list products"}

    def test_register_store_error(self, broken_client):
        response = broken_client.post(
            "/auth/register", json={"name": "Ana", "email": "ana@example.com", "password": "secret123"}
        )
        assert response.status_code == 500
        assert response.json() == {"detail": "Failed to register user"}


def test_health(client):
    assert client.get("/").json() == {"message": "EstoqueHub API running"}
