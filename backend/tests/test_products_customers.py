"""
Product, customer and catalog registration through the API.
"""

import bcrypt

from stockroom.extensions import db
from stockroom.models import Customer, Product


def _product_payload(category_id, **overrides):
    payload = {
        "name": "Arroz 5kg",
        "price": "24.90",
        "stock": 12,
        "category_id": category_id,
    }
    payload.update(overrides)
    return payload


def test_register_product_sets_initial_stock(client, db_session, category):
    resp = client.post("/api/produtos", json=_product_payload(
        category.id, sku="  ARZ-5  ", cost_price=18, expiry_date="2027-03-01"
    ))

    assert resp.status_code == 201
    product = resp.get_json()["product"]
    assert product["stock"] == 12
    assert product["initial_stock"] == 12
    assert product["minimum_stock"] == 5
    assert product["sku"] == "ARZ-5"
    assert product["price"] == "24.90"
    assert product["cost_price"] == "18.00"
    assert product["expiry_date"] == "2027-03-01"
    assert product["category_name"] == "Mercearia"


def test_register_product_uses_configured_minimum_stock(app, client, db_session, category, monkeypatch):
    monkeypatch.setitem(app.config, "DEFAULT_MINIMUM_STOCK", 9)

    resp = client.post("/api/produtos", json=_product_payload(category.id))

    assert resp.status_code == 201
    assert resp.get_json()["product"]["minimum_stock"] == 9


def test_register_product_reports_missing_fields(client, db_session):
    resp = client.post("/api/produtos", json={"name": "  "})

    assert resp.status_code == 400
    assert resp.get_json()["fields"] == ["category_id", "name", "price", "stock"]


def test_register_product_rejects_negative_values(client, db_session, category):
    resp = client.post("/api/produtos", json=_product_payload(category.id, stock=-1))
    assert resp.status_code == 400
    assert resp.get_json()["fields"] == ["stock"]

    resp = client.post("/api/produtos", json=_product_payload(category.id, price="-0.01"))
    assert resp.status_code == 400
    assert resp.get_json()["fields"] == ["price"]

    resp = client.post("/api/produtos", json=_product_payload(category.id, stock=2**31))
    assert resp.status_code == 400
    assert resp.get_json()["fields"] == ["stock"]


def test_register_product_rejects_unknown_fields(client, db_session, category):
    resp = client.post("/api/produtos", json=_product_payload(category.id, initial_stock=99))

    assert resp.status_code == 400
    assert resp.get_json()["fields"] == ["initial_stock"]


def test_register_product_requires_existing_category(client, db_session):
    resp = client.post("/api/produtos", json=_product_payload(987654))

    assert resp.status_code == 404
    assert resp.get_json()["entity"] == "category"


def test_register_product_requires_existing_supplier(client, db_session, category):
    resp = client.post("/api/produtos", json=_product_payload(category.id, supplier_id=987654))

    assert resp.status_code == 404
    assert resp.get_json()["entity"] == "supplier"


def test_duplicate_sku_is_conflict(client, db_session, category):
    first = client.post("/api/produtos", json=_product_payload(category.id, sku="DUP-1"))
    assert first.status_code == 201

    resp = client.post("/api/produtos", json=_product_payload(category.id, name="Outro", sku="DUP-1"))

    assert resp.status_code == 409
    assert resp.get_json()["field"] == "sku"


def test_get_product(client, db_session, product):
    resp = client.get(f"/api/produtos/{product.id}")
    assert resp.status_code == 200
    assert resp.get_json()["stock"] == 10

    resp = client.get("/api/produtos/nope")
    assert resp.status_code == 404


def test_delete_product_without_movements(client, db_session, product):
    product_id = product.id

    resp = client.delete(f"/api/produtos/{product_id}")

    assert resp.status_code == 200
    db_session.expire_all()
    assert db_session.get(Product, product_id) is None


def test_delete_product_with_movements_is_refused(client, db_session, product):
    client.post("/api/movimentacoes/entrada", json={"product_id": product.id, "quantity": 1})

    resp = client.delete(f"/api/produtos/{product.id}")

    assert resp.status_code == 409
    db_session.expire_all()
    assert db_session.get(Product, product.id) is not None


def test_register_customer_hashes_password(client, db_session):
    resp = client.post("/api/clientes", json={
        "name": "  Bruno Lima ",
        "email": "Bruno@Example.COM",
        "password": "segredo1",
    })

    assert resp.status_code == 201
    customer = resp.get_json()["customer"]
    assert customer["name"] == "Bruno Lima"
    assert customer["email"] == "bruno@example.com"
    assert customer["first_purchase"] is True
    assert "password" not in customer
    assert "password_hash" not in customer

    stored = db.session.get(Customer, customer["id"])
    assert stored.password_hash != "segredo1"
    assert bcrypt.checkpw(b"segredo1", stored.password_hash.encode("utf-8"))
    assert not bcrypt.checkpw(b"segredo2", stored.password_hash.encode("utf-8"))


def test_customer_email_is_unique_ignoring_case(client, db_session, customer):
    resp = client.post("/api/clientes", json={
        "name": "Outra Ana",
        "email": "ANA@example.com",
        "password": "segredo2",
    })

    assert resp.status_code == 409
    assert resp.get_json()["field"] == "email"


def test_register_customer_rules(client, db_session):
    cases = [
        ({"name": "A", "email": "a@b.co", "password": "segredo1"}, ["name"]),
        ({"name": "Ana", "email": "not-an-email", "password": "segredo1"}, ["email"]),
        ({"name": "Ana", "email": "a@b.co", "password": "12345"}, ["password"]),
        ({"name": "Ana", "email": "a@b.co", "password": "segredo1", "first_purchase": "yes"}, ["first_purchase"]),
        ({"email": "a@b.co"}, ["name", "password"]),
    ]
    for payload, fields in cases:
        resp = client.post("/api/clientes", json=payload)
        assert resp.status_code == 400, payload
        assert resp.get_json()["fields"] == fields, payload


def test_get_customer(client, db_session, customer):
    resp = client.get(f"/api/clientes/{customer.id}")
    assert resp.status_code == 200
    assert resp.get_json()["email"] == "ana@example.com"

    assert client.get("/api/clientes/0").status_code == 404


def test_categories_and_suppliers(client, db_session):
    assert client.post("/api/categorias", json={"name": "Limpeza"}).status_code == 201
    assert client.post("/api/categorias", json={"name": "Limpeza"}).status_code == 409
    assert client.post("/api/categorias", json={}).status_code == 400

    resp = client.post("/api/fornecedores", json={"name": "Atacadao", "email": "Vendas@Atacadao.example"})
    assert resp.status_code == 201
    assert resp.get_json()["email"] == "vendas@atacadao.example"
    assert client.post("/api/fornecedores", json={"name": "X", "email": "bad"}).status_code == 400

    categories = client.get("/api/categorias").get_json()
    assert [c["name"] for c in categories["items"]] == ["Limpeza"]
    suppliers = client.get("/api/fornecedores").get_json()
    assert suppliers["count"] == 1


def test_health(client, db_session, product):
    resp = client.get("/health")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "healthy"
    assert body["checks"]["database"]["details"]["products"] == 1
