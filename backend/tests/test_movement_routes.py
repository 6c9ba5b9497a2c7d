"""
HTTP contract of /api/movimentacoes: status codes and error payloads.
"""

import pytest
from sqlalchemy.exc import OperationalError

from stockroom.services import movement_service, reporting_service
from stockroom.validation import MAX_STOCK


def test_stock_in_returns_201_with_summary(client, db_session, make_product, stock_of):
    product = make_product(stock=0)

    resp = client.post("/api/movimentacoes/entrada", json={
        "product_id": product.id,
        "quantity": 5,
        "unit_price": "2.00",
        "note": "  NF 123  ",
    })

    assert resp.status_code == 201
    movement = resp.get_json()["movement"]
    assert movement["kind"] == "ENTRY"
    assert movement["quantity"] == 5
    assert movement["stock_after"] == 5
    assert movement["unit_price"] == "2.00"
    assert movement["total_value"] == "10.00"
    assert movement["customer_id"] is None
    assert stock_of(product.id) == 5


def test_sale_returns_customer_and_new_stock(client, db_session, product, customer):
    resp = client.post("/api/movimentacoes/saida", json={
        "product_id": product.id,
        "customer_id": customer.id,
        "quantity": 2,
        "unit_price": 10,
    })

    assert resp.status_code == 201
    movement = resp.get_json()["movement"]
    assert movement["kind"] == "EXIT"
    assert movement["customer_name"] == "Ana Souza"
    assert movement["stock_after"] == 8
    assert movement["total_value"] == "20.00"


def test_generic_create_accepts_string_ids(client, db_session, product):
    resp = client.post("/api/movimentacoes", json={
        "kind": "EXIT",
        "product_id": str(product.id),
        "quantity": "3",
    })

    assert resp.status_code == 201
    assert resp.get_json()["movement"]["stock_after"] == 7


def test_insufficient_stock_payload(client, db_session, product, stock_of):
    resp = client.post("/api/movimentacoes", json={
        "kind": "EXIT",
        "product_id": product.id,
        "quantity": 11,
    })

    assert resp.status_code == 400
    body = resp.get_json()
    assert body["error"] == "insufficient stock"
    assert body["current_stock"] == 10
    assert body["requested_quantity"] == 11
    assert stock_of(product.id) == 10


def test_unknown_product_is_404(client, db_session):
    resp = client.post("/api/movimentacoes", json={
        "kind": "ENTRY",
        "product_id": "does-not-exist",
        "quantity": 1,
    })

    assert resp.status_code == 404
    assert resp.get_json() == {"error": "product not found", "entity": "product", "id": "does-not-exist"}


def test_sale_without_customer_is_400(client, db_session, product):
    resp = client.post("/api/movimentacoes/saida", json={"product_id": product.id, "quantity": 1})

    assert resp.status_code == 400
    assert resp.get_json()["fields"] == ["customer_id"]


def test_sale_with_unknown_customer_is_404(client, db_session, product):
    resp = client.post("/api/movimentacoes/saida", json={
        "product_id": product.id,
        "customer_id": 424242,
        "quantity": 1,
    })

    assert resp.status_code == 404
    assert resp.get_json()["entity"] == "customer"


def test_is_sale_flag_requires_customer(client, db_session, product):
    resp = client.post("/api/movimentacoes", json={
        "kind": "EXIT",
        "product_id": product.id,
        "quantity": 1,
        "is_sale": True,
    })

    assert resp.status_code == 400
    assert resp.get_json()["fields"] == ["customer_id"]


def test_validation_precedes_lookup(client, db_session):
    # Unknown product, but the zero quantity is reported first
    resp = client.post("/api/movimentacoes", json={
        "kind": "EXIT",
        "product_id": "does-not-exist",
        "quantity": 0,
    })

    assert resp.status_code == 400
    assert resp.get_json()["fields"] == ["quantity"]


def test_invalid_kind_is_400(client, db_session, product):
    resp = client.post("/api/movimentacoes", json={
        "kind": "ENTRADA",
        "product_id": product.id,
        "quantity": 1,
    })

    assert resp.status_code == 400
    assert resp.get_json()["fields"] == ["kind"]


def test_non_object_body_is_treated_as_empty(client, db_session):
    resp = client.post("/api/movimentacoes/entrada", json=[1, 2, 3])

    assert resp.status_code == 400
    assert set(resp.get_json()["fields"]) == {"product_id", "quantity"}


def test_persistence_failure_is_opaque_500(client, db_session, product, monkeypatch, stock_of):
    def broken_apply(uow, request):
        raise OperationalError("UPDATE products ...", {}, Exception("disk I/O error"))

    monkeypatch.setattr(movement_service, "_apply", broken_apply)

    resp = client.post("/api/movimentacoes/entrada", json={"product_id": product.id, "quantity": 1})

    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Internal server error"}
    assert stock_of(product.id) == 10


@pytest.mark.parametrize("is_sale", ["true", 1, "false", 0])
def test_is_sale_must_be_a_boolean(client, db_session, product, stock_of, is_sale):
    resp = client.post("/api/movimentacoes", json={
        "kind": "EXIT",
        "product_id": product.id,
        "quantity": 1,
        "is_sale": is_sale,
    })

    assert resp.status_code == 400
    assert resp.get_json()["fields"] == ["is_sale"]
    assert stock_of(product.id) == 10


def test_null_is_sale_is_a_plain_exit(client, db_session, product):
    resp = client.post("/api/movimentacoes", json={
        "kind": "EXIT",
        "product_id": product.id,
        "quantity": 1,
        "is_sale": None,
    })

    assert resp.status_code == 201
    assert resp.get_json()["movement"]["customer_id"] is None


@pytest.mark.parametrize("quantity", [2**31, 2**63 - 1, 10**30])
def test_oversized_quantity_is_400(client, db_session, product, stock_of, quantity):
    resp = client.post("/api/movimentacoes/entrada", json={"product_id": product.id, "quantity": quantity})

    assert resp.status_code == 400
    assert resp.get_json()["fields"] == ["quantity"]
    assert stock_of(product.id) == 10


def test_oversized_product_id_is_404(client, db_session):
    resp = client.post("/api/movimentacoes/entrada", json={"product_id": 10**30, "quantity": 1})

    assert resp.status_code == 404
    assert resp.get_json()["entity"] == "product"


def test_stock_limit_payload(client, db_session, make_product, stock_of):
    product = make_product(stock=MAX_STOCK - 1)

    resp = client.post("/api/movimentacoes/entrada", json={"product_id": product.id, "quantity": 2})

    assert resp.status_code == 400
    assert resp.get_json() == {
        "error": "stock limit exceeded",
        "product_id": product.id,
        "current_stock": MAX_STOCK - 1,
        "requested_quantity": 2,
        "maximum_stock": MAX_STOCK,
    }
    assert stock_of(product.id) == MAX_STOCK - 1


@pytest.mark.parametrize(
    "target, path",
    [
        ("list_movements", "/api/movimentacoes"),
        ("product_movement_report", "/api/movimentacoes/relatorio?product_id={product_id}"),
        ("get_movement", "/api/movimentacoes/1"),
    ],
)
def test_read_routes_fail_as_opaque_500(client, db_session, product, monkeypatch, target, path):
    def broken(*args, **kwargs):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(reporting_service, target, broken)

    resp = client.get(path.format(product_id=product.id))

    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Internal server error"}
