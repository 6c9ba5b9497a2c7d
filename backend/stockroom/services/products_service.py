# backend/stockroom/services/products_service.py
"""
Products Service

Registration sets both `stock` and `initial_stock` from the request. From
then on stock changes only through movement_service; there is no update
path for it here.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError
from ..models import Product
from ..validation import ModelValidationPolicy, enforce_rules_product, validate_payload

logger = logging.getLogger(__name__)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "price",
        "cost_price",
        "stock",
        "minimum_stock",
        "expiry_date",
        "category_id",
        "supplier_id",
        "description",
        "sku",
        "brand",
    },
    required_on_create={"name", "price", "stock", "category_id"},
)


def register_product(uow, payload: dict, *, default_minimum_stock: int = 5) -> dict:
    """
    Validate and create a product.

    Raises:
        ValidationError: malformed payload
        NotFoundError: category (or supplier, when given) does not exist
        ConflictError: SKU already used
    """
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)

    with uow:
        if uow.categories.get(patch["category_id"]) is None:
            raise NotFoundError("category", patch["category_id"])

        if patch.get("supplier_id") is not None and uow.suppliers.get(patch["supplier_id"]) is None:
            raise NotFoundError("supplier", patch["supplier_id"])

        if patch.get("sku") and uow.products.get_by_sku(patch["sku"]) is not None:
            raise ConflictError("SKU already exists", field="sku")

        minimum_stock = patch.get("minimum_stock")
        product = Product(
            name=patch["name"],
            price=patch["price"],
            cost_price=patch.get("cost_price"),
            stock=patch["stock"],
            initial_stock=patch["stock"],
            minimum_stock=minimum_stock if minimum_stock is not None else default_minimum_stock,
            expiry_date=patch.get("expiry_date"),
            category_id=patch["category_id"],
            supplier_id=patch.get("supplier_id"),
            description=patch.get("description"),
            sku=patch.get("sku"),
            brand=patch.get("brand"),
        )
        try:
            uow.products.add(product)
            uow.commit()
        except IntegrityError:
            # Lost a race on the unique SKU
            raise ConflictError("SKU already exists", field="sku")

        logger.info("Product %s registered with initial stock %s", product.id, product.initial_stock)
        return product.to_dict()


def get_product(uow, product_id) -> dict:
    with uow:
        product = uow.products.get(product_id)
        if product is None:
            raise NotFoundError("product", product_id)
        return product.to_dict()


def delete_product(uow, product_id) -> None:
    """
    Delete a product that has no movement history.

    A product with movements cannot be deleted: that would orphan the
    history its stock counter is derived from.
    """
    with uow:
        product = uow.products.get(product_id)
        if product is None:
            raise NotFoundError("product", product_id)
        if uow.products.has_movements(product.id):
            raise ConflictError("product has recorded movements and cannot be deleted")
        try:
            uow.products.delete(product)
            uow.commit()
        except IntegrityError:
            # A movement was committed for it meanwhile
            raise ConflictError("product has recorded movements and cannot be deleted")
        logger.info("Product %s deleted", product_id)
