from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, ValidationError
from ..models import Category, Supplier
from ..validation import EMAIL_PATTERN, ModelValidationPolicy, validate_payload

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name"},
    required_on_create={"name"},
)

SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email"},
    required_on_create={"name"},
)


def create_category(uow, payload: dict) -> dict:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
    with uow:
        if uow.categories.get_by_name(patch["name"]) is not None:
            raise ConflictError("category already exists", field="name")
        category = Category(name=patch["name"])
        try:
            uow.categories.add(category)
            uow.commit()
        except IntegrityError:
            raise ConflictError("category already exists", field="name")
        return category.to_dict()


def list_categories(uow) -> list[dict]:
    with uow:
        return [c.to_dict() for c in uow.categories.list()]


def create_supplier(uow, payload: dict) -> dict:
    patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=False)
    email = patch.get("email")
    if email is not None:
        email = email.lower()
        if not EMAIL_PATTERN.match(email):
            raise ValidationError("email is not a valid address", fields=["email"])
    with uow:
        if uow.suppliers.get_by_name(patch["name"]) is not None:
            raise ConflictError("supplier already exists", field="name")
        supplier = Supplier(name=patch["name"], email=email)
        try:
            uow.suppliers.add(supplier)
            uow.commit()
        except IntegrityError:
            raise ConflictError("supplier already exists", field="name")
        return supplier.to_dict()


def list_suppliers(uow) -> list[dict]:
    with uow:
        return [s.to_dict() for s in uow.suppliers.list()]
