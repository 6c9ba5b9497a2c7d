# Overview: Service-layer operations for customer accounts.

"""
Customer registration.

- Email is normalized to lower case before the uniqueness check and before
  storage, so "Ana@x.com" and "ana@x.com" are the same account.
- Passwords are hashed with bcrypt; the hash is never returned.
"""

import logging

import bcrypt
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import Customer
from ..validation import enforce_rules_customer, require_fields

logger = logging.getLogger(__name__)


def hash_password(password: str, rounds: int = 12) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def register_customer(uow, payload: dict, *, bcrypt_rounds: int = 12) -> dict:
    payload = payload or {}
    name = payload.get("name")
    email = payload.get("email")
    password = payload.get("password")
    first_purchase = payload.get("first_purchase", True)

    require_fields({"name": name, "email": email, "password": password})
    for field, value in (("name", name), ("email", email), ("password", password)):
        if not isinstance(value, str):
            raise ValidationError(f"{field} must be a string", fields=[field])
    if not isinstance(first_purchase, bool):
        raise ValidationError("first_purchase must be true or false", fields=["first_purchase"])

    name = name.strip()
    email = email.strip().lower()
    enforce_rules_customer(name, email, password)

    with uow:
        if uow.customers.get_by_email(email) is not None:
            raise ConflictError("email already in use", field="email")

        customer = Customer(
            name=name,
            email=email,
            password_hash=hash_password(password, rounds=bcrypt_rounds),
            first_purchase=first_purchase,
        )
        try:
            uow.customers.add(customer)
            uow.commit()
        except IntegrityError:
            raise ConflictError("email already in use", field="email")

        logger.info("Customer %s registered", customer.id)
        return customer.to_dict()


def get_customer(uow, customer_id) -> dict:
    with uow:
        customer = uow.customers.get(customer_id)
        if customer is None:
            raise NotFoundError("customer", customer_id)
        return customer.to_dict()
