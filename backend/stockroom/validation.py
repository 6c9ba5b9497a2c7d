from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Boolean, Date, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError, ConflictError  # noqa: F401  (re-exported)
from .models.movements import MovementKind
from .time_utils import parse_iso_date


# Maximum price: 9,999,999,999.99 fits Numeric(12, 2)
MAX_PRICE = Decimal("9999999999.99")

# Stock counters are 32-bit integers on every supported backend
MAX_STOCK = 2_147_483_647
MAX_QUANTITY = MAX_STOCK

NOTE_MAX_LENGTH = 255

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def parse_int(value: Any, field: str) -> int:
    """Strict integer parsing: ints and plain-digit strings only."""
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        # Reject scientific notation and decimals ("1e3", "12.5")
        if re.fullmatch(r"-?\d+", stripped):
            return int(stripped)
    raise ValidationError(f"{field} must be an integer", fields=[field])


def parse_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", fields=[field])
    if isinstance(value, (int, float, Decimal)):
        raw = str(value)
    elif isinstance(value, str):
        raw = value.strip()
    else:
        raise ValidationError(f"{field} must be a number", fields=[field])
    try:
        parsed = Decimal(raw)
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number", fields=[field])
    if not parsed.is_finite():
        raise ValidationError(f"{field} must be a finite number", fields=[field])
    return parsed


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return parse_int(value, col.key)

    if isinstance(coltype, Numeric):
        return parse_decimal(value, col.key)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be true or false", fields=[col.key])

    if isinstance(coltype, Date):
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                parsed = parse_iso_date(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 date", fields=[col.key])
            return parsed
        raise ValidationError(f"{col.key} must be a date", fields=[col.key])

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if _is_blank(payload.get(f)))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}", fields=missing)

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields or k not in cols:
            raise ValidationError(f"Field not allowed: {k}", fields=[k])

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null", fields=[k])
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and isinstance(val, str) and val == "":
            if not col.nullable:
                raise ValidationError(f"{k} cannot be blank", fields=[k])
            val = None

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}", fields=[k])

        patch[k] = val

    return patch


def _enforce_price(patch: dict, field: str) -> None:
    if patch.get(field) is None:
        return
    price = patch[field]
    if price < 0:
        raise ValidationError(f"{field} must be >= 0", fields=[field])
    if price > MAX_PRICE:
        raise ValidationError(f"{field} cannot exceed {MAX_PRICE}", fields=[field])


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _enforce_price(patch, "price")
    _enforce_price(patch, "cost_price")

    if "stock" in patch and patch["stock"] < 0:
        raise ValidationError("stock must be >= 0", fields=["stock"])
    if "stock" in patch and patch["stock"] > MAX_STOCK:
        raise ValidationError(f"stock cannot exceed {MAX_STOCK}", fields=["stock"])

    if patch.get("minimum_stock") is not None and not 0 <= patch["minimum_stock"] <= MAX_STOCK:
        raise ValidationError(f"minimum_stock must be between 0 and {MAX_STOCK}", fields=["minimum_stock"])


def enforce_rules_customer(name: str, email: str, password: str) -> None:
    if len(name) < 2 or len(name) > 200:
        raise ValidationError("name must be between 2 and 200 characters", fields=["name"])
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("email is not a valid address", fields=["email"])
    if len(password) < 6:
        raise ValidationError("password must have at least 6 characters", fields=["password"])


# --- movement request fields -------------------------------------------------

def require_fields(values: dict[str, Any]) -> None:
    """Raise one ValidationError naming every blank field in `values`."""
    missing = [name for name, value in values.items() if _is_blank(value)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", fields=missing)


def parse_quantity(value: Any) -> int:
    try:
        quantity = parse_int(value, "quantity")
    except ValidationError:
        raise ValidationError("quantity must be a positive integer", fields=["quantity"])
    if quantity <= 0:
        raise ValidationError("quantity must be greater than zero", fields=["quantity"])
    if quantity > MAX_QUANTITY:
        raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY}", fields=["quantity"])
    return quantity


def parse_kind(value: Any) -> MovementKind:
    if isinstance(value, MovementKind):
        return value
    if isinstance(value, str):
        try:
            return MovementKind(value.strip())
        except ValueError:
            pass
    raise ValidationError("kind must be ENTRY or EXIT", fields=["kind"])


def parse_unit_price(value: Any) -> Decimal | None:
    if value is None:
        return None
    price = parse_decimal(value, "unit_price")
    if price < 0:
        raise ValidationError("unit_price must be >= 0", fields=["unit_price"])
    if price > MAX_PRICE:
        raise ValidationError(f"unit_price cannot exceed {MAX_PRICE}", fields=["unit_price"])
    return price


def clean_note(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("note must be a string", fields=["note"])
    note = value.strip()
    if not note:
        return None
    if len(note) > NOTE_MAX_LENGTH:
        raise ValidationError(f"note exceeds max length {NOTE_MAX_LENGTH}", fields=["note"])
    return note
