# Overview: Service-layer operations for stock movements; the only writer of product stock.

# backend/stockroom/services/movement_service.py
"""
Stock Movement Invariants (authoritative)

Stock model:
- products.stock is a counter mirrored by the movement history:
      stock == initial_stock + SUM(ENTRY qty) - SUM(EXIT qty)
  over committed movements. It never goes negative and never exceeds
  MAX_STOCK.
- Movements are append-only. There is no update or delete; a mistake is
  corrected with a compensating movement.

Write protocol (one transaction per call):
  validate request -> load product -> load customer (if any)
  -> read-check stock -> compute total -> INSERT movement
  -> conditional UPDATE of stock -> commit

- Request shape and ranges are checked before the unit of work is entered,
  so a malformed request never reaches a repository.
- The read-check gives the caller a precise error in the common case. The
  authoritative check is the conditional UPDATE (... WHERE stock >= qty):
  if a concurrent EXIT committed in between, it affects zero rows and the
  whole transaction is rolled back as insufficient stock. ENTRY carries the
  mirror guard (... WHERE stock <= MAX_STOCK - qty).
- No in-process locks, no automatic retries. Retry policy belongs to the caller.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import (
    InsufficientStockError,
    NotFoundError,
    PersistenceError,
    ReferentialIntegrityError,
    StockLimitError,
    StockroomError,
    ValidationError,
)
from ..models import Movement, MovementKind
from ..money import money_str, quantize_money
from ..time_utils import to_utc_z
from ..validation import MAX_STOCK, clean_note, parse_kind, parse_quantity, parse_unit_price, require_fields

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MovementRequest:
    kind: MovementKind
    product_id: Any
    quantity: int
    customer_id: Any = None
    unit_price: Optional[Decimal] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class MovementResult:
    id: int
    kind: MovementKind
    product_id: int
    product_name: str
    quantity: int
    stock_after: int
    unit_price: Optional[Decimal] = None
    total_value: Optional[Decimal] = None
    customer_id: Optional[int] = None
    customer_name: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "stock_after": self.stock_after,
            "unit_price": money_str(self.unit_price),
            "total_value": money_str(self.total_value),
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "created_at": to_utc_z(self.created_at),
        }


def compute_total_value(quantity: int, unit_price: Optional[Decimal]) -> Optional[Decimal]:
    if unit_price is None:
        return None
    return quantize_money(Decimal(quantity) * unit_price)


def _build_request(
    *,
    kind: Any,
    product_id: Any,
    quantity: Any,
    customer_id: Any,
    unit_price: Any,
    note: Any,
    customer_required: bool,
) -> MovementRequest:
    # (1) presence, every missing field reported at once
    required = {"product_id": product_id, "quantity": quantity, "kind": kind}
    if customer_required:
        required["customer_id"] = customer_id
    require_fields(required)

    # (2) type / range
    return MovementRequest(
        kind=parse_kind(kind),
        product_id=product_id,
        quantity=parse_quantity(quantity),
        customer_id=customer_id if customer_id not in (None, "") else None,
        unit_price=parse_unit_price(unit_price),
        note=clean_note(note),
    )


def _apply(uow, request: MovementRequest) -> MovementResult:
    # (3) product
    product = uow.products.get(request.product_id)
    if product is None:
        raise NotFoundError("product", request.product_id)

    # (4) customer
    customer = None
    if request.customer_id is not None:
        customer = uow.customers.get(request.customer_id)
        if customer is None:
            raise NotFoundError("customer", request.customer_id)

    # (5) read-check; the conditional UPDATE below re-checks at write time
    if request.kind is MovementKind.EXIT and request.quantity > product.stock:
        raise InsufficientStockError(product.id, product.stock, request.quantity)
    if request.kind is MovementKind.ENTRY and product.stock > MAX_STOCK - request.quantity:
        raise StockLimitError(product.id, product.stock, request.quantity, MAX_STOCK)

    # (6)
    total_value = compute_total_value(request.quantity, request.unit_price)

    # (7)
    movement = uow.movements.add(Movement(
        product_id=product.id,
        customer_id=customer.id if customer is not None else None,
        quantity=request.quantity,
        kind=request.kind,
        unit_price=request.unit_price,
        total_value=total_value,
        note=request.note,
    ))

    if request.kind is MovementKind.EXIT:
        affected = uow.products.apply_stock_delta(product.id, -request.quantity, expected_minimum=request.quantity)
        if affected == 0:
            current = uow.products.current_stock(product.id)
            if current is None:
                raise ReferentialIntegrityError("product no longer exists")
            raise InsufficientStockError(product.id, current, request.quantity)
    else:
        affected = uow.products.apply_stock_delta(
            product.id, request.quantity, expected_maximum=MAX_STOCK - request.quantity
        )
        if affected == 0:
            current = uow.products.current_stock(product.id)
            if current is None:
                raise ReferentialIntegrityError("product no longer exists")
            raise StockLimitError(product.id, current, request.quantity, MAX_STOCK)

    stock_after = uow.products.current_stock(product.id)

    return MovementResult(
        id=movement.id,
        kind=request.kind,
        product_id=product.id,
        product_name=product.name,
        quantity=request.quantity,
        stock_after=stock_after,
        unit_price=request.unit_price,
        total_value=total_value,
        customer_id=customer.id if customer is not None else None,
        customer_name=customer.name if customer is not None else None,
        created_at=movement.created_at,
    )


def _execute(uow, request: MovementRequest) -> MovementResult:
    try:
        with uow:
            result = _apply(uow, request)
            uow.commit()
    except StockroomError as exc:
        logger.info(
            "Movement rejected kind=%s product_id=%s quantity=%s: %s",
            request.kind.value, request.product_id, request.quantity, exc.message,
        )
        raise
    except IntegrityError as exc:
        logger.warning("Movement hit an integrity violation for product_id=%s: %s", request.product_id, exc.orig)
        raise ReferentialIntegrityError() from exc
    except SQLAlchemyError as exc:
        logger.exception("Movement persistence failed for product_id=%s", request.product_id)
        raise PersistenceError("could not record movement") from exc

    logger.info(
        "Movement %s recorded kind=%s product_id=%s quantity=%s stock_after=%s",
        result.id, result.kind.value, result.product_id, result.quantity, result.stock_after,
    )
    return result


def record_movement(
    uow,
    *,
    kind: Any,
    product_id: Any,
    quantity: Any,
    customer_id: Any = None,
    unit_price: Any = None,
    note: Any = None,
    is_sale: Any = False,
) -> MovementResult:
    """
    Generic entry point: ENTRY or EXIT, customer optional unless is_sale.

    is_sale must be a real boolean; None reads as false.

    Raises ValidationError, NotFoundError, InsufficientStockError,
    StockLimitError, ReferentialIntegrityError or PersistenceError.
    The transaction is rolled back before any of them leaves this function.
    """
    if is_sale is None:
        is_sale = False
    if not isinstance(is_sale, bool):
        raise ValidationError("is_sale must be true or false", fields=["is_sale"])

    request = _build_request(
        kind=kind,
        product_id=product_id,
        quantity=quantity,
        customer_id=customer_id,
        unit_price=unit_price,
        note=note,
        customer_required=is_sale,
    )
    if is_sale and request.kind is not MovementKind.EXIT:
        raise ValidationError("a sale must be an EXIT movement", fields=["kind"])
    return _execute(uow, request)


def record_entry(
    uow,
    *,
    product_id: Any,
    quantity: Any,
    unit_price: Any = None,
    note: Any = None,
) -> MovementResult:
    """Stock-in (purchase / replenishment). No customer."""
    request = _build_request(
        kind=MovementKind.ENTRY,
        product_id=product_id,
        quantity=quantity,
        customer_id=None,
        unit_price=unit_price,
        note=note,
        customer_required=False,
    )
    return _execute(uow, request)


def record_sale(
    uow,
    *,
    product_id: Any,
    customer_id: Any,
    quantity: Any,
    unit_price: Any = None,
    note: Any = None,
) -> MovementResult:
    """Stock-out to a customer. customer_id is mandatory."""
    request = _build_request(
        kind=MovementKind.EXIT,
        product_id=product_id,
        quantity=quantity,
        customer_id=customer_id,
        unit_price=unit_price,
        note=note,
        customer_required=True,
    )
    return _execute(uow, request)
