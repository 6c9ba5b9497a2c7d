# Overview: Read-only projections over movements: listing, detail, per-product report, stock audit.

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import case, false, func, select
from sqlalchemy.orm import Session

from ..errors import NotFoundError, ValidationError
from ..models import Customer, Movement, MovementKind, Product
from ..money import money_str
from ..repositories import MAX_ID, coerce_id
from ..time_utils import day_bounds, parse_iso_date
from ..validation import parse_int, parse_kind

"""
Aggregation of money columns:

total_value is NULL for movements recorded without a unit price. Sums use
SQL SUM semantics, so those rows are excluded from value totals rather than
counted as zero, and every report carries `unpriced_movements` so the
exclusion is visible to the reader.
"""


def _parse_period(start_date: str | None, end_date: str | None):
    try:
        start = parse_iso_date(start_date)
    except ValueError:
        raise ValidationError("start_date must be an ISO-8601 date (YYYY-MM-DD)", fields=["start_date"])
    try:
        end = parse_iso_date(end_date)
    except ValueError:
        raise ValidationError("end_date must be an ISO-8601 date (YYYY-MM-DD)", fields=["end_date"])
    if start and end and start > end:
        raise ValidationError("start_date must not be after end_date", fields=["start_date", "end_date"])
    return start, end


def _apply_filters(stmt, *, kind, product_id, start_dt, end_dt):
    if kind is not None:
        stmt = stmt.where(Movement.kind == kind)
    if product_id is not None:
        pid = coerce_id(product_id)
        stmt = stmt.where(Movement.product_id == pid) if pid is not None else stmt.where(false())
    if start_dt is not None:
        stmt = stmt.where(Movement.created_at >= start_dt)
    if end_dt is not None:
        stmt = stmt.where(Movement.created_at < end_dt)
    return stmt


def _movement_row_to_dict(movement: Movement, product_name, product_sku, customer_name, customer_email=None) -> dict:
    data = movement.to_dict()
    data["product_name"] = product_name
    data["product_sku"] = product_sku
    data["customer_name"] = customer_name
    if customer_email is not None:
        data["customer_email"] = customer_email
    return data


def list_movements(
    session: Session,
    *,
    kind: str | None = None,
    product_id=None,
    start_date: str | None = None,
    end_date: str | None = None,
    page=None,
    per_page=None,
    default_per_page: int = 20,
    max_per_page: int = 100,
) -> dict:
    """
    Movements newest first, filtered and paginated.

    Date filters are inclusive calendar days. The pagination total counts
    only rows matching the same filters.
    """
    kind_enum = parse_kind(kind) if kind not in (None, "") else None
    start, end = _parse_period(start_date, end_date)
    start_dt, end_dt = day_bounds(start, end)

    page = parse_int(page, "page") if page not in (None, "") else 1
    per_page = parse_int(per_page, "per_page") if per_page not in (None, "") else default_per_page
    per_page = min(max(per_page, 1), max_per_page)
    page = max(page, 1)
    if (page - 1) * per_page > MAX_ID:
        raise ValidationError("page is out of range", fields=["page"])

    filters = dict(kind=kind_enum, product_id=product_id, start_dt=start_dt, end_dt=end_dt)

    total = session.execute(
        _apply_filters(select(func.count(Movement.id)), **filters)
    ).scalar_one()

    stmt = (
        select(Movement, Product.name, Product.sku, Customer.name)
        .join(Product, Movement.product_id == Product.id)
        .outerjoin(Customer, Movement.customer_id == Customer.id)
    )
    stmt = _apply_filters(stmt, **filters)
    stmt = stmt.order_by(Movement.created_at.desc(), Movement.id.desc())
    stmt = stmt.offset((page - 1) * per_page).limit(per_page)

    items = [
        _movement_row_to_dict(movement, product_name, product_sku, customer_name)
        for movement, product_name, product_sku, customer_name in session.execute(stmt)
    ]

    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    return {
        "items": items,
        "count": len(items),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_movement(session: Session, movement_id) -> dict:
    mid = coerce_id(movement_id)
    row = None
    if mid is not None:
        row = session.execute(
            select(Movement, Product.name, Product.sku, Customer.name, Customer.email)
            .join(Product, Movement.product_id == Product.id)
            .outerjoin(Customer, Movement.customer_id == Customer.id)
            .where(Movement.id == mid)
        ).first()
    if row is None:
        raise NotFoundError("movement", movement_id)
    movement, product_name, product_sku, customer_name, customer_email = row
    return _movement_row_to_dict(movement, product_name, product_sku, customer_name, customer_email)


def product_movement_report(
    session: Session,
    *,
    product_id,
    start_date: str | None = None,
    end_date: str | None = None,
) -> dict:
    """Per-kind totals for one product over an optional inclusive date range."""
    if product_id in (None, ""):
        raise ValidationError("product_id is required", fields=["product_id"])
    start, end = _parse_period(start_date, end_date)
    start_dt, end_dt = day_bounds(start, end)

    pid = coerce_id(product_id)
    product = session.get(Product, pid) if pid is not None else None
    if product is None:
        raise NotFoundError("product", product_id)

    stmt = select(
        Movement.kind,
        func.count(Movement.id),
        func.coalesce(func.sum(Movement.quantity), 0),
        func.avg(Movement.unit_price),
        func.sum(Movement.total_value),
        func.sum(case((Movement.unit_price.is_(None), 1), else_=0)),
    ).group_by(Movement.kind).order_by(Movement.kind)
    stmt = _apply_filters(stmt, kind=None, product_id=product.id, start_dt=start_dt, end_dt=end_dt)

    rows = []
    for kind, count, quantity, avg_price, total_value, unpriced in session.execute(stmt):
        rows.append({
            "kind": MovementKind(kind).value,
            "movements": int(count),
            "total_quantity": int(quantity or 0),
            "average_unit_price": money_str(Decimal(str(avg_price))) if avg_price is not None else None,
            "total_value": money_str(total_value),
            "unpriced_movements": int(unpriced or 0),
        })

    return {
        "product": {"id": product.id, "name": product.name, "stock": product.stock},
        "report": rows,
        "period": {
            "start_date": start.isoformat() if start else None,
            "end_date": end.isoformat() if end else None,
        },
    }


def stock_audit(session: Session) -> list[dict]:
    """
    Compare every product's stock counter with its movement history.

    Returns one entry per product where
        stock != initial_stock + SUM(ENTRY qty) - SUM(EXIT qty)
    An empty list means the invariant holds everywhere.
    """
    entries = func.coalesce(func.sum(case((Movement.kind == MovementKind.ENTRY, Movement.quantity), else_=0)), 0)
    exits = func.coalesce(func.sum(case((Movement.kind == MovementKind.EXIT, Movement.quantity), else_=0)), 0)

    stmt = (
        select(Product.id, Product.name, Product.stock, Product.initial_stock, entries, exits)
        .outerjoin(Movement, Movement.product_id == Product.id)
        .group_by(Product.id, Product.name, Product.stock, Product.initial_stock)
        .order_by(Product.id)
    )

    discrepancies = []
    for product_id, name, stock, initial_stock, entry_total, exit_total in session.execute(stmt):
        expected = initial_stock + int(entry_total) - int(exit_total)
        if stock != expected:
            discrepancies.append({
                "product_id": product_id,
                "name": name,
                "stock": stock,
                "expected_stock": expected,
                "difference": stock - expected,
            })
    return discrepancies
