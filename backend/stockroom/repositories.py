# Overview: Session-bound data access used by the services through a unit of work.

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import exists, func, select, update
from sqlalchemy.orm import Session

from .models import Category, Customer, Movement, Product, Supplier

# Largest key a 64-bit INTEGER primary key can hold
MAX_ID = 2**63 - 1


def coerce_id(value: Any) -> Optional[int]:
    """
    Ids are opaque to callers. Anything that is not an integer (or a string
    of digits within key range) cannot name a row, so it maps to None and
    lookups miss.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if 0 <= value <= MAX_ID else None
    if isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
        return parsed if parsed <= MAX_ID else None
    return None


class ProductRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, product_id) -> Optional[Product]:
        pid = coerce_id(product_id)
        if pid is None:
            return None
        return self.session.get(Product, pid)

    def get_by_sku(self, sku: str) -> Optional[Product]:
        return self.session.execute(select(Product).where(Product.sku == sku)).scalar_one_or_none()

    def current_stock(self, product_id) -> Optional[int]:
        pid = coerce_id(product_id)
        if pid is None:
            return None
        return self.session.execute(select(Product.stock).where(Product.id == pid)).scalar_one_or_none()

    def apply_stock_delta(
        self,
        product_id,
        signed_quantity: int,
        expected_minimum: int | None = None,
        expected_maximum: int | None = None,
    ) -> int:
        """
        Single conditional UPDATE: stock = stock + signed_quantity.

        With expected_minimum the row is only touched while stock >= expected_minimum,
        so the sufficiency check and the decrement happen in one statement.
        expected_maximum does the same for the ceiling on increments.
        Returns the number of affected rows (0 means the guard failed or the row is gone).
        """
        pid = coerce_id(product_id)
        if pid is None:
            return 0
        stmt = (
            update(Product)
            .where(Product.id == pid)
            .values(stock=Product.stock + signed_quantity, version_id=Product.version_id + 1)
            .execution_options(synchronize_session=False)
        )
        if expected_minimum is not None:
            stmt = stmt.where(Product.stock >= expected_minimum)
        if expected_maximum is not None:
            stmt = stmt.where(Product.stock <= expected_maximum)
        result = self.session.execute(stmt)

        # No session sync here; expire the cached row so the next read sees the new stock
        cached = self.session.identity_map.get(self.session.identity_key(Product, pid))
        if cached is not None:
            self.session.expire(cached, ["stock", "version_id", "updated_at"])
        return result.rowcount

    def has_movements(self, product_id: int) -> bool:
        return bool(self.session.execute(select(exists().where(Movement.product_id == product_id))).scalar())

    def add(self, product: Product) -> Product:
        self.session.add(product)
        self.session.flush()
        return product

    def delete(self, product: Product) -> None:
        self.session.delete(product)
        self.session.flush()


class CustomerRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, customer_id) -> Optional[Customer]:
        cid = coerce_id(customer_id)
        if cid is None:
            return None
        return self.session.get(Customer, cid)

    def get_by_email(self, email: str) -> Optional[Customer]:
        stmt = select(Customer).where(func.lower(Customer.email) == email.lower())
        return self.session.execute(stmt).scalar_one_or_none()

    def add(self, customer: Customer) -> Customer:
        self.session.add(customer)
        self.session.flush()
        return customer


class MovementRepository:
    def __init__(self, session: Session):
        self.session = session

    def add(self, movement: Movement) -> Movement:
        self.session.add(movement)
        self.session.flush()
        return movement


class CategoryRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, category_id) -> Optional[Category]:
        cid = coerce_id(category_id)
        if cid is None:
            return None
        return self.session.get(Category, cid)

    def get_by_name(self, name: str) -> Optional[Category]:
        return self.session.execute(select(Category).where(Category.name == name)).scalar_one_or_none()

    def list(self) -> list[Category]:
        return list(self.session.execute(select(Category).order_by(Category.name.asc())).scalars())

    def add(self, category: Category) -> Category:
        self.session.add(category)
        self.session.flush()
        return category


class SupplierRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, supplier_id) -> Optional[Supplier]:
        sid = coerce_id(supplier_id)
        if sid is None:
            return None
        return self.session.get(Supplier, sid)

    def get_by_name(self, name: str) -> Optional[Supplier]:
        return self.session.execute(select(Supplier).where(Supplier.name == name)).scalar_one_or_none()

    def list(self) -> list[Supplier]:
        return list(self.session.execute(select(Supplier).order_by(Supplier.name.asc())).scalars())

    def add(self, supplier: Supplier) -> Supplier:
        self.session.add(supplier)
        self.session.flush()
        return supplier
