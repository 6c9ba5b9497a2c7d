# Overview: Transaction boundary threaded explicitly through the write services.

from __future__ import annotations

from sqlalchemy.orm import Session

from ..extensions import db
from ..repositories import (
    CategoryRepository,
    CustomerRepository,
    MovementRepository,
    ProductRepository,
    SupplierRepository,
)


class SqlAlchemyUnitOfWork:
    """
    One atomic group of reads and writes against the store.

        with uow:
            product = uow.products.get(product_id)
            ...
            uow.commit()

    Leaving the block with an exception rolls the session back; leaving it
    without calling commit() also rolls back, so nothing half-done survives.
    The exception itself is never swallowed.

    session defaults to the Flask-SQLAlchemy scoped session of the current
    app context; tests may pass their own.
    """

    def __init__(self, session: Session | None = None):
        self._session = session

    @property
    def session(self) -> Session:
        return self._session if self._session is not None else db.session

    def __enter__(self) -> "SqlAlchemyUnitOfWork":
        session = self.session
        self.products = ProductRepository(session)
        self.customers = CustomerRepository(session)
        self.movements = MovementRepository(session)
        self.categories = CategoryRepository(session)
        self.suppliers = SupplierRepository(session)
        self._committed = False
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None or not self._committed:
            self.rollback()
        return False

    def commit(self) -> None:
        self.session.commit()
        self._committed = True

    def rollback(self) -> None:
        self.session.rollback()
