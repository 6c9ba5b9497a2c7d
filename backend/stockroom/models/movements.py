from __future__ import annotations

from enum import Enum

from sqlalchemy import event, inspect

from ..extensions import db
from ..money import money_str
from ..time_utils import to_utc_z


class MovementKind(str, Enum):
    ENTRY = "ENTRY"
    EXIT = "EXIT"


class ImmutableMovementError(RuntimeError):
    """Raised when code tries to UPDATE or DELETE a persisted movement."""


class Movement(db.Model):
    """
    A stock movement: one product, one direction, a positive quantity.

    IMMUTABLE: Records are never updated or deleted. A wrong movement is
    corrected by recording a compensating one. The ORM hooks below refuse
    both operations.

    total_value = quantity * unit_price (cents, half-up) when unit_price is
    present, otherwise NULL. It is computed by the service, never accepted
    from callers.
    """
    __tablename__ = "movements"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_movements_quantity_positive"),
        db.CheckConstraint("kind IN ('ENTRY', 'EXIT')", name="ck_movements_kind"),
        db.CheckConstraint("unit_price IS NULL OR unit_price >= 0", name="ck_movements_unit_price"),
        db.Index("ix_movements_product_created", "product_id", "created_at"),
        db.Index("ix_movements_kind_created", "kind", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    kind = db.Column(
        db.Enum(MovementKind, native_enum=False, length=16, validate_strings=True),
        nullable=False,
    )

    unit_price = db.Column(db.Numeric(12, 2), nullable=True)
    total_value = db.Column(db.Numeric(14, 2), nullable=True)

    note = db.Column(db.String(255), nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        index=True,
    )

    product = db.relationship("Product", backref=db.backref("movements", lazy="dynamic", passive_deletes="all"))
    customer = db.relationship("Customer", backref=db.backref("movements", lazy="dynamic"))

    def __repr__(self) -> str:
        return f"<Movement id={self.id} kind={self.kind} product_id={self.product_id} qty={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "customer_id": self.customer_id,
            "quantity": self.quantity,
            "kind": MovementKind(self.kind).value,
            "unit_price": money_str(self.unit_price),
            "total_value": money_str(self.total_value),
            "note": self.note,
            "created_at": to_utc_z(self.created_at),
        }


@event.listens_for(Movement, "before_update")
def _refuse_movement_update(mapper, connection, target):
    state = inspect(target)
    changed = [attr.key for attr in state.attrs if attr.history.has_changes()]
    if changed:
        raise ImmutableMovementError(f"movement {target.id} is immutable (tried to change {', '.join(changed)})")


@event.listens_for(Movement, "before_delete")
def _refuse_movement_delete(mapper, connection, target):
    raise ImmutableMovementError(f"movement {target.id} is immutable and cannot be deleted")
