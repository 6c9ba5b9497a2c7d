# Overview: Typed failures raised by services and mapped to HTTP responses by the blueprints.

from __future__ import annotations


class StockroomError(Exception):
    """Base class for failures surfaced to API callers."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(StockroomError, ValueError):
    """400-level input problem. `fields` lists the offending field names."""
    status_code = 400

    def __init__(self, message: str, fields: list[str] | None = None):
        super().__init__(message)
        self.fields = list(fields or [])

    def to_dict(self) -> dict:
        return {"error": self.message, "fields": self.fields}


class ConflictError(StockroomError, ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""
    status_code = 409

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        payload = {"error": self.message}
        if self.field:
            payload["field"] = self.field
        return payload


class NotFoundError(StockroomError):
    status_code = 404

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id

    def to_dict(self) -> dict:
        return {"error": self.message, "entity": self.entity, "id": self.entity_id}


class InsufficientStockError(StockroomError):
    status_code = 400

    def __init__(self, product_id, current_stock: int, requested_quantity: int):
        super().__init__("insufficient stock")
        self.product_id = product_id
        self.current_stock = current_stock
        self.requested_quantity = requested_quantity

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "product_id": self.product_id,
            "current_stock": self.current_stock,
            "requested_quantity": self.requested_quantity,
        }


class StockLimitError(StockroomError):
    """An ENTRY would push the stock counter past its maximum."""
    status_code = 400

    def __init__(self, product_id, current_stock: int, requested_quantity: int, maximum_stock: int):
        super().__init__("stock limit exceeded")
        self.product_id = product_id
        self.current_stock = current_stock
        self.requested_quantity = requested_quantity
        self.maximum_stock = maximum_stock

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "product_id": self.product_id,
            "current_stock": self.current_stock,
            "requested_quantity": self.requested_quantity,
            "maximum_stock": self.maximum_stock,
        }


class ReferentialIntegrityError(StockroomError):
    """A referenced product or customer vanished between the check and the write."""
    status_code = 400

    def __init__(self, message: str = "invalid product or customer"):
        super().__init__(message)


class PersistenceError(StockroomError):
    """Connection/transaction failure. Details are logged, never returned."""
    status_code = 500

    def to_dict(self) -> dict:
        return {"error": "Internal server error"}
