# Overview: Flask API routes for stock movements; parses input and returns JSON responses.

# backend/stockroom/routes/movements.py
"""
Stock movement routes.

Write endpoints return 201 with the movement summary. Failures come back as
the typed error payloads from stockroom.errors:
- 400 validation (with "fields"), insufficient stock (with current_stock and
  requested_quantity), stock limit, referential integrity
- 404 product / customer not found (with "entity")
- 500 persistence failure, no internal detail
"""
from flask import Blueprint, current_app, jsonify, request

from ..errors import StockroomError
from ..extensions import db
from ..services import movement_service, reporting_service
from ..services.unit_of_work import SqlAlchemyUnitOfWork

movements_bp = Blueprint("movements", __name__, url_prefix="/api/movimentacoes")


def _error_response(exc: StockroomError):
    return jsonify(exc.to_dict()), exc.status_code


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


@movements_bp.post("")
def create_movement_route():
    """
    Record an ENTRY or EXIT.

    Body: kind, product_id, quantity, customer_id?, unit_price?, note?, is_sale?
    """
    payload = _json_body()
    try:
        result = movement_service.record_movement(
            SqlAlchemyUnitOfWork(),
            kind=payload.get("kind"),
            product_id=payload.get("product_id"),
            quantity=payload.get("quantity"),
            customer_id=payload.get("customer_id"),
            unit_price=payload.get("unit_price"),
            note=payload.get("note"),
            is_sale=payload.get("is_sale", False),
        )
    except StockroomError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to record movement")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "movement recorded", "movement": result.to_dict()}), 201


@movements_bp.post("/entrada")
def stock_in_route():
    """Stock-in. Body: product_id, quantity, unit_price?, note?"""
    payload = _json_body()
    try:
        result = movement_service.record_entry(
            SqlAlchemyUnitOfWork(),
            product_id=payload.get("product_id"),
            quantity=payload.get("quantity"),
            unit_price=payload.get("unit_price"),
            note=payload.get("note"),
        )
    except StockroomError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to record stock entry")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "stock entry recorded", "movement": result.to_dict()}), 201


@movements_bp.post("/saida")
def sale_route():
    """Stock-out / sale. Body: product_id, customer_id, quantity, unit_price?, note?"""
    payload = _json_body()
    try:
        result = movement_service.record_sale(
            SqlAlchemyUnitOfWork(),
            product_id=payload.get("product_id"),
            customer_id=payload.get("customer_id"),
            quantity=payload.get("quantity"),
            unit_price=payload.get("unit_price"),
            note=payload.get("note"),
        )
    except StockroomError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to record sale")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "sale recorded", "movement": result.to_dict()}), 201


@movements_bp.get("")
def list_movements_route():
    """
    List movements, newest first.

    Query params: kind, product_id, start_date, end_date (YYYY-MM-DD, inclusive),
    page, per_page
    """
    try:
        result = reporting_service.list_movements(
            db.session,
            kind=request.args.get("kind"),
            product_id=request.args.get("product_id"),
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
            page=request.args.get("page"),
            per_page=request.args.get("per_page"),
            default_per_page=current_app.config["MOVEMENTS_DEFAULT_PER_PAGE"],
            max_per_page=current_app.config["MOVEMENTS_MAX_PER_PAGE"],
        )
    except StockroomError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list movements")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(result), 200


@movements_bp.get("/relatorio")
def product_report_route():
    """Per-kind totals for one product. Query params: product_id, start_date, end_date."""
    try:
        report = reporting_service.product_movement_report(
            db.session,
            product_id=request.args.get("product_id"),
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
        )
    except StockroomError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to build movement report")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(report), 200


@movements_bp.get("/<movement_id>")
def get_movement_route(movement_id: str):
    try:
        return jsonify(reporting_service.get_movement(db.session, movement_id)), 200
    except StockroomError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load movement %s", movement_id)
        return jsonify({"error": "Internal server error"}), 500
