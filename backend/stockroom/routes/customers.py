# backend/stockroom/routes/customers.py
from flask import Blueprint, current_app, jsonify, request

from ..errors import StockroomError
from ..services import customers_service
from ..services.unit_of_work import SqlAlchemyUnitOfWork

customers_bp = Blueprint("customers", __name__, url_prefix="/api/clientes")


@customers_bp.post("")
def create_customer_route():
    """Register a customer. Body: name, email, password, first_purchase?"""
    payload = request.get_json(silent=True) or {}
    try:
        customer = customers_service.register_customer(
            SqlAlchemyUnitOfWork(),
            payload,
            bcrypt_rounds=current_app.config["BCRYPT_ROUNDS"],
        )
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to register customer")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"message": "customer registered", "customer": customer}), 201


@customers_bp.get("/<customer_id>")
def get_customer_route(customer_id: str):
    try:
        return jsonify(customers_service.get_customer(SqlAlchemyUnitOfWork(), customer_id)), 200
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load customer %s", customer_id)
        return jsonify({"error": "Internal server error"}), 500
