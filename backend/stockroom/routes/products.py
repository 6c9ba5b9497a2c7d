# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/stockroom/routes/products.py
"""
Product registration and lookup.

Stock is set once at registration; afterwards it only moves through
/api/movimentacoes.
"""
from flask import Blueprint, current_app, jsonify, request

from ..errors import StockroomError
from ..services import products_service
from ..services.unit_of_work import SqlAlchemyUnitOfWork

products_bp = Blueprint("products", __name__, url_prefix="/api/produtos")


@products_bp.post("")
def create_product_route():
    payload = request.get_json(silent=True) or {}
    try:
        product = products_service.register_product(
            SqlAlchemyUnitOfWork(),
            payload,
            default_minimum_stock=current_app.config["DEFAULT_MINIMUM_STOCK"],
        )
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to register product")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"message": "product registered", "product": product}), 201


@products_bp.get("/<product_id>")
def get_product_route(product_id: str):
    try:
        return jsonify(products_service.get_product(SqlAlchemyUnitOfWork(), product_id)), 200
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load product %s", product_id)
        return jsonify({"error": "Internal server error"}), 500


@products_bp.delete("/<product_id>")
def delete_product_route(product_id: str):
    try:
        products_service.delete_product(SqlAlchemyUnitOfWork(), product_id)
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"message": "product deleted"}), 200
