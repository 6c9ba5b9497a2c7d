from flask import Blueprint, current_app, jsonify, request

from ..errors import StockroomError
from ..services import catalog_service
from ..services.unit_of_work import SqlAlchemyUnitOfWork

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")


@catalog_bp.post("/categorias")
def create_category_route():
    try:
        category = catalog_service.create_category(SqlAlchemyUnitOfWork(), request.get_json(silent=True) or {})
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create category")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(category), 201


@catalog_bp.get("/categorias")
def list_categories_route():
    items = catalog_service.list_categories(SqlAlchemyUnitOfWork())
    return jsonify({"items": items, "count": len(items)}), 200


@catalog_bp.post("/fornecedores")
def create_supplier_route():
    try:
        supplier = catalog_service.create_supplier(SqlAlchemyUnitOfWork(), request.get_json(silent=True) or {})
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create supplier")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(supplier), 201


@catalog_bp.get("/fornecedores")
def list_suppliers_route():
    items = catalog_service.list_suppliers(SqlAlchemyUnitOfWork())
    return jsonify({"items": items, "count": len(items)}), 200
