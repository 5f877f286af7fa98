# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/storekeeper/routes/sales.py
"""Sales API routes, one set per pipeline (/api/mothercare/sales, /api/kitchen/sales)."""

from flask import Blueprint, request, jsonify, g
from flask import current_app

from ..decorators import require_actor
from ..errors import StorekeeperError, ValidationError
from ..services import sales_service
from ..services.pipelines import get_pipeline


sales_bp = Blueprint("sales", __name__, url_prefix="/api/<pipeline>/sales")

# Per-pipeline name of the catalog reference in request bodies; "catalog_id" works for both
CATALOG_KEYS = {"mothercare": "product_id", "kitchen": "food_item_id"}


def _flag(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in {"1", "true", "yes"}


@sales_bp.get("")
def list_sales_route(pipeline: str):
    """
    Sales of the current session, newest first.

    Query params:
    - session_id: int (optional) - list a closed session instead
    """
    session_id = request.args.get("session_id", type=int)
    try:
        sales = sales_service.list_session_sales(pipeline, session_id)
        return jsonify({"sales": [s.to_dict() for s in sales]}), 200
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code


@sales_bp.post("")
@require_actor
def record_sale_route(pipeline: str):
    """
    Record a sale against the current session.

    Body: {"product_id" | "food_item_id" | "catalog_id": int, "quantity": int}
    (mothercare also accepts "quantity_sold").
    """
    try:
        resolved = get_pipeline(pipeline)
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            raise ValidationError("Invalid JSON payload")
        catalog_id = data.get("catalog_id", data.get(CATALOG_KEYS[resolved.name]))
        quantity = data.get("quantity", data.get("quantity_sold"))

        if catalog_id is None or quantity is None:
            return jsonify({
                "error": f"{CATALOG_KEYS[resolved.name]} and quantity required",
                "code": "validation_error",
                "details": {},
            }), 400

        sale = sales_service.record_sale(resolved, catalog_id, quantity, actor_id=g.actor_id)
        return jsonify({"sale": sale.to_dict()}), 201

    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to record sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<int:sale_id>")
def get_sale_route(pipeline: str, sale_id: int):
    try:
        sale = sales_service.get_sale(pipeline, sale_id)
        return jsonify({"sale": sale.to_dict()}), 200
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code


@sales_bp.delete("/<int:sale_id>")
@require_actor
def delete_sale_route(pipeline: str, sale_id: int):
    """
    Delete a sale. Stock is left alone unless ?restore_stock=true (mothercare only).
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify(ValidationError("Invalid JSON payload").to_dict()), 400
    restore_stock = _flag(request.args.get("restore_stock", data.get("restore_stock")))

    try:
        sales_service.delete_sale(pipeline, sale_id, restore_stock=restore_stock, actor_id=g.actor_id)
        return jsonify({"ok": True, "restore_stock": restore_stock}), 200
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete sale")
        return jsonify({"error": "Internal server error"}), 500
