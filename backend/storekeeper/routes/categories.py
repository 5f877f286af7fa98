from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_actor
from ..errors import StorekeeperError, ValidationError
from ..services import catalog_service


categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
def list_categories():
    categories = catalog_service.list_categories()
    return jsonify({"categories": [c.to_dict() for c in categories]}), 200


@categories_bp.post("")
@require_actor
def create_category_route():
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify(ValidationError("Invalid JSON payload").to_dict()), 400
    try:
        category = catalog_service.create_category(data.get("name") or "", actor_id=g.actor_id)
        return jsonify({"category": category.to_dict()}), 201
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create category")
        return jsonify({"error": "Internal server error"}), 500


@categories_bp.patch("/<int:category_id>")
@require_actor
def rename_category_route(category_id: int):
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify(ValidationError("Invalid JSON payload").to_dict()), 400
    try:
        category = catalog_service.rename_category(category_id, data.get("name") or "", actor_id=g.actor_id)
        return jsonify({"category": category.to_dict()}), 200
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to rename category")
        return jsonify({"error": "Internal server error"}), 500


@categories_bp.delete("/<int:category_id>")
@require_actor
def delete_category_route(category_id: int):
    try:
        catalog_service.delete_category(category_id, actor_id=g.actor_id)
        return jsonify({"ok": True}), 200
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete category")
        return jsonify({"error": "Internal server error"}), 500
