# Overview: Flask API routes for the kitchen menu.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_actor
from ..errors import StorekeeperError
from ..models import FoodItem
from ..services import catalog_service
from ..validation import ModelValidationPolicy, validate_payload

FOOD_ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"name", "price", "category"},
    required_on_create={"name", "price"},
)

food_items_bp = Blueprint("food_items", __name__, url_prefix="/api/food-items")


@food_items_bp.get("")
def list_food_items():
    items = catalog_service.list_food_items()
    return jsonify({"food_items": [i.to_dict() for i in items]}), 200


@food_items_bp.get("/<int:food_item_id>")
def get_food_item(food_item_id: int):
    try:
        item = catalog_service.get_food_item(food_item_id)
        return jsonify({"food_item": item.to_dict()}), 200
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code


@food_items_bp.post("")
@require_actor
def create_food_item_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=FoodItem, payload=payload, policy=FOOD_ITEM_POLICY, partial=False)
        item = catalog_service.create_food_item(actor_id=g.actor_id, **patch)
        return jsonify({"food_item": item.to_dict()}), 201
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create food item")
        return jsonify({"error": "Internal server error"}), 500


@food_items_bp.patch("/<int:food_item_id>")
@require_actor
def update_food_item_route(food_item_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=FoodItem, payload=payload, policy=FOOD_ITEM_POLICY, partial=True)
        item = catalog_service.update_food_item(food_item_id, patch, actor_id=g.actor_id)
        return jsonify({"food_item": item.to_dict()}), 200
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update food item")
        return jsonify({"error": "Internal server error"}), 500


@food_items_bp.delete("/<int:food_item_id>")
@require_actor
def delete_food_item_route(food_item_id: int):
    """Past kitchen sales keep their name and price snapshots."""
    try:
        catalog_service.delete_food_item(food_item_id, actor_id=g.actor_id)
        return jsonify({"ok": True}), 200
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete food item")
        return jsonify({"error": "Internal server error"}), 500
