# Overview: Flask API routes for the merchandise stock ledger; parses input and returns JSON responses.

# backend/storekeeper/routes/products.py
"""
Product routes.

Reads are open. Writes need an X-Actor-Id header (401 without one); the
service decides whether that actor may write (403).

status is never accepted from clients: it is derived from quantity and
reorder_level on every write.
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_actor
from ..errors import StorekeeperError, ValidationError
from ..models import Product
from ..services import stock_service
from ..validation import (
    ModelValidationPolicy,
    coerce_int,
    enforce_rules_product,
    validate_payload,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"product_name", "quantity", "unit_price", "reorder_level", "category_id"},
    required_on_create={"product_name", "quantity", "unit_price"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    products = stock_service.list_products()
    return jsonify({"products": [p.to_dict() for p in products]}), 200


@products_bp.get("/low-stock")
def list_low_stock():
    """Products at or below their reorder level."""
    products = stock_service.low_stock_products()
    return jsonify({"products": [p.to_dict() for p in products]}), 200


@products_bp.get("/<int:product_id>")
def get_product(product_id: int):
    try:
        product = stock_service.get_product(product_id)
        return jsonify({"product": product.to_dict()}), 200
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code


@products_bp.post("")
@require_actor
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        product = stock_service.create_product(actor_id=g.actor_id, **patch)
        return jsonify({"product": product.to_dict()}), 201
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.patch("/<int:product_id>")
@require_actor
def update_product_route(product_id: int):
    """
    Partial update. Send the version_id you read as expected_version to make
    the edit fail (409) if the product changed in between.
    """
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return jsonify(ValidationError("Invalid JSON payload").to_dict()), 400
    payload = dict(payload)
    expected_version = payload.pop("expected_version", None)

    try:
        if expected_version is not None:
            expected_version = coerce_int(expected_version, "expected_version")
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        if not patch:
            raise ValidationError("No fields to update")
        enforce_rules_product(patch)
        product = stock_service.update_product(
            product_id,
            patch,
            expected_version=expected_version,
            actor_id=g.actor_id,
        )
        return jsonify({"product": product.to_dict()}), 200
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.post("/<int:product_id>/adjust")
@require_actor
def adjust_stock_route(product_id: int):
    """Restock (positive delta) or write off (negative delta)."""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify(ValidationError("Invalid JSON payload").to_dict()), 400
    if "delta" not in data:
        return jsonify({"error": "delta required", "code": "validation_error", "details": {}}), 400

    try:
        product = stock_service.apply_delta(product_id, data["delta"], actor_id=g.actor_id)
        return jsonify({"product": product.to_dict()}), 200
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return jsonify({"error": "Internal server error"}), 500
