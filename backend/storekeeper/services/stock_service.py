# Overview: Service-layer operations for the product stock ledger.

"""
Stock ledger invariants (authoritative)

- Product.status is never independent truth. It is always
  derive_status(quantity, reorder_level), written in the same statement that
  writes quantity or reorder_level.
- quantity, unit_price and reorder_level are never negative (also enforced by
  CHECK constraints).
- Stock decrements are conditional UPDATEs ("... WHERE quantity + delta >= 0")
  that recompute status in SQL, so two concurrent writers can never both
  consume the same units.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import case, update

from ..authorization import require_authorized
from ..errors import ConcurrencyConflictError, InsufficientStockError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Category, Product, StockStatus
from ..validation import (
    coerce_int,
    coerce_money,
    coerce_text,
    enforce_rules_product,
)
from .concurrency import lock_for_update, write_transaction

PRODUCT_MUTABLE_FIELDS = {"product_name", "quantity", "unit_price", "reorder_level", "category_id"}


def derive_status(quantity: int, reorder_level: int) -> StockStatus:
    """
    Pure status rule.

    quantity <= 0 is Out of Stock whatever the reorder level; a quantity
    equal to the reorder level is already Low Stock.
    """
    if quantity <= 0:
        return StockStatus.OUT_OF_STOCK
    if quantity <= reorder_level:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def status_expression(quantity_expr, reorder_level_expr):
    """derive_status() as a SQL CASE, for use inside UPDATE ... SET."""
    return case(
        (quantity_expr <= 0, StockStatus.OUT_OF_STOCK.value),
        (quantity_expr <= reorder_level_expr, StockStatus.LOW_STOCK.value),
        else_=StockStatus.IN_STOCK.value,
    )


def _ensure_category(category_id: int | None) -> None:
    if category_id is None:
        return
    if db.session.get(Category, category_id) is None:
        raise NotFoundError("Category not found", details={"category_id": category_id})


def _normalize_patch(fields: dict) -> dict:
    """Coerce raw service input (already-clean route patches pass through unchanged)."""
    unknown = set(fields) - PRODUCT_MUTABLE_FIELDS - {"status"}
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(sorted(unknown))}")

    patch: dict = {}
    for key, value in fields.items():
        if key == "status":
            patch[key] = value
        elif key == "product_name":
            patch[key] = coerce_text(value, key, max_length=255)
        elif key == "unit_price":
            patch[key] = coerce_money(value, key)
        elif key == "category_id":
            patch[key] = None if value is None else coerce_int(value, key)
        else:
            if value is None:
                raise ValidationError(f"{key} cannot be null")
            patch[key] = coerce_int(value, key)
    enforce_rules_product(patch)
    return patch


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found", details={"product_id": product_id})
    return product


def list_products() -> list[Product]:
    return db.session.query(Product).order_by(Product.product_name.asc(), Product.id.asc()).all()


def low_stock_products() -> list[Product]:
    """Products at or below their reorder level, emptiest first."""
    return (
        db.session.query(Product)
        .filter(Product.quantity <= Product.reorder_level)
        .order_by(Product.quantity.asc(), Product.product_name.asc())
        .all()
    )


def create_product(
    *,
    product_name: str,
    quantity: int,
    unit_price,
    reorder_level: int | None = None,
    category_id: int | None = None,
    actor_id: str | None = None,
) -> Product:
    """Create a product; status is computed, never accepted from input."""
    require_authorized(actor_id, "create_product")

    if reorder_level is None:
        reorder_level = current_app.config.get("DEFAULT_REORDER_LEVEL", 5)

    patch = _normalize_patch({
        "product_name": product_name,
        "quantity": quantity,
        "unit_price": unit_price,
        "reorder_level": reorder_level,
        "category_id": category_id,
    })

    with write_transaction():
        _ensure_category(patch["category_id"])
        product = Product(
            product_name=patch["product_name"],
            quantity=patch["quantity"],
            unit_price=patch["unit_price"],
            reorder_level=patch["reorder_level"],
            category_id=patch["category_id"],
            status=derive_status(patch["quantity"], patch["reorder_level"]).value,
        )
        db.session.add(product)

    current_app.logger.info("Product %s created (%s)", product.id, product.product_name)
    return product


def update_product(
    product_id: int,
    fields: dict,
    *,
    expected_version: int | None = None,
    actor_id: str | None = None,
) -> Product:
    """
    Edit a product. Status is recomputed from the resulting quantity and
    reorder level. When expected_version is given, the edit only applies if
    nobody (including a sale) changed the product since the caller read it.
    """
    require_authorized(actor_id, "update_product")
    patch = _normalize_patch(fields)

    with write_transaction():
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if product is None:
            raise NotFoundError("Product not found", details={"product_id": product_id})

        if expected_version is not None and product.version_id != expected_version:
            raise ConcurrencyConflictError(
                "Product was changed since it was read",
                details={"expected_version": expected_version, "current_version": product.version_id},
            )

        if "category_id" in patch:
            _ensure_category(patch["category_id"])

        for key, value in patch.items():
            setattr(product, key, value)
        product.status = derive_status(product.quantity, product.reorder_level).value

    return product


def _conditional_update(product_id: int, delta: int) -> bool:
    """
    Apply delta in one statement guarded by quantity + delta >= 0.
    Returns False when the guard rejected the row (or the row is gone).
    """
    new_quantity = Product.quantity + delta
    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id, new_quantity >= 0)
        .values(
            quantity=new_quantity,
            status=status_expression(new_quantity, Product.reorder_level),
            version_id=Product.version_id + 1,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def decrement_for_sale(product: Product, quantity: int) -> None:
    """
    Consume stock inside the caller's write_transaction().

    The caller has already validated against a locked read; a rejected guard
    here means another writer got in between, which is a conflict rather than
    a validation failure.
    """
    if not _conditional_update(product.id, -quantity):
        current_app.logger.warning(
            "Stock guard rejected decrement of %s on product %s", quantity, product.id
        )
        raise ConcurrencyConflictError(
            "Stock changed while the sale was being recorded",
            details={"product_id": product.id, "quantity": quantity},
        )
    db.session.expire(product)


def restock(product: Product, quantity: int) -> None:
    """Return units to stock inside the caller's write_transaction()."""
    if not _conditional_update(product.id, quantity):
        raise ConcurrencyConflictError("Product changed while restocking", details={"product_id": product.id})
    db.session.expire(product)


def apply_delta(product_id: int, delta: int, *, actor_id: str | None = None) -> Product:
    """
    Standalone stock adjustment. Rejects a delta that would drive quantity
    below zero with InsufficientStockError; nothing is written in that case.
    """
    require_authorized(actor_id, "apply_delta")
    delta = coerce_int(delta, "delta")

    with write_transaction():
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if product is None:
            raise NotFoundError("Product not found", details={"product_id": product_id})
        if product.quantity + delta < 0:
            raise InsufficientStockError(
                "Adjustment would drive quantity below zero",
                details={"product_id": product_id, "on_hand": product.quantity, "delta": delta},
            )
        if not _conditional_update(product_id, delta):
            raise ConcurrencyConflictError("Stock changed during adjustment", details={"product_id": product_id})
        db.session.expire(product)

    return product
