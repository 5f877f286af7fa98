# Overview: Reference catalog maintenance: merchandise categories and kitchen food items.

from __future__ import annotations

from flask import current_app
from sqlalchemy import update

from ..authorization import require_authorized
from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Category, FoodItem, FoodSale, Product
from ..validation import coerce_money, coerce_text, enforce_price
from .concurrency import write_transaction


# =============================================================================
# CATEGORIES
# =============================================================================

def list_categories() -> list[Category]:
    return db.session.query(Category).order_by(Category.name.asc()).all()


def _get_category(category_id: int) -> Category:
    category = db.session.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found", details={"category_id": category_id})
    return category


def _ensure_unique_category_name(name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Category).filter(db.func.lower(Category.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first() is not None:
        raise ValidationError(f"Category '{name}' already exists")


def create_category(name: str, *, actor_id: str | None = None) -> Category:
    require_authorized(actor_id, "create_category")
    name = coerce_text(name, "name", max_length=120)

    with write_transaction():
        _ensure_unique_category_name(name)
        category = Category(name=name)
        db.session.add(category)

    return category


def rename_category(category_id: int, name: str, *, actor_id: str | None = None) -> Category:
    require_authorized(actor_id, "rename_category")
    name = coerce_text(name, "name", max_length=120)

    with write_transaction():
        category = _get_category(category_id)
        _ensure_unique_category_name(name, exclude_id=category_id)
        category.name = name

    return category


def delete_category(category_id: int, *, actor_id: str | None = None) -> None:
    """Delete a category; its products stay, uncategorized."""
    require_authorized(actor_id, "delete_category")

    with write_transaction():
        category = _get_category(category_id)
        db.session.execute(
            update(Product)
            .where(Product.category_id == category_id)
            .values(category_id=None, version_id=Product.version_id + 1)
            .execution_options(synchronize_session=False)
        )
        db.session.expire_all()
        db.session.delete(category)

    current_app.logger.info("Category %s deleted", category_id)


# =============================================================================
# FOOD ITEMS
# =============================================================================

def list_food_items() -> list[FoodItem]:
    return db.session.query(FoodItem).order_by(FoodItem.name.asc(), FoodItem.id.asc()).all()


def get_food_item(food_item_id: int) -> FoodItem:
    item = db.session.get(FoodItem, food_item_id)
    if item is None:
        raise NotFoundError("Food item not found", details={"food_item_id": food_item_id})
    return item


def create_food_item(
    *,
    name: str,
    price,
    category: str | None = None,
    actor_id: str | None = None,
) -> FoodItem:
    require_authorized(actor_id, "create_food_item")
    name = coerce_text(name, "name", max_length=255)
    price = coerce_money(price, "price")
    enforce_price(price, "price")
    if category is not None:
        category = str(category).strip() or None

    with write_transaction():
        item = FoodItem(name=name, price=price, category=category)
        db.session.add(item)

    return item


def update_food_item(food_item_id: int, fields: dict, *, actor_id: str | None = None) -> FoodItem:
    """Edit name/price/category. Past food sales keep their own snapshots."""
    require_authorized(actor_id, "update_food_item")

    unknown = set(fields) - {"name", "price", "category"}
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(sorted(unknown))}")

    patch: dict = {}
    if "name" in fields:
        patch["name"] = coerce_text(fields["name"], "name", max_length=255)
    if "price" in fields:
        patch["price"] = coerce_money(fields["price"], "price")
        enforce_price(patch["price"], "price")
    if "category" in fields:
        raw = fields["category"]
        patch["category"] = (str(raw).strip() or None) if raw is not None else None

    with write_transaction():
        item = get_food_item(food_item_id)
        for key, value in patch.items():
            setattr(item, key, value)

    return item


def delete_food_item(food_item_id: int, *, actor_id: str | None = None) -> None:
    require_authorized(actor_id, "delete_food_item")

    with write_transaction():
        item = get_food_item(food_item_id)
        db.session.execute(
            update(FoodSale)
            .where(FoodSale.food_item_id == food_item_id)
            .values(food_item_id=None)
            .execution_options(synchronize_session=False)
        )
        db.session.delete(item)

    current_app.logger.info("Food item %s deleted", food_item_id)
