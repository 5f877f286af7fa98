from __future__ import annotations

import enum

from sqlalchemy.orm import synonym

from ..extensions import db
from ..money import to_str
from ..time_utils import to_utc_z


class StockStatus(str, enum.Enum):
    """Derived stock status. Values match what the shop has always stored."""

    IN_STOCK = "In Stock"
    LOW_STOCK = "Low Stock"
    OUT_OF_STOCK = "Out of Stock"


class Category(db.Model):
    """Merchandise category. Products reference it; it owns nothing."""
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Merchandise catalog entry with its stock ledger fields.

    INVARIANT: status == derive_status(quantity, reorder_level). Status is only
    ever written together with quantity/reorder_level by stock_service, either
    from Python or as a SQL CASE in the same UPDATE.

    version_id is the optimistic lock token for direct edits; conditional
    stock updates bump it too.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
        db.CheckConstraint("unit_price >= 0", name="ck_products_unit_price_non_negative"),
        db.CheckConstraint("reorder_level >= 0", name="ck_products_reorder_level_non_negative"),
        db.Index("ix_products_name", "product_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    reorder_level = db.Column(db.Integer, nullable=False, default=5)
    status = db.Column(db.String(16), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("Category", backref=db.backref("products", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    display_name = synonym("product_name")

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.product_name!r} quantity={self.quantity} status={self.status!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": to_str(self.unit_price),
            "reorder_level": self.reorder_level,
            "status": self.status,
            "category_id": self.category_id,
            "category": self.category.name if self.category else None,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class FoodItem(db.Model):
    """Kitchen menu item. The kitchen does not keep stock counts."""
    __tablename__ = "food_items"
    __table_args__ = (
        db.CheckConstraint("price >= 0", name="ck_food_items_price_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    price = db.Column(db.Numeric(12, 2), nullable=False)
    # Free-text label ("Main", "Side"); no categories FK in the kitchen
    category = db.Column(db.String(120), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    display_name = synonym("name")
    unit_price = synonym("price")

    def __repr__(self) -> str:
        return f"<FoodItem id={self.id} name={self.name!r} price={self.price}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price": to_str(self.price),
            "category": self.category,
            "created_at": to_utc_z(self.created_at),
        }
