from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import synonym

from ..extensions import db
from ..money import quantize, to_str
from ..time_utils import to_utc_z


class Sale(db.Model):
    """
    Merchandise sale.

    total_price is a snapshot of quantity_sold x unit_price at the moment of
    sale and is never recomputed from a later price. Immutable once written;
    the only mutation is deletion.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint("quantity_sold > 0", name="ck_sales_quantity_sold_positive"),
        db.Index("ix_sales_session_date", "session_id", "sale_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity_sold = db.Column(db.Integer, nullable=False)
    total_price = db.Column(db.Numeric(12, 2), nullable=False)
    sale_date = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    session_id = db.Column(db.Integer, db.ForeignKey("account_sessions.id"), nullable=False, index=True)

    product = db.relationship("Product", lazy="joined", innerjoin=True)
    session = db.relationship("AccountSession", backref=db.backref("sales", lazy=True))

    catalog_id = synonym("product_id")
    units = synonym("quantity_sold")
    sold_at = synonym("sale_date")

    @classmethod
    def from_catalog(cls, product, quantity: int, *, session_id: int, sold_at: datetime) -> "Sale":
        return cls(
            product_id=product.id,
            quantity_sold=quantity,
            total_price=quantize(Decimal(product.unit_price) * quantity),
            sale_date=sold_at,
            session_id=session_id,
        )

    @property
    def line_total(self) -> Decimal:
        return quantize(Decimal(self.total_price))

    @property
    def item_name(self) -> str | None:
        return self.product.product_name if self.product else None

    def __repr__(self) -> str:
        return f"<Sale id={self.id} product_id={self.product_id} qty={self.quantity_sold} session_id={self.session_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.item_name,
            "quantity_sold": self.quantity_sold,
            "total_price": to_str(self.total_price),
            "sale_date": to_utc_z(self.sale_date),
            "session_id": self.session_id,
        }


class FoodSale(db.Model):
    """
    Kitchen sale.

    food_name and price are snapshots so history survives menu edits and
    deletions (food_item_id is nulled when the item is removed).
    """
    __tablename__ = "food_sales"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_food_sales_quantity_positive"),
        db.Index("ix_food_sales_session_created", "session_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    food_item_id = db.Column(db.Integer, db.ForeignKey("food_items.id", ondelete="SET NULL"), nullable=True, index=True)
    food_name = db.Column(db.String(255), nullable=False)
    price = db.Column(db.Numeric(12, 2), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    session_id = db.Column(db.Integer, db.ForeignKey("kitchen_sessions.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    session = db.relationship("KitchenSession", backref=db.backref("sales", lazy=True))

    catalog_id = synonym("food_item_id")
    units = synonym("quantity")
    sold_at = synonym("created_at")

    @classmethod
    def from_catalog(cls, food_item, quantity: int, *, session_id: int, sold_at: datetime) -> "FoodSale":
        return cls(
            food_item_id=food_item.id,
            food_name=food_item.name,
            price=quantize(Decimal(food_item.price)),
            quantity=quantity,
            session_id=session_id,
            created_at=sold_at,
        )

    @property
    def line_total(self) -> Decimal:
        return quantize(Decimal(self.price) * self.quantity)

    @property
    def item_name(self) -> str | None:
        return self.food_name

    def __repr__(self) -> str:
        return f"<FoodSale id={self.id} food={self.food_name!r} qty={self.quantity} session_id={self.session_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "food_item_id": self.food_item_id,
            "food_name": self.food_name,
            "price": to_str(self.price),
            "quantity": self.quantity,
            "total_price": to_str(self.line_total),
            "created_at": to_utc_z(self.created_at),
            "session_id": self.session_id,
        }
