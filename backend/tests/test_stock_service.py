"""
Stock ledger tests.

Verifies:
- status is always derived from quantity and reorder_level
- negative quantities and prices are rejected
- stock adjustments never drive quantity below zero
- product edits are guarded by the version token
"""

from decimal import Decimal

import pytest

from storekeeper.errors import (
    ConcurrencyConflictError,
    InsufficientStockError,
    InvalidPriceError,
    InvalidQuantityError,
    NotFoundError,
    ValidationError,
)
from storekeeper.models import Product, StockStatus
from storekeeper.services import catalog_service, sales_service, stock_service
from storekeeper.services.stock_service import derive_status

from conftest import OWNER


def _assert_status_invariant(product: Product):
    assert product.status == derive_status(product.quantity, product.reorder_level).value


# =============================================================================
# STATUS RULE
# =============================================================================


@pytest.mark.parametrize(
    "quantity,reorder_level,expected",
    [
        (0, 5, StockStatus.OUT_OF_STOCK),
        (0, 0, StockStatus.OUT_OF_STOCK),
        (-1, 5, StockStatus.OUT_OF_STOCK),
        (1, 5, StockStatus.LOW_STOCK),
        (5, 5, StockStatus.LOW_STOCK),
        (6, 5, StockStatus.IN_STOCK),
        (1, 0, StockStatus.IN_STOCK),
    ],
)
def test_derive_status(quantity, reorder_level, expected):
    assert derive_status(quantity, reorder_level) is expected


# =============================================================================
# CREATE
# =============================================================================


class TestCreateProduct:
    def test_status_computed_on_create(self, make_product):
        product = make_product(quantity=3, reorder_level=5)
        assert product.status == StockStatus.LOW_STOCK.value
        assert product.unit_price == Decimal("2.00")
        assert product.version_id == 1

    def test_default_reorder_level_from_config(self, db_session):
        product = stock_service.create_product(
            product_name="Feeding Bottle", quantity=20, unit_price="8.50", actor_id=OWNER
        )
        assert product.reorder_level == 5
        assert product.status == StockStatus.IN_STOCK.value

    def test_negative_quantity_rejected(self, db_session):
        with pytest.raises(InvalidQuantityError):
            stock_service.create_product(product_name="X", quantity=-1, unit_price="1.00", actor_id=OWNER)
        assert db_session.query(Product).count() == 0

    def test_negative_price_rejected(self, db_session):
        with pytest.raises(InvalidPriceError):
            stock_service.create_product(product_name="X", quantity=1, unit_price="-0.01", actor_id=OWNER)

    def test_price_beyond_column_range_rejected(self, db_session):
        with pytest.raises(InvalidPriceError):
            stock_service.create_product(product_name="X", quantity=1, unit_price="1e30", actor_id=OWNER)
        assert db_session.query(Product).count() == 0

    def test_blank_name_rejected(self, db_session):
        with pytest.raises(ValidationError):
            stock_service.create_product(product_name="   ", quantity=1, unit_price="1.00", actor_id=OWNER)

    def test_unknown_category_rejected(self, db_session):
        with pytest.raises(NotFoundError):
            stock_service.create_product(
                product_name="X", quantity=1, unit_price="1.00", category_id=999, actor_id=OWNER
            )
        assert db_session.query(Product).count() == 0

    def test_with_category(self, db_session, make_product):
        category = catalog_service.create_category("Toiletries", actor_id=OWNER)
        product = make_product(category_id=category.id)
        assert product.to_dict()["category"] == "Toiletries"


# =============================================================================
# UPDATE
# =============================================================================


class TestUpdateProduct:
    def test_quantity_change_recomputes_status(self, make_product):
        product = make_product(quantity=10, reorder_level=5)
        updated = stock_service.update_product(product.id, {"quantity": 0}, actor_id=OWNER)
        assert updated.status == StockStatus.OUT_OF_STOCK.value
        _assert_status_invariant(updated)

    def test_reorder_level_change_recomputes_status(self, make_product):
        product = make_product(quantity=10, reorder_level=5)
        updated = stock_service.update_product(product.id, {"reorder_level": 10}, actor_id=OWNER)
        assert updated.status == StockStatus.LOW_STOCK.value

    def test_status_not_writable(self, make_product):
        product = make_product(quantity=0)
        with pytest.raises(ValidationError):
            stock_service.update_product(product.id, {"status": "In Stock"}, actor_id=OWNER)

    def test_unknown_field_rejected(self, make_product):
        product = make_product()
        with pytest.raises(ValidationError):
            stock_service.update_product(product.id, {"sku": "A-1"}, actor_id=OWNER)

    def test_missing_product(self, db_session):
        with pytest.raises(NotFoundError):
            stock_service.update_product(12345, {"quantity": 1}, actor_id=OWNER)

    def test_expected_version_matches(self, make_product):
        product = make_product()
        updated = stock_service.update_product(
            product.id, {"unit_price": "3.00"}, expected_version=1, actor_id=OWNER
        )
        assert updated.unit_price == Decimal("3.00")
        assert updated.version_id == 2

    def test_stale_version_is_conflict(self, db_session, make_product, mothercare_session):
        product = make_product(quantity=10)
        product_id = product.id
        read_version = product.version_id

        # A sale in between bumps the version
        sales_service.record_sale("mothercare", product_id, 1, actor_id=OWNER)

        with pytest.raises(ConcurrencyConflictError):
            stock_service.update_product(
                product_id, {"quantity": 50}, expected_version=read_version, actor_id=OWNER
            )
        assert db_session.get(Product, product_id).quantity == 9


# =============================================================================
# DELTAS
# =============================================================================


class TestApplyDelta:
    def test_restock_out_of_stock_product(self, make_product):
        product = make_product(quantity=0, reorder_level=5)
        updated = stock_service.apply_delta(product.id, 12, actor_id=OWNER)
        assert updated.quantity == 12
        assert updated.status == StockStatus.IN_STOCK.value

    def test_decrement_to_zero(self, make_product):
        product = make_product(quantity=3)
        updated = stock_service.apply_delta(product.id, -3, actor_id=OWNER)
        assert updated.quantity == 0
        assert updated.status == StockStatus.OUT_OF_STOCK.value

    def test_below_zero_rejected(self, db_session, make_product):
        product = make_product(quantity=3)
        product_id = product.id
        with pytest.raises(InsufficientStockError):
            stock_service.apply_delta(product_id, -4, actor_id=OWNER)
        fresh = db_session.get(Product, product_id)
        assert fresh.quantity == 3
        _assert_status_invariant(fresh)

    def test_delta_must_be_integer(self, make_product):
        product = make_product()
        with pytest.raises(ValidationError):
            stock_service.apply_delta(product.id, "1.5", actor_id=OWNER)


def test_low_stock_products(make_product):
    make_product(product_name="Diapers", quantity=2, reorder_level=5)
    make_product(product_name="Lotion", quantity=0, reorder_level=5)
    make_product(product_name="Cot", quantity=30, reorder_level=5)

    names = [p.product_name for p in stock_service.low_stock_products()]
    assert names == ["Lotion", "Diapers"]


def test_list_products_ordered_by_name(make_product):
    make_product(product_name="Zinc Cream")
    make_product(product_name="Apron")
    assert [p.product_name for p in stock_service.list_products()] == ["Apron", "Zinc Cream"]
