"""
Reporting tests.

Reports are read-only projections, so most of these build some sales and
check the shape and totals of what comes back.
"""

from types import SimpleNamespace

import pytest

from storekeeper.errors import InvalidPriceError, InvalidQuantityError, ValidationError
from storekeeper.models import Report
from storekeeper.services import accounting_service, reporting_service, sales_service
from storekeeper.services.pipelines import KITCHEN, MOTHERCARE
from storekeeper.services.reporting_service import top_items
from storekeeper.time_utils import utcnow

from conftest import OWNER


def _named(*names):
    return [SimpleNamespace(item_name=name) for name in names]


# =============================================================================
# TOP ITEMS
# =============================================================================


class TestTopItems:
    def test_ranked_by_record_count(self):
        sales = _named("Wipes", "Diapers", "Diapers", "Lotion", "Diapers", "Wipes")
        assert top_items(sales) == [
            {"name": "Diapers", "count": 3},
            {"name": "Wipes", "count": 2},
            {"name": "Lotion", "count": 1},
        ]

    def test_ties_keep_first_seen_order(self):
        sales = _named("Bib", "Cot", "Cot", "Bib", "Rattle")
        assert [t["name"] for t in top_items(sales)] == ["Bib", "Cot", "Rattle"]

    def test_limited_to_five(self):
        sales = _named("A", "B", "C", "D", "E", "F", "G")
        assert [t["name"] for t in top_items(sales)] == ["A", "B", "C", "D", "E"]

    def test_units_do_not_count(self, make_product, mothercare_session):
        bulk = make_product(product_name="Bulk Diapers", quantity=100)
        single = make_product(product_name="Single Bib", quantity=100)
        sales_service.record_sale(MOTHERCARE, bulk.id, 50, actor_id=OWNER)
        sales_service.record_sale(MOTHERCARE, single.id, 1, actor_id=OWNER)
        sales_service.record_sale(MOTHERCARE, single.id, 1, actor_id=OWNER)

        summary = reporting_service.summarize(MOTHERCARE)
        assert summary["top_items"][0] == {"name": "Single Bib", "count": 2}


# =============================================================================
# PARTITIONED VIEWS
# =============================================================================


class TestSalesBySession:
    def test_current_session_first_and_empty_sessions_listed(self, make_product, mothercare_session):
        product = make_product(quantity=20, unit_price="2.00")
        sales_service.record_sale(MOTHERCARE, product.id, 2, actor_id=OWNER)
        sales_service.record_sale(MOTHERCARE, product.id, 3, actor_id=OWNER)
        _, second = accounting_service.close_and_reopen(MOTHERCARE, actor_id=OWNER)

        view = reporting_service.sales_by_session(MOTHERCARE)
        rows = view["rows"]

        assert view["group_by"] == "session"
        assert [r["session_id"] for r in rows] == [second.id, mothercare_session.id]
        assert rows[0]["is_current"] is True
        assert rows[0]["total_sales"] == 0
        assert rows[0]["total_revenue"] == "0.00"
        assert rows[1]["is_current"] is False
        assert rows[1]["total_sales"] == 2
        assert rows[1]["total_revenue"] == "10.00"
        assert "sales" not in rows[1]

    def test_include_sales(self, make_food_item, kitchen_session):
        item = make_food_item(name="Kelewele", price="1.50")
        sales_service.record_sale(KITCHEN, item.id, 2, actor_id=OWNER)

        rows = reporting_service.sales_by_session(KITCHEN, include_sales=True)["rows"]
        assert rows[0]["sales"][0]["food_name"] == "Kelewele"
        assert rows[0]["total_revenue"] == "3.00"

    def test_idempotent_over_unchanged_data(self, make_product, mothercare_session):
        product = make_product(quantity=20)
        sales_service.record_sale(MOTHERCARE, product.id, 2, actor_id=OWNER)
        accounting_service.close_and_reopen(MOTHERCARE, actor_id=OWNER)
        sales_service.record_sale(MOTHERCARE, product.id, 1, actor_id=OWNER)

        assert reporting_service.sales_by_session(MOTHERCARE) == reporting_service.sales_by_session(MOTHERCARE)
        assert reporting_service.sales_by_date(MOTHERCARE) == reporting_service.sales_by_date(MOTHERCARE)

    def test_no_sessions(self, db_session):
        assert reporting_service.sales_by_session(KITCHEN)["rows"] == []


class TestSalesByDate:
    def test_groups_by_calendar_date(self, make_product, mothercare_session):
        product = make_product(quantity=20, unit_price="4.00")
        sales_service.record_sale(MOTHERCARE, product.id, 1, actor_id=OWNER)
        accounting_service.close_and_reopen(MOTHERCARE, actor_id=OWNER)
        sales_service.record_sale(MOTHERCARE, product.id, 2, actor_id=OWNER)

        rows = reporting_service.sales_by_date(MOTHERCARE)["rows"]

        # Date grouping ignores session boundaries
        assert len(rows) == 1
        assert rows[0]["date"] == utcnow().date().isoformat()
        assert rows[0]["total_sales"] == 2
        assert rows[0]["total_revenue"] == "12.00"

    def test_range_in_the_future_is_empty(self, make_product, mothercare_session):
        product = make_product(quantity=20)
        sales_service.record_sale(MOTHERCARE, product.id, 1, actor_id=OWNER)

        view = reporting_service.sales_by_date(MOTHERCARE, start="2999-01-01T00:00:00Z")
        assert view["rows"] == []
        assert view["start"] == "2999-01-01T00:00:00Z"

    def test_bad_range(self, db_session):
        with pytest.raises(ValidationError):
            reporting_service.sales_by_date(MOTHERCARE, start="yesterday")
        with pytest.raises(ValidationError):
            reporting_service.sales_by_date(MOTHERCARE, start="2026-02-01", end="2026-01-01")


# =============================================================================
# SUMMARY, STORED REPORTS, DASHBOARD
# =============================================================================


def test_summary_includes_remaining_stock_for_merchandise(make_product, mothercare_session):
    first = make_product(product_name="Cot", quantity=10, unit_price="100.00")
    make_product(product_name="Bib", quantity=7, unit_price="1.00")
    sales_service.record_sale(MOTHERCARE, first.id, 3, actor_id=OWNER)

    summary = reporting_service.summarize(MOTHERCARE)

    assert summary["total_revenue"] == "300.00"
    assert summary["total_sales"] == 1
    assert summary["remaining_stock"] == 14


def test_kitchen_summary_has_no_stock(make_food_item, kitchen_session):
    item = make_food_item(price="6.00")
    sales_service.record_sale(KITCHEN, item.id, 1, actor_id=OWNER)

    summary = reporting_service.summarize(KITCHEN)
    assert summary["total_revenue"] == "6.00"
    assert "remaining_stock" not in summary


class TestManualReports:
    def test_add_and_list(self, db_session):
        reporting_service.add_manual_report(
            MOTHERCARE, date="2026-03-01", total_revenue="120.50", total_sales=9, actor_id=OWNER
        )
        reporting_service.add_manual_report(
            MOTHERCARE, date="2026-03-02", total_revenue=80, total_sales=4, notes="paper book", actor_id=OWNER
        )

        reports = reporting_service.list_reports(MOTHERCARE)
        assert [r.date.isoformat() for r in reports] == ["2026-03-02", "2026-03-01"]
        assert reports[0].session_id is None
        assert reports[0].to_dict()["total_revenue"] == "80.00"
        assert reports[0].notes == "paper book"

    def test_negative_revenue_rejected(self, db_session):
        with pytest.raises(InvalidPriceError):
            reporting_service.add_manual_report(
                MOTHERCARE, date="2026-03-01", total_revenue="-1", total_sales=1, actor_id=OWNER
            )
        assert db_session.query(Report).count() == 0

    def test_huge_revenue_rejected(self, db_session):
        with pytest.raises(InvalidPriceError):
            reporting_service.add_manual_report(
                MOTHERCARE, date="2026-03-01", total_revenue=1e40, total_sales=1, actor_id=OWNER
            )
        assert db_session.query(Report).count() == 0

    def test_negative_count_rejected(self, db_session):
        with pytest.raises(InvalidQuantityError):
            reporting_service.add_manual_report(
                KITCHEN, date="2026-03-01", total_revenue="1", total_sales=-2, actor_id=OWNER
            )

    def test_bad_date_rejected(self, db_session):
        with pytest.raises(ValidationError):
            reporting_service.add_manual_report(
                KITCHEN, date="03/01/2026", total_revenue="1", total_sales=1, actor_id=OWNER
            )


def test_dashboard(make_product, mothercare_session):
    cot = make_product(product_name="Cot", quantity=10, unit_price="100.00", reorder_level=2)
    make_product(product_name="Bib", quantity=1, unit_price="1.00", reorder_level=5)
    sales_service.record_sale(MOTHERCARE, cot.id, 2, actor_id=OWNER)

    board = reporting_service.dashboard()

    assert board["total_products"] == 2
    assert board["total_stock"] == 9
    assert board["total_sales"] == 1
    assert board["total_revenue"] == "200.00"
    assert board["low_stock_count"] == 1
    assert board["low_stock"][0]["product_name"] == "Bib"
    assert [s["product_name"] for s in board["recent_sales"]] == ["Cot"]


def test_dashboard_recent_sales_newest_first(make_product, mothercare_session):
    rattle = make_product(product_name="Rattle", quantity=50, unit_price="3.00")
    sale_ids = [sales_service.record_sale(MOTHERCARE, rattle.id, 1, actor_id=OWNER).id for _ in range(12)]

    recent = reporting_service.dashboard()["recent_sales"]

    assert len(recent) == 10
    assert [s["id"] for s in recent] == list(reversed(sale_ids))[:10]
