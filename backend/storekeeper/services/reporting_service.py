# Overview: Service-layer operations for reporting; read-only projections over sales, sessions and stored reports.

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from flask import current_app
from sqlalchemy import func

from ..authorization import require_authorized
from ..errors import ValidationError
from ..extensions import db
from ..models import Product, Sale
from ..money import to_str, total
from ..time_utils import parse_iso_datetime, to_utc_z
from ..validation import coerce_date, coerce_int, coerce_money, enforce_non_negative_quantity, enforce_price
from . import stock_service
from .concurrency import write_transaction
from .pipelines import Pipeline, get_pipeline


RECENT_SALES_LIMIT = 10


def _top_items_limit() -> int:
    return int(current_app.config.get("TOP_ITEMS_LIMIT", 5))


def _parse_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime | None]:
    try:
        start_dt = parse_iso_datetime(start) if start else None
        end_dt = parse_iso_datetime(end) if end else None
    except ValueError:
        raise ValidationError("start and end must be ISO-8601 datetimes")
    if start_dt and end_dt and start_dt > end_dt:
        raise ValidationError("start must not be after end")
    return start_dt, end_dt


def top_items(sales: Iterable, limit: int = 5) -> list[dict]:
    """
    Most frequently sold distinct items, by number of sale records (not units
    or revenue). Equal counts keep the order in which each item first appears
    in ``sales``.
    """
    counts: dict[str, int] = {}
    for sale in sales:
        name = sale.item_name
        if not name:
            continue
        counts[name] = counts.get(name, 0) + 1

    # sorted() is stable, so ties stay in first-seen order
    ranked = sorted(counts.items(), key=lambda kv: -kv[1])
    return [{"name": name, "count": count} for name, count in ranked[:limit]]


def _partition(sales: list, *, include_sales: bool, limit: int) -> dict:
    partition = {
        "total_revenue": to_str(total(s.line_total for s in sales)),
        "total_sales": len(sales),
        "top_items": top_items(sales, limit),
    }
    if include_sales:
        partition["sales"] = [s.to_dict() for s in sales]
    return partition


def _all_sales(pipeline: Pipeline, start_dt: datetime | None = None, end_dt: datetime | None = None) -> list:
    """Every sale in insertion order (the "unsorted" list ties are resolved against)."""
    sale_model = pipeline.sale_model
    query = db.session.query(sale_model)
    if start_dt:
        query = query.filter(sale_model.sold_at >= start_dt)
    if end_dt:
        query = query.filter(sale_model.sold_at <= end_dt)
    return query.order_by(sale_model.id.asc()).all()


def sales_by_session(pipeline: Pipeline | str, *, include_sales: bool = False) -> dict:
    """
    Session-partitioned view: one partition per session, most recently
    opened first. Sessions without sales appear with zero totals.
    """
    pipeline = get_pipeline(pipeline)
    session_model = pipeline.session_model
    limit = _top_items_limit()

    sessions = (
        db.session.query(session_model)
        .order_by(session_model.opened_at.desc(), session_model.id.desc())
        .all()
    )

    grouped: dict[int, list] = {s.id: [] for s in sessions}
    for sale in _all_sales(pipeline):
        grouped.setdefault(sale.session_id, []).append(sale)

    rows = []
    for index, session in enumerate(sessions):
        row = {
            "session_id": session.id,
            "opened_at": to_utc_z(session.opened_at),
            "is_current": index == 0,
        }
        row.update(_partition(grouped[session.id], include_sales=include_sales, limit=limit))
        rows.append(row)

    return {"pipeline": pipeline.name, "group_by": "session", "rows": rows}


def sales_by_date(
    pipeline: Pipeline | str,
    *,
    start: str | None = None,
    end: str | None = None,
    include_sales: bool = False,
) -> dict:
    """Date-partitioned view: sales grouped by calendar date of sale, newest date first."""
    pipeline = get_pipeline(pipeline)
    start_dt, end_dt = _parse_range(start, end)
    limit = _top_items_limit()

    grouped: dict = {}
    for sale in _all_sales(pipeline, start_dt, end_dt):
        grouped.setdefault(sale.sold_at.date(), []).append(sale)

    rows = []
    for day in sorted(grouped, reverse=True):
        row = {"date": day.isoformat()}
        row.update(_partition(grouped[day], include_sales=include_sales, limit=limit))
        rows.append(row)

    return {
        "pipeline": pipeline.name,
        "group_by": "date",
        "start": to_utc_z(start_dt) if start_dt else None,
        "end": to_utc_z(end_dt) if end_dt else None,
        "rows": rows,
    }


def summarize(pipeline: Pipeline | str, *, start: str | None = None, end: str | None = None) -> dict:
    """One summary over an optional inclusive time range."""
    pipeline = get_pipeline(pipeline)
    start_dt, end_dt = _parse_range(start, end)

    summary = {
        "pipeline": pipeline.name,
        "start": to_utc_z(start_dt) if start_dt else None,
        "end": to_utc_z(end_dt) if end_dt else None,
    }
    summary.update(_partition(_all_sales(pipeline, start_dt, end_dt), include_sales=False, limit=_top_items_limit()))

    if pipeline.tracks_stock:
        remaining = db.session.query(func.coalesce(func.sum(pipeline.catalog_model.quantity), 0)).scalar()
        summary["remaining_stock"] = int(remaining or 0)

    return summary


def list_reports(pipeline: Pipeline | str) -> list:
    """Stored closure and manual reports, newest first."""
    pipeline = get_pipeline(pipeline)
    report_model = pipeline.report_model
    return (
        db.session.query(report_model)
        .order_by(report_model.date.desc(), report_model.id.desc())
        .all()
    )


def add_manual_report(
    pipeline: Pipeline | str,
    *,
    date,
    total_revenue,
    total_sales,
    notes: str | None = None,
    actor_id: str | None = None,
):
    """
    Store an operator-entered report that is not tied to a session (e.g. a
    day recorded on paper). Like closure reports, it is never recomputed.
    """
    pipeline = get_pipeline(pipeline)
    require_authorized(actor_id, "add_report")

    report_date = coerce_date(date, "date")
    revenue = coerce_money(total_revenue, "total_revenue")
    enforce_price(revenue, "total_revenue")
    count = coerce_int(total_sales, "total_sales")
    enforce_non_negative_quantity(count, "total_sales")
    if notes is not None:
        notes = str(notes).strip() or None

    with write_transaction():
        report = pipeline.report_model(
            session_id=None,
            total_revenue=revenue,
            total_sales=count,
            notes=notes,
            date=report_date,
        )
        db.session.add(report)

    return report


def dashboard() -> dict:
    """Shop overview: catalog size, stock on hand, lifetime merchandise revenue, low-stock list and the latest sales."""
    total_products = db.session.query(func.count(Product.id)).scalar() or 0
    total_stock = db.session.query(func.coalesce(func.sum(Product.quantity), 0)).scalar() or 0
    sales = db.session.query(Sale).order_by(Sale.id.asc()).all()
    low_stock = stock_service.low_stock_products()
    recent = (
        db.session.query(Sale)
        .order_by(Sale.sale_date.desc(), Sale.id.desc())
        .limit(RECENT_SALES_LIMIT)
        .all()
    )

    return {
        "total_products": int(total_products),
        "total_stock": int(total_stock),
        "total_sales": len(sales),
        "total_revenue": to_str(total(s.line_total for s in sales)),
        "low_stock_count": len(low_stock),
        "low_stock": [p.to_dict() for p in low_stock],
        "recent_sales": [s.to_dict() for s in recent],
    }
