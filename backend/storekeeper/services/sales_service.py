"""
Sales Service - the only path by which a sale is created.

Recording a sale is a single transaction:
1. take the write lock and read the catalog entry
2. reject missing items, empty stock and oversized quantities
3. read the current session (same transaction)
4. insert the sale with its price snapshot
5. conditionally decrement stock (status recomputed in the same UPDATE)

Either all of it commits or none of it does.
"""

from __future__ import annotations

from flask import current_app

from ..authorization import require_authorized
from ..errors import InsufficientStockError, InvalidQuantityError, NotFoundError, OutOfStockError, ValidationError
from ..extensions import db
from ..models import StockStatus
from ..time_utils import utcnow
from ..validation import coerce_int
from . import stock_service
from .accounting_service import current_session, find_current_session, get_session
from .concurrency import lock_for_update, write_transaction
from .pipelines import Pipeline, get_pipeline


def _validate_quantity(quantity) -> int:
    quantity = coerce_int(quantity, "quantity")
    if quantity <= 0:
        raise InvalidQuantityError("quantity must be > 0", details={"quantity": quantity})
    return quantity


def _check_stock(item, quantity: int) -> None:
    if item.status == StockStatus.OUT_OF_STOCK.value or item.quantity <= 0:
        raise OutOfStockError(
            f"{item.display_name} is out of stock",
            details={"catalog_id": item.id, "on_hand": item.quantity},
        )
    if quantity > item.quantity:
        raise InsufficientStockError(
            "Quantity sold exceeds available stock",
            details={"catalog_id": item.id, "requested_quantity": quantity, "on_hand": item.quantity},
        )


def record_sale(
    pipeline: Pipeline | str,
    catalog_id: int,
    quantity,
    *,
    actor_id: str | None = None,
):
    """
    Record a sale of ``quantity`` units of catalog item ``catalog_id``.

    Raises NotFoundError, OutOfStockError, InsufficientStockError,
    NoOpenSessionError, ConcurrencyConflictError or PersistenceError; in every
    failure case neither the sale nor a stock change is persisted.
    """
    pipeline = get_pipeline(pipeline)
    require_authorized(actor_id, "record_sale")
    quantity = _validate_quantity(quantity)
    catalog_id = coerce_int(catalog_id, "catalog_id")

    with write_transaction():
        catalog_model = pipeline.catalog_model
        item = lock_for_update(db.session.query(catalog_model).filter_by(id=catalog_id)).first()
        if item is None:
            raise NotFoundError(
                f"{pipeline.label} item not found",
                details={"pipeline": pipeline.name, "catalog_id": catalog_id},
            )

        if pipeline.tracks_stock:
            _check_stock(item, quantity)

        session = current_session(pipeline, shared=True)
        sale = pipeline.sale_model.from_catalog(item, quantity, session_id=session.id, sold_at=utcnow())
        db.session.add(sale)
        db.session.flush()

        if pipeline.tracks_stock:
            stock_service.decrement_for_sale(item, quantity)

    current_app.logger.info(
        "Recorded %s sale %s: item %s x%s in session %s",
        pipeline.name,
        sale.id,
        catalog_id,
        quantity,
        sale.session_id,
    )
    return sale


def get_sale(pipeline: Pipeline | str, sale_id: int):
    pipeline = get_pipeline(pipeline)
    sale = db.session.get(pipeline.sale_model, sale_id)
    if sale is None:
        raise NotFoundError("Sale not found", details={"pipeline": pipeline.name, "sale_id": sale_id})
    return sale


def list_session_sales(pipeline: Pipeline | str, session_id: int | None = None) -> list:
    """
    Sales of one session, newest first. Defaults to the current session and
    returns an empty list if the pipeline has no session yet.
    """
    pipeline = get_pipeline(pipeline)
    if session_id is None:
        session = find_current_session(pipeline)
        if session is None:
            return []
        session_id = session.id
    else:
        get_session(pipeline, session_id)

    sale_model = pipeline.sale_model
    return (
        db.session.query(sale_model)
        .filter(sale_model.session_id == session_id)
        .order_by(sale_model.sold_at.desc(), sale_model.id.desc())
        .all()
    )


def delete_sale(
    pipeline: Pipeline | str,
    sale_id: int,
    *,
    restore_stock: bool = False,
    actor_id: str | None = None,
) -> None:
    """
    Delete a sale record.

    By default the sold units are NOT returned to stock, which is how the shop
    has always behaved. Pass restore_stock=True to put them back in the same
    transaction. Reports already written for a closed session are snapshots
    and are not changed either way.
    """
    pipeline = get_pipeline(pipeline)
    require_authorized(actor_id, "delete_sale")
    if restore_stock and not pipeline.tracks_stock:
        raise ValidationError(f"{pipeline.label} sales do not track stock", details={"pipeline": pipeline.name})

    with write_transaction():
        sale_model = pipeline.sale_model
        sale = lock_for_update(db.session.query(sale_model).filter_by(id=sale_id)).first()
        if sale is None:
            raise NotFoundError("Sale not found", details={"pipeline": pipeline.name, "sale_id": sale_id})

        units = sale.units
        catalog_id = sale.catalog_id
        db.session.delete(sale)
        db.session.flush()

        if restore_stock and catalog_id is not None:
            item = lock_for_update(db.session.query(pipeline.catalog_model).filter_by(id=catalog_id)).first()
            if item is not None:
                stock_service.restock(item, units)

    current_app.logger.info(
        "Deleted %s sale %s (restore_stock=%s)", pipeline.name, sale_id, restore_stock
    )
