# Overview: Accounting sessions: bootstrap, current-session lookup, close-and-reopen rollups.

"""
Accounting Session Service

A session is an accounting period for one pipeline. Sessions have no status
column: the session with the greatest opened_at (ties broken by id) is the
open one and every older session is closed. "Current" is always resolved by
query at the start of an operation, never cached.

Closing is one transaction under the write lock:
1. resolve the current session
2. read every sale tagged with it
3. write a report (total_revenue, total_sales) if there was at least one sale
4. open a new session with a strictly later opened_at

A sale recorded concurrently lands either wholly before the close (and is in
the report) or wholly after it (and belongs to the new session).
"""

from __future__ import annotations

from datetime import timedelta

from flask import current_app

from ..authorization import require_authorized
from ..errors import NoOpenSessionError, NotFoundError
from ..extensions import db
from ..money import total
from ..time_utils import utcnow
from .concurrency import lock_for_update, write_transaction
from .pipelines import Pipeline, get_pipeline


def _current_query(pipeline: Pipeline):
    model = pipeline.session_model
    return db.session.query(model).order_by(model.opened_at.desc(), model.id.desc())


def find_current_session(pipeline: Pipeline | str):
    """The open session, or None if the pipeline was never bootstrapped."""
    pipeline = get_pipeline(pipeline)
    return _current_query(pipeline).first()


def _locked_head(pipeline: Pipeline, *, read: bool):
    """
    Lock the newest session row, then confirm it is still the newest.

    A close that committed while this transaction waited for the lock has
    already opened a later session; lock that one instead.
    """
    model = pipeline.session_model
    while True:
        head = lock_for_update(_current_query(pipeline), read=read).first()
        if head is None:
            return None
        latest = _current_query(pipeline).with_entities(model.id).first()
        if latest is None or latest[0] == head.id:
            return head


def current_session(pipeline: Pipeline | str, *, lock: bool = False, shared: bool = False):
    """
    The open session; raises NoOpenSessionError if none exists.

    Called inside a write transaction, this is the "read current session"
    step a sale or a close is attributed to. A close takes lock=True
    (exclusive); a sale takes shared=True, so on server databases a sale and
    a close of the same session serialize and the sale lands wholly in the
    old session (and its report) or wholly in the new one.
    """
    pipeline = get_pipeline(pipeline)
    if lock or shared:
        session = _locked_head(pipeline, read=not lock)
    else:
        session = _current_query(pipeline).first()
    if session is None:
        raise NoOpenSessionError(
            f"No open {pipeline.label} session; open the first session before recording sales",
            details={"pipeline": pipeline.name},
        )
    return session


def get_session(pipeline: Pipeline | str, session_id: int):
    pipeline = get_pipeline(pipeline)
    session = db.session.get(pipeline.session_model, session_id)
    if session is None:
        raise NotFoundError("Session not found", details={"pipeline": pipeline.name, "session_id": session_id})
    return session


def list_sessions(pipeline: Pipeline | str) -> list:
    """All sessions, newest first. The first element is the open one."""
    pipeline = get_pipeline(pipeline)
    return _current_query(pipeline).all()


def open_first(pipeline: Pipeline | str, *, actor_id: str | None = None):
    """
    Bootstrap the very first session. Idempotent: if a session already
    exists, the current one is returned and nothing is written.
    """
    pipeline = get_pipeline(pipeline)
    require_authorized(actor_id, "open_session")

    with write_transaction():
        existing = _current_query(pipeline).first()
        if existing is not None:
            return existing
        session = pipeline.session_model(opened_at=utcnow())
        db.session.add(session)

    current_app.logger.info("Opened first %s session %s", pipeline.name, session.id)
    return session


def close_and_reopen(
    pipeline: Pipeline | str,
    *,
    notes: str | None = None,
    actor_id: str | None = None,
) -> tuple[object | None, object]:
    """
    Close the current session and open the next one.

    Returns (report, new_session). report is None when the closed session had
    no sales; a new session is opened either way.
    """
    pipeline = get_pipeline(pipeline)
    require_authorized(actor_id, "close_session")
    if notes is not None:
        notes = str(notes).strip() or None

    with write_transaction():
        closing = current_session(pipeline, lock=True)
        sale_model = pipeline.sale_model
        sales = (
            db.session.query(sale_model)
            .filter(sale_model.session_id == closing.id)
            .order_by(sale_model.id.asc())
            .all()
        )

        now = utcnow()
        report = None
        if sales:
            report = pipeline.report_model(
                session_id=closing.id,
                total_revenue=total(s.line_total for s in sales),
                total_sales=len(sales),
                notes=notes,
                date=now.date(),
            )
            db.session.add(report)

        # Strictly later even if the clock has not moved since the last open
        opened_at = max(now, closing.opened_at + timedelta(microseconds=1))
        new_session = pipeline.session_model(opened_at=opened_at)
        db.session.add(new_session)
        closing_id = closing.id

    current_app.logger.info(
        "Closed %s session %s (%s sales), opened session %s",
        pipeline.name,
        closing_id,
        report.total_sales if report else 0,
        new_session.id,
    )
    return report, new_session
