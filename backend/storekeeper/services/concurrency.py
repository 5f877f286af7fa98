# Overview: Service-layer transaction and locking primitives shared by every write path.

from __future__ import annotations

from contextlib import contextmanager

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import ConcurrencyConflictError, PersistenceError
from ..extensions import db


def lock_for_update(query, *, read: bool = False):
    """
    Apply row-level locking for critical operations and refresh whatever the
    identity map already holds for the locked rows.

    read=True takes a shared lock (FOR SHARE): many readers may hold it at
    once, but it blocks and is blocked by FOR UPDATE on the same row.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; write_transaction() takes the
    database write lock there instead.
    """
    return query.with_for_update(read=read).populate_existing()


def _is_lock_error(exc: OperationalError) -> bool:
    message = str(getattr(exc, "orig", exc)).lower()
    return "locked" in message or "deadlock" in message or "could not serialize" in message


@contextmanager
def write_transaction():
    """
    Run the enclosed block as one all-or-nothing database transaction.

    On SQLite the transaction starts with BEGIN IMMEDIATE so the read that
    validates a write happens under the same write lock as the write itself.
    Commits on success; on any exception rolls back and re-raises, translating
    SQLAlchemy failures into the service error taxonomy. No retries: the
    caller decides whether to try again.
    """
    try:
        if db.engine.dialect.name == "sqlite":
            db.session.execute(text("BEGIN IMMEDIATE"))
        yield db.session
        db.session.commit()
    except StaleDataError as exc:
        db.session.rollback()
        current_app.logger.warning("Optimistic lock lost: %s", exc)
        raise ConcurrencyConflictError(
            "Record was changed by another request; retry the operation"
        ) from exc
    except OperationalError as exc:
        db.session.rollback()
        if _is_lock_error(exc):
            current_app.logger.warning("Write lock contention: %s", exc)
            raise ConcurrencyConflictError(
                "Store is busy with a conflicting write; retry the operation"
            ) from exc
        raise PersistenceError("Data store unavailable", details={"reason": str(exc.orig)}) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceError("Data store rejected the write", details={"reason": str(exc)}) from exc
    except Exception:
        db.session.rollback()
        raise
