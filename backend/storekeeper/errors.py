# Overview: Typed error taxonomy shared by services and routes.

"""
Error taxonomy for storekeeper.

Services raise these; routes render them with ``to_dict()`` and
``status_code``. Every failing write has already been rolled back by the
time one of these leaves the service layer.
"""

from __future__ import annotations


class StorekeeperError(Exception):
    """Base class for expected, caller-facing failures."""

    code = "error"
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "code": self.code,
            "details": self.details,
        }


class ValidationError(StorekeeperError):
    """Malformed or out-of-range input; rejected before any write."""

    code = "validation_error"


class InvalidQuantityError(ValidationError):
    code = "invalid_quantity"


class InvalidPriceError(ValidationError):
    code = "invalid_price"


class NotFoundError(StorekeeperError):
    """Referenced product, sale, session or report does not exist."""

    code = "not_found"
    status_code = 404


class NoOpenSessionError(NotFoundError):
    """No accounting session has been opened for the pipeline yet."""

    code = "no_open_session"


class InsufficientStockError(StorekeeperError):
    """Requested quantity exceeds what is on hand."""

    code = "insufficient_stock"
    status_code = 409


class OutOfStockError(InsufficientStockError):
    """Nothing on hand at all."""

    code = "out_of_stock"


class ConcurrencyConflictError(StorekeeperError):
    """
    A conditional write lost its precondition race.

    The caller should retry the whole operation; nothing was written.
    """

    code = "concurrency_conflict"
    status_code = 409


class PersistenceError(StorekeeperError):
    """The store was unreachable or rejected the write."""

    code = "persistence_error"
    status_code = 503


class AuthorizationError(StorekeeperError):
    """Actor lacks the capability for a mutation."""

    code = "not_authorized"
    status_code = 403
