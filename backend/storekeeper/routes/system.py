# backend/storekeeper/routes/system.py
"""
System health and dashboard endpoints.

Health reports database reachability and whether each pipeline has been
bootstrapped with a first accounting session.
"""

import time
from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from ..errors import StorekeeperError
from ..extensions import db
from ..services import accounting_service, reporting_service
from ..services.pipelines import PIPELINES
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    """
    Check database connectivity with a trivial query.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


def check_sessions_health() -> dict:
    """A pipeline without a first session cannot record sales yet: degraded, not down."""
    try:
        details = {}
        missing = []
        for name in sorted(PIPELINES):
            session = accounting_service.find_current_session(name)
            details[name] = session.to_dict() if session else None
            if session is None:
                missing.append(name)

        if missing:
            return {
                "status": "degraded",
                "warning": f"No open session for: {', '.join(missing)}",
                "details": details,
            }
        return {"status": "healthy", "details": details}
    except Exception:
        current_app.logger.exception("Session health check failed")
        return {"status": "unhealthy", "error": "Session lookup error"}


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy or degraded
    - 503: database unreachable
    """
    database_health = check_database_health()
    sessions_health = (
        check_sessions_health()
        if database_health["status"] == "healthy"
        else {"status": "unhealthy", "error": "Database unavailable"}
    )

    checks = [database_health, sessions_health]
    if any(c["status"] == "unhealthy" for c in checks):
        overall_status, http_status = "unhealthy", 503
    elif any(c["status"] == "degraded" for c in checks):
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    return {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "checks": {
            "database": database_health,
            "sessions": sessions_health,
        },
    }, http_status


@system_bp.get("/dashboard")
def dashboard():
    try:
        return jsonify(reporting_service.dashboard()), 200
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to build dashboard")
        return jsonify({"error": "Internal server error"}), 500
