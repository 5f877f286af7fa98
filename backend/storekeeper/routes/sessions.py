# Overview: Flask API routes for accounting sessions.

"""
Session lifecycle routes.

POST /open bootstraps the first session and is safe to repeat.
POST /close writes the closing report (when there were sales) and opens the
next session in one transaction.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_actor
from ..errors import StorekeeperError, ValidationError
from ..services import accounting_service


sessions_bp = Blueprint("sessions", __name__, url_prefix="/api/<pipeline>/sessions")


@sessions_bp.get("")
def list_sessions_route(pipeline: str):
    try:
        sessions = accounting_service.list_sessions(pipeline)
        rows = []
        for index, session in enumerate(sessions):
            row = session.to_dict()
            row["is_current"] = index == 0
            rows.append(row)
        return jsonify({"sessions": rows}), 200
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code


@sessions_bp.get("/current")
def current_session_route(pipeline: str):
    try:
        session = accounting_service.current_session(pipeline)
        return jsonify({"session": session.to_dict()}), 200
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code


@sessions_bp.post("/open")
@require_actor
def open_session_route(pipeline: str):
    try:
        session = accounting_service.open_first(pipeline, actor_id=g.actor_id)
        return jsonify({"session": session.to_dict()}), 200
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to open session")
        return jsonify({"error": "Internal server error"}), 500


@sessions_bp.post("/close")
@require_actor
def close_session_route(pipeline: str):
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify(ValidationError("Invalid JSON payload").to_dict()), 400
    try:
        report, new_session = accounting_service.close_and_reopen(
            pipeline,
            notes=data.get("notes"),
            actor_id=g.actor_id,
        )
        return jsonify({
            "report": report.to_dict() if report else None,
            "session": new_session.to_dict(),
        }), 200
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to close session")
        return jsonify({"error": "Internal server error"}), 500
