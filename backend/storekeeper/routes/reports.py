from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_actor
from ..errors import StorekeeperError, ValidationError
from ..services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/<pipeline>/reports")


def _include_sales() -> bool:
    return request.args.get("include_sales", "false").lower() == "true"


@reports_bp.get("")
def list_reports_route(pipeline: str):
    try:
        reports = reporting_service.list_reports(pipeline)
        return jsonify({"reports": [r.to_dict() for r in reports]}), 200
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code


@reports_bp.post("")
@require_actor
def add_report_route(pipeline: str):
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify(ValidationError("Invalid JSON payload").to_dict()), 400
    missing = sorted(k for k in ("date", "total_revenue", "total_sales") if data.get(k) is None)
    if missing:
        return jsonify({
            "error": f"Missing required fields: {', '.join(missing)}",
            "code": "validation_error",
            "details": {"missing": missing},
        }), 400

    try:
        report = reporting_service.add_manual_report(
            pipeline,
            date=data["date"],
            total_revenue=data["total_revenue"],
            total_sales=data["total_sales"],
            notes=data.get("notes"),
            actor_id=g.actor_id,
        )
        return jsonify({"report": report.to_dict()}), 201
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to add report")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/by-session")
def sales_by_session_route(pipeline: str):
    try:
        report = reporting_service.sales_by_session(pipeline, include_sales=_include_sales())
        return jsonify(report), 200
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code


@reports_bp.get("/by-date")
def sales_by_date_route(pipeline: str):
    try:
        report = reporting_service.sales_by_date(
            pipeline,
            start=request.args.get("start"),
            end=request.args.get("end"),
            include_sales=_include_sales(),
        )
        return jsonify(report), 200
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code


@reports_bp.get("/summary")
def summary_route(pipeline: str):
    try:
        summary = reporting_service.summarize(
            pipeline,
            start=request.args.get("start"),
            end=request.args.get("end"),
        )
        return jsonify(summary), 200
    except StorekeeperError as e:
        return jsonify(e.to_dict()), e.status_code
