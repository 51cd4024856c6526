"""Dashboard aggregation and weekly report endpoints."""
from __future__ import annotations

from flask import Blueprint, Response, jsonify

from routes import requested_date
from services.project_service import build_dashboard
from services.report_service import build_weekly_report, render_weekly_report, report_filename
from services.snapshot import load_snapshot

reports_bp = Blueprint("reports", __name__, url_prefix="/api")


@reports_bp.route("/dashboard", methods=["GET"])
def dashboard():
    return jsonify(build_dashboard(load_snapshot(), requested_date()))


@reports_bp.route("/reports/weekly", methods=["GET"])
def weekly_report():
    """Report for the week containing ``?week=YYYY-MM-DD`` (default: this week)."""

    report = build_weekly_report(
        load_snapshot(), selected=requested_date("week"), today=requested_date()
    )
    return jsonify(report.to_dict())


@reports_bp.route("/reports/weekly/export", methods=["GET"])
def export_weekly_report():
    """Plain-text export used for download and print."""

    report = build_weekly_report(
        load_snapshot(), selected=requested_date("week"), today=requested_date()
    )
    return Response(
        render_weekly_report(report),
        mimetype="text/plain",
        headers={"Content-Disposition": f"attachment; filename={report_filename(report)}"},
    )
