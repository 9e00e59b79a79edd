from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import parse_int
from ..common.validators import require_date
from ..core.exceptions import ValidationError
from ..container import Container


def _required_range() -> tuple:
    start_s = request.args.get("startDate")
    end_s = request.args.get("endDate")
    if not start_s or not end_s:
        raise ValidationError("startDate and endDate are required")
    return require_date(start_s, "startDate"), require_date(end_s, "endDate")


def register(app: Flask, container: Container) -> None:
    reports = container.report_service

    @app.route("/api/reports/today", methods=["GET"], endpoint="api_report_today")
    def api_report_today():
        data = reports.daily_overview()
        return jsonify({"success": True, "students": data.rows, "summary": data.summary}), 200

    @app.route("/api/reports/date/<day>", methods=["GET"], endpoint="api_report_by_date")
    def api_report_by_date(day: str):
        data = reports.attendance_by_date(require_date(day, "date"))
        return jsonify({"success": True, "attendance": data.rows, "summary": data.summary}), 200

    @app.route("/api/reports/summary", methods=["GET"], endpoint="api_report_summary")
    def api_report_summary():
        start, end = _required_range()
        data = reports.student_summary(start=start, end=end)
        return jsonify({"success": True, "students": data.rows, "summary": data.summary}), 200

    @app.route("/api/reports/weekly", methods=["GET"], endpoint="api_report_weekly")
    def api_report_weekly():
        start, end = _required_range()
        data = reports.weekly_report(start=start, end=end)
        return jsonify({"success": True, "students": data.rows, "summary": data.summary}), 200

    @app.route("/api/reports/monthly", methods=["GET"], endpoint="api_report_monthly")
    def api_report_monthly():
        year = parse_int(request.args.get("year"), "year")
        month = parse_int(request.args.get("month"), "month")
        if year is None or month is None:
            raise ValidationError("Year and month are required")
        data = reports.monthly_report(year=year, month=month)
        return jsonify({"success": True, "students": data.rows, "summary": data.summary}), 200

    @app.route("/api/reports/individual", methods=["GET"], endpoint="api_report_individual")
    def api_report_individual():
        student_id = parse_int(request.args.get("studentId"), "studentId")
        if student_id is None:
            raise ValidationError("Student ID is required")
        start, end = _required_range()
        data = reports.individual_report(student_id, start=start, end=end)
        return jsonify({"success": True, "attendance": data.rows, "summary": data.summary}), 200

    @app.route("/api/reports/dashboard", methods=["GET"], endpoint="api_report_dashboard")
    def api_report_dashboard():
        start_s = request.args.get("startDate")
        end_s = request.args.get("endDate")
        stats = reports.dashboard_stats(
            start=require_date(start_s, "startDate") if start_s else None,
            end=require_date(end_s, "endDate") if end_s else None,
        )
        return jsonify({"success": True, **stats}), 200
