from __future__ import annotations

import json
from datetime import datetime

from flask import Flask, jsonify, request

from ..common.http import json_body, parse_bool, parse_int
from ..common.validators import require_date
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import EventKind
from ..core.exceptions import ValidationError
from ..container import Container
from ..students.model import Provenance
from ..students.serializers import record_to_dict, student_to_dict

_SCAN_MESSAGES = {
    EventKind.ENTRY: "Entry recorded",
    EventKind.EXIT: "Exit recorded",
}


def _parse_qr_payload(raw) -> dict:
    """QR codes carry a JSON object with at least `indexNumber`."""
    if isinstance(raw, dict):
        return raw
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError):
        raise ValidationError("Invalid QR code format")
    if not isinstance(payload, dict) or not (payload.get("indexNumber") or payload.get("id")):
        raise ValidationError("Invalid QR code data")
    return payload


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    def _optional_date(name: str):
        value = request.args.get(name)
        return require_date(value, name) if value else None

    @app.route("/api/attendance/scan", methods=["POST"], endpoint="api_attendance_scan")
    def api_attendance_scan():
        data = json_body()
        student_id = parse_int(data.get("studentId"), "studentId")
        index_number = None
        if data.get("qrCodeData"):
            payload = _parse_qr_payload(data["qrCodeData"])
            index_number = payload.get("indexNumber")
            if student_id is None and not index_number:
                student_id = parse_int(payload.get("id"), "id")
        if student_id is None and not index_number:
            raise ValidationError("Student ID or QR code data is required")

        student = service.resolve_student(student_id=student_id, index_number=index_number)
        outcome = service.record_scan(
            student.student_id,
            provenance=Provenance(scan_location=data.get("scanLocation"), device_info=data.get("deviceInfo")),
        )
        return jsonify(
            {
                "success": True,
                "message": _SCAN_MESSAGES.get(outcome.event, "Attendance recorded"),
                "event": outcome.event.value,
                "student": student_to_dict(outcome.student),
                "record": record_to_dict(outcome.record),
                "notification": outcome.notification.to_dict() if outcome.notification else None,
            }
        ), 200

    @app.route("/api/attendance/mark", methods=["POST"], endpoint="api_attendance_mark")
    def api_attendance_mark():
        data = json_body()
        student_id = parse_int(data.get("studentId"), "studentId")
        if student_id is None:
            raise ValidationError("Student ID is required")
        if not data.get("status"):
            raise ValidationError("Status is required")

        at = None
        if data.get("date"):
            day = require_date(data["date"], "date")
            at = datetime.combine(day, container.calendar.now().time())

        outcome = service.mark_manually(
            student_id,
            data["status"],
            actor_id=data.get("actorId"),
            provenance=Provenance(scan_location=data.get("scanLocation"), device_info=data.get("deviceInfo")),
            at=at,
            send_notification=parse_bool(data.get("sendNotification"), True),
        )
        return jsonify(
            {
                "success": True,
                "message": f"Attendance marked as {outcome.record.status.value}",
                "student": student_to_dict(outcome.student),
                "record": record_to_dict(outcome.record),
                "notification": outcome.notification.to_dict() if outcome.notification else None,
            }
        ), 200

    @app.route("/api/students/<int:student_id>/attendance", methods=["GET"], endpoint="api_student_attendance")
    def api_student_attendance(student_id: int):
        page = service.get_history(
            student_id,
            start=_optional_date("startDate"),
            end=_optional_date("endDate"),
            limit=parse_int(request.args.get("limit"), "limit", default=DEFAULT_HISTORY_LIMIT),
            offset=parse_int(request.args.get("offset"), "offset", default=0),
            sort_order=request.args.get("sortOrder", "desc"),
        )
        agg = service.get_aggregates(student_id)
        return jsonify(
            {
                "success": True,
                "student": student_to_dict(page.student),
                "attendance": [record_to_dict(r) for r in page.records],
                "pagination": {
                    "total": page.total,
                    "limit": page.limit,
                    "offset": page.offset,
                    "hasMore": page.has_more,
                },
                "stats": {
                    "totalRecords": page.stats.total_records,
                    "present": page.stats.present,
                    "left": page.stats.left,
                    "absent": page.stats.absent,
                    "late": page.stats.late,
                    "attendancePercentage": round(page.stats.attendance_percentage, 2),
                },
                "aggregates": {
                    "attendanceCount": agg.attendance_count,
                    "attendancePercentage": round(agg.attendance_percentage, 2),
                    "lastAttendance": agg.last_attendance.isoformat() if agg.last_attendance else None,
                    "totalRecords": agg.total_records,
                },
            }
        ), 200

    @app.route(
        "/api/students/<int:student_id>/attendance/<int:record_id>",
        methods=["DELETE"],
        endpoint="api_delete_attendance_record",
    )
    def api_delete_attendance_record(student_id: int, record_id: int):
        student = service.delete_record(student_id, record_id)
        return jsonify(
            {"success": True, "message": "Attendance record deleted", "student": student_to_dict(student)}
        ), 200

    @app.route("/api/students/<int:student_id>/attendance", methods=["DELETE"], endpoint="api_clear_attendance")
    def api_clear_attendance(student_id: int):
        student = service.clear_history(student_id)
        return jsonify(
            {"success": True, "message": "Attendance history cleared", "student": student_to_dict(student)}
        ), 200
