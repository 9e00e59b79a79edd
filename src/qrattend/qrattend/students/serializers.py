from __future__ import annotations

from typing import Optional

from ..core.enums import DISPLAY_LABELS, SCAN_STATUSES
from .model import AttendanceRecord, Student


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def record_to_dict(record: AttendanceRecord) -> dict:
    return {
        "id": record.record_id,
        "date": record.date.isoformat(),
        "status": record.status.value,
        "displayStatus": DISPLAY_LABELS[record.status],
        "entryTime": _iso(record.entry_time),
        "leaveTime": _iso(record.leave_time),
        "scanLocation": record.scan_location,
        "deviceInfo": record.device_info,
        "markedBy": record.marked_by,
        "manual": record.marked_by is not None or record.status not in SCAN_STATUSES,
    }


def student_to_dict(student: Student) -> dict:
    return {
        "id": student.student_id,
        "indexNumber": student.index_number,
        "name": student.name,
        "guardianPhone": student.guardian_phone,
        "status": student.status.value,
        "attendanceCount": student.attendance_count,
        "attendancePercentage": round(student.attendance_percentage, 2),
        "lastAttendance": _iso(student.last_attendance),
    }
