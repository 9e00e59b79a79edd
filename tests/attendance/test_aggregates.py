from dataclasses import replace
from datetime import date, datetime

from src.qrattend.qrattend.attendance.aggregates import compute, recompute, summary_present_count
from src.qrattend.qrattend.core.enums import AttendanceStatus
from src.qrattend.qrattend.students.model import AttendanceRecord
from tests.fakes import make_student


def _rec(day: int, status: AttendanceStatus, entry=None, leave=None) -> AttendanceRecord:
    return AttendanceRecord(date=date(2025, 3, day), status=status, entry_time=entry, leave_time=leave)


def test_percentage_counts_present_and_entered_only():
    records = [
        _rec(3, AttendanceStatus.ENTERED, entry=datetime(2025, 3, 3, 8, 0)),
        _rec(4, AttendanceStatus.LEFT, entry=datetime(2025, 3, 4, 8, 0), leave=datetime(2025, 3, 4, 14, 0)),
        _rec(5, AttendanceStatus.PRESENT),
        _rec(6, AttendanceStatus.ABSENT),
    ]

    agg = compute(records)

    assert agg.attendance_count == 2
    assert agg.attendance_percentage == 50.0
    assert agg.total_records == 4


def test_summary_rule_counts_entered_and_left():
    records = [
        _rec(3, AttendanceStatus.LEFT),
        _rec(4, AttendanceStatus.LEFT),
        _rec(5, AttendanceStatus.PRESENT),
        _rec(6, AttendanceStatus.LATE),
    ]

    assert summary_present_count(records) == 2
    assert compute(records).attendance_count == 1


def test_empty_history_has_zero_percentage_and_no_last_attendance():
    agg = compute([])
    assert agg.attendance_count == 0
    assert agg.attendance_percentage == 0.0
    assert agg.last_attendance is None


def test_last_attendance_prefers_leave_time_of_latest_touched_record():
    records = [
        _rec(4, AttendanceStatus.LEFT, entry=datetime(2025, 3, 4, 8, 0), leave=datetime(2025, 3, 4, 14, 0)),
        _rec(5, AttendanceStatus.ENTERED, entry=datetime(2025, 3, 5, 7, 45)),
    ]
    assert compute(records).last_attendance == datetime(2025, 3, 5, 7, 45)

    records.append(
        _rec(6, AttendanceStatus.LEFT, entry=datetime(2025, 3, 6, 8, 0), leave=datetime(2025, 3, 6, 18, 30))
    )
    assert compute(records).last_attendance == datetime(2025, 3, 6, 18, 30)


def test_recompute_overwrites_stale_cached_fields():
    student = make_student(records=[_rec(3, AttendanceStatus.ABSENT)])
    stale = replace(student, attendance_count=7, attendance_percentage=99.0)

    fresh = recompute(stale)

    assert fresh.attendance_count == 0
    assert fresh.attendance_percentage == 0.0
