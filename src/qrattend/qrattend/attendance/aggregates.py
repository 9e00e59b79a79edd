from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, Optional

from ..core.enums import AttendanceStatus
from ..students.model import AttendanceRecord, Student

# Report rule: what the stored attendance_count / attendance_percentage count as present.
REPORT_PRESENT_STATUSES = frozenset({AttendanceStatus.PRESENT, AttendanceStatus.ENTERED})

# Summary rule: what the per-student summary counts as a day present.
# `left` is in here but not in the report rule; the two are intentionally not unified.
SUMMARY_PRESENT_STATUSES = frozenset({AttendanceStatus.ENTERED, AttendanceStatus.LEFT})


@dataclass(frozen=True)
class Aggregates:
    attendance_count: int
    attendance_percentage: float
    last_attendance: Optional[datetime]
    total_records: int


def report_present_count(records: Iterable[AttendanceRecord]) -> int:
    return sum(1 for r in records if r.status in REPORT_PRESENT_STATUSES)


def summary_present_count(records: Iterable[AttendanceRecord]) -> int:
    return sum(1 for r in records if r.status in SUMMARY_PRESENT_STATUSES)


def last_attendance_of(records: Iterable[AttendanceRecord]) -> Optional[datetime]:
    """Latest terminal event: on the most recently touched record, leave_time if set else entry_time."""
    touched = [r.last_touched for r in records if r.last_touched is not None]
    return max(touched) if touched else None


def compute(records: Iterable[AttendanceRecord]) -> Aggregates:
    records = list(records)
    count = report_present_count(records)
    total = len(records)
    return Aggregates(
        attendance_count=count,
        attendance_percentage=(count / total) * 100 if total > 0 else 0.0,
        last_attendance=last_attendance_of(records),
        total_records=total,
    )


def recompute(student: Student) -> Student:
    """Rebuild every derived field from the full history, never incrementally."""
    agg = compute(student.attendance_history)
    return replace(
        student,
        attendance_count=agg.attendance_count,
        attendance_percentage=agg.attendance_percentage,
        last_attendance=agg.last_attendance,
    )
