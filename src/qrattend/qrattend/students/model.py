from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Tuple

from ..core.enums import AttendanceStatus, StudentStatus


@dataclass(frozen=True)
class Provenance:
    """Where a scan came from. Free-form, never validated."""

    scan_location: Optional[str] = None
    device_info: Optional[str] = None


@dataclass(frozen=True)
class AttendanceRecord:
    """One calendar day in a student's ledger.

    `entry_time`/`leave_time` are write-once; a set `leave_time` marks the day closed.
    """

    date: date
    status: AttendanceStatus
    entry_time: Optional[datetime] = None
    leave_time: Optional[datetime] = None
    scan_location: Optional[str] = None
    device_info: Optional[str] = None
    marked_by: Optional[str] = None
    record_id: Optional[int] = None

    @property
    def is_closed(self) -> bool:
        return self.leave_time is not None

    @property
    def is_open(self) -> bool:
        return (
            self.entry_time is not None
            and self.leave_time is None
            and self.status != AttendanceStatus.ABSENT
        )

    @property
    def last_touched(self) -> Optional[datetime]:
        return self.leave_time or self.entry_time


@dataclass(frozen=True)
class Student:
    """Aggregate root owning the attendance ledger.

    Note: the derived fields are caches; `attendance.aggregates.recompute` is the
    only place that writes them.
    """

    student_id: Optional[int]
    index_number: str
    name: str
    guardian_phone: Optional[str] = None
    status: StudentStatus = StudentStatus.ACTIVE
    attendance_history: Tuple[AttendanceRecord, ...] = field(default_factory=tuple)
    attendance_count: int = 0
    attendance_percentage: float = 0.0
    last_attendance: Optional[datetime] = None
    version: int = 0

    def record_for(self, day: date) -> Optional[AttendanceRecord]:
        for record in self.attendance_history:
            if record.date == day:
                return record
        return None

    def record_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        for record in self.attendance_history:
            if record.record_id == record_id:
                return record
        return None

    def open_records(self) -> Tuple[AttendanceRecord, ...]:
        return tuple(r for r in self.attendance_history if r.is_open)
