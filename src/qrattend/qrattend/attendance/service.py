from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple

from ..common.calendar import LedgerCalendar
from ..common.locks import StudentLocks
from ..common.validators import require_status
from ..core.constants import (
    DEFAULT_DEVICE_INFO,
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_SCAN_LOCATION,
    MANUAL_DEVICE_INFO,
    MANUAL_SCAN_LOCATION,
)
from ..core.enums import AttendanceStatus, EventKind
from ..core.exceptions import NotFound, ValidationError
from ..notifications.dispatcher import NotificationDispatcher, NotificationResult, safe_notify
from ..students.model import AttendanceRecord, Provenance, Student
from ..students.repository import StudentRepository
from . import state_machine
from .aggregates import Aggregates, compute, recompute, report_present_count
from .factory import ScanStrategyFactory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanOutcome:
    student: Student
    record: AttendanceRecord
    event: EventKind
    notification: Optional[NotificationResult] = None


@dataclass(frozen=True)
class HistoryStats:
    total_records: int
    present: int
    left: int
    absent: int
    late: int
    attendance_percentage: float


@dataclass(frozen=True)
class HistoryPage:
    student: Student
    records: Tuple[AttendanceRecord, ...]
    total: int
    limit: int
    offset: int
    stats: HistoryStats

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.records) < self.total


def _with_defaults(provenance: Optional[Provenance], location: str, device: str) -> Provenance:
    provenance = provenance or Provenance()
    return Provenance(
        scan_location=provenance.scan_location or location,
        device_info=provenance.device_info or device,
    )


class AttendanceService:
    """Entry points that mutate or read one student's ledger.

    Every mutation is a locked read-modify-write: load the student, compute the
    new immutable Student, recompute aggregates, save. Notification happens
    after the save and outside the lock.
    """

    def __init__(
        self,
        students: StudentRepository,
        *,
        calendar: LedgerCalendar,
        locks: StudentLocks | None = None,
        dispatcher: NotificationDispatcher | None = None,
        strategy_factory: ScanStrategyFactory | None = None,
    ):
        self._students = students
        self._calendar = calendar
        self._locks = locks or StudentLocks()
        self._dispatcher = dispatcher
        self._factory = strategy_factory or ScanStrategyFactory()

    def _require_student(self, student_id: int) -> Student:
        student = self._students.get_by_id(student_id)
        if not student:
            raise NotFound("Student not found")
        return student

    def resolve_student(self, *, student_id: int | None = None, index_number: str | None = None) -> Student:
        """Find a student by store id or, failing that, by index number (the QR payload key)."""
        student = None
        if student_id is not None:
            student = self._students.get_by_id(int(student_id))
        if student is None and index_number:
            student = self._students.get_by_index_number(str(index_number).strip())
        if student is None:
            raise NotFound("Student not found")
        return student

    def record_scan(
        self,
        student_id: int,
        *,
        scan_time: datetime | None = None,
        provenance: Provenance | None = None,
    ) -> ScanOutcome:
        scan_time = scan_time or self._calendar.now()
        provenance = _with_defaults(provenance, DEFAULT_SCAN_LOCATION, DEFAULT_DEVICE_INFO)

        with self._locks.hold(student_id):
            student = self._require_student(student_id)
            transition = state_machine.apply_scan(
                student, scan_time, provenance, calendar=self._calendar, factory=self._factory
            )
            saved = self._students.save(recompute(transition.student))

        record = saved.record_for(transition.record.date) or transition.record
        logger.info(
            "Scan for student %s on %s: %s (%s)", student_id, record.date, record.status.value, transition.event.value
        )
        stamp = record.leave_time if transition.event == EventKind.EXIT else record.entry_time
        notification = safe_notify(self._dispatcher, saved.student_id, transition.event, stamp or scan_time)
        return ScanOutcome(student=saved, record=record, event=transition.event, notification=notification)

    def mark_manually(
        self,
        student_id: int,
        status,
        *,
        actor_id: str | None = None,
        provenance: Provenance | None = None,
        at: datetime | None = None,
        entry_time: datetime | None = None,
        leave_time: datetime | None = None,
        send_notification: bool = True,
    ) -> ScanOutcome:
        status = require_status(status)
        at = at or self._calendar.now()
        provenance = _with_defaults(provenance, MANUAL_SCAN_LOCATION, MANUAL_DEVICE_INFO)

        with self._locks.hold(student_id):
            student = self._require_student(student_id)
            transition = state_machine.apply_manual(
                student,
                status,
                at,
                provenance,
                calendar=self._calendar,
                actor_id=actor_id,
                entry_time=entry_time,
                leave_time=leave_time,
            )
            saved = self._students.save(recompute(transition.student))

        record = saved.record_for(transition.record.date) or transition.record
        logger.info(
            "Manual mark for student %s on %s: %s by %s", student_id, record.date, status.value, actor_id or "unknown"
        )
        notification = None
        if send_notification:
            notification = safe_notify(
                self._dispatcher, saved.student_id, EventKind.MANUAL, self._calendar.to_local(at), status=status
            )
        return ScanOutcome(student=saved, record=record, event=EventKind.MANUAL, notification=notification)

    def delete_record(self, student_id: int, record_id: int) -> Student:
        with self._locks.hold(student_id):
            student = self._require_student(student_id)
            if student.record_by_id(int(record_id)) is None:
                raise NotFound("Attendance record not found")
            saved = self._students.save(recompute(state_machine.remove_record(student, int(record_id))))
        logger.info("Deleted attendance record %s of student %s", record_id, student_id)
        return saved

    def clear_history(self, student_id: int) -> Student:
        """Destructive purge: empties the ledger and resets the derived fields."""
        with self._locks.hold(student_id):
            student = self._require_student(student_id)
            removed = len(student.attendance_history)
            saved = self._students.save(recompute(state_machine.clear_history(student)))
        logger.warning("Cleared %d attendance records of student %s", removed, student_id)
        return saved

    def get_history(
        self,
        student_id: int,
        *,
        start: date | None = None,
        end: date | None = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
        offset: int = 0,
        sort_order: str = "desc",
    ) -> HistoryPage:
        if limit < 0 or offset < 0:
            raise ValidationError("limit and offset must not be negative")
        sort_order = (sort_order or "desc").lower()
        if sort_order not in {"asc", "desc"}:
            raise ValidationError("sortOrder must be 'asc' or 'desc'")
        if start and end and start > end:
            raise ValidationError("startDate must not be after endDate")

        student = self._require_student(student_id)
        records = [
            r
            for r in student.attendance_history
            if (start is None or r.date >= start) and (end is None or r.date <= end)
        ]
        records.sort(key=lambda r: (r.date, r.entry_time or datetime.min), reverse=sort_order == "desc")

        total = len(records)
        present = report_present_count(records)
        stats = HistoryStats(
            total_records=total,
            present=present,
            left=sum(1 for r in records if r.status == AttendanceStatus.LEFT),
            absent=sum(1 for r in records if r.status == AttendanceStatus.ABSENT),
            late=sum(1 for r in records if r.status == AttendanceStatus.LATE),
            attendance_percentage=(present / total) * 100 if total > 0 else 0.0,
        )
        page = tuple(records[offset : offset + limit])
        return HistoryPage(student=student, records=page, total=total, limit=limit, offset=offset, stats=stats)

    def get_aggregates(self, student_id: int) -> Aggregates:
        # Always from the raw history; the stored fields are only caches.
        return compute(self._require_student(student_id).attendance_history)
