"""Pure transition logic over one student's ledger.

Nothing here touches the store or the clock: every function takes the current
Student and returns a new one, so a failed save leaves no partial mutation behind.
Aggregates are NOT recomputed here; callers run `aggregates.recompute` before saving.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from ..common.calendar import LedgerCalendar
from ..core.enums import AttendanceStatus, EventKind
from ..students.model import AttendanceRecord, Provenance, Student
from .factory import ScanStrategyFactory


@dataclass(frozen=True)
class Transition:
    student: Student
    record: AttendanceRecord
    event: EventKind


def put_record(student: Student, record: AttendanceRecord) -> Student:
    """Replace the record of `record.date` in place, or append it; keeps one record per day."""
    history = list(student.attendance_history)
    for i, existing in enumerate(history):
        if existing.date == record.date:
            history[i] = record
            return replace(student, attendance_history=tuple(history))
    history.append(record)
    return replace(student, attendance_history=tuple(history))


def apply_scan(
    student: Student,
    scan_time: datetime,
    provenance: Provenance,
    *,
    calendar: LedgerCalendar,
    factory: Optional[ScanStrategyFactory] = None,
) -> Transition:
    scan_time = calendar.to_local(scan_time)
    today = scan_time.date()
    current = student.record_for(today)

    strategy = (factory or ScanStrategyFactory()).for_scan(current)
    decision = strategy.apply(current=current, day=today, scan_time=scan_time, provenance=provenance)
    return Transition(student=put_record(student, decision.record), record=decision.record, event=decision.event)


def apply_manual(
    student: Student,
    status: AttendanceStatus,
    at: datetime,
    provenance: Provenance,
    *,
    calendar: LedgerCalendar,
    actor_id: Optional[str] = None,
    entry_time: Optional[datetime] = None,
    leave_time: Optional[datetime] = None,
) -> Transition:
    """Administrative override: explicit status, bypasses the two-scan rule.

    Timestamps already on the record are never overwritten, except that marking a
    closed day `entered` re-opens it exactly like a third scan would.
    """
    at = calendar.to_local(at)
    entry_time = calendar.to_local(entry_time) if entry_time else None
    leave_time = calendar.to_local(leave_time) if leave_time else None
    day = at.date()

    current = student.record_for(day) or AttendanceRecord(
        date=day,
        status=status,
        scan_location=provenance.scan_location,
        device_info=provenance.device_info,
    )
    new_entry = current.entry_time
    new_leave = current.leave_time

    if status == AttendanceStatus.ENTERED:
        if current.leave_time is not None:
            new_entry, new_leave = entry_time or at, None
        elif new_entry is None:
            new_entry = entry_time or at
    elif status == AttendanceStatus.LEFT:
        if new_entry is None and entry_time is not None:
            new_entry = entry_time
        if new_leave is None:
            new_leave = leave_time or at
    elif status in (AttendanceStatus.PRESENT, AttendanceStatus.LATE):
        if new_entry is None:
            new_entry = entry_time or at

    record = replace(
        current,
        status=status,
        entry_time=new_entry,
        leave_time=new_leave,
        scan_location=current.scan_location or provenance.scan_location,
        device_info=current.device_info or provenance.device_info,
        marked_by=actor_id if actor_id is not None else current.marked_by,
    )
    return Transition(student=put_record(student, record), record=record, event=EventKind.MANUAL)


def close_record(student: Student, record: AttendanceRecord, leave_time: datetime) -> Transition:
    """Forced closure used by the reconciliation sweep."""
    if record.entry_time is not None and leave_time < record.entry_time:
        # Entered after the cutoff: close at entry so the day never ends before it began.
        leave_time = record.entry_time
    closed = replace(record, status=AttendanceStatus.LEFT, leave_time=leave_time)
    return Transition(student=put_record(student, closed), record=closed, event=EventKind.AUTO_CHECKOUT)


def remove_record(student: Student, record_id: int) -> Student:
    history = tuple(r for r in student.attendance_history if r.record_id != record_id)
    return replace(student, attendance_history=history)


def clear_history(student: Student) -> Student:
    return replace(student, attendance_history=())
