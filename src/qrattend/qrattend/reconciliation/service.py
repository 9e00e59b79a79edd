"""Reconciliation sweeps: close every open record whose day has elapsed.

A closure stamps `leave_time` with the cutoff of the record's OWN date, never
the time the sweep happens to run, so a three-day-old record closes at that
day's 18:30. A sweep triggered before today's cutoff stamps the run time
instead, so a closure is never dated in the future. Sweeps are idempotent: a
closed record is no longer a candidate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, List, Optional, Sequence

from ..common.calendar import LedgerCalendar
from ..common.locks import StudentLocks
from ..core.enums import EventKind, SweepKind
from ..notifications.dispatcher import NotificationDispatcher, safe_notify
from ..students.model import AttendanceRecord, Student
from ..students.repository import StudentRepository
from ..attendance import state_machine
from ..attendance.aggregates import recompute
from .settings import SettingsHolder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClosedRecord:
    student_id: int
    record_date: date
    leave_time: datetime


@dataclass(frozen=True)
class SweepFailure:
    student_id: int
    error: str


@dataclass
class SweepReport:
    kind: SweepKind
    started_at: datetime
    target: Optional[date] = None
    finished_at: Optional[datetime] = None
    candidates: int = 0
    closed: List[ClosedRecord] = field(default_factory=list)
    failures: List[SweepFailure] = field(default_factory=list)
    notified: int = 0
    queued: int = 0
    notification_failures: int = 0
    backlog: Optional["SweepReport"] = None

    def to_dict(self) -> dict:
        out = {
            "kind": self.kind.value,
            "target": self.target.isoformat() if self.target else None,
            "startedAt": self.started_at.isoformat(),
            "finishedAt": self.finished_at.isoformat() if self.finished_at else None,
            "candidates": self.candidates,
            "closed": [
                {
                    "studentId": c.student_id,
                    "date": c.record_date.isoformat(),
                    "leaveTime": c.leave_time.isoformat(),
                }
                for c in self.closed
            ],
            "failures": [{"studentId": f.student_id, "error": f.error} for f in self.failures],
            "notified": self.notified,
            "queued": self.queued,
            "notificationFailures": self.notification_failures,
        }
        if self.backlog is not None:
            out["backlog"] = self.backlog.to_dict()
        return out


class ReconciliationService:
    def __init__(
        self,
        students: StudentRepository,
        *,
        calendar: LedgerCalendar,
        settings: SettingsHolder | None = None,
        locks: StudentLocks | None = None,
        dispatcher: NotificationDispatcher | None = None,
    ):
        self._students = students
        self._calendar = calendar
        self._settings = settings or SettingsHolder()
        self._locks = locks or StudentLocks()
        self._dispatcher = dispatcher

    @property
    def settings(self) -> SettingsHolder:
        return self._settings

    def run_startup_sweep(self, *, now: datetime | None = None) -> SweepReport:
        """Close every open record dated strictly before today."""
        now = self._calendar.to_local(now) if now else self._calendar.now()
        today = now.date()
        report = SweepReport(kind=SweepKind.STARTUP, started_at=now, target=today)

        # A store failure here aborts the whole sweep; nothing has been touched yet.
        candidates = self._students.find_open_records_before(today)
        logger.info("Startup sweep: %d student(s) with open records before %s", len(candidates), today)
        self._close_all(report, candidates, lambda r: r.date < today, now=now)
        return self._finish(report)

    def run_previous_day_sweep(self, *, now: datetime | None = None) -> SweepReport:
        """Backlog sweep first, then yesterday specifically; reported separately."""
        now = self._calendar.to_local(now) if now else self._calendar.now()
        backlog = self.run_startup_sweep(now=now)

        yesterday = self._calendar.yesterday(now=now)
        report = SweepReport(kind=SweepKind.PREVIOUS_DAY, started_at=now, target=yesterday, backlog=backlog)
        candidates = self._students.find_open_records_on(yesterday)
        logger.info("Previous-day sweep: %d student(s) still open on %s", len(candidates), yesterday)
        self._close_all(report, candidates, lambda r: r.date == yesterday, now=now)
        return self._finish(report)

    def run_cutoff_sweep(self, *, now: datetime | None = None) -> SweepReport:
        """End-of-day auto-checkout for today's open records."""
        now = self._calendar.to_local(now) if now else self._calendar.now()
        today = now.date()
        report = SweepReport(kind=SweepKind.CUTOFF, started_at=now, target=today)

        candidates = self._students.find_open_records_on(today)
        logger.info("Cutoff sweep: %d student(s) still open on %s", len(candidates), today)
        self._close_all(report, candidates, lambda r: r.date == today, now=now)
        self._settings.update(last_run=now)
        return self._finish(report)

    def _finish(self, report: SweepReport) -> SweepReport:
        report.finished_at = self._calendar.now()
        logger.info(
            "%s sweep done: closed=%d failures=%d notified=%d queued=%d notification_failures=%d",
            report.kind.value,
            len(report.closed),
            len(report.failures),
            report.notified,
            report.queued,
            report.notification_failures,
        )
        return report

    def _close_all(
        self,
        report: SweepReport,
        candidates: Sequence[Student],
        due: Callable[[AttendanceRecord], bool],
        *,
        now: datetime,
    ) -> None:
        report.candidates = len(candidates)
        settings = self._settings.get()

        for candidate in candidates:
            student_id = candidate.student_id
            try:
                closed = self._close_student(student_id, due, now=now)
            except Exception as e:
                logger.error("Sweep failed for student %s: %s", student_id, e)
                report.failures.append(SweepFailure(student_id=student_id, error=str(e)))
                continue

            report.closed.extend(closed)
            if not settings.send_notification:
                continue
            for item in closed:
                result = safe_notify(self._dispatcher, student_id, EventKind.AUTO_CHECKOUT, item.leave_time)
                if result is None:
                    continue
                if result.queued:
                    # Handed to the background dispatcher; delivery is not confirmed yet.
                    report.queued += 1
                elif result.success:
                    report.notified += 1
                else:
                    report.notification_failures += 1

    def _close_student(
        self, student_id: int, due: Callable[[AttendanceRecord], bool], *, now: datetime
    ) -> List[ClosedRecord]:
        cutoff = self._settings.get().cutoff_time
        with self._locks.hold(student_id):
            # Re-read under the lock: a scan may have closed the day since listing.
            student = self._students.get_by_id(student_id)
            if not student:
                return []
            targets = [r for r in student.open_records() if due(r)]
            if not targets:
                return []

            for record in targets:
                stamp = min(self._calendar.cutoff_for(record.date, cutoff), now)
                transition = state_machine.close_record(student, record, stamp)
                student = transition.student
            saved = self._students.save(recompute(student))

        closed = []
        for record in targets:
            stored = saved.record_for(record.date)
            closed.append(ClosedRecord(student_id=student_id, record_date=record.date, leave_time=stored.leave_time))
        return closed
