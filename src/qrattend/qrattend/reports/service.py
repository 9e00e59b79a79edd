from __future__ import annotations

from calendar import month_name, monthrange
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator, Optional

from ..common.calendar import LedgerCalendar
from ..core.enums import DISPLAY_LABELS, AttendanceStatus
from ..core.exceptions import NotFound, ValidationError
from ..students.model import AttendanceRecord, Student
from ..students.repository import StudentRepository
from ..attendance.aggregates import REPORT_PRESENT_STATUSES, last_attendance_of, summary_present_count


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: dict


def _fmt(value) -> Optional[str]:
    return value.isoformat() if value else None


MAX_RANGE_DAYS = 366
TREND_DAYS = 7
TOP_ATTENDERS = 5


def _attended(record: Optional[AttendanceRecord]) -> bool:
    # Any record other than an explicit absence means the student was at school.
    return record is not None and record.status != AttendanceStatus.ABSENT


def _days(start: date, end: date) -> Iterator[date]:
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def _check_range(start: date, end: date) -> None:
    if start > end:
        raise ValidationError("startDate must not be after endDate")
    if (end - start).days >= MAX_RANGE_DAYS:
        raise ValidationError(f"Date range must not exceed {MAX_RANGE_DAYS} days")


def _row(student: Student, record: AttendanceRecord) -> dict:
    return {
        "student_id": student.student_id,
        "index_number": student.index_number,
        "name": student.name,
        "date": record.date.isoformat(),
        "status": record.status.value,
        "display_status": DISPLAY_LABELS[record.status],
        "entry_time": _fmt(record.entry_time),
        "leave_time": _fmt(record.leave_time),
        "scan_location": record.scan_location,
        "device_info": record.device_info,
        "marked_by": record.marked_by,
    }


class ReportService:
    """Read models built on top of the ledger; nothing here writes."""

    def __init__(self, students: StudentRepository, *, calendar: LedgerCalendar):
        self._students = students
        self._calendar = calendar

    def daily_overview(self, day: date | None = None) -> ReportData:
        """Who scanned today: inside (entered), gone home (left), marked absent."""
        day = day or self._calendar.today()
        students = self._students.list_students(active_only=True)

        rows = []
        counts = {s: 0 for s in AttendanceStatus}
        for student in students:
            record = student.record_for(day)
            if record is None:
                continue
            rows.append(_row(student, record))
            counts[record.status] += 1

        rows.sort(key=lambda r: r["entry_time"] or "", reverse=True)
        summary = {
            "date": day.isoformat(),
            "total_students": len(students),
            "scanned": len(rows),
            "not_scanned": len(students) - len(rows),
            "present": counts[AttendanceStatus.ENTERED],
            "left": counts[AttendanceStatus.LEFT],
            "absent": counts[AttendanceStatus.ABSENT],
        }
        return ReportData(rows=rows, summary=summary)

    def attendance_by_date(self, day: date) -> ReportData:
        rows = []
        present = late = absent = 0
        for student in self._students.list_students():
            record = student.record_for(day)
            if record is None:
                continue
            rows.append(_row(student, record))
            if record.status in REPORT_PRESENT_STATUSES:
                present += 1
            elif record.status == AttendanceStatus.LATE:
                late += 1
            elif record.status == AttendanceStatus.ABSENT:
                absent += 1

        rows.sort(key=lambda r: r["index_number"])
        summary = {
            "date": day.isoformat(),
            "total": len(rows),
            "present": present,
            "late": late,
            "absent": absent,
        }
        return ReportData(rows=rows, summary=summary)

    def student_summary(self, *, start: date, end: date) -> ReportData:
        """Per-student days present in a range.

        Counts with the summary rule (`entered` or `left`), which differs from
        the stored attendance_percentage on purpose.
        """
        if start > end:
            raise ValidationError("startDate must not be after endDate")

        rows = []
        for student in self._students.list_students():
            records = [r for r in student.attendance_history if start <= r.date <= end]
            total = len(records)
            present = summary_present_count(records)
            rows.append(
                {
                    "student_id": student.student_id,
                    "index_number": student.index_number,
                    "name": student.name,
                    "total_days": total,
                    "days_present": present,
                    "attendance_percentage": round((present / total) * 100, 2) if total > 0 else 0.0,
                    "last_attendance": _fmt(last_attendance_of(records)),
                }
            )

        rows.sort(key=lambda r: (-r["days_present"], r["index_number"]))
        summary = {
            "start": start.isoformat(),
            "end": end.isoformat(),
            "students": len(rows),
            "days_present": sum(r["days_present"] for r in rows),
        }
        return ReportData(rows=rows, summary=summary)

    def _active_students(self):
        students = self._students.list_students(active_only=True)
        if not students:
            raise NotFound("No active students found")
        return students

    def weekly_report(self, *, start: date, end: date) -> ReportData:
        """Days attended per active student over an arbitrary range (usually a week).

        Every calendar day in the range is a working day, weekends included.
        """
        _check_range(start, end)
        students = self._active_students()
        days = list(_days(start, end))

        rows = []
        for student in students:
            present = late = 0
            for day in days:
                record = student.record_for(day)
                if _attended(record):
                    present += 1
                    if record.status == AttendanceStatus.LATE:
                        late += 1
            rows.append(
                {
                    "student_id": student.student_id,
                    "index_number": student.index_number,
                    "name": student.name,
                    "present_days": present,
                    "absent_days": len(days) - present,
                    "late_days": late,
                    "attendance_rate": round((present / len(days)) * 100, 1),
                }
            )

        summary = {
            "start": start.isoformat(),
            "end": end.isoformat(),
            "total_working_days": len(days),
            "students": len(rows),
        }
        return ReportData(rows=rows, summary=summary)

    def monthly_report(self, *, year: int, month: int) -> ReportData:
        """Day-by-day grid for one calendar month."""
        if not 1 <= month <= 12 or not 1 <= year <= 9999:
            raise ValidationError("Invalid year or month. Month must be between 1 and 12.")
        days_in_month = monthrange(year, month)[1]
        days = list(_days(date(year, month, 1), date(year, month, days_in_month)))
        students = self._active_students()

        rows = []
        for student in students:
            daily = []
            for day in days:
                record = student.record_for(day)
                daily.append(
                    {
                        "day": day.day,
                        "status": record.status.value if record else AttendanceStatus.ABSENT.value,
                        "present": _attended(record),
                    }
                )
            present = sum(1 for d in daily if d["present"])
            rows.append(
                {
                    "student_id": student.student_id,
                    "index_number": student.index_number,
                    "name": student.name,
                    "status": student.status.value,
                    "daily_attendance": daily,
                    "present_days": present,
                    "absent_days": days_in_month - present,
                    "attendance_percentage": round((present / days_in_month) * 100, 2),
                }
            )

        summary = {
            "year": year,
            "month": month_name[month],
            "days_in_month": days_in_month,
            "students": len(rows),
        }
        return ReportData(rows=rows, summary=summary)

    def individual_report(self, student_id: int, *, start: date, end: date) -> ReportData:
        """One student's days in a range; days without a record show as absent."""
        _check_range(start, end)
        student = self._students.get_by_id(student_id)
        if not student:
            raise NotFound("Student not found")

        rows = []
        for day in _days(start, end):
            record = student.record_for(day)
            rows.append(
                {
                    "date": day.isoformat(),
                    "status": record.status.value if record else AttendanceStatus.ABSENT.value,
                    "entry_time": _fmt(record.entry_time) if record else None,
                    "leave_time": _fmt(record.leave_time) if record else None,
                    "present": _attended(record),
                }
            )

        total = len(rows)
        present = sum(1 for r in rows if r["present"])
        summary = {
            "student_id": student.student_id,
            "index_number": student.index_number,
            "name": student.name,
            "status": student.status.value,
            "start": start.isoformat(),
            "end": end.isoformat(),
            "total_days": total,
            "present_days": present,
            "absent_days": total - present,
            "attendance_rate": round((present / total) * 100, 2),
        }
        return ReportData(rows=rows, summary=summary)

    def dashboard_stats(self, *, start: date | None = None, end: date | None = None) -> dict:
        """Headline numbers for the admin dashboard; the range defaults to today."""
        today = self._calendar.today()
        start = start or today
        end = end or today
        _check_range(start, end)
        students = self._students.list_students(active_only=True)

        present = in_school = left = 0
        for student in students:
            records = [r for r in student.attendance_history if start <= r.date <= end and r.entry_time is not None]
            if not records:
                continue
            present += 1
            if any(r.leave_time is None for r in records):
                in_school += 1
            if any(r.leave_time is not None for r in records):
                left += 1

        trend = []
        for offset in range(TREND_DAYS - 1, -1, -1):
            day = end - timedelta(days=offset)
            trend.append({"date": day.isoformat(), "count": sum(1 for s in students if _attended(s.record_for(day)))})

        top = sorted(students, key=lambda s: (-s.attendance_count, -s.attendance_percentage, s.index_number))
        total = len(students)
        return {
            "metrics": {
                "total_students": total,
                "students_present": present,
                "students_absent": total - present,
                "students_in_school": in_school,
                "students_left": left,
                "attendance_rate": round((present / total) * 100) if total > 0 else 0,
            },
            "trends": {"last_7_days": trend},
            "top_attenders": [
                {
                    "student_id": s.student_id,
                    "index_number": s.index_number,
                    "name": s.name,
                    "attendance_count": s.attendance_count,
                    "attendance_percentage": round(s.attendance_percentage, 2),
                }
                for s in top[:TOP_ATTENDERS]
            ],
        }
