from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.enums import GUARDIAN_LABELS, AttendanceStatus, EventKind
from ..students.model import Student


def _fmt_time(value: datetime) -> str:
    return value.strftime("%I:%M %p")


def _fmt_day(value: datetime) -> str:
    return value.strftime("%a %b %d %Y")


def render(student: Student, event: EventKind, timestamp: datetime, status: Optional[AttendanceStatus] = None) -> str:
    """Guardian-facing text for one ledger event."""
    who = f"{student.name} (Index: {student.index_number})"

    if event == EventKind.AUTO_CHECKOUT:
        return (
            "🏫 Automated Attendance Update\n\n"
            "Dear Parent,\n"
            f"Your child {who} did not scan the QR code when leaving on {_fmt_day(timestamp)}.\n"
            f"The system has automatically marked their departure time as {_fmt_time(timestamp)}.\n"
            "Please remind your child to properly scan both when arriving and leaving.\n\n"
            "Thank you."
        )

    if event == EventKind.ENTRY:
        label = GUARDIAN_LABELS[AttendanceStatus.ENTERED]
    elif event == EventKind.EXIT:
        label = GUARDIAN_LABELS[AttendanceStatus.LEFT]
    else:
        label = GUARDIAN_LABELS.get(status, "Updated") if status else "Updated"

    return (
        "🏫 Attendance Alert\n\n"
        "Dear Parent,\n"
        f"{who}: {label}\n"
        f"Date: {_fmt_day(timestamp)}\n"
        f"Time: {_fmt_time(timestamp)}\n\n"
        "Thank you."
    )
