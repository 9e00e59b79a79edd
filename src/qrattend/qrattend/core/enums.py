from __future__ import annotations

from enum import Enum


class StudentStatus(str, Enum):
    """Enrollment status of a student."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class AttendanceStatus(str, Enum):
    """Status of one day in a student's ledger, as stored in the database."""

    ENTERED = "entered"
    LEFT = "left"
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class EventKind(str, Enum):
    """What happened to a day record; forwarded to the notification dispatcher."""

    ENTRY = "ENTRY"
    EXIT = "EXIT"
    AUTO_CHECKOUT = "AUTO_CHECKOUT"
    MANUAL = "MANUAL"


class SweepKind(str, Enum):
    STARTUP = "startup"
    PREVIOUS_DAY = "previous-day"
    CUTOFF = "cutoff"


# Statuses produced by the two-scan rule; everything else only comes from an admin.
SCAN_STATUSES = frozenset({AttendanceStatus.ENTERED, AttendanceStatus.LEFT})

# Label shown in reports and exports.
DISPLAY_LABELS = {
    AttendanceStatus.ENTERED: "Present",
    AttendanceStatus.LEFT: "Left",
    AttendanceStatus.PRESENT: "Present",
    AttendanceStatus.ABSENT: "Absent",
    AttendanceStatus.LATE: "Late",
}

# Wording used in guardian messages.
GUARDIAN_LABELS = {
    AttendanceStatus.ENTERED: "Entered School",
    AttendanceStatus.LEFT: "Left School",
    AttendanceStatus.PRESENT: "Present",
    AttendanceStatus.ABSENT: "Absent",
    AttendanceStatus.LATE: "Late",
}
