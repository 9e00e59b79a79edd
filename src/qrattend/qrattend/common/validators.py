from __future__ import annotations

from datetime import date, time

from ..core.enums import AttendanceStatus
from ..core.exceptions import InvalidTransition, ValidationError
from .calendar import parse_hhmm, parse_iso_date


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_status(value) -> AttendanceStatus:
    if isinstance(value, AttendanceStatus):
        return value
    try:
        return AttendanceStatus(str(value or "").strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in AttendanceStatus)
        raise InvalidTransition(f"Invalid status. Must be one of: {allowed}")


def require_date(value: str, field_name: str) -> date:
    try:
        return parse_iso_date(require_non_empty(value, field_name))
    except ValueError:
        raise ValidationError(f"Invalid {field_name}. Please use YYYY-MM-DD format")


def require_hhmm(value: str, field_name: str) -> time:
    try:
        return parse_hhmm(require_non_empty(value, field_name))
    except ValueError:
        raise ValidationError(f"Invalid {field_name}. Must be in HH:MM format (24-hour)")
