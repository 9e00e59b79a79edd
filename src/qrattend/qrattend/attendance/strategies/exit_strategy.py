from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Optional

from ...core.enums import AttendanceStatus, EventKind
from ...students.model import AttendanceRecord, Provenance
from .base import ScanStrategy, TransitionDecision


class ExitStrategy(ScanStrategy):
    """Second scan on an open day."""

    def apply(
        self,
        *,
        current: Optional[AttendanceRecord],
        day: date,
        scan_time: datetime,
        provenance: Provenance,
    ) -> TransitionDecision:
        if current is None or current.entry_time is None:
            raise ValueError("ExitStrategy needs an open record")
        record = replace(current, status=AttendanceStatus.LEFT, leave_time=scan_time)
        return TransitionDecision(record=record, event=EventKind.EXIT)
