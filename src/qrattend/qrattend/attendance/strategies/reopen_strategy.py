from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Optional

from ...core.enums import AttendanceStatus, EventKind
from ...students.model import AttendanceRecord, Provenance
from .base import ScanStrategy, TransitionDecision


class ReopenStrategy(ScanStrategy):
    """Scan on a day that is already closed: a new session on the same day record.

    This is the only path allowed to replace a set entry_time and clear leave_time.
    """

    def apply(
        self,
        *,
        current: Optional[AttendanceRecord],
        day: date,
        scan_time: datetime,
        provenance: Provenance,
    ) -> TransitionDecision:
        if current is None or current.leave_time is None:
            raise ValueError("ReopenStrategy needs a closed record")
        record = replace(current, status=AttendanceStatus.ENTERED, entry_time=scan_time, leave_time=None)
        return TransitionDecision(record=record, event=EventKind.ENTRY)
