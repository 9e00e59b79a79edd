from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Optional

from ...core.enums import AttendanceStatus, EventKind
from ...students.model import AttendanceRecord, Provenance
from .base import ScanStrategy, TransitionDecision


class EntryStrategy(ScanStrategy):
    """First scan of the day, or a day record created without timestamps."""

    def apply(
        self,
        *,
        current: Optional[AttendanceRecord],
        day: date,
        scan_time: datetime,
        provenance: Provenance,
    ) -> TransitionDecision:
        if current is None:
            record = AttendanceRecord(
                date=day,
                status=AttendanceStatus.ENTERED,
                entry_time=scan_time,
                scan_location=provenance.scan_location,
                device_info=provenance.device_info,
            )
        else:
            record = replace(
                current,
                status=AttendanceStatus.ENTERED,
                entry_time=scan_time,
                scan_location=current.scan_location or provenance.scan_location,
                device_info=current.device_info or provenance.device_info,
            )
        return TransitionDecision(record=record, event=EventKind.ENTRY)
