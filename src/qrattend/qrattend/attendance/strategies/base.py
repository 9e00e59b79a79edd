from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ...core.enums import EventKind
from ...students.model import AttendanceRecord, Provenance


@dataclass(frozen=True)
class TransitionDecision:
    record: AttendanceRecord
    event: EventKind


class ScanStrategy(ABC):
    """Strategy Pattern: encapsulate how one scan moves today's record forward."""

    @abstractmethod
    def apply(
        self,
        *,
        current: Optional[AttendanceRecord],
        day: date,
        scan_time: datetime,
        provenance: Provenance,
    ) -> TransitionDecision:
        raise NotImplementedError
