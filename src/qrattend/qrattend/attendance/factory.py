from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..students.model import AttendanceRecord
from .strategies.base import ScanStrategy
from .strategies.entry_strategy import EntryStrategy
from .strategies.exit_strategy import ExitStrategy
from .strategies.reopen_strategy import ReopenStrategy


@dataclass
class ScanStrategyFactory:
    """Factory Pattern: choose the transition from today's record alone."""

    def for_scan(self, current: Optional[AttendanceRecord]) -> ScanStrategy:
        if current is None:
            return EntryStrategy()
        if current.is_closed:
            return ReopenStrategy()
        if current.entry_time is not None:
            return ExitStrategy()
        return EntryStrategy()
