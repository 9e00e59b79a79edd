from datetime import date, datetime

import pytest

from src.qrattend.qrattend.attendance.factory import ScanStrategyFactory
from src.qrattend.qrattend.attendance.strategies.entry_strategy import EntryStrategy
from src.qrattend.qrattend.attendance.strategies.exit_strategy import ExitStrategy
from src.qrattend.qrattend.attendance.strategies.reopen_strategy import ReopenStrategy
from src.qrattend.qrattend.core.enums import AttendanceStatus
from src.qrattend.qrattend.students.model import AttendanceRecord, Provenance

DAY = date(2025, 3, 10)


def test_factory_entry_when_no_record_today():
    assert isinstance(ScanStrategyFactory().for_scan(None), EntryStrategy)


def test_factory_exit_when_record_is_open():
    current = AttendanceRecord(date=DAY, status=AttendanceStatus.ENTERED, entry_time=datetime(2025, 3, 10, 8, 0))
    assert isinstance(ScanStrategyFactory().for_scan(current), ExitStrategy)


def test_factory_reopen_when_record_is_closed():
    current = AttendanceRecord(
        date=DAY,
        status=AttendanceStatus.LEFT,
        entry_time=datetime(2025, 3, 10, 8, 0),
        leave_time=datetime(2025, 3, 10, 14, 0),
    )
    assert isinstance(ScanStrategyFactory().for_scan(current), ReopenStrategy)


def test_factory_entry_when_record_has_no_timestamps():
    # e.g. an admin marked the day absent before the student showed up
    current = AttendanceRecord(date=DAY, status=AttendanceStatus.ABSENT)
    strategy = ScanStrategyFactory().for_scan(current)
    assert isinstance(strategy, EntryStrategy)

    decision = strategy.apply(current=current, day=DAY, scan_time=datetime(2025, 3, 10, 9, 30), provenance=Provenance())
    assert decision.record.status == AttendanceStatus.ENTERED
    assert decision.record.entry_time == datetime(2025, 3, 10, 9, 30)


def test_exit_strategy_rejects_record_without_entry():
    with pytest.raises(ValueError):
        ExitStrategy().apply(current=None, day=DAY, scan_time=datetime(2025, 3, 10, 9, 0), provenance=Provenance())
