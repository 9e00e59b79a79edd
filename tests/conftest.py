from __future__ import annotations

from datetime import datetime

import pytest

from src.qrattend.qrattend.attendance.service import AttendanceService
from src.qrattend.qrattend.common.calendar import LedgerCalendar
from src.qrattend.qrattend.common.locks import StudentLocks
from src.qrattend.qrattend.reconciliation.service import ReconciliationService
from src.qrattend.qrattend.reconciliation.settings import SettingsHolder
from tests.fakes import InMemoryStudentRepository, RecordingDispatcher


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 3, 10, 9, 0)


@pytest.fixture
def calendar() -> LedgerCalendar:
    return LedgerCalendar("Asia/Colombo")


@pytest.fixture
def repo() -> InMemoryStudentRepository:
    return InMemoryStudentRepository()


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def locks() -> StudentLocks:
    return StudentLocks()


@pytest.fixture
def attendance_service(repo, calendar, locks, dispatcher) -> AttendanceService:
    return AttendanceService(repo, calendar=calendar, locks=locks, dispatcher=dispatcher)


@pytest.fixture
def settings() -> SettingsHolder:
    return SettingsHolder()


@pytest.fixture
def reconciliation_service(repo, calendar, locks, dispatcher, settings) -> ReconciliationService:
    return ReconciliationService(repo, calendar=calendar, settings=settings, locks=locks, dispatcher=dispatcher)
