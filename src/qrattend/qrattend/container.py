from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.factory import ScanStrategyFactory
from .attendance.service import AttendanceService
from .common.calendar import LedgerCalendar
from .common.locks import StudentLocks
from .core.constants import DEFAULT_NOTIFY_TIMEOUT_SECONDS, DEFAULT_TIMEZONE
from .database.connection import DBConfig, DatabaseConnection
from .notifications.dispatcher import (
    BackgroundDispatcher,
    GuardianNotifier,
    LogTransport,
    NotificationDispatcher,
    WebhookTransport,
)
from .reconciliation.scheduler import ReconciliationScheduler
from .reconciliation.service import ReconciliationService
from .reconciliation.settings import AutoCheckoutSettings, SettingsHolder
from .reports.service import ReportService
from .students.mysql_student_repository import MySQLStudentRepository
from .students.repository import StudentRepository
from .students.service import StudentService


@dataclass(frozen=True)
class Container:
    calendar: LedgerCalendar
    locks: StudentLocks
    settings: SettingsHolder

    students_repo: StudentRepository
    dispatcher: Optional[NotificationDispatcher]

    student_service: StudentService
    attendance_service: AttendanceService
    reconciliation_service: ReconciliationService
    report_service: ReportService
    scheduler: ReconciliationScheduler


def build_services(
    students_repo: StudentRepository,
    *,
    calendar: LedgerCalendar,
    dispatcher: Optional[NotificationDispatcher] = None,
    auto_checkout: AutoCheckoutSettings | None = None,
    scheduler=None,
) -> Container:
    """Wire every service around one ledger store; also used by tests with in-memory fakes."""
    locks = StudentLocks()
    settings = SettingsHolder(current=auto_checkout or AutoCheckoutSettings())

    attendance_service = AttendanceService(
        students_repo,
        calendar=calendar,
        locks=locks,
        dispatcher=dispatcher,
        strategy_factory=ScanStrategyFactory(),
    )
    reconciliation_service = ReconciliationService(
        students_repo,
        calendar=calendar,
        settings=settings,
        locks=locks,
        dispatcher=dispatcher,
    )
    student_service = StudentService(students_repo, locks=locks)
    report_service = ReportService(students_repo, calendar=calendar)
    reconciliation_scheduler = ReconciliationScheduler(
        reconciliation_service,
        calendar=calendar,
        settings=settings,
        scheduler=scheduler,
    )

    return Container(
        calendar=calendar,
        locks=locks,
        settings=settings,
        students_repo=students_repo,
        dispatcher=dispatcher,
        student_service=student_service,
        attendance_service=attendance_service,
        reconciliation_service=reconciliation_service,
        report_service=report_service,
        scheduler=reconciliation_scheduler,
    )


def build_dispatcher(
    students_repo: StudentRepository,
    *,
    enabled: bool = True,
    gateway_url: str | None = None,
    gateway_token: str | None = None,
    timeout: float = DEFAULT_NOTIFY_TIMEOUT_SECONDS,
) -> Optional[NotificationDispatcher]:
    if not enabled:
        return None
    if gateway_url:
        transport = WebhookTransport(gateway_url, token=gateway_token, timeout=timeout)
    else:
        transport = LogTransport()
    return BackgroundDispatcher(GuardianNotifier(students_repo, transport))


def build_container(
    *,
    db_config: dict,
    timezone: str = DEFAULT_TIMEZONE,
    auto_checkout: AutoCheckoutSettings | None = None,
    send_notifications: bool = True,
    gateway_url: str | None = None,
    gateway_token: str | None = None,
    notify_timeout: float = DEFAULT_NOTIFY_TIMEOUT_SECONDS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    students_repo = MySQLStudentRepository(conn)

    dispatcher = build_dispatcher(
        students_repo,
        enabled=send_notifications,
        gateway_url=gateway_url,
        gateway_token=gateway_token,
        timeout=notify_timeout,
    )
    return build_services(
        students_repo,
        calendar=LedgerCalendar(timezone),
        dispatcher=dispatcher,
        auto_checkout=auto_checkout,
    )
