"""Guardian notification dispatch.

The engine only ever sees `NotificationDispatcher.notify` and a
`NotificationResult`; a failed delivery is data, not an exception.
Retries are the gateway's business.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

import requests

from ..core.constants import DEFAULT_NOTIFY_TIMEOUT_SECONDS
from ..core.enums import AttendanceStatus, EventKind
from ..core.exceptions import NotificationFailed
from ..students.repository import StudentRepository
from .messages import render

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationResult:
    success: bool
    error: Optional[str] = None
    code: Optional[str] = None
    message_id: Optional[str] = None
    queued: bool = False

    def to_dict(self) -> dict:
        out = {"success": self.success}
        if self.error:
            out["error"] = self.error
        if self.code:
            out["code"] = self.code
        if self.message_id:
            out["messageId"] = self.message_id
        if self.queued:
            out["queued"] = True
        return out


class NotificationDispatcher(Protocol):
    def notify(
        self,
        student_id: int,
        event: EventKind,
        timestamp: datetime,
        *,
        status: Optional[AttendanceStatus] = None,
    ) -> NotificationResult:
        raise NotImplementedError


class MessageTransport(Protocol):
    def send(self, phone: str, text: str) -> NotificationResult:
        """Deliver one text; raise NotificationFailed when the gateway refuses it."""
        raise NotImplementedError


class WebhookTransport:
    """Posts messages to an HTTP messaging gateway (the WhatsApp bridge lives behind it)."""

    def __init__(self, url: str, *, token: Optional[str] = None, timeout: float = DEFAULT_NOTIFY_TIMEOUT_SECONDS):
        self._url = url
        self._token = token
        self._timeout = timeout

    def send(self, phone: str, text: str) -> NotificationResult:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        try:
            response = requests.post(
                self._url,
                json={"phone": phone, "message": text},
                headers=headers,
                timeout=self._timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise NotificationFailed(f"Gateway request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if body.get("success") is False:
            raise NotificationFailed(body.get("error") or "Gateway rejected the message")
        message_id = body.get("messageId") or body.get("message_id")
        return NotificationResult(success=True, message_id=str(message_id) if message_id else None)


class LogTransport:
    """Console mode for development: the message only goes to the log."""

    def send(self, phone: str, text: str) -> NotificationResult:
        logger.info("[notify] to %s:\n%s", phone, text)
        return NotificationResult(success=True)


class GuardianNotifier:
    """NotificationDispatcher that renders the guardian message and hands it to a transport."""

    def __init__(self, students: StudentRepository, transport: MessageTransport):
        self._students = students
        self._transport = transport

    def notify(
        self,
        student_id: int,
        event: EventKind,
        timestamp: datetime,
        *,
        status: Optional[AttendanceStatus] = None,
    ) -> NotificationResult:
        student = self._students.get_by_id(student_id)
        if not student:
            return NotificationResult(success=False, error="Student not found", code="STUDENT_NOT_FOUND")
        if not student.guardian_phone:
            return NotificationResult(success=False, error="No parent phone number available", code="NO_PHONE_NUMBER")

        phone = "".join(student.guardian_phone.split())
        text = render(student, event, timestamp, status)
        try:
            return self._transport.send(phone, text)
        except NotificationFailed as e:
            return NotificationResult(success=False, error=str(e), code="NOTIFICATION_ERROR")


class BackgroundDispatcher:
    """Fire-and-forget wrapper: enqueue the notification and return immediately."""

    def __init__(self, inner: NotificationDispatcher, *, max_workers: int = 2):
        self._inner = inner
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="notify")

    def notify(
        self,
        student_id: int,
        event: EventKind,
        timestamp: datetime,
        *,
        status: Optional[AttendanceStatus] = None,
    ) -> NotificationResult:
        future = self._executor.submit(safe_notify, self._inner, student_id, event, timestamp, status=status)
        future.add_done_callback(_log_unexpected)
        return NotificationResult(success=True, queued=True)

    def shutdown(self, *, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


def _log_unexpected(future: Future) -> None:
    exc = future.exception()
    if exc is not None:
        logger.error("Background notification crashed: %s", exc)


def safe_notify(
    dispatcher: Optional[NotificationDispatcher],
    student_id: int,
    event: EventKind,
    timestamp: datetime,
    *,
    status: Optional[AttendanceStatus] = None,
) -> Optional[NotificationResult]:
    """Call the dispatcher without ever letting a failure escape the engine."""
    if dispatcher is None:
        return None
    try:
        result = dispatcher.notify(student_id, event, timestamp, status=status)
    except Exception as e:
        logger.warning("Notification for student %s (%s) raised: %s", student_id, event.value, e)
        return NotificationResult(success=False, error=str(e), code="NOTIFICATION_ERROR")

    if not result.success:
        logger.warning(
            "Notification for student %s (%s) failed: %s", student_id, event.value, result.error or "Unknown error"
        )
    return result
