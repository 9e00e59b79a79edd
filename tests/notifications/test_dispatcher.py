from __future__ import annotations

from datetime import datetime

import requests

from src.qrattend.qrattend.core.enums import AttendanceStatus, EventKind
from src.qrattend.qrattend.notifications import dispatcher as dispatcher_module
from src.qrattend.qrattend.notifications.dispatcher import (
    BackgroundDispatcher,
    GuardianNotifier,
    LogTransport,
    NotificationResult,
    WebhookTransport,
    safe_notify,
)
from src.qrattend.qrattend.notifications.messages import render
from tests.fakes import RecordingDispatcher, make_student

STAMP = datetime(2025, 3, 8, 18, 30)


class CapturingTransport:
    def __init__(self):
        self.sent = []

    def send(self, phone: str, text: str) -> NotificationResult:
        self.sent.append((phone, text))
        return NotificationResult(success=True, message_id="abc")


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self._body = body if body is not None else {"success": True, "messageId": "wa-123"}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._body


def test_auto_checkout_message_mentions_cutoff_time():
    text = render(make_student("S001", name="Nimal Perera"), EventKind.AUTO_CHECKOUT, STAMP)

    assert "Nimal Perera (Index: S001)" in text
    assert "06:30 PM" in text
    assert "did not scan" in text


def test_entry_and_manual_messages_use_guardian_wording():
    student = make_student()

    assert "Entered School" in render(student, EventKind.ENTRY, STAMP)
    assert "Left School" in render(student, EventKind.EXIT, STAMP)
    assert "Late" in render(student, EventKind.MANUAL, STAMP, AttendanceStatus.LATE)


def test_guardian_notifier_without_phone(repo):
    sid = repo.add(make_student(phone=None)).student_id
    transport = CapturingTransport()

    result = GuardianNotifier(repo, transport).notify(sid, EventKind.ENTRY, STAMP)

    assert result.success is False
    assert result.code == "NO_PHONE_NUMBER"
    assert transport.sent == []


def test_guardian_notifier_unknown_student(repo):
    result = GuardianNotifier(repo, CapturingTransport()).notify(404, EventKind.ENTRY, STAMP)

    assert result.success is False
    assert result.code == "STUDENT_NOT_FOUND"


def test_guardian_notifier_strips_spaces_from_phone(repo):
    sid = repo.add(make_student(phone="+94 77 123 4567")).student_id
    transport = CapturingTransport()

    result = GuardianNotifier(repo, transport).notify(sid, EventKind.AUTO_CHECKOUT, STAMP)

    assert result.success is True
    assert transport.sent[0][0] == "+94771234567"


def test_webhook_transport_posts_json(monkeypatch):
    captured = {}

    def fake_post(url, json=None, headers=None, timeout=None):
        captured.update(url=url, json=json, headers=headers, timeout=timeout)
        return FakeResponse()

    monkeypatch.setattr(dispatcher_module.requests, "post", fake_post)

    result = WebhookTransport("http://gateway.local/send", token="t0k", timeout=3).send("+94771234567", "hi")

    assert result.success is True
    assert result.message_id == "wa-123"
    assert captured["json"] == {"phone": "+94771234567", "message": "hi"}
    assert captured["headers"]["Authorization"] == "Bearer t0k"
    assert captured["timeout"] == 3


def test_gateway_error_becomes_failed_result(repo, monkeypatch):
    def fake_post(url, json=None, headers=None, timeout=None):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(dispatcher_module.requests, "post", fake_post)
    sid = repo.add(make_student()).student_id

    result = GuardianNotifier(repo, WebhookTransport("http://gateway.local/send")).notify(
        sid, EventKind.EXIT, STAMP
    )

    assert result.success is False
    assert result.code == "NOTIFICATION_ERROR"
    assert "connection refused" in result.error


def test_gateway_rejection_in_body_becomes_failed_result(repo, monkeypatch):
    monkeypatch.setattr(
        dispatcher_module.requests,
        "post",
        lambda *a, **kw: FakeResponse(body={"success": False, "error": "WhatsApp not connected"}),
    )
    sid = repo.add(make_student()).student_id

    result = GuardianNotifier(repo, WebhookTransport("http://gateway.local/send")).notify(
        sid, EventKind.ENTRY, STAMP
    )

    assert result.success is False
    assert result.error == "WhatsApp not connected"


def test_safe_notify_turns_exceptions_into_results():
    broken = RecordingDispatcher(error=RuntimeError("boom"))

    result = safe_notify(broken, 1, EventKind.ENTRY, STAMP)

    assert result.success is False
    assert result.error == "boom"
    assert safe_notify(None, 1, EventKind.ENTRY, STAMP) is None


def test_background_dispatcher_queues_and_delivers():
    inner = RecordingDispatcher()
    background = BackgroundDispatcher(inner)

    result = background.notify(7, EventKind.AUTO_CHECKOUT, STAMP)
    background.shutdown(wait=True)

    assert result.queued is True
    assert inner.calls == [(7, EventKind.AUTO_CHECKOUT, STAMP, None)]


def test_log_transport_always_succeeds():
    assert LogTransport().send("+94771234567", "hello").success is True
