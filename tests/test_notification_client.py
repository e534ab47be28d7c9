from datetime import datetime

import requests

from campus_bot.models.records import AppointmentRecord
from campus_bot.tools.notification_client import NotificationClient

RECORD = AppointmentRecord(
    student_id="12345",
    email="jo@herts.ac.uk",
    purpose="one-to-one",
    professor="Dr. Smith",
    date="2026-01-20T10:00",
)


class FakeResponse:
    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


def test_posts_booking_payload(monkeypatch):
    sent = {}

    def fake_post(url, json=None, timeout=None):
        sent.update(url=url, json=json)
        return FakeResponse()

    monkeypatch.setattr(requests, "post", fake_post)
    result = NotificationClient("https://relay.example.com/hook").send_booking(RECORD, datetime(2026, 1, 15, 9, 0))

    assert result.ok
    assert sent["url"] == "https://relay.example.com/hook"
    assert sent["json"]["to"] == "jo@herts.ac.uk"
    assert sent["json"]["timex"] == "2026-01-20T10:00"
    assert "20th January 2026 at 10AM" in sent["json"]["body"]


def test_failure_is_reported(monkeypatch):
    monkeypatch.setattr(requests, "post", lambda *a, **kw: FakeResponse(500))
    result = NotificationClient("https://relay.example.com/hook").send_booking(RECORD, datetime(2026, 1, 15))
    assert not result.ok


def test_unconfigured_relay_is_skipped(monkeypatch):
    monkeypatch.delenv("NOTIFY_WEBHOOK_URL", raising=False)
    assert NotificationClient().send_booking(RECORD, datetime(2026, 1, 15)).ok is False
