# Role: Outbound booking notification (e-mail relay via webhook). Fire-and-forget from the dialog's point of view:
# every failure is returned as ok=False and only shows up in debug output.

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import requests

import campus_bot.config as config
from campus_bot.core import timex
from campus_bot.models.records import AppointmentRecord


@dataclass(frozen=True)
class NotificationResult:
    ok: bool
    error: Optional[str] = None


class NotificationClient:
    _TIMEOUT_SECONDS = 10

    def __init__(self, webhook_url: Optional[str] = None) -> None:
        self.webhook_url = webhook_url or os.getenv("NOTIFY_WEBHOOK_URL")

    @property
    def is_configured(self) -> bool:
        return bool(self.webhook_url)

    def send_booking(self, record: AppointmentRecord, confirmed_at: datetime) -> NotificationResult:
        # 1) Skip silently when no relay is configured or there is no address
        # 2) POST a plain e-mail payload
        # 3) Report the outcome (callers ignore it)
        if not self.is_configured:
            return NotificationResult(ok=False, error="Notification webhook is not configured")
        if not record.email:
            return NotificationResult(ok=False, error="Record has no e-mail address")

        when = timex.to_natural_language(record.date, confirmed_at)
        payload = {
            "to": record.email,
            "subject": f"Appointment with {record.professor}",
            "body": (
                f"Your {record.purpose} appointment with {record.professor} is booked for {when}.\n"
                f"Student ID: {record.student_id}"
            ),
            "timex": record.date,
            "confirmed_at": confirmed_at.isoformat(),
        }

        try:
            r = requests.post(self.webhook_url, json=payload, timeout=self._TIMEOUT_SECONDS)
            r.raise_for_status()
        except requests.RequestException as e:
            if config.DEBUG:
                print("NOTIFICATION FAILED:", repr(e))
            return NotificationResult(ok=False, error=f"Notification request failed: {e}")

        if config.DEBUG:
            print("NOTIFICATION SENT:", payload["to"], payload["timex"])
        return NotificationResult(ok=True)
