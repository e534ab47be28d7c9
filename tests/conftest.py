from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

import pytest

from campus_bot.core.flow_controller import FlowController
from campus_bot.core.state_manager import StateManager
from campus_bot.llm.intent_classifier import IntentResult
from campus_bot.models.intent import Intent
from campus_bot.models.records import AppointmentRecord
from campus_bot.tools.notification_client import NotificationResult
from campus_bot.tools.qna_client import QnAAnswer, QnAToolResult

# Thursday morning; every date in the tests is relative to this.
NOW = datetime(2026, 1, 15, 9, 0)


class FakeClassifier:
    """Stand-in for IntentClassifier: maps an utterance to a canned IntentResult."""

    def __init__(self, rules: Optional[Dict[str, IntentResult]] = None, configured: bool = True) -> None:
        self.rules = rules or {}
        self.configured = configured
        self.calls: List[str] = []
        self.error: Optional[Exception] = None

    @property
    def is_configured(self) -> bool:
        return self.configured

    def classify(self, user_message, today=None) -> IntentResult:
        self.calls.append(user_message)
        if self.error is not None:
            raise self.error
        for needle, result in self.rules.items():
            if needle in user_message.lower():
                return result
        return IntentResult(intent=Intent.NONE, confidence=0.2, raw_label="None")


class FakeQnA:
    def __init__(self, answers: Optional[Dict[str, List[QnAAnswer]]] = None, ok: bool = True) -> None:
        self.answers = answers or {}
        self.ok = ok
        self.calls: List[str] = []

    @property
    def is_configured(self) -> bool:
        return True

    def get_answers(self, question: str) -> QnAToolResult:
        self.calls.append(question)
        if not self.ok:
            return QnAToolResult(ok=False, answers=[], error="boom")
        for needle, answers in self.answers.items():
            if needle in question.lower():
                return QnAToolResult(ok=True, answers=answers)
        return QnAToolResult(ok=True, answers=[])


class FakeNotifier:
    def __init__(self) -> None:
        self.sent: List[Tuple[AppointmentRecord, datetime]] = []

    def send_booking(self, record: AppointmentRecord, confirmed_at: datetime) -> NotificationResult:
        self.sent.append((record.model_copy(deep=True), confirmed_at))
        return NotificationResult(ok=True)


def book_with(professor: Optional[str] = None, **entities: str) -> IntentResult:
    if professor is not None:
        entities["professor"] = professor
    return IntentResult(intent=Intent.BOOK_APPOINTMENT, confidence=0.9, entities=entities, raw_label="BookAppointment")


@pytest.fixture
def classifier() -> FakeClassifier:
    return FakeClassifier(
        {
            "dr. smith": book_with("Dr. Smith"),
            "book": book_with(),
            "letter": IntentResult(intent=Intent.STUDENT_LETTER, confidence=0.85, raw_label="StudentLetter"),
            "office hours": IntentResult(intent=Intent.OFFICE_HOURS, confidence=0.8, raw_label="OfficeHours"),
            "weather": IntentResult(intent=Intent.NONE, confidence=0.6, raw_label="Weather"),
        }
    )


@pytest.fixture
def qna() -> FakeQnA:
    return FakeQnA(
        {
            "library": [
                QnAAnswer(
                    answer="The library is open 24/7 during term time.",
                    score=0.95,
                    follow_up_prompts=["Holiday opening hours", "Printing"],
                )
            ]
        }
    )


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: NOW


@pytest.fixture
def flow(classifier, qna, notifier, clock) -> FlowController:
    return FlowController(
        state_manager=StateManager(),
        intent_classifier=classifier,
        qna_client=qna,
        notification_client=notifier,
        clock=clock,
    )


def texts(response) -> List[str]:
    return [m.text for m in response.messages]
