# Role: Typed per-dialog records ("options" of a frame). Each dialog kind owns exactly one of these;
# the `kind` literal is the discriminator used when a persisted stack is loaded back.
# Task records declare their fields in collection order and start with every field unset.

from __future__ import annotations

from enum import Enum
from typing import ClassVar, List, Literal, Optional

from pydantic import BaseModel


class GreetingMode(str, Enum):
    FRESH = "fresh"
    CONTINUATION = "continuation"
    # Key line: after a knowledge-base answer the router waits without sending another prompt.
    QUIET = "quiet"


class RouterOptions(BaseModel):
    kind: Literal["router"] = "router"
    greeting: GreetingMode = GreetingMode.FRESH

    # Set when the router is begun on an idle conversation: the utterance goes straight to routing.
    utterance: Optional[str] = None

    # Greeting for the next round, chosen by the act step (threaded into Replace by the final step).
    next_greeting: GreetingMode = GreetingMode.CONTINUATION


class AppointmentRecord(BaseModel):
    kind: Literal["appointment"] = "appointment"
    student_id: Optional[str] = None
    email: Optional[str] = None
    purpose: Optional[str] = None
    professor: Optional[str] = None
    # Timex expression, e.g. "2023-05-01" or "2023-05-01T14:00".
    date: Optional[str] = None

    REQUIRED_FIELDS: ClassVar[List[str]] = ["student_id", "email", "purpose", "professor", "date"]

    def missing_fields(self) -> List[str]:
        return [name for name in self.REQUIRED_FIELDS if getattr(self, name) is None]


class StudentLetterRecord(BaseModel):
    kind: Literal["student_letter"] = "student_letter"
    student_id: Optional[str] = None
    letter_type: Optional[str] = None

    REQUIRED_FIELDS: ClassVar[List[str]] = ["student_id", "letter_type"]

    def missing_fields(self) -> List[str]:
        return [name for name in self.REQUIRED_FIELDS if getattr(self, name) is None]


class ResolverPhase(str, Enum):
    ASK_DATE = "ask_date"
    ASK_TIME = "ask_time"


class DateResolverOptions(BaseModel):
    kind: Literal["date_resolver"] = "date_resolver"
    timex: Optional[str] = None
    phase: Optional[ResolverPhase] = None
