# Role: Persisted shape of the dialog stack. A DialogFrame is one suspended/active dialog instance:
# which dialog, which step runs next, the typed record it owns, and the prompt it is waiting on.

from __future__ import annotations

from enum import Enum
from typing import Annotated, Optional, Union

from pydantic import BaseModel, Field

from campus_bot.models.message import Reply
from campus_bot.models.records import (
    AppointmentRecord,
    DateResolverOptions,
    RouterOptions,
    StudentLetterRecord,
)


class DialogKind(str, Enum):
    MAIN = "main"
    APPOINTMENT = "appointment"
    STUDENT_LETTER = "student_letter"
    DATE_RESOLVER = "date_resolver"


DialogOptions = Annotated[
    Union[RouterOptions, AppointmentRecord, StudentLetterRecord, DateResolverOptions],
    Field(discriminator="kind"),
]


class DialogFrame(BaseModel):
    dialog: DialogKind
    step_index: int = 0
    options: Optional[DialogOptions] = None

    # Key line: the prompt this frame is suspended on, so "help" can re-ask it next turn.
    prompt: Optional[Reply] = None
