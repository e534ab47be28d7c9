# Role: Step plumbing shared by every dialog. A WaterfallDialog is an ordered list of steps; each step gets a
# StepContext (its frame, the value handed to it, the turn) and returns one StepResult.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, ClassVar, List, Optional, Sequence, Type

from pydantic import BaseModel

from campus_bot.models.dialog import DialogFrame, DialogKind
from campus_bot.models.message import Reply
from campus_bot.models.step_result import StepResult


@dataclass
class TurnContext:
    """Everything one incoming turn carries: who, what was said, the turn's reference time, and the outbox."""

    session_id: str
    utterance: str
    now: datetime
    outbox: List[Reply] = field(default_factory=list)

    def send(self, reply: Reply) -> None:
        self.outbox.append(reply)


@dataclass
class StepContext:
    frame: DialogFrame
    result: Any
    turn: TurnContext

    @property
    def options(self) -> Any:
        return self.frame.options

    @property
    def now(self) -> datetime:
        return self.turn.now

    def send(self, reply: Reply) -> None:
        self.turn.send(reply)


Step = Callable[[StepContext], StepResult]


class WaterfallDialog:
    kind: ClassVar[DialogKind]
    options_type: ClassVar[Type[BaseModel]]
    interruptible: ClassVar[bool] = True

    def __init__(self, steps: Sequence[Step]) -> None:
        self.steps: List[Step] = list(steps)

    def new_options(self, options: Optional[BaseModel] = None) -> BaseModel:
        # Key line: the frame owns its own copy; the caller's record is never aliased.
        if options is None:
            return self.options_type()
        if not isinstance(options, self.options_type):
            raise TypeError(
                f"{self.kind.value} dialog expects {self.options_type.__name__}, got {type(options).__name__}"
            )
        return options.model_copy(deep=True)


def prompt(text: str, suggested_replies: Optional[Sequence[str]] = None) -> Reply:
    return Reply(text=text, suggested_replies=list(suggested_replies or []))
