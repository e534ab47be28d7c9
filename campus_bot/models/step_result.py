# Role: Small typed contract between a waterfall step and the DialogStack. Every step returns exactly one
# of these; the DialogStack turns it into a stack transition (see DialogStack._run).

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import BaseModel

from campus_bot.models.dialog import DialogKind
from campus_bot.models.message import Reply


@dataclass(frozen=True)
class Suspend:
    prompt: Optional[Reply]
    # Key line: retry=True re-asks without advancing, so the same step receives the next answer.
    retry: bool = False


@dataclass(frozen=True)
class Continue:
    value: Any = None


@dataclass(frozen=True)
class BeginChild:
    dialog: DialogKind
    options: Optional[BaseModel] = None


@dataclass(frozen=True)
class Replace:
    dialog: DialogKind
    options: Optional[BaseModel] = None


@dataclass(frozen=True)
class End:
    result: Any = None


StepResult = Union[Suspend, Continue, BeginChild, Replace, End]
