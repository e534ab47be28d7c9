# Role: The reusable "collect one field" unit. A FieldCollector contributes two waterfall steps:
# ask (skip if known, derive if possible, otherwise prompt) and store (trim, validate, write the one field).

from __future__ import annotations

from typing import Any, Callable, List, Optional, Sequence

from pydantic import BaseModel

import campus_bot.config as config
from campus_bot.dialogs.waterfall import Step, StepContext, prompt
from campus_bot.models.message import Reply
from campus_bot.models.step_result import Continue, StepResult, Suspend

DeriveRule = Callable[[BaseModel], Optional[Any]]
Parser = Callable[[str], Optional[Any]]


class FieldCollector:
    """
    Collects `field` on the frame's record.

    - Field already set: ask passes the existing value through (no prompt, no mutation).
    - Field unset and `derive` returns a value: the value is written without prompting.
    - Otherwise ask suspends with `prompt_text`; store receives the raw answer on the next turn.
    - store passes an already-set field through unchanged, so only answers are parsed.

    `parse` turns a trimmed answer into the stored value; None means malformed, and the
    retry prompt is sent without advancing the step.
    """

    def __init__(
        self,
        field: str,
        prompt_text: str,
        *,
        retry_text: Optional[str] = None,
        suggested_replies: Optional[Sequence[str]] = None,
        derive: Optional[DeriveRule] = None,
        parse: Optional[Parser] = None,
    ) -> None:
        self.field = field
        self.prompt_text = prompt_text
        self.retry_text = retry_text or prompt_text
        self.suggested_replies = list(suggested_replies or [])
        self.derive = derive
        self.parse = parse

    @property
    def steps(self) -> List[Step]:
        return [self.ask, self.store]

    def ask(self, step: StepContext) -> StepResult:
        record = step.options
        current = getattr(record, self.field)
        if current is not None:
            return Continue(current)

        if self.derive is not None:
            derived = self.derive(record)
            if derived is not None:
                if config.DEBUG:
                    print(f"FIELD {self.field}: derived {derived!r}")
                setattr(record, self.field, derived)
                return Continue(derived)

        return Suspend(self._prompt(self.prompt_text))

    def store(self, step: StepContext) -> StepResult:
        # Key line: a field that ask passed through (known or derived) is never re-parsed or rewritten.
        current = getattr(step.options, self.field)
        if current is not None:
            return Continue(current)

        raw = step.result
        text = raw.strip() if isinstance(raw, str) else raw

        value = text
        if isinstance(text, str):
            value = self.parse(text) if self.parse is not None else (text or None)

        if value is None:
            if config.DEBUG:
                print(f"FIELD {self.field}: rejected {raw!r}")
            return Suspend(self._prompt(self.retry_text), retry=True)

        setattr(step.options, self.field, value)
        return Continue(value)

    def _prompt(self, text: str) -> Reply:
        return prompt(text, self.suggested_replies)
