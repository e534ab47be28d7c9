# Role: Sub-dialog that turns an absent or ambiguous timex into a definite one.
# Two phases: ASK_DATE (no usable date) and ASK_TIME (a date whose time is vague). It loops on the
# answer step until the value is definite; cancel is handled by the interruption layer above it.

from __future__ import annotations

from typing import Optional

import campus_bot.config as config
from campus_bot.core import timex
from campus_bot.dialogs.waterfall import StepContext, WaterfallDialog, prompt
from campus_bot.models.dialog import DialogKind
from campus_bot.models.message import Reply
from campus_bot.models.records import DateResolverOptions, ResolverPhase
from campus_bot.models.step_result import End, StepResult, Suspend

ASK_DATE_TEXT = "When would you like to book the appointment?"
ASK_DATE_RETRY_TEXT = (
    "I'm sorry, for best results, please enter the appointment date including the month, day and year."
)
ASK_TIME_TEXT = "What time on {day} would suit you?"
ASK_TIME_RETRY_TEXT = "I'm sorry, please enter a time such as 10am or 14:30."


def phase_for(value: Optional[str]) -> ResolverPhase:
    return ResolverPhase.ASK_DATE if timex.needs_date(value) else ResolverPhase.ASK_TIME


class DateResolverDialog(WaterfallDialog):
    kind = DialogKind.DATE_RESOLVER
    options_type = DateResolverOptions

    def __init__(self) -> None:
        super().__init__([self.initial_step, self.answer_step])

    def initial_step(self, step: StepContext) -> StepResult:
        options: DateResolverOptions = step.options
        if timex.is_definite(options.timex):
            return End(options.timex)

        options.phase = phase_for(options.timex)
        return Suspend(self._question(options, step, retry=False))

    def answer_step(self, step: StepContext) -> StepResult:
        # 1) Parse the answer for the current phase (date, or time merged onto the known date)
        # 2) Unreadable answer -> re-ask the same phase
        # 3) Readable but still not definite -> re-classify and ask again
        # 4) Definite -> end with the timex
        options: DateResolverOptions = step.options
        answer = step.result if isinstance(step.result, str) else ""

        candidate = timex.parse_user_date(answer, step.now.date())
        if candidate is None and options.phase == ResolverPhase.ASK_TIME:
            # Key line: a bare time answers "what time" for the date we already have.
            time_part = timex.parse_user_time(answer)
            if time_part:
                candidate = timex.merge(options.timex, time_part)

        if config.DEBUG:
            print(f"DATE RESOLVER: phase={options.phase} answer={answer!r} candidate={candidate!r}")

        if candidate is None:
            return Suspend(self._question(options, step, retry=True), retry=True)

        if timex.is_definite(candidate):
            return End(candidate)

        options.timex = candidate
        options.phase = phase_for(candidate)
        # An incomplete date (e.g. no year) gets the more explicit wording.
        explicit = options.phase == ResolverPhase.ASK_DATE
        return Suspend(self._question(options, step, retry=explicit), retry=True)

    def _question(self, options: DateResolverOptions, step: StepContext, *, retry: bool) -> Reply:
        if options.phase == ResolverPhase.ASK_TIME:
            if retry:
                return prompt(ASK_TIME_RETRY_TEXT)
            day = timex.to_natural_language(timex.date_part(options.timex), step.now)
            return prompt(ASK_TIME_TEXT.format(day=day))
        return prompt(ASK_DATE_RETRY_TEXT if retry else ASK_DATE_TEXT)
