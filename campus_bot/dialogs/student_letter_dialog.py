# Role: StudentLetter task. Collects the student id and the letter type (quick replies), confirms, and ends
# with the record (or None when the user declines).

from __future__ import annotations

from functools import partial

from campus_bot.dialogs.field_collector import FieldCollector
from campus_bot.dialogs.waterfall import StepContext, WaterfallDialog, prompt
from campus_bot.models.dialog import DialogKind
from campus_bot.models.records import StudentLetterRecord
from campus_bot.models.step_result import End, StepResult, Suspend
from campus_bot.utils.choices import match_choice, parse_yes_no

STUDENT_ID_TEXT = "Please enter your student ID?"
LETTER_TYPE_TEXT = "What type of letter do you want?"
LETTER_TYPE_RETRY_TEXT = "Please pick one of the letter types below: what type of letter do you want?"
CONFIRM_TEXT = "Please confirm, You need a {letter_type}"
CONFIRM_RETRY_TEXT = "Please answer yes or no. " + CONFIRM_TEXT

LETTER_TYPES = ["Bank Letter", "Student status Letter"]
YES_NO = ["Yes", "No"]


class StudentLetterDialog(WaterfallDialog):
    kind = DialogKind.STUDENT_LETTER
    options_type = StudentLetterRecord

    def __init__(self) -> None:
        student_id = FieldCollector("student_id", STUDENT_ID_TEXT)
        letter_type = FieldCollector(
            "letter_type",
            LETTER_TYPE_TEXT,
            retry_text=LETTER_TYPE_RETRY_TEXT,
            suggested_replies=LETTER_TYPES,
            parse=partial(match_choice, choices=LETTER_TYPES),
        )
        super().__init__([*student_id.steps, *letter_type.steps, self.confirm_step, self.final_step])

    def confirm_step(self, step: StepContext) -> StepResult:
        record: StudentLetterRecord = step.options
        return Suspend(prompt(CONFIRM_TEXT.format(letter_type=record.letter_type), YES_NO))

    def final_step(self, step: StepContext) -> StepResult:
        record: StudentLetterRecord = step.options
        confirmed = parse_yes_no(step.result)
        if confirmed is None:
            return Suspend(prompt(CONFIRM_RETRY_TEXT.format(letter_type=record.letter_type), YES_NO), retry=True)
        return End(record if confirmed else None)
