# Role: BookAppointment task. Collects student id, e-mail, purpose, professor and date (via the date resolver),
# asks for confirmation, and on "yes" checks the date against the confirmation time before ending with the record.

from __future__ import annotations

from typing import Optional

import campus_bot.config as config
from campus_bot.core import timex
from campus_bot.dialogs.field_collector import FieldCollector
from campus_bot.dialogs.waterfall import StepContext, WaterfallDialog, prompt
from campus_bot.models.dialog import DialogKind
from campus_bot.models.message import Reply
from campus_bot.models.records import AppointmentRecord, DateResolverOptions
from campus_bot.models.step_result import BeginChild, Continue, End, Replace, StepResult, Suspend
from campus_bot.tools.notification_client import NotificationClient
from campus_bot.utils.choices import parse_email, parse_yes_no

STUDENT_ID_TEXT = "Please enter your student ID?"
EMAIL_TEXT = "What e-mail address should we send the confirmation to?"
EMAIL_RETRY_TEXT = "That doesn't look like an e-mail address. Please enter something like name@herts.ac.uk."
PURPOSE_TEXT = "What is the purpose of appointment?"
PROFESSOR_TEXT = "Who would you like to have the appointment with?"
CONFIRM_TEXT = "Please confirm, Booking {purpose} with {professor} on: {date}. Is this correct?"
CONFIRM_RETRY_TEXT = "Please answer yes or no. " + CONFIRM_TEXT
PAST_DATE_TEXT = "That date has already passed, so I can't book it. Let's pick another date."

DEFAULT_PURPOSE = "one-to-one"
YES_NO = ["Yes", "No"]


def derive_purpose(record: AppointmentRecord) -> Optional[str]:
    # Key line: naming a professor up front means a one-to-one meeting.
    return DEFAULT_PURPOSE if record.professor is not None else None


class AppointmentDialog(WaterfallDialog):
    kind = DialogKind.APPOINTMENT
    options_type = AppointmentRecord

    def __init__(self, notification_client: Optional[NotificationClient] = None) -> None:
        self.notification_client = notification_client or NotificationClient()

        student_id = FieldCollector("student_id", STUDENT_ID_TEXT)
        email = FieldCollector("email", EMAIL_TEXT, retry_text=EMAIL_RETRY_TEXT, parse=parse_email)
        purpose = FieldCollector("purpose", PURPOSE_TEXT, derive=derive_purpose)
        professor = FieldCollector("professor", PROFESSOR_TEXT)

        super().__init__(
            [
                *student_id.steps,
                *email.steps,
                *purpose.steps,
                *professor.steps,
                self.date_step,
                self.store_date_step,
                self.confirm_step,
                self.final_step,
            ]
        )

    def date_step(self, step: StepContext) -> StepResult:
        record: AppointmentRecord = step.options
        if record.date is None or timex.is_ambiguous(record.date):
            return BeginChild(DialogKind.DATE_RESOLVER, DateResolverOptions(timex=record.date))
        return Continue(record.date)

    def store_date_step(self, step: StepContext) -> StepResult:
        record: AppointmentRecord = step.options
        record.date = step.result
        return Continue(record.date)

    def confirm_step(self, step: StepContext) -> StepResult:
        return Suspend(self._confirmation(step.options, retry=False))

    def final_step(self, step: StepContext) -> StepResult:
        # 1) Unrecognized answer -> re-ask the confirmation (index does not move)
        # 2) "no" -> end with no result
        # 3) "yes" -> one reference time (this turn) for the past-date check and the notification check
        record: AppointmentRecord = step.options
        confirmed = parse_yes_no(step.result)
        if confirmed is None:
            return Suspend(self._confirmation(record, retry=True), retry=True)

        if not confirmed:
            return End(None)

        confirmed_at = step.now
        if timex.is_past(record.date, confirmed_at):
            if config.DEBUG:
                print(f"APPOINTMENT: {record.date} is before {confirmed_at.isoformat()}, asking for a new date")
            step.send(Reply(text=PAST_DATE_TEXT))
            retry_record = record.model_copy(update={"date": None})
            return Replace(DialogKind.APPOINTMENT, retry_record)

        if timex.is_future(record.date, confirmed_at):
            result = self.notification_client.send_booking(record, confirmed_at)
            if config.DEBUG and not result.ok:
                print("APPOINTMENT: notification not delivered:", result.error)

        return End(record)

    def _confirmation(self, record: AppointmentRecord, *, retry: bool) -> Reply:
        template = CONFIRM_RETRY_TEXT if retry else CONFIRM_TEXT
        text = template.format(purpose=record.purpose, professor=record.professor, date=record.date)
        return prompt(text, YES_NO)
