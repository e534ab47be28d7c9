# Role: Top-level router dialog (intro -> act -> final, then Replace itself).
# It classifies the utterance and queries the knowledge base side by side, starts the matching task dialog
# with whatever entities were extracted, or answers directly (QnA, office hours, "didn't get that").

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Optional

import campus_bot.config as config
from campus_bot.core import timex
from campus_bot.dialogs.student_letter_dialog import LETTER_TYPES
from campus_bot.dialogs.waterfall import StepContext, WaterfallDialog, prompt
from campus_bot.llm.intent_classifier import IntentClassifier, IntentResult
from campus_bot.models.dialog import DialogKind
from campus_bot.models.intent import Intent
from campus_bot.models.message import Reply
from campus_bot.models.records import (
    AppointmentRecord,
    GreetingMode,
    RouterOptions,
    StudentLetterRecord,
)
from campus_bot.models.step_result import BeginChild, Continue, Replace, StepResult, Suspend
from campus_bot.tools.qna_client import QnAClient, QnAToolResult
from campus_bot.utils.choices import match_choice

FRESH_GREETING = "What can I help you with today?"
CONTINUATION_GREETING = "What else can I do for you?"
NOT_CONFIGURED_NOTE = (
    "NOTE: the intent classifier is not configured. To enable all capabilities, add 'GEMINI_API_KEY' "
    "to the .env file."
)
OFFICE_HOURS_TEXT = (
    "Staff office hours are listed on each member of staff's profile page. "
    "If you'd like to meet someone, just ask me to book an appointment."
)
NO_ANSWER_TEXT = "Sorry, could not find an answer to your question"
DIDNT_UNDERSTAND_TEXT = "Sorry, I didn't get that. Please try asking in a different way (intent was {intent})"
BOOKED_TEXT = "I have you booked {purpose} with {professor} on {date}"
LETTER_TEXT = "Thanks, your request for a {letter_type} (student ID {student_id}) has been submitted."


def _entity(entities: Dict[str, str], name: str) -> Optional[str]:
    value = entities.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def appointment_from_entities(entities: Dict[str, str]) -> AppointmentRecord:
    # Key line: only the date part of the datetime entity is kept; the resolver asks for anything missing.
    return AppointmentRecord(
        professor=_entity(entities, "professor"),
        purpose=_entity(entities, "purpose"),
        date=timex.date_part(_entity(entities, "datetime")),
    )


def student_letter_from_entities(entities: Dict[str, str]) -> StudentLetterRecord:
    # Key line: a letter type that matches none of the offered choices is dropped, so the dialog asks for it.
    return StudentLetterRecord(
        student_id=_entity(entities, "student_id"),
        letter_type=match_choice(_entity(entities, "letter_type"), LETTER_TYPES),
    )


class MainDialog(WaterfallDialog):
    kind = DialogKind.MAIN
    options_type = RouterOptions

    def __init__(
        self,
        intent_classifier: Optional[IntentClassifier] = None,
        qna_client: Optional[QnAClient] = None,
    ) -> None:
        # Key line: dependencies are injectable for testing/mocking.
        self.intent_classifier = intent_classifier or IntentClassifier()
        self.qna_client = qna_client or QnAClient()
        super().__init__([self.intro_step, self.act_step, self.final_step])

    def intro_step(self, step: StepContext) -> StepResult:
        # 1) Degraded-mode notice (once, on a fresh start)
        # 2) Begun with an utterance -> route it now
        # 3) Otherwise greet according to the router's greeting mode and wait
        options: RouterOptions = step.options

        if not self.intent_classifier.is_configured and options.greeting == GreetingMode.FRESH:
            step.send(Reply(text=NOT_CONFIGURED_NOTE))

        if options.utterance is not None:
            return Continue(options.utterance)

        if options.greeting == GreetingMode.QUIET:
            return Suspend(None)
        if options.greeting == GreetingMode.CONTINUATION:
            return Suspend(prompt(CONTINUATION_GREETING))
        return Suspend(prompt(FRESH_GREETING))

    def act_step(self, step: StepContext) -> StepResult:
        options: RouterOptions = step.options
        options.next_greeting = GreetingMode.CONTINUATION
        utterance = step.result if isinstance(step.result, str) else ""

        if not self.intent_classifier.is_configured:
            # Key line: no classifier -> run the default task with nothing prefilled.
            return BeginChild(DialogKind.APPOINTMENT, AppointmentRecord())

        intent_result, qna_result = self._recognize(utterance, step)

        top_intent = intent_result.intent
        if qna_result.top_score > intent_result.confidence:
            top_intent = Intent.QNA

        if config.DEBUG:
            print("\n--- ROUTER ---")
            print("UTTERANCE:", utterance)
            print("CLASSIFIER:", intent_result.raw_label, intent_result.confidence)
            print("QNA ok/top score:", qna_result.ok, qna_result.top_score)
            print("ROUTED TO:", top_intent)
            print("--------------\n")

        if top_intent == Intent.BOOK_APPOINTMENT:
            return BeginChild(DialogKind.APPOINTMENT, appointment_from_entities(intent_result.entities))

        if top_intent == Intent.STUDENT_LETTER:
            return BeginChild(DialogKind.STUDENT_LETTER, student_letter_from_entities(intent_result.entities))

        if top_intent == Intent.OFFICE_HOURS:
            step.send(Reply(text=OFFICE_HOURS_TEXT))
            return Continue(None)

        if top_intent == Intent.QNA:
            self._send_answer(step, qna_result)
            options.next_greeting = GreetingMode.QUIET
            return Continue(None)

        if not qna_result.ok and self.qna_client.is_configured:
            # Knowledge base was unreachable and the classifier had nothing either.
            step.send(Reply(text=NO_ANSWER_TEXT))
            return Continue(None)

        step.send(Reply(text=DIDNT_UNDERSTAND_TEXT.format(intent=intent_result.raw_label)))
        return Continue(None)

    def final_step(self, step: StepContext) -> StepResult:
        # A None result means: declined, cancelled below us, or nothing to start. Nothing to report then.
        options: RouterOptions = step.options
        result = step.result

        if isinstance(result, AppointmentRecord):
            when = timex.to_natural_language(result.date, step.now)
            step.send(Reply(text=BOOKED_TEXT.format(purpose=result.purpose, professor=result.professor, date=when)))
        elif isinstance(result, StudentLetterRecord):
            step.send(Reply(text=LETTER_TEXT.format(letter_type=result.letter_type, student_id=result.student_id)))

        # Key line: restart the router with the greeting chosen this round (never a shared flag).
        return Replace(DialogKind.MAIN, RouterOptions(greeting=options.next_greeting))

    def _recognize(self, utterance: str, step: StepContext) -> tuple[IntentResult, QnAToolResult]:
        # Both external calls run side by side; only their results are compared.
        with ThreadPoolExecutor(max_workers=2) as pool:
            intent_future = pool.submit(self.intent_classifier.classify, utterance, step.now.date())
            qna_future = pool.submit(self.qna_client.get_answers, utterance)

            try:
                intent_result = intent_future.result()
            except (RuntimeError, ValueError) as e:
                if config.DEBUG:
                    print("ROUTER: classifier failed:", repr(e))
                intent_result = IntentResult(intent=Intent.NONE, confidence=0.0)

            qna_result = qna_future.result()

        if not qna_result.ok and config.DEBUG:
            print("ROUTER: knowledge base unavailable:", qna_result.error)
        return intent_result, qna_result

    def _send_answer(self, step: StepContext, qna_result: QnAToolResult) -> None:
        if not qna_result.answers:
            step.send(Reply(text=NO_ANSWER_TEXT))
            return
        best = qna_result.answers[0]
        step.send(Reply(text=best.answer, suggested_replies=best.follow_up_prompts))
