from functools import partial

from conftest import NOW

from campus_bot.dialogs.appointment_dialog import derive_purpose
from campus_bot.dialogs.field_collector import FieldCollector
from campus_bot.dialogs.waterfall import StepContext, TurnContext
from campus_bot.models.dialog import DialogFrame, DialogKind
from campus_bot.models.records import AppointmentRecord, StudentLetterRecord
from campus_bot.models.step_result import Continue, Suspend
from campus_bot.utils.choices import match_choice, parse_email


def _ctx(record, result=None):
    frame = DialogFrame(dialog=DialogKind.APPOINTMENT, options=record)
    turn = TurnContext(session_id="s", utterance=result or "", now=NOW)
    return StepContext(frame=frame, result=result, turn=turn)


def test_unset_field_prompts():
    collector = FieldCollector("student_id", "Please enter your student ID?")
    result = collector.ask(_ctx(AppointmentRecord()))
    assert isinstance(result, Suspend)
    assert result.prompt.text == "Please enter your student ID?"
    assert result.retry is False


def test_store_trims_and_sets_only_its_field():
    record = AppointmentRecord(professor="Dr. Smith")
    ctx = _ctx(record, "  12345  ")
    result = FieldCollector("student_id", "id?").store(ctx)
    assert result == Continue("12345")
    assert ctx.options.student_id == "12345"
    assert ctx.options.model_dump(exclude={"student_id"}) == record.model_dump(exclude={"student_id"})


def test_already_set_field_is_idempotent():
    collector = FieldCollector("professor", "Who?")
    ctx = _ctx(AppointmentRecord(professor="Dr. Smith"))
    before = ctx.options.model_dump()

    first = collector.ask(ctx)
    second = collector.ask(ctx)

    assert first == second == Continue("Dr. Smith")
    assert ctx.options.model_dump() == before


def test_derive_rule_fills_without_prompting():
    collector = FieldCollector("purpose", "What is the purpose?", derive=derive_purpose)
    ctx = _ctx(AppointmentRecord(professor="Dr. Smith"))
    assert collector.ask(ctx) == Continue("one-to-one")
    assert ctx.options.purpose == "one-to-one"


def test_derive_rule_not_applicable_prompts():
    collector = FieldCollector("purpose", "What is the purpose?", derive=derive_purpose)
    result = collector.ask(_ctx(AppointmentRecord()))
    assert isinstance(result, Suspend)
    assert result.prompt.text == "What is the purpose?"


def test_malformed_answer_is_retried_without_advancing():
    collector = FieldCollector("email", "E-mail?", retry_text="Not an e-mail.", parse=parse_email)
    ctx = _ctx(AppointmentRecord(), "not-an-email")
    result = collector.store(ctx)
    assert isinstance(result, Suspend)
    assert result.retry is True
    assert result.prompt.text == "Not an e-mail."
    assert ctx.options.email is None


def test_blank_answer_is_retried():
    result = FieldCollector("student_id", "id?").store(_ctx(AppointmentRecord(), "   "))
    assert isinstance(result, Suspend) and result.retry


def test_suggested_replies_travel_with_the_prompt():
    collector = FieldCollector("letter_type", "Which letter?", suggested_replies=["A", "B"])
    frame = DialogFrame(dialog=DialogKind.STUDENT_LETTER, options=StudentLetterRecord())
    ctx = StepContext(frame=frame, result=None, turn=TurnContext(session_id="s", utterance="", now=NOW))
    result = collector.ask(ctx)
    assert isinstance(result, Suspend)
    assert result.prompt.suggested_replies == ["A", "B"]


def test_store_passes_a_known_field_through_untouched():
    # The value would be rejected by the parser if it were an answer.
    collector = FieldCollector("email", "E-mail?", retry_text="Not an e-mail.", parse=parse_email)
    ctx = _ctx(AppointmentRecord(email="legacy-address"))
    before = ctx.options.model_dump()

    passed = collector.ask(ctx)
    stored = collector.store(StepContext(frame=ctx.frame, result=passed.value, turn=ctx.turn))

    assert stored == Continue("legacy-address")
    assert ctx.options.model_dump() == before


def test_store_does_not_normalize_a_known_choice():
    collector = FieldCollector(
        "letter_type",
        "Which letter?",
        parse=partial(match_choice, choices=["Bank Letter", "Student status Letter"]),
    )
    frame = DialogFrame(dialog=DialogKind.STUDENT_LETTER, options=StudentLetterRecord(letter_type="bank"))
    turn = TurnContext(session_id="s", utterance="", now=NOW)

    passed = collector.ask(StepContext(frame=frame, result=None, turn=turn))
    stored = collector.store(StepContext(frame=frame, result=passed.value, turn=turn))

    assert stored == Continue("bank")
    assert frame.options.letter_type == "bank"
