from typing import List

import pytest
from conftest import NOW

from campus_bot.core.dialog_stack import DialogNotFoundError, DialogStack
from campus_bot.dialogs.waterfall import StepContext, TurnContext, WaterfallDialog, prompt
from campus_bot.models.dialog import DialogFrame, DialogKind
from campus_bot.models.records import DateResolverOptions, RouterOptions
from campus_bot.models.state import ConversationState
from campus_bot.models.step_result import BeginChild, Continue, End, Replace, Suspend


class Parent(WaterfallDialog):
    """main: ask -> begin child -> echo child's result -> end."""

    kind = DialogKind.MAIN
    options_type = RouterOptions

    def __init__(self) -> None:
        self.seen: List[object] = []
        super().__init__([self.ask, self.start_child, self.after_child])

    def ask(self, step: StepContext):
        return Suspend(prompt("parent?"))

    def start_child(self, step: StepContext):
        self.seen.append(("answer", step.result))
        return BeginChild(DialogKind.DATE_RESOLVER, DateResolverOptions(timex=step.result))

    def after_child(self, step: StepContext):
        self.seen.append(("child", step.result))
        return End(f"done:{step.result}")


class Child(WaterfallDialog):
    """date_resolver: continue -> suspend -> end with what it was given plus the answer."""

    kind = DialogKind.DATE_RESOLVER
    options_type = DateResolverOptions

    def __init__(self) -> None:
        self.calls = 0
        super().__init__([self.first, self.second, self.third])

    def first(self, step: StepContext):
        self.calls += 1
        return Continue("chained")

    def second(self, step: StepContext):
        assert step.result == "chained"
        return Suspend(prompt("child?"))

    def third(self, step: StepContext):
        return End(f"{step.options.timex}+{step.result}")


def _turn(text: str = "") -> TurnContext:
    return TurnContext(session_id="s", utterance=text, now=NOW)


@pytest.fixture
def parent() -> Parent:
    return Parent()


@pytest.fixture
def stack(parent) -> DialogStack:
    return DialogStack([parent, Child()])


def _bounded(stack: DialogStack, state: ConversationState) -> bool:
    return all(0 <= f.step_index <= stack.step_count(f.dialog) for f in state.stack)


def test_begin_runs_first_step_and_suspends(stack):
    state = ConversationState(session_id="s")
    turn = _turn()
    stack.begin_dialog(state, turn, DialogKind.MAIN)

    assert [m.text for m in turn.outbox] == ["parent?"]
    assert len(state.stack) == 1
    assert state.stack[0].step_index == 1
    assert state.stack[0].prompt.text == "parent?"


def test_continue_on_empty_stack_reports_no_active_dialog(stack):
    state = ConversationState(session_id="s")
    assert stack.continue_dialog(state, _turn("hello")) is False
    assert state.stack == []


def test_child_result_lands_on_parent_next_step(stack, parent):
    state = ConversationState(session_id="s")
    stack.begin_dialog(state, _turn(), DialogKind.MAIN)

    turn = _turn("x")
    stack.continue_dialog(state, turn)
    # Child chained first->second in the same turn and suspended.
    assert [f.dialog for f in state.stack] == [DialogKind.MAIN, DialogKind.DATE_RESOLVER]
    assert [m.text for m in turn.outbox] == ["child?"]
    assert state.stack[0].step_index == 2
    assert _bounded(stack, state)

    turn = _turn("y")
    stack.continue_dialog(state, turn)
    assert parent.seen == [("answer", "x"), ("child", "x+y")]
    # Parent ended too: stack exhausted, result discarded.
    assert state.stack == []
    assert turn.outbox == []


def test_each_step_runs_once_per_input(stack):
    child = stack.find(DialogKind.DATE_RESOLVER)
    state = ConversationState(session_id="s")
    stack.begin_dialog(state, _turn(), DialogKind.MAIN)
    stack.continue_dialog(state, _turn("x"))
    assert child.calls == 1


def test_retry_suspend_keeps_step_index():
    class Asker(WaterfallDialog):
        kind = DialogKind.MAIN
        options_type = RouterOptions

        def __init__(self) -> None:
            super().__init__([self.ask, self.check])

        def ask(self, step):
            return Suspend(prompt("number?"))

        def check(self, step):
            if not step.result.isdigit():
                return Suspend(prompt("a NUMBER please"), retry=True)
            return End(int(step.result))

    stack = DialogStack([Asker()])
    state = ConversationState(session_id="s")
    stack.begin_dialog(state, _turn(), DialogKind.MAIN)
    stack.continue_dialog(state, _turn("abc"))
    assert state.stack[0].step_index == 1
    assert state.stack[0].prompt.text == "a NUMBER please"
    stack.continue_dialog(state, _turn("42"))
    assert state.stack == []


def test_replace_keeps_depth_and_starts_fresh():
    class Looper(WaterfallDialog):
        kind = DialogKind.MAIN
        options_type = RouterOptions

        def __init__(self) -> None:
            super().__init__([self.greet, self.restart])

        def greet(self, step):
            text = "again?" if step.options.greeting.value == "continuation" else "hi?"
            return Suspend(prompt(text))

        def restart(self, step):
            return Replace(DialogKind.MAIN, RouterOptions(greeting="continuation"))

    stack = DialogStack([Looper()])
    state = ConversationState(session_id="s")
    stack.begin_dialog(state, _turn(), DialogKind.MAIN)
    turn = _turn("x")
    stack.continue_dialog(state, turn)
    assert len(state.stack) == 1
    assert state.stack[0].step_index == 1
    assert [m.text for m in turn.outbox] == ["again?"]


def test_waterfall_running_off_the_end_ends_with_last_value():
    class Short(WaterfallDialog):
        kind = DialogKind.DATE_RESOLVER
        options_type = DateResolverOptions

        def __init__(self) -> None:
            super().__init__([lambda step: Continue("last")])

    parent = Parent()
    stack = DialogStack([parent, Short()])
    state = ConversationState(session_id="s")
    stack.begin_dialog(state, _turn(), DialogKind.MAIN)
    stack.continue_dialog(state, _turn("x"))
    assert parent.seen[-1] == ("child", "last")


def test_end_dialog_on_empty_stack_is_a_noop(stack):
    state = ConversationState(session_id="s")
    turn = _turn()
    stack.end_dialog(state, turn, result="ignored")
    assert state.stack == []
    assert turn.outbox == []


def test_options_are_copied_into_the_frame(stack):
    options = RouterOptions(utterance="hello")
    state = ConversationState(session_id="s")
    stack.begin_dialog(state, _turn(), DialogKind.MAIN, options)
    assert state.stack[0].options == options
    assert state.stack[0].options is not options


def test_wrong_options_type_is_rejected(stack):
    state = ConversationState(session_id="s")
    with pytest.raises(TypeError):
        stack.begin_dialog(state, _turn(), DialogKind.MAIN, DateResolverOptions())


def test_unknown_dialog_on_the_stack_raises(stack):
    state = ConversationState(session_id="s", stack=[DialogFrame(dialog=DialogKind.APPOINTMENT)])
    with pytest.raises(DialogNotFoundError):
        stack.continue_dialog(state, _turn("hi"))


def test_stack_survives_serialization_between_turns(stack, parent):
    state = ConversationState(session_id="s")
    stack.begin_dialog(state, _turn(), DialogKind.MAIN)
    stack.continue_dialog(state, _turn("x"))

    restored = ConversationState.model_validate_json(state.model_dump_json())
    assert restored.stack[1].options == DateResolverOptions(timex="x")

    stack.continue_dialog(restored, _turn("y"))
    assert parent.seen[-1] == ("child", "x+y")
