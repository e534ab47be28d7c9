# Role: The dialog orchestrator. Owns the transition logic over ConversationState.stack:
# begin a dialog, route a turn's input to the top frame (after the interruption check),
# and turn each StepResult into a stack transition until the turn suspends or the stack empties.
# It performs no I/O; dialogs reach external services through their own injected clients.

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

import campus_bot.config as config
from campus_bot.core.interruption import (
    CANCEL_MESSAGE,
    HELP_MESSAGE,
    Interruption,
    InterruptionLayer,
)
from campus_bot.dialogs.waterfall import StepContext, TurnContext, WaterfallDialog
from campus_bot.models.dialog import DialogFrame, DialogKind
from campus_bot.models.message import Reply
from campus_bot.models.state import ConversationState
from campus_bot.models.step_result import BeginChild, Continue, End, Replace, StepResult, Suspend


class DialogNotFoundError(LookupError):
    """A frame references a dialog kind that is not registered with this DialogStack."""


class DialogStack:
    def __init__(
        self,
        dialogs: Iterable[WaterfallDialog],
        interruption_layer: Optional[InterruptionLayer] = None,
    ) -> None:
        self._dialogs: Dict[DialogKind, WaterfallDialog] = {d.kind: d for d in dialogs}
        if interruption_layer is None:
            interruption_layer = InterruptionLayer(d.kind for d in self._dialogs.values() if d.interruptible)
        self.interruption_layer = interruption_layer

    def find(self, kind: DialogKind) -> WaterfallDialog:
        dialog = self._dialogs.get(kind)
        if dialog is None:
            raise DialogNotFoundError(f"No dialog registered for {kind!r}")
        return dialog

    def step_count(self, kind: DialogKind) -> int:
        return len(self.find(kind).steps)

    # ----------------------------
    # Public operations
    # ----------------------------
    def begin_dialog(
        self,
        state: ConversationState,
        turn: TurnContext,
        dialog: DialogKind,
        options: Any = None,
    ) -> None:
        # Push a fresh frame at step 0 and run its first step with no prior result.
        self._push(state, dialog, options)
        self._run(state, turn, None)

    def continue_dialog(self, state: ConversationState, turn: TurnContext) -> bool:
        # 1) Empty stack -> caller must begin a dialog
        # 2) Interruption check against the top frame
        # 3) Otherwise resume the top frame's current step with the utterance
        if not state.stack:
            return False

        top = state.stack[-1]
        interruption = self.interruption_layer.check(turn.utterance, top.dialog)

        if interruption == Interruption.HELP:
            self._help(state, turn)
            return True

        if interruption == Interruption.CANCEL:
            self.cancel_all(state, turn)
            return True

        self._run(state, turn, turn.utterance)
        return True

    def end_dialog(self, state: ConversationState, turn: TurnContext, result: Any = None) -> None:
        # Key line: ending with nothing on the stack is a no-op, never an error.
        if not state.stack:
            return
        state.stack.pop()
        self._run(state, turn, result)

    def cancel_all(self, state: ConversationState, turn: TurnContext) -> None:
        # 1) Find the interruption root: the lowest frame of the interruptible run ending at the top
        # 2) Pop everything from the root up
        # 3) Acknowledge, then resume whatever is beneath (or go idle)
        root = len(state.stack)
        while root > 0 and self.interruption_layer.is_interruptible(state.stack[root - 1].dialog):
            root -= 1

        cancelled = [f.dialog.value for f in state.stack[root:]]
        del state.stack[root:]

        if config.DEBUG:
            print(f"CANCEL: popped {cancelled}; remaining depth={len(state.stack)}")

        turn.send(Reply(text=CANCEL_MESSAGE))
        if state.stack:
            self._run(state, turn, None)

    # ----------------------------
    # Transitions
    # ----------------------------
    def _help(self, state: ConversationState, turn: TurnContext) -> None:
        # Help never touches the stack: send the help text and re-ask the pending prompt.
        turn.send(Reply(text=HELP_MESSAGE))
        pending = state.stack[-1].prompt
        if pending is not None:
            turn.send(pending)

    def _push(self, state: ConversationState, kind: DialogKind, options: Any) -> DialogFrame:
        dialog = self.find(kind)
        frame = DialogFrame(dialog=kind, step_index=0, options=dialog.new_options(options))
        state.stack.append(frame)
        return frame

    def _run(self, state: ConversationState, turn: TurnContext, value: Any) -> None:
        """
        Drive the stack until the top frame suspends or the stack is empty.

        Continue/End/BeginChild chains within one turn run in this loop; each step runs at most once
        for the value it is handed.
        """
        while state.stack:
            frame = state.stack[-1]
            dialog = self.find(frame.dialog)

            if frame.step_index >= len(dialog.steps):
                # A waterfall that runs past its last step ends with the last value.
                result: StepResult = End(value)
            else:
                step = dialog.steps[frame.step_index]
                result = step(StepContext(frame=frame, result=value, turn=turn))

            if config.DEBUG:
                print("\n--- DIALOG STACK ---")
                print("DEPTH:", len(state.stack))
                print("FRAME:", frame.dialog.value, "STEP:", frame.step_index)
                print("RESULT:", result)
                print("--------------------\n")

            if isinstance(result, Suspend):
                if not result.retry:
                    frame.step_index += 1
                frame.prompt = result.prompt
                if result.prompt is not None:
                    turn.send(result.prompt)
                return

            if isinstance(result, Continue):
                frame.step_index += 1
                value = result.value
                continue

            if isinstance(result, BeginChild):
                # Key line: the parent's index already points past the step that began the child,
                # so the child's End result lands on the parent's next step.
                frame.step_index += 1
                self._push(state, result.dialog, result.options)
                value = None
                continue

            if isinstance(result, Replace):
                state.stack.pop()
                self._push(state, result.dialog, result.options)
                value = None
                continue

            if isinstance(result, End):
                state.stack.pop()
                value = result.result
                continue

            raise TypeError(f"Step returned an unknown result: {result!r}")
