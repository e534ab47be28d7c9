# campus_bot/core/flow_controller.py
# Role: Turn boundary for one conversation. Serializes turns per session, loads the persisted stack,
# hands the utterance to the DialogStack (or begins the router on an idle conversation), collects the
# outgoing replies, and persists the new stack only when the turn completed.

from __future__ import annotations

import threading
import weakref
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

import campus_bot.config as config
from campus_bot.core.dialog_stack import DialogNotFoundError, DialogStack
from campus_bot.core.interruption import (
    HELP_MESSAGE,
    NOTHING_TO_CANCEL_MESSAGE,
    Interruption,
    InterruptionLayer,
)
from campus_bot.core.state_manager import StateManager
from campus_bot.dialogs.appointment_dialog import AppointmentDialog
from campus_bot.dialogs.date_resolver_dialog import DateResolverDialog
from campus_bot.dialogs.main_dialog import MainDialog
from campus_bot.dialogs.student_letter_dialog import StudentLetterDialog
from campus_bot.dialogs.waterfall import TurnContext
from campus_bot.llm.intent_classifier import IntentClassifier
from campus_bot.models.dialog import DialogKind
from campus_bot.models.message import Reply
from campus_bot.models.records import RouterOptions
from campus_bot.models.state import ConversationState
from campus_bot.tools.notification_client import NotificationClient
from campus_bot.tools.qna_client import QnAClient

ERROR_MESSAGE = "Sorry, something went wrong on my side. Please try that again."
RESET_MESSAGE = "Sorry, I lost track of our conversation. Let's start again: what can I help you with today?"


@dataclass(frozen=True)
class TurnResponse:
    session_id: str
    messages: List[Reply] = field(default_factory=list)

    @property
    def assistant_message(self) -> str:
        return "\n\n".join(m.text for m in self.messages)


class FlowController:
    def __init__(
        self,
        state_manager: Optional[StateManager] = None,
        intent_classifier: Optional[IntentClassifier] = None,
        qna_client: Optional[QnAClient] = None,
        notification_client: Optional[NotificationClient] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        # Key line: dependencies are injectable for testing/mocking.
        self.state_manager = state_manager or StateManager()
        self.clock = clock or datetime.now
        self.interruption_layer = InterruptionLayer()
        self.dialogs = DialogStack(
            [
                MainDialog(intent_classifier=intent_classifier, qna_client=qna_client),
                AppointmentDialog(notification_client=notification_client),
                StudentLetterDialog(),
                DateResolverDialog(),
            ],
            interruption_layer=self.interruption_layer,
        )
        # Key line: a session lock lives only while some turn holds it (finished sessions leave nothing behind).
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def _lock_for(self, session_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[session_id] = lock
            return lock

    def handle_turn(self, session_id: str, user_message: str) -> TurnResponse:
        # 1) One turn at a time per session
        # 2) Load a fresh copy of the state; the turn's reference time is taken once
        # 3) Continue the active dialog, or handle the idle conversation
        # 4) Persist only after the turn resolved (a failed turn leaves the previous stack authoritative)
        lock = self._lock_for(session_id)
        with lock:
            state = self.state_manager.load(session_id)
            turn = TurnContext(session_id=session_id, utterance=user_message, now=self.clock())

            try:
                self._dispatch(state, turn)
            except DialogNotFoundError as e:
                # Stale/unknown frames cannot be resumed: start over rather than fail every turn.
                if config.DEBUG:
                    print("\n!!! DIALOG RESET !!!", repr(e))
                state.stack.clear()
                turn.outbox[:] = [Reply(text=RESET_MESSAGE)]
            except Exception as e:
                if config.DEBUG:
                    print("\n!!! TURN ERROR !!!")
                    print(repr(e))
                    print("!!! END ERROR !!!\n")
                return TurnResponse(session_id=session_id, messages=[Reply(text=ERROR_MESSAGE)])

            self.state_manager.add_message(state, role="user", content=user_message)
            for reply in turn.outbox:
                self.state_manager.add_message(state, role="assistant", content=reply.text)
            self.state_manager.increment_turn(state)

            if config.DEBUG:
                print("\n--- FLOW DEBUG ---")
                print("SESSION:", session_id)
                print("USER MESSAGE:", user_message)
                print("TURN COUNT:", state.turn_count)
                print("STACK:", [(f.dialog.value, f.step_index) for f in state.stack])
                print("REPLIES:", [r.text for r in turn.outbox])
                print("------------------\n")

            self.state_manager.save(state)
            return TurnResponse(session_id=session_id, messages=list(turn.outbox))

    def _dispatch(self, state: ConversationState, turn: TurnContext) -> None:
        if self.dialogs.continue_dialog(state, turn):
            return

        # Idle conversation: global commands first, then route the utterance.
        interruption = self.interruption_layer.check(turn.utterance)
        if interruption == Interruption.CANCEL:
            turn.send(Reply(text=NOTHING_TO_CANCEL_MESSAGE))
            return
        if interruption == Interruption.HELP:
            turn.send(Reply(text=HELP_MESSAGE))
            self.dialogs.begin_dialog(state, turn, DialogKind.MAIN, RouterOptions())
            return

        self.dialogs.begin_dialog(state, turn, DialogKind.MAIN, RouterOptions(utterance=turn.utterance))
