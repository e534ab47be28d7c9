# Role: Global commands checked on every turn before any dialog step sees the input.
# The layer only classifies; the DialogStack performs the resulting stack surgery.

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional

import campus_bot.config as config
from campus_bot.models.dialog import DialogKind

HELP_MESSAGE = (
    "I can book an appointment with a member of staff, request a student letter (bank or student "
    "status), or answer questions about the university. Say \"cancel\" at any time to stop what we "
    "are doing."
)
CANCEL_MESSAGE = "Cancelling..."
NOTHING_TO_CANCEL_MESSAGE = "Nothing to cancel."

_HELP_WORDS = {"help", "?"}
_CANCEL_WORDS = {"cancel", "quit"}


class Interruption(str, Enum):
    HELP = "help"
    CANCEL = "cancel"


class InterruptionLayer:
    def __init__(self, interruptible: Optional[Iterable[DialogKind]] = None) -> None:
        # Key line: by default every dialog kind can be interrupted.
        self.interruptible = set(interruptible) if interruptible is not None else set(DialogKind)

    def is_interruptible(self, dialog: DialogKind) -> bool:
        return dialog in self.interruptible

    def check(self, utterance: Optional[str], dialog: Optional[DialogKind] = None) -> Optional[Interruption]:
        # 1) Frames that opted out of interruption never see a command
        # 2) Match the whole (trimmed, case-insensitive) utterance against the global commands
        if dialog is not None and not self.is_interruptible(dialog):
            return None

        text = (utterance or "").strip().lower()
        found: Optional[Interruption] = None
        if text in _HELP_WORDS:
            found = Interruption.HELP
        elif text in _CANCEL_WORDS:
            found = Interruption.CANCEL

        if found is not None and config.DEBUG:
            print(f"INTERRUPTION: {found.value} (top dialog={dialog.value if dialog else None})")
        return found
