# Role: Per-conversation state container. The dialog stack is the only piece of flow memory;
# conversation_history and turn_count exist for transparency (state endpoint, CLI, debugging).

from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, Field

from campus_bot.models.dialog import DialogFrame
from campus_bot.models.message import Message


class ConversationState(BaseModel):
    session_id: str

    # Key line: last-in-first-out; the last frame is the only one that receives raw input.
    stack: List[DialogFrame] = Field(default_factory=list)

    conversation_history: List[Message] = Field(default_factory=list)
    turn_count: int = 0

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_idle(self) -> bool:
        return not self.stack
