# Role: Message schemas. Message is one entry of conversation_history (role + content + timestamp);
# Reply is one outgoing bot message, optionally carrying quick-reply suggestions for the channel.

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Literal

from pydantic import BaseModel, Field

Role = Literal["user", "assistant", "system"]


class Message(BaseModel):
    role: Role
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Reply(BaseModel):
    text: str
    suggested_replies: List[str] = Field(default_factory=list)
