# Role: In-memory conversation store. Keeps one JSON snapshot per session and hands out fresh copies:
# load -> mutate during the turn -> save replaces the snapshot in one assignment (all or nothing).
# Also bounds the transcript kept in the state and drops expired sessions.

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import campus_bot.config as config
from campus_bot.models.message import Message
from campus_bot.models.state import ConversationState


class StateManager:
    def __init__(self, max_history_messages: int = 20, session_ttl_minutes: Optional[int] = None) -> None:
        self._snapshots: Dict[str, str] = {}
        self._max_history_messages = max_history_messages
        ttl = session_ttl_minutes if session_ttl_minutes is not None else config.SESSION_TTL_MINUTES
        self._ttl = timedelta(minutes=ttl)

    def load(self, session_id: str) -> ConversationState:
        # Key line: always a deserialized copy, so nothing a turn does is visible until save().
        snapshot = self._snapshots.get(session_id)
        if snapshot is None:
            return ConversationState(session_id=session_id)
        return ConversationState.model_validate_json(snapshot)

    def save(self, state: ConversationState) -> None:
        state.updated_at = datetime.now(timezone.utc)
        self._snapshots[state.session_id] = state.model_dump_json()

    def exists(self, session_id: str) -> bool:
        return session_id in self._snapshots

    def delete(self, session_id: str) -> None:
        self._snapshots.pop(session_id, None)

    def add_message(self, state: ConversationState, role: str, content: str) -> None:
        # 1) Append message
        # 2) Trim to last N messages (bounded memory)
        state.conversation_history.append(Message(role=role, content=content))
        if len(state.conversation_history) > self._max_history_messages:
            state.conversation_history = state.conversation_history[-self._max_history_messages :]

    def increment_turn(self, state: ConversationState) -> None:
        state.turn_count += 1

    def cleanup_expired(self) -> int:
        # Role: drop inactive sessions to avoid unbounded growth (long-running API process).
        now = datetime.now(timezone.utc)
        to_delete = []
        for sid in list(self._snapshots):
            state = self.load(sid)
            if (now - state.updated_at) > self._ttl:
                to_delete.append(sid)
        for sid in to_delete:
            del self._snapshots[sid]
        return len(to_delete)
