# Role: Read-only transparency endpoint for the UI.
# Does NOT change any flow logic. Only exposes the persisted dialog stack by session_id.

from typing import Any, Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from campus_bot.api.deps import flow_controller

router = APIRouter(tags=["state"])

class FrameSnapshot(BaseModel):
    dialog: str
    step_index: int
    options: Optional[Dict[str, Any]] = None

class StateSnapshot(BaseModel):
    session_id: str
    idle: bool
    stack: List[FrameSnapshot]
    turn_count: int

@router.get("/state/{session_id}", response_model=StateSnapshot)
def get_state(session_id: str) -> StateSnapshot:
    state = flow_controller.state_manager.load(session_id)
    return StateSnapshot(
        session_id=session_id,
        idle=state.is_idle,
        stack=[
            FrameSnapshot(
                dialog=f.dialog.value,
                step_index=f.step_index,
                options=f.options.model_dump() if f.options is not None else None,
            )
            for f in state.stack
        ],
        turn_count=state.turn_count,
    )
