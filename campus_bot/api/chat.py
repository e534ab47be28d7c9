# Role: Thin HTTP adapter for the chat endpoint. Validates request/response shapes and delegates the entire
# conversation turn to FlowController (business logic lives in core/dialogs, not in the API layer).

from typing import List

from fastapi import APIRouter
from pydantic import BaseModel, Field

from campus_bot.api.deps import flow_controller
from campus_bot.models.message import Reply

router = APIRouter(tags=["chat"])

class ChatRequest(BaseModel):
    session_id: str
    user_message: str

class ChatResponse(BaseModel):
    session_id: str
    assistant_message: str
    messages: List[Reply] = Field(default_factory=list)

@router.post("/chat", response_model=ChatResponse)
def chat(req: ChatRequest) -> ChatResponse:
    # 1) Forward (session_id, user_message) to the turn controller
    # 2) Return every outgoing message (with quick replies) plus a joined text for simple clients
    result = flow_controller.handle_turn(req.session_id, req.user_message)
    return ChatResponse(
        session_id=req.session_id,
        assistant_message=result.assistant_message,
        messages=result.messages,
    )
