from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional, List

from mindbridge.schemas.expert_session import SessionMessage


class ChatRequest(BaseModel):
    message: str
    chat_session_id: Optional[int] = None


class ChatResponse(BaseModel):
    chat_session_id: int
    title: str
    reply: str

    # Safety metadata
    crisis_detected: bool = False
    suggest_expert: bool = False
    model_mode: Optional[str] = None  # "online" | "offline"


class ChatSessionOut(BaseModel):
    id: int
    title: str
    last_message: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChatSessionDetailOut(ChatSessionOut):
    messages: List[SessionMessage] = []
