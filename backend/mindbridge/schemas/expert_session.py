from pydantic import BaseModel, Field
from typing import List, Literal, Optional


class SessionMessage(BaseModel):
    id: str
    content: str
    sender: Literal["user", "ai", "doctor"]
    timestamp: str


class ExpertSessionCreate(BaseModel):
    reason: str
    urgency: Literal["low", "normal", "high", "urgent"] = "normal"
    mental_issue_root: Optional[str] = None


class ExpertMessageCreate(BaseModel):
    content: str = Field(min_length=1)


class ExpertSessionOut(BaseModel):
    id: int
    user_id: int
    admin_id: Optional[int] = None
    status: Literal["pending", "active", "completed"]
    messages: List[SessionMessage] = []
    user_request_reason: Optional[str] = None
    urgency: Optional[str] = None
    mental_issue_root: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
