from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Text, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from mindbridge.db.base import Base


class ExpertChatSession(Base):
    """
    A user's request to move from the AI assistant to a human expert.

    `messages` is stored as one JSON array and always rewritten whole;
    there is no per-message row and no version column.
    """

    __tablename__ = "expert_chat_sessions"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # null while pending
    admin_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    status = Column(String(16), nullable=False, default="pending", index=True)

    messages = Column(JSON, nullable=False, default=list)

    user_request_reason = Column(Text, nullable=True)
    urgency = Column(String(16), nullable=True, default="normal")
    mental_issue_root = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    user = relationship("User", foreign_keys=[user_id], backref="expert_chat_sessions")
    admin = relationship("User", foreign_keys=[admin_id])
