from sqlalchemy.orm import Session
from typing import Optional, Dict, Any, List

from fastapi import HTTPException

from mindbridge.models.chat_session import ChatSession
from mindbridge.services.ai_service import (
    EXPERT_SUGGESTION_REPLY,
    crisis_reply,
    generate_ai_reply,
)
from mindbridge.services.crisis_detection import MessageIntent, classify_message
from mindbridge.services.expert_session_service import build_message
from mindbridge.utils.conversation_title import generate_conversation_title


# ------------------------------------------------------------------
# Chat session lifecycle
# ------------------------------------------------------------------

def get_chat_session(db: Session, user_id: int, chat_session_id: int) -> ChatSession:
    chat_session = (
        db.query(ChatSession)
        .filter(
            ChatSession.id == chat_session_id,
            ChatSession.user_id == user_id,
        )
        .first()
    )

    if not chat_session:
        raise HTTPException(status_code=404, detail="Chat session not found")

    return chat_session


def get_or_create_chat_session(
    db: Session,
    user_id: int,
    first_message: str,
    chat_session_id: Optional[int] = None,
) -> ChatSession:
    if chat_session_id:
        return get_chat_session(db, user_id, chat_session_id)

    chat_session = ChatSession(
        user_id=user_id,
        title=generate_conversation_title(first_message),
        messages=[],
    )
    db.add(chat_session)
    db.flush()
    return chat_session


def list_chat_sessions(db: Session, user_id: int) -> List[ChatSession]:
    return (
        db.query(ChatSession)
        .filter(ChatSession.user_id == user_id)
        .order_by(ChatSession.updated_at.desc(), ChatSession.id.desc())
        .all()
    )


def delete_chat_session(db: Session, user_id: int, chat_session_id: int) -> None:
    chat_session = get_chat_session(db, user_id, chat_session_id)
    db.delete(chat_session)
    db.commit()


# ------------------------------------------------------------------
# Message persistence
# ------------------------------------------------------------------

def append_chat_messages(
    chat_session: ChatSession,
    new_messages: List[Dict[str, Any]],
) -> None:
    """
    Rewrite the stored history with `new_messages` appended.
    """
    messages = list(chat_session.messages or []) + list(new_messages)
    chat_session.messages = messages
    chat_session.last_message = messages[-1]["content"] if messages else None


# ------------------------------------------------------------------
# Main entry
# ------------------------------------------------------------------

def process_chat_message(
    db: Session,
    *,
    user_id: int,
    message: str,
    chat_session_id: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Route one user message and persist both sides of the exchange.

    Crisis language and explicit requests for a human never reach the
    language model; they get a fixed reply and set `suggest_expert`.
    """
    message = (message or "").strip()
    if not message:
        raise HTTPException(status_code=422, detail="Message cannot be empty")

    chat_session = get_or_create_chat_session(db, user_id, message, chat_session_id)
    history = list(chat_session.messages or [])

    intent = classify_message(message)

    if intent == MessageIntent.CRISIS:
        reply, is_crisis, model_mode = crisis_reply(), True, "offline"
    elif intent == MessageIntent.EXPERT_REQUEST:
        reply, is_crisis, model_mode = EXPERT_SUGGESTION_REPLY, False, "offline"
    else:
        # AIServiceError propagates; the route turns it into a 502
        reply, is_crisis, model_mode = generate_ai_reply(message, history)

    user_message = build_message(message, "user")
    ai_message = build_message(reply, "ai")
    append_chat_messages(chat_session, [user_message, ai_message])

    db.commit()
    db.refresh(chat_session)

    return {
        "chat_session_id": chat_session.id,
        "title": chat_session.title,
        "reply": reply,
        "crisis_detected": is_crisis,
        "suggest_expert": intent != MessageIntent.CHAT or is_crisis,
        "model_mode": model_mode,
        "messages": [user_message, ai_message],
    }
