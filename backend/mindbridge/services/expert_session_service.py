import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from mindbridge.models.expert_chat_session import ExpertChatSession
from mindbridge.services.change_feed import (
    ChangeEvent,
    ChangeFeed,
    change_feed,
    INSERT,
    UPDATE,
    DELETE,
)
from mindbridge.services.session_status import (
    SessionStatus,
    URGENCY_LEVELS,
    can_transition,
)

logger = logging.getLogger(__name__)

TABLE = "expert_chat_sessions"

MESSAGE_SENDERS = ("user", "ai", "doctor")

INITIAL_MESSAGE = (
    "Your request to speak with a mental health expert has been received. "
    "An expert will join this chat as soon as possible. "
    "If you are in immediate danger, please contact your local emergency number."
)


# ------------------------------------------------------------------
# Row helpers
# ------------------------------------------------------------------

def new_message_id() -> str:
    """Client-style id derived from the current time (microseconds)."""
    return str(time.time_ns() // 1000)


def build_message(content: str, sender: str) -> Dict[str, Any]:
    return {
        "id": new_message_id(),
        "content": content,
        "sender": sender,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


MESSAGE_FIELDS = ("id", "content", "sender", "timestamp")


def validate_messages(messages: List[Dict[str, Any]]) -> None:
    """Reject arrays that the API could not serialize back out."""
    for index, message in enumerate(messages):
        if not isinstance(message, dict):
            raise HTTPException(status_code=422, detail=f"Message {index} must be an object")

        missing = [f for f in MESSAGE_FIELDS if not message.get(f)]
        if missing:
            raise HTTPException(
                status_code=422,
                detail=f"Message {index} is missing: {', '.join(missing)}",
            )

        if message["sender"] not in MESSAGE_SENDERS:
            raise HTTPException(
                status_code=422,
                detail=f"Unknown sender: {message['sender']}",
            )


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def expert_session_to_row(session: ExpertChatSession) -> Dict[str, Any]:
    return {
        "id": session.id,
        "user_id": session.user_id,
        "admin_id": session.admin_id,
        "status": session.status,
        "messages": list(session.messages or []),
        "user_request_reason": session.user_request_reason,
        "urgency": session.urgency,
        "mental_issue_root": session.mental_issue_root,
        "created_at": _iso(session.created_at),
        "updated_at": _iso(session.updated_at),
    }


def _commit_and_publish(
    db: Session,
    session: ExpertChatSession,
    event_type: str,
    feed: ChangeFeed,
    old: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(session)
    row = expert_session_to_row(session)
    feed.publish(ChangeEvent(table=TABLE, event_type=event_type, new=row, old=old))
    return row


# ------------------------------------------------------------------
# Queries
# ------------------------------------------------------------------

def get_expert_session(db: Session, session_id: int) -> ExpertChatSession:
    session = db.query(ExpertChatSession).filter(ExpertChatSession.id == session_id).first()

    if not session:
        raise HTTPException(status_code=404, detail="Expert chat session not found")

    return session


def list_expert_sessions(
    db: Session,
    *,
    user_id: Optional[int] = None,
    status_filter: Optional[str] = None,
) -> List[ExpertChatSession]:
    query = db.query(ExpertChatSession)

    if user_id is not None:
        query = query.filter(ExpertChatSession.user_id == user_id)

    if status_filter:
        query = query.filter(ExpertChatSession.status == status_filter)

    return query.order_by(ExpertChatSession.created_at.desc(), ExpertChatSession.id.desc()).all()


# ------------------------------------------------------------------
# Mutations
# ------------------------------------------------------------------

def create_expert_session(
    db: Session,
    *,
    user_id: int,
    reason: str,
    urgency: str = "normal",
    mental_issue_root: Optional[str] = None,
    feed: ChangeFeed = change_feed,
) -> Dict[str, Any]:
    reason = (reason or "").strip()
    if not reason:
        raise HTTPException(
            status_code=422,
            detail="A reason is required to request an expert",
        )

    if urgency not in URGENCY_LEVELS:
        raise HTTPException(
            status_code=422,
            detail=f"Urgency must be one of: {', '.join(URGENCY_LEVELS)}",
        )

    session = ExpertChatSession(
        user_id=user_id,
        status=SessionStatus.PENDING.value,
        messages=[build_message(INITIAL_MESSAGE, "ai")],
        user_request_reason=reason,
        urgency=urgency,
        mental_issue_root=mental_issue_root,
    )
    db.add(session)

    row = _commit_and_publish(db, session, INSERT, feed)
    logger.info(f"Expert chat session {row['id']} requested by user {user_id} (urgency={urgency})")
    return row


def replace_session_messages(
    db: Session,
    session_id: int,
    messages: List[Dict[str, Any]],
    *,
    admin_id: Optional[int] = None,
    feed: ChangeFeed = change_feed,
) -> Dict[str, Any]:
    """
    Overwrite the whole message array of a session.

    No conflict detection: whichever writer commits last wins. A write by
    an admin to a pending session accepts it on the admin's behalf.
    """
    validate_messages(messages)

    session = get_expert_session(db, session_id)
    old = expert_session_to_row(session)

    session.messages = list(messages)

    if admin_id is not None and session.status == SessionStatus.PENDING.value:
        session.status = SessionStatus.ACTIVE.value
        session.admin_id = admin_id

    return _commit_and_publish(db, session, UPDATE, feed, old=old)


def append_session_message(
    db: Session,
    session_id: int,
    *,
    content: str,
    sender: str,
    admin_id: Optional[int] = None,
    feed: ChangeFeed = change_feed,
) -> Dict[str, Any]:
    content = (content or "").strip()
    if not content:
        raise HTTPException(
            status_code=422,
            detail="Message content is required",
        )

    if sender not in MESSAGE_SENDERS:
        raise HTTPException(
            status_code=422,
            detail=f"Unknown sender: {sender}",
        )

    session = get_expert_session(db, session_id)
    messages = list(session.messages or [])
    messages.append(build_message(content, sender))

    return replace_session_messages(db, session_id, messages, admin_id=admin_id, feed=feed)


def transition_expert_session(
    db: Session,
    session_id: int,
    target: str,
    *,
    admin_id: Optional[int] = None,
    feed: ChangeFeed = change_feed,
) -> Dict[str, Any]:
    session = get_expert_session(db, session_id)

    if not can_transition(session.status, target):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot move session from {session.status} to {target}",
        )

    if target == SessionStatus.ACTIVE.value and admin_id is None:
        raise HTTPException(
            status_code=422,
            detail="An admin id is required to accept a session",
        )

    old = expert_session_to_row(session)
    session.status = target
    if target == SessionStatus.ACTIVE.value:
        session.admin_id = admin_id

    row = _commit_and_publish(db, session, UPDATE, feed, old=old)
    logger.info(f"Expert chat session {session_id}: {old['status']} -> {target}")
    return row


def accept_expert_session(
    db: Session, session_id: int, *, admin_id: int, feed: ChangeFeed = change_feed
) -> Dict[str, Any]:
    return transition_expert_session(
        db, session_id, SessionStatus.ACTIVE.value, admin_id=admin_id, feed=feed
    )


def complete_expert_session(
    db: Session, session_id: int, *, feed: ChangeFeed = change_feed
) -> Dict[str, Any]:
    return transition_expert_session(db, session_id, SessionStatus.COMPLETED.value, feed=feed)


def delete_expert_session(
    db: Session, session_id: int, *, feed: ChangeFeed = change_feed
) -> None:
    session = get_expert_session(db, session_id)
    old = expert_session_to_row(session)

    db.delete(session)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    feed.publish(ChangeEvent(table=TABLE, event_type=DELETE, old=old))
    logger.info(f"Expert chat session {session_id} deleted")
