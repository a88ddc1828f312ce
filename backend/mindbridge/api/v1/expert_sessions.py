from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from mindbridge.db.session import get_db
from mindbridge.core.dependencies import get_current_user, require_admin
from mindbridge.models.expert_chat_session import ExpertChatSession
from mindbridge.models.user import User
from mindbridge.schemas.expert_session import (
    ExpertSessionCreate,
    ExpertMessageCreate,
    ExpertSessionOut,
)
from mindbridge.services.expert_session_service import (
    accept_expert_session,
    append_session_message,
    complete_expert_session,
    create_expert_session,
    delete_expert_session,
    expert_session_to_row,
    get_expert_session,
    list_expert_sessions,
)
from mindbridge.services.session_status import accepts_messages

router = APIRouter(prefix="/expert-sessions", tags=["Expert Sessions"])


def _get_visible_session(db: Session, session_id: int, user: User) -> ExpertChatSession:
    """
    Load a session the caller may see: admins see all, users their own.
    """
    session = get_expert_session(db, session_id)

    if not user.is_admin and session.user_id != user.id:
        raise HTTPException(status_code=403, detail="Not authorized")

    return session


@router.post("", response_model=ExpertSessionOut, status_code=status.HTTP_201_CREATED)
def request_expert(
    payload: ExpertSessionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return create_expert_session(
        db,
        user_id=current_user.id,
        reason=payload.reason,
        urgency=payload.urgency,
        mental_issue_root=payload.mental_issue_root,
    )


@router.get("", response_model=list[ExpertSessionOut])
def list_sessions(
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Admins get every session; users only their own.
    """
    sessions = list_expert_sessions(
        db,
        user_id=None if current_user.is_admin else current_user.id,
        status_filter=status_filter,
    )
    return [expert_session_to_row(s) for s in sessions]


@router.get("/{session_id}", response_model=ExpertSessionOut)
def get_session(
    session_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return expert_session_to_row(_get_visible_session(db, session_id, current_user))


@router.post("/{session_id}/messages", response_model=ExpertSessionOut)
def send_message(
    session_id: int,
    payload: ExpertMessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    session = _get_visible_session(db, session_id, current_user)

    if not accepts_messages(session.status):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This session has ended and no longer accepts messages",
        )

    if current_user.is_admin:
        return append_session_message(
            db, session_id, content=payload.content, sender="doctor", admin_id=current_user.id
        )

    return append_session_message(db, session_id, content=payload.content, sender="user")


@router.post("/{session_id}/accept", response_model=ExpertSessionOut)
def accept_session(
    session_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return accept_expert_session(db, session_id, admin_id=admin.id)


@router.post("/{session_id}/complete", response_model=ExpertSessionOut)
def complete_session(
    session_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return complete_expert_session(db, session_id)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session(
    session_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _get_visible_session(db, session_id, current_user)
    delete_expert_session(db, session_id)
