import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from mindbridge.db.session import get_db
from mindbridge.core.dependencies import get_current_user
from mindbridge.schemas.chat import (
    ChatRequest,
    ChatResponse,
    ChatSessionOut,
    ChatSessionDetailOut,
)
from mindbridge.services.ai_service import AIServiceError
from mindbridge.services.chat_service import (
    process_chat_message,
    list_chat_sessions,
    get_chat_session,
    delete_chat_session,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/chat", response_model=ChatResponse)
def chat(
    payload: ChatRequest,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    try:
        result = process_chat_message(
            db,
            user_id=current_user.id,
            message=payload.message,
            chat_session_id=payload.chat_session_id,
        )
    except HTTPException:
        db.rollback()
        raise
    except AIServiceError as e:
        db.rollback()
        logger.error(f"AI reply failed for user {current_user.id}: {e}")
        raise HTTPException(status_code=502, detail="The assistant is unavailable right now")
    except Exception as e:
        db.rollback()
        logger.exception("Chat processing failed")
        raise HTTPException(status_code=500, detail=str(e))

    return ChatResponse(
        chat_session_id=result["chat_session_id"],
        title=result["title"],
        reply=result["reply"],
        crisis_detected=result["crisis_detected"],
        suggest_expert=result["suggest_expert"],
        model_mode=result["model_mode"],
    )


@router.get("/chat/sessions", response_model=list[ChatSessionOut])
def list_sessions(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return list_chat_sessions(db, current_user.id)


@router.get("/chat/sessions/{chat_session_id}", response_model=ChatSessionDetailOut)
def get_session(
    chat_session_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return get_chat_session(db, current_user.id, chat_session_id)


@router.delete("/chat/sessions/{chat_session_id}", status_code=204)
def delete_session(
    chat_session_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    delete_chat_session(db, current_user.id, chat_session_id)
