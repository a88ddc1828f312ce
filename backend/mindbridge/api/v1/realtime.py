"""
WebSocket endpoint streaming expert chat session changes.
"""
import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect

from mindbridge.core.dependencies import get_user_from_token
from mindbridge.db.session import SessionLocal
from mindbridge.services.change_feed import ChangeEvent, change_feed
from mindbridge.services.expert_session_service import TABLE, get_expert_session

logger = logging.getLogger(__name__)

router = APIRouter()

# changes buffered per connection before new ones are dropped
QUEUE_MAXSIZE = 100


def _authorize(token: str, session_id: Optional[int]) -> int:
    """
    Resolve the caller and check what they may watch.

    Returns the user id; raises HTTPException when the subscription is not
    allowed. Users must name one of their own sessions; admins may watch
    the whole table.
    """
    db = SessionLocal()
    try:
        user = get_user_from_token(db, token)

        if session_id is None:
            if not user.is_admin:
                raise HTTPException(status_code=403, detail="session_id is required")
            return user.id

        session = get_expert_session(db, session_id)
        if not user.is_admin and session.user_id != user.id:
            raise HTTPException(status_code=403, detail="Not authorized")

        return user.id
    finally:
        db.close()


@router.websocket("/ws/expert-sessions")
async def expert_session_changes(
    websocket: WebSocket,
    token: str = Query(...),
    session_id: Optional[int] = Query(None),
):
    try:
        user_id = await asyncio.to_thread(_authorize, token, session_id)
    except HTTPException as e:
        logger.warning(f"WebSocket subscription rejected: {e.detail}")
        await websocket.close(code=4000 + e.status_code, reason=str(e.detail))
        return

    await websocket.accept()

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue(maxsize=QUEUE_MAXSIZE)

    def enqueue(payload: dict) -> None:
        try:
            queue.put_nowait(payload)
        except asyncio.QueueFull:
            logger.warning(f"WebSocket queue full, dropping change: user={user_id}, session={session_id}")

    # writers publish from worker threads
    def on_change(event: ChangeEvent) -> None:
        loop.call_soon_threadsafe(enqueue, event.to_dict())

    subscription = change_feed.subscribe(TABLE, on_change, row_id=session_id)
    logger.info(f"WebSocket subscribed: user={user_id}, session={session_id}")

    async def pump() -> None:
        while True:
            payload = await queue.get()
            await websocket.send_json(payload)

    await websocket.send_json({
        "type": "subscribed",
        "table": TABLE,
        "session_id": session_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    })

    sender = asyncio.create_task(pump())

    try:
        while True:
            try:
                data = json.loads(await websocket.receive_text())
            except json.JSONDecodeError:
                await websocket.send_json({"type": "error", "message": "Invalid JSON"})
                continue

            if isinstance(data, dict) and data.get("type") == "ping":
                await websocket.send_json({
                    "type": "pong",
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                })

    except WebSocketDisconnect:
        logger.info(f"WebSocket client disconnected: user={user_id}, session={session_id}")
    finally:
        subscription.unsubscribe()
        sender.cancel()
        try:
            await sender
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.warning(f"WebSocket sender failed: user={user_id}, session={session_id}: {e}")
