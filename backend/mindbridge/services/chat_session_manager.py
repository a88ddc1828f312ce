"""
Client-side chat state for the mental health assistant.

ChatSessionManager is what a user's chat screen drives: it talks to the AI
assistant until the user asks for an expert, then tracks that expert chat
session through the session store and its change feed. ExpertConsole is the
admin-side view over all expert chat sessions.

Local state is only replaced by successful store writes or by pushed rows,
with one exception: a message is appended to the local snapshot before its
write is confirmed, and it is not removed again if the write fails.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from mindbridge.services.ai_service import (
    AIServiceError,
    EXPERT_SUGGESTION_REPLY,
    GREETING,
    crisis_reply,
    generate_ai_reply,
)
from mindbridge.services.change_feed import ChangeEvent, DELETE, Subscription
from mindbridge.services.crisis_detection import MessageIntent, classify_message
from mindbridge.services.expert_session_service import MESSAGE_SENDERS, build_message
from mindbridge.services.session_status import SessionStatus, accepts_messages
from mindbridge.services.session_store import SessionStore, SessionStoreError

logger = logging.getLogger(__name__)


class ChatMode(str, Enum):
    AI = "ai"
    EXPERT = "expert"


@dataclass
class Notification:
    level: str  # "info" | "success" | "error"
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


ReplyFn = Callable[[str, List[Dict[str, Any]]], tuple]


class _Notifier:
    def __init__(self):
        self.notifications: List[Notification] = []

    def notify(self, level: str, message: str) -> None:
        self.notifications.append(Notification(level=level, message=message))

    @property
    def last_notification(self) -> Optional[Notification]:
        return self.notifications[-1] if self.notifications else None


class ChatSessionManager(_Notifier):
    def __init__(
        self,
        store: SessionStore,
        user_id: int,
        reply_fn: ReplyFn = generate_ai_reply,
    ):
        super().__init__()
        self.store = store
        self.user_id = user_id
        self.reply_fn = reply_fn

        self.mode = ChatMode.AI
        self.ai_messages: List[Dict[str, Any]] = [build_message(GREETING, "ai")]
        self.session: Optional[Dict[str, Any]] = None
        self.suggest_expert = False

        self._subscription: Optional[Subscription] = None

    # ------------------------------------------------------------------
    # Expert session lifecycle
    # ------------------------------------------------------------------

    def request_expert(
        self,
        reason: str,
        urgency: str = "normal",
        mental_issue_root: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        if not (reason or "").strip():
            self.notify("error", "Please tell us why you'd like to speak with an expert")
            return None

        try:
            row = self.store.create(
                user_id=self.user_id,
                reason=reason,
                urgency=urgency,
                mental_issue_root=mental_issue_root,
            )
        except SessionStoreError as e:
            logger.error(f"Error creating expert chat session for user {self.user_id}: {e}")
            self.notify("error", "Failed to send your request. Please try again.")
            return None

        self.session = row
        self.mode = ChatMode.EXPERT
        self.suggest_expert = False
        self.subscribe(row["id"])
        self.notify("success", "Your request has been sent. An expert will join shortly.")
        return row

    def subscribe(self, session_id: int) -> None:
        self.detach()
        self._subscription = self.store.subscribe(self._on_change, session_id=session_id)

    def detach(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def _on_change(self, event: ChangeEvent) -> None:
        if event.event_type == DELETE:
            self.detach()
            self.session = None
            self.mode = ChatMode.AI
            self.notify("info", "Your expert chat session was removed.")
            return

        self.session = event.new

        if event.new["status"] == SessionStatus.COMPLETED.value:
            self.detach()
            self.mode = ChatMode.AI
            self.notify("info", "The expert has ended this session. You're back with the AI assistant.")

    def append_message(self, text: str, sender: str = "user") -> bool:
        text = (text or "").strip()
        if not text:
            return False

        if sender not in MESSAGE_SENDERS:
            self.notify("error", f"Unknown sender: {sender}")
            return False

        if self.session is None:
            self.notify("error", "There is no active expert chat session")
            return False

        if not accepts_messages(self.session["status"]):
            self.notify("error", "This session has ended and no longer accepts messages")
            return False

        message = build_message(text, sender)
        messages = list(self.session.get("messages") or []) + [message]
        self.session = {**self.session, "messages": messages}

        try:
            row = self.store.write_messages(self.session["id"], messages)
        except SessionStoreError as e:
            logger.error(f"Error sending message in session {self.session['id']}: {e}")
            self.notify("error", "Failed to send message")
            return False

        self.session = row
        return True

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def send(self, text: str) -> bool:
        text = (text or "").strip()
        if not text:
            return False

        if self.mode == ChatMode.EXPERT:
            return self.append_message(text, "user")

        self.ai_messages.append(build_message(text, "user"))

        intent = classify_message(text)
        if intent == MessageIntent.CRISIS:
            self.suggest_expert = True
            self.ai_messages.append(build_message(crisis_reply(), "ai"))
            return True

        if intent == MessageIntent.EXPERT_REQUEST:
            self.suggest_expert = True
            self.ai_messages.append(build_message(EXPERT_SUGGESTION_REPLY, "ai"))
            return True

        try:
            reply, is_crisis, _mode = self.reply_fn(text, self.ai_messages[:-1])
        except AIServiceError as e:
            logger.error(f"AI reply failed for user {self.user_id}: {e}")
            self.notify("error", "The assistant is unavailable right now. Please try again.")
            return False

        if is_crisis:
            self.suggest_expert = True

        self.ai_messages.append(build_message(reply, "ai"))
        return True

    def close(self) -> None:
        self.detach()


class ExpertConsole(_Notifier):
    """Admin view: every expert chat session, kept in sync by the change feed."""

    def __init__(self, store: SessionStore, admin_id: int):
        super().__init__()
        self.store = store
        self.admin_id = admin_id
        self.sessions: Dict[int, Dict[str, Any]] = {}
        self._subscription: Optional[Subscription] = None

    def refresh(self) -> bool:
        try:
            rows = self.store.fetch_all()
        except SessionStoreError as e:
            logger.error(f"Error loading chat sessions: {e}")
            self.notify("error", "Failed to load chat sessions")
            return False

        self.sessions = {row["id"]: row for row in rows}
        return True

    def watch(self) -> None:
        if self._subscription is None:
            self._subscription = self.store.subscribe(self._on_change)

    def _on_change(self, event: ChangeEvent) -> None:
        if event.event_type == DELETE:
            self.sessions.pop(event.row_id, None)
        else:
            self.sessions[event.row_id] = event.new

    def pending(self) -> List[Dict[str, Any]]:
        return [s for s in self.sessions.values() if s["status"] == SessionStatus.PENDING.value]

    def _transition(self, session_id: int, target: str, success: str, failure: str) -> bool:
        try:
            row = self.store.set_status(
                session_id,
                target,
                admin_id=self.admin_id if target == SessionStatus.ACTIVE.value else None,
            )
        except SessionStoreError as e:
            logger.error(f"Error moving chat session {session_id} to {target}: {e}")
            self.notify("error", failure)
            return False

        self.sessions[session_id] = row
        self.notify("success", success)
        return True

    def accept(self, session_id: int) -> bool:
        return self._transition(
            session_id,
            SessionStatus.ACTIVE.value,
            "Chat session accepted",
            "Failed to accept chat session",
        )

    def complete(self, session_id: int) -> bool:
        return self._transition(
            session_id,
            SessionStatus.COMPLETED.value,
            "Chat session completed",
            "Failed to complete chat session",
        )

    def reply(self, session_id: int, text: str) -> bool:
        text = (text or "").strip()
        if not text:
            self.notify("error", "Message cannot be empty")
            return False

        session = self.sessions.get(session_id)
        if session is None:
            self.notify("error", "Chat session not found")
            return False

        if not accepts_messages(session["status"]):
            self.notify("error", "This session has ended and no longer accepts messages")
            return False

        messages = list(session.get("messages") or []) + [build_message(text, "doctor")]
        self.sessions[session_id] = {**session, "messages": messages}

        try:
            row = self.store.write_messages(session_id, messages, admin_id=self.admin_id)
        except SessionStoreError as e:
            logger.error(f"Error sending message in session {session_id}: {e}")
            self.notify("error", "Failed to send message")
            return False

        self.sessions[session_id] = row
        return True

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
