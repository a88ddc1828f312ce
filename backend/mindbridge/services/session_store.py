"""
Row-oriented access to expert chat sessions for client-side managers.

The managers in chat_session_manager only see this interface: create /
fetch / write / delete rows and subscribe to their changes. Every failure
is reported as SessionStoreError; callers cannot tell a network problem
from a permission problem.
"""
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional, Protocol

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError

from mindbridge.services import expert_session_service as service
from mindbridge.services.change_feed import ChangeCallback, ChangeFeed, Subscription, change_feed

logger = logging.getLogger(__name__)


class SessionStoreError(Exception):
    """A store call failed (rejected, missing row, or backend error)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SessionStore(Protocol):
    def create(
        self,
        *,
        user_id: int,
        reason: str,
        urgency: str,
        mental_issue_root: Optional[str] = None,
    ) -> Dict[str, Any]: ...

    def fetch(self, session_id: int) -> Dict[str, Any]: ...

    def fetch_all(
        self, *, user_id: Optional[int] = None, status: Optional[str] = None
    ) -> List[Dict[str, Any]]: ...

    def write_messages(
        self,
        session_id: int,
        messages: List[Dict[str, Any]],
        *,
        admin_id: Optional[int] = None,
    ) -> Dict[str, Any]: ...

    def set_status(
        self, session_id: int, status: str, *, admin_id: Optional[int] = None
    ) -> Dict[str, Any]: ...

    def delete(self, session_id: int) -> None: ...

    def subscribe(
        self, callback: ChangeCallback, session_id: Optional[int] = None
    ) -> Subscription: ...


class DatabaseSessionStore:
    """SessionStore backed by the SQLAlchemy models, one db session per call."""

    def __init__(self, session_factory: Callable, feed: ChangeFeed = change_feed):
        self.session_factory = session_factory
        self.feed = feed

    @contextmanager
    def _db(self):
        db = self.session_factory()
        try:
            yield db
        except HTTPException as e:
            db.rollback()
            raise SessionStoreError(str(e.detail), status_code=e.status_code) from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Session store database error: {e}")
            raise SessionStoreError("Session store unavailable") from e
        finally:
            db.close()

    def create(self, *, user_id, reason, urgency, mental_issue_root=None):
        with self._db() as db:
            return service.create_expert_session(
                db,
                user_id=user_id,
                reason=reason,
                urgency=urgency,
                mental_issue_root=mental_issue_root,
                feed=self.feed,
            )

    def fetch(self, session_id):
        with self._db() as db:
            return service.expert_session_to_row(service.get_expert_session(db, session_id))

    def fetch_all(self, *, user_id=None, status=None):
        with self._db() as db:
            sessions = service.list_expert_sessions(db, user_id=user_id, status_filter=status)
            return [service.expert_session_to_row(s) for s in sessions]

    def write_messages(self, session_id, messages, *, admin_id=None):
        with self._db() as db:
            return service.replace_session_messages(
                db, session_id, messages, admin_id=admin_id, feed=self.feed
            )

    def set_status(self, session_id, status, *, admin_id=None):
        with self._db() as db:
            return service.transition_expert_session(
                db, session_id, status, admin_id=admin_id, feed=self.feed
            )

    def delete(self, session_id):
        with self._db() as db:
            service.delete_expert_session(db, session_id, feed=self.feed)

    def subscribe(self, callback, session_id=None):
        return self.feed.subscribe(service.TABLE, callback, row_id=session_id)
