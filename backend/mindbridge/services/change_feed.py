"""
In-process realtime change feed.

Row writers publish a ChangeEvent after their commit; subscribers receive
the full new row. Delivery is best-effort and at most once per change:
nothing is queued for subscribers that attach later, and nothing is
acknowledged or replayed.
"""
import itertools
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"


@dataclass
class ChangeEvent:
    table: str
    event_type: str
    new: Optional[Dict[str, Any]] = None
    old: Optional[Dict[str, Any]] = None
    commit_timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def row_id(self) -> Optional[Any]:
        row = self.new or self.old or {}
        return row.get("id")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "change",
            "table": self.table,
            "event": self.event_type,
            "new": self.new,
            "old": self.old,
            "commit_timestamp": self.commit_timestamp.isoformat(),
        }


ChangeCallback = Callable[[ChangeEvent], None]


class Subscription:
    """Handle returned by ChangeFeed.subscribe."""

    def __init__(self, feed: "ChangeFeed", subscription_id: int, table: str, row_id: Optional[Any]):
        self._feed = feed
        self.id = subscription_id
        self.table = table
        self.row_id = row_id

    @property
    def active(self) -> bool:
        return self._feed.is_subscribed(self.id)

    def unsubscribe(self) -> None:
        self._feed.unsubscribe(self.id)


class ChangeFeed:
    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._subscribers: Dict[int, tuple] = {}

    def subscribe(
        self,
        table: str,
        callback: ChangeCallback,
        row_id: Optional[Any] = None,
    ) -> Subscription:
        with self._lock:
            subscription_id = next(self._ids)
            self._subscribers[subscription_id] = (table, row_id, callback)

        logger.debug(f"Subscription {subscription_id} attached to {table} (row={row_id})")
        return Subscription(self, subscription_id, table, row_id)

    def unsubscribe(self, subscription_id: int) -> None:
        with self._lock:
            removed = self._subscribers.pop(subscription_id, None)

        if removed is not None:
            logger.debug(f"Subscription {subscription_id} detached")

    def is_subscribed(self, subscription_id: int) -> bool:
        with self._lock:
            return subscription_id in self._subscribers

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event: ChangeEvent) -> int:
        """
        Deliver `event` to every matching subscriber.

        Returns the number of subscribers that received it. A subscriber
        that raises is logged and skipped.
        """
        with self._lock:
            targets = [
                (subscription_id, callback)
                for subscription_id, (table, row_id, callback) in self._subscribers.items()
                if table == event.table and (row_id is None or row_id == event.row_id)
            ]

        delivered = 0
        for subscription_id, callback in targets:
            try:
                callback(event)
                delivered += 1
            except Exception as e:
                logger.error(
                    f"Error delivering {event.event_type} on {event.table} "
                    f"to subscription {subscription_id}: {e}",
                    exc_info=True,
                )

        logger.debug(f"{event.event_type} on {event.table} row={event.row_id} delivered to {delivered} subscribers")
        return delivered


# Process-wide feed shared by the API and the WebSocket endpoint
change_feed = ChangeFeed()
