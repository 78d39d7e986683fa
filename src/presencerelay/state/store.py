"""Thread-safe in-memory state store.

This is the only component allowed to mutate presence records and chat
messages.  Presence and messages are independent critical sections: an
operation on one collection never waits on the other.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

from presencerelay.models.message import DEFAULT_MESSAGE_KIND, ChatMessage
from presencerelay.models.presence import PresenceRecord
from presencerelay.models.stats import StoreStats
from presencerelay.state.log import DEFAULT_CAPACITY, DEFAULT_LIMIT, MessageLog
from presencerelay.state.policy import Duration, as_timedelta
from presencerelay.state.registry import PresenceEntry, PresenceRegistry

DEFAULT_STALE_AFTER = timedelta(minutes=5)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class StateStore:
    """In-memory store for presence and chat history.

    Construct one per process (or per test) and pass it to whoever needs
    it.  Every public method takes the relevant collection lock for the
    duration of an in-memory update only, so calls never block for long.

    Usage::

        store = StateStore(capacity=100, stale_after=timedelta(minutes=5))
        record, count = store.upsert_presence("u1", "Alice", {"avatar": "..."})
        online = store.list_presence()
    """

    def __init__(
        self,
        *,
        clock: Callable[[], datetime] = _utcnow,
        capacity: int = DEFAULT_CAPACITY,
        default_limit: int = DEFAULT_LIMIT,
        stale_after: Duration = DEFAULT_STALE_AFTER,
        id_factory: Callable[[datetime], str] | None = None,
    ) -> None:
        self._clock = clock
        self._stale_after = as_timedelta(stale_after, field="stale_after")
        self._presence = PresenceRegistry()
        self._messages = MessageLog(capacity=capacity, default_limit=default_limit, id_factory=id_factory)
        self._presence_lock = threading.Lock()
        self._messages_lock = threading.Lock()
        self._activity_lock = threading.Lock()
        self._last_activity_at: datetime | None = None

    @property
    def stale_after(self) -> timedelta:
        return self._stale_after

    @property
    def capacity(self) -> int:
        return self._messages.capacity

    @property
    def last_activity_at(self) -> datetime | None:
        with self._activity_lock:
            return self._last_activity_at

    def _touch(self) -> datetime:
        now = self._clock()
        with self._activity_lock:
            self._last_activity_at = now
        return now

    # ------------------------------------------------------------------
    # Presence
    # ------------------------------------------------------------------

    def upsert_presence(
        self,
        record_id: str,
        display_name: str = "",
        attributes: Mapping[str, Any] | None = None,
    ) -> tuple[PresenceRecord, int]:
        """Insert or refresh a presence record.

        Returns the stored record and the number of records held.

        Raises
        ------
        ValidationError
            If *record_id* is empty.
        """
        self._touch()
        with self._presence_lock:
            return self._presence.upsert(record_id, display_name, attributes, self._clock())

    def upsert_presence_batch(self, entries: Iterable[PresenceEntry]) -> tuple[list[PresenceRecord], int]:
        """Upsert several ``(id, display_name, attributes)`` entries at once.

        All ids are validated before any record is written.
        """
        self._touch()
        with self._presence_lock:
            return self._presence.upsert_many(entries, self._clock())

    def list_presence(self, stale_after: Duration | None = None) -> list[PresenceRecord]:
        """List fresh presence records, evicting stale ones.

        *stale_after* defaults to the store's configured threshold.
        """
        self._touch()
        threshold = self._stale_after if stale_after is None else as_timedelta(stale_after, field="staleAfter")
        with self._presence_lock:
            return self._presence.list_active(threshold, self._clock())

    def purge_presence(self, max_age: Duration) -> int:
        """Remove presence records older than *max_age*; returns how many."""
        self._touch()
        threshold = as_timedelta(max_age, field="maxAge")
        with self._presence_lock:
            return self._presence.purge_older_than(threshold, self._clock())

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def append_message(
        self,
        sender_id: str,
        sender_name: str,
        body: str,
        kind: str | None = DEFAULT_MESSAGE_KIND,
        message_id: str | None = None,
    ) -> tuple[ChatMessage, int]:
        """Append a chat message; returns it and the new log length.

        Raises
        ------
        ValidationError
            If *sender_id* or *body* is empty.
        DuplicateMessageError
            If *message_id* is already held in the log.
        """
        self._touch()
        with self._messages_lock:
            return self._messages.append(sender_id, sender_name, body, kind, message_id, self._clock())

    def list_messages(self, limit: int | None = None) -> list[ChatMessage]:
        """Return up to *limit* most recent messages, oldest first."""
        self._touch()
        with self._messages_lock:
            return self._messages.tail(limit)

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def snapshot_stats(self) -> StoreStats:
        """Counters for health reporting; never evicts and is not counted as activity."""
        now = self._clock()
        with self._presence_lock:
            presence_count = len(self._presence)
            active_count = self._presence.count_active(self._stale_after, now)
        with self._messages_lock:
            message_count = len(self._messages)
        return StoreStats(
            presence_count=presence_count,
            active_presence_count=active_count,
            message_count=message_count,
            last_activity_at=self.last_activity_at,
        )
