"""Capacity-bounded chat message log."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable
from datetime import datetime
from itertools import islice

from presencerelay.exceptions import DuplicateMessageError, RelayConfigError
from presencerelay.models.message import DEFAULT_MESSAGE_KIND, ChatMessage
from presencerelay.state.ids import MessageIdGenerator
from presencerelay.state.policy import require_non_empty, resolve_limit

DEFAULT_CAPACITY = 100
DEFAULT_LIMIT = 50


class MessageLog:
    """Append-only FIFO of chat messages with a hard capacity.

    Retention is enforced on every append: once the log grows past
    ``capacity`` the oldest messages are dropped.  Not thread-safe on its
    own; :class:`~presencerelay.state.store.StateStore` serializes access.
    """

    def __init__(
        self,
        *,
        capacity: int = DEFAULT_CAPACITY,
        default_limit: int = DEFAULT_LIMIT,
        id_factory: Callable[[datetime], str] | None = None,
    ) -> None:
        if capacity < 1:
            raise RelayConfigError(f"capacity must be >= 1, got {capacity}")
        if default_limit < 1:
            raise RelayConfigError(f"default_limit must be >= 1, got {default_limit}")
        self._capacity = capacity
        self._default_limit = default_limit
        self._id_factory = id_factory or MessageIdGenerator()
        self._messages: deque[ChatMessage] = deque()
        self._ids: set[str] = set()
        self._last_created_at: datetime | None = None

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def default_limit(self) -> int:
        return self._default_limit

    def __len__(self) -> int:
        return len(self._messages)

    def size(self) -> int:
        return len(self._messages)

    def append(
        self,
        sender_id: str,
        sender_name: str,
        body: str,
        kind: str | None,
        message_id: str | None,
        now: datetime,
    ) -> tuple[ChatMessage, int]:
        """Append a message and trim the head down to capacity.

        Returns the stored message and the new log length.
        """
        require_non_empty(sender_id, field="senderId")
        require_non_empty(body, field="body")
        if message_id and message_id in self._ids:
            raise DuplicateMessageError(message_id)

        # Wall clocks can step backwards; insertion order wins.
        created_at = now
        if self._last_created_at is not None and created_at < self._last_created_at:
            created_at = self._last_created_at

        message = ChatMessage(
            id=message_id or self._new_id(created_at),
            sender_id=sender_id,
            sender_name=sender_name or "",
            body=body,
            kind=DEFAULT_MESSAGE_KIND if kind is None else kind,
            created_at=created_at,
        )
        self._messages.append(message)
        self._ids.add(message.id)
        self._last_created_at = created_at

        while len(self._messages) > self._capacity:
            evicted = self._messages.popleft()
            self._ids.discard(evicted.id)

        return message, len(self._messages)

    def _new_id(self, now: datetime) -> str:
        message_id = self._id_factory(now)
        while message_id in self._ids:
            message_id = self._id_factory(now)
        return message_id

    def tail(self, limit: int | None = None) -> list[ChatMessage]:
        """Return the last ``min(limit, len)`` messages, oldest first."""
        count = min(resolve_limit(limit, self._default_limit), len(self._messages))
        return list(islice(self._messages, len(self._messages) - count, None))
