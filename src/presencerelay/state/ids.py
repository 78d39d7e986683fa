"""Message id generation."""

from __future__ import annotations

import itertools
import secrets
import threading
from datetime import datetime


class MessageIdGenerator:
    """Generate ids of the form ``msg_<epoch-ms>_<counter><random-hex>``.

    The counter makes ids unique within the process even when many are
    generated in the same millisecond; the random suffix keeps ids from
    repeating across restarts.
    """

    def __init__(self, *, prefix: str = "msg") -> None:
        self._prefix = prefix
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def __call__(self, now: datetime) -> str:
        with self._lock:
            seq = next(self._counter)
        millis = int(now.timestamp() * 1000)
        return f"{self._prefix}_{millis}_{seq:06d}{secrets.token_hex(4)}"
