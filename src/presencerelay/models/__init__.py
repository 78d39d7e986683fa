"""Data models for relay records and HTTP requests."""

from presencerelay.models._base import RelayBaseModel, UtcDatetime, ensure_utc
from presencerelay.models.message import DEFAULT_MESSAGE_KIND, ChatMessage
from presencerelay.models.presence import PresenceRecord
from presencerelay.models.requests import (
    MessageAppendRequest,
    PresenceUpsertRequest,
    SyncPayload,
    SyncRequest,
)
from presencerelay.models.stats import StoreStats

__all__ = [
    "DEFAULT_MESSAGE_KIND",
    "ChatMessage",
    "MessageAppendRequest",
    "PresenceRecord",
    "PresenceUpsertRequest",
    "RelayBaseModel",
    "StoreStats",
    "SyncPayload",
    "SyncRequest",
    "UtcDatetime",
    "ensure_utc",
]
