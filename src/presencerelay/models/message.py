"""Chat messages."""

from __future__ import annotations

from presencerelay.models._base import RelayBaseModel, UtcDatetime

DEFAULT_MESSAGE_KIND = "text"


class ChatMessage(RelayBaseModel):
    """A chat message as stored in the message log.

    ``kind`` is an open tag (``"text"``, ``"system"``, ...) that the relay
    passes through without interpreting.
    """

    id: str
    sender_id: str
    sender_name: str = ""
    body: str
    kind: str = DEFAULT_MESSAGE_KIND
    created_at: UtcDatetime
