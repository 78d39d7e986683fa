"""Presence records."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from presencerelay.models._base import RelayBaseModel, UtcDatetime


class PresenceRecord(RelayBaseModel):
    """A user session currently (or recently) reported as online.

    ``connected_at`` is pinned to the first heartbeat of the session;
    ``last_seen`` moves forward with every heartbeat.
    """

    id: str
    display_name: str = ""
    attributes: dict[str, Any] = Field(default_factory=dict)
    last_seen: UtcDatetime
    connected_at: UtcDatetime
