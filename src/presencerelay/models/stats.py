"""Store statistics."""

from __future__ import annotations

from presencerelay.models._base import RelayBaseModel, UtcDatetime


class StoreStats(RelayBaseModel):
    """Point-in-time counters for health reporting.

    ``presence_count`` includes stale records that have not been evicted
    yet; ``active_presence_count`` only counts records within the store's
    default staleness threshold.
    """

    presence_count: int
    active_presence_count: int
    message_count: int
    last_activity_at: UtcDatetime | None = None
