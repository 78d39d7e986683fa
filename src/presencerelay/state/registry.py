"""Presence registry: online users keyed by identity."""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta
from typing import Any

from presencerelay.models.presence import PresenceRecord
from presencerelay.state.policy import is_stale, require_non_empty

PresenceEntry = tuple[str, str, Mapping[str, Any] | None]
"""``(id, display_name, attributes)`` as accepted by :meth:`PresenceRegistry.upsert_many`."""


class PresenceRegistry:
    """Last-write-wins map of presence records.

    Stale records are evicted lazily: :meth:`list_active` drops them as a
    side effect, and :meth:`purge_older_than` lets a maintenance job bound
    memory when nobody is reading.  The registry is not thread-safe on its
    own; :class:`~presencerelay.state.store.StateStore` serializes access.
    """

    def __init__(self) -> None:
        self._records: dict[str, PresenceRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def _build(
        self,
        record_id: str,
        display_name: str,
        attributes: Mapping[str, Any] | None,
        now: datetime,
    ) -> PresenceRecord:
        existing = self._records.get(record_id)
        return PresenceRecord(
            id=record_id,
            display_name=display_name or "",
            attributes=copy.deepcopy(dict(attributes or {})),
            last_seen=now,
            connected_at=existing.connected_at if existing is not None else now,
        )

    def upsert(
        self,
        record_id: str,
        display_name: str,
        attributes: Mapping[str, Any] | None,
        now: datetime,
    ) -> tuple[PresenceRecord, int]:
        """Insert or replace the record for *record_id*.

        Returns a copy of the stored record and the registry size.
        """
        require_non_empty(record_id, field="id")
        record = self._build(record_id, display_name, attributes, now)
        self._records[record_id] = record
        return record.model_copy(deep=True), len(self._records)

    def upsert_many(self, entries: Iterable[PresenceEntry], now: datetime) -> tuple[list[PresenceRecord], int]:
        """Upsert a batch; every id is validated before anything is stored."""
        batch = list(entries)
        for record_id, _, _ in batch:
            require_non_empty(record_id, field="id")
        stored = [self.upsert(record_id, name, attributes, now)[0] for record_id, name, attributes in batch]
        return stored, len(self._records)

    def _evict(self, threshold: timedelta, now: datetime) -> int:
        stale_ids = [rid for rid, rec in self._records.items() if is_stale(now, rec.last_seen, threshold)]
        for rid in stale_ids:
            del self._records[rid]
        return len(stale_ids)

    def list_active(self, stale_after: timedelta, now: datetime) -> list[PresenceRecord]:
        """Return copies of fresh records, permanently dropping stale ones."""
        self._evict(stale_after, now)
        return [rec.model_copy(deep=True) for rec in self._records.values()]

    def purge_older_than(self, max_age: timedelta, now: datetime) -> int:
        """Remove records whose last heartbeat is older than *max_age*."""
        return self._evict(max_age, now)

    def count_active(self, stale_after: timedelta, now: datetime) -> int:
        """Count fresh records without evicting anything."""
        return sum(1 for rec in self._records.values() if not is_stale(now, rec.last_seen, stale_after))
