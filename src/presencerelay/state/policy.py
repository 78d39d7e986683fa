"""Freshness and retention rules shared by the presence registry and message log.

This module intentionally contains *no* locking; callers hold the
collection lock while applying these rules.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta

from presencerelay.exceptions import ValidationError

Duration = timedelta | float | int
"""A duration as a :class:`~datetime.timedelta` or a number of seconds."""


def as_timedelta(value: Duration, *, field: str) -> timedelta:
    """Normalise *value* to a non-negative timedelta.

    Raises :class:`ValidationError` for negative, non-finite or out-of-range durations.
    """
    if isinstance(value, timedelta):
        delta = value
    else:
        seconds = float(value)
        if not math.isfinite(seconds):
            raise ValidationError(f"{field} must be a finite number of seconds, got {seconds}", field=field)
        try:
            delta = timedelta(seconds=seconds)
        except OverflowError as exc:
            raise ValidationError(f"{field} is out of range: {seconds}s", field=field) from exc
    if delta < timedelta(0):
        raise ValidationError(f"{field} must be >= 0, got {delta.total_seconds()}s", field=field)
    return delta


def is_stale(now: datetime, last_seen: datetime, threshold: timedelta) -> bool:
    """A record is stale once strictly more than *threshold* has passed."""
    return now - last_seen > threshold


def require_non_empty(value: str | None, *, field: str) -> str:
    """Return *value* if it has visible content, else raise :class:`ValidationError`."""
    if value is None or not value.strip():
        raise ValidationError(f"{field} must be non-empty", field=field)
    return value


def resolve_limit(limit: int | None, default: int) -> int:
    """Map missing or non-positive read limits to *default*."""
    if limit is None or limit <= 0:
        return default
    return limit
