"""Base model for relay records.

Every stored record inherits from :class:`RelayBaseModel` which provides:

* ``alias_generator=to_camel`` so snake_case fields serialize to the
  camelCase keys polling clients expect (``lastSeen``, ``senderId``).
* ``frozen=True``: records handed out by the store are never mutated
  in place; an upsert replaces the record.
* :meth:`RelayBaseModel.to_wire` for the JSON shape used by the server.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]
"""Annotated type that normalises datetimes to timezone-aware UTC."""


class RelayBaseModel(BaseModel):
    """Base for records held by the state store."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_wire(self) -> dict[str, Any]:
        """JSON-compatible dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
