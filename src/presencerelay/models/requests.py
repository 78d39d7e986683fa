"""Pydantic request models for the HTTP transport.

These models provide a consistent "decode → normalize → call the store"
flow.  They accept both the canonical camelCase keys and the legacy keys
sent by older relay clients (``name``, ``userId``, ``message``, ``type``).
Required-field checks that belong to the store (non-empty ids and bodies)
are left to :class:`presencerelay.state.store.StateStore`.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

# Keys the presence model maps itself; every other top-level key is folded
# into ``attributes``.
_NAME_KEYS: tuple[str, ...] = ("displayName", "display_name", "name")
_PRESENCE_KEYS: frozenset[str] = frozenset({"id", "attributes", *_NAME_KEYS})
# Timestamps are assigned by the store, never taken from the client.
_SERVER_ASSIGNED_KEYS: frozenset[str] = frozenset({"lastSeen", "last_seen", "connectedAt", "connected_at"})


def _coerce_id(value: Any) -> Any:
    # Browser clients sometimes send numeric ids.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    return value


class PresenceUpsertRequest(BaseModel):
    """Body of ``POST /online-users`` (and each entry of a sync batch)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    display_name: str = Field(
        default="",
        validation_alias=AliasChoices(*_NAME_KEYS),
    )
    attributes: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _fold_extra_keys(cls, values: Any) -> Any:
        """Move unknown top-level keys (``avatar``, ``isOnline``, ...) into ``attributes``."""
        if not isinstance(values, dict):
            return values
        attributes = values.get("attributes") or {}
        if not isinstance(attributes, dict):
            # Let field validation report the bad type.
            return values

        folded: dict[str, Any] = {}
        merged_attributes = dict(attributes)
        for key, value in values.items():
            if key in _SERVER_ASSIGNED_KEYS:
                continue
            if key in _PRESENCE_KEYS:
                folded[key] = value
            else:
                merged_attributes[key] = value
        folded["attributes"] = merged_attributes
        # First name alias present wins.
        name_keys = [key for key in _NAME_KEYS if key in folded]
        for key in name_keys[1:]:
            del folded[key]
        return folded

    @field_validator("id", mode="before")
    @classmethod
    def _normalize_id(cls, value: Any) -> Any:
        return _coerce_id(value)

    @field_validator("display_name", mode="before")
    @classmethod
    def _none_name_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class MessageAppendRequest(BaseModel):
    """Body of ``POST /chat-messages``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str | None = None
    sender_id: str = Field(
        default="",
        validation_alias=AliasChoices("senderId", "sender_id", "userId"),
    )
    sender_name: str = Field(
        default="",
        validation_alias=AliasChoices("senderName", "sender_name", "userName"),
    )
    body: str = Field(default="", validation_alias=AliasChoices("body", "message"))
    kind: str | None = Field(default=None, validation_alias=AliasChoices("kind", "type"))

    @field_validator("id", "sender_id", mode="before")
    @classmethod
    def _normalize_ids(cls, value: Any) -> Any:
        return _coerce_id(value)

    @field_validator("id")
    @classmethod
    def _blank_id_means_generate(cls, value: str | None) -> str | None:
        return value or None

    @field_validator("sender_name", mode="before")
    @classmethod
    def _none_name_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class SyncPayload(BaseModel):
    """Inner ``data`` object of a sync request."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    data: list[PresenceUpsertRequest] = Field(default_factory=list)
    timestamp: float | None = None
    origin: str | None = None


class SyncRequest(BaseModel):
    """Body of ``POST /sync``: a batch of presence records pushed at once."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    key: str = ""
    data: SyncPayload = Field(default_factory=SyncPayload)
