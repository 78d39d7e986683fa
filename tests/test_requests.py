"""Tests for decoding HTTP request bodies into request models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from presencerelay.models.requests import MessageAppendRequest, PresenceUpsertRequest, SyncRequest


class TestPresenceUpsertRequest:
    def test_legacy_body_folds_extra_keys_into_attributes(self) -> None:
        body = PresenceUpsertRequest.model_validate(
            {
                "id": "test_user_1",
                "name": "Test User",
                "avatar": "https://example.com/a.svg",
                "isOnline": True,
                "profileEnabled": True,
                "lastSeen": "2020-01-01T00:00:00Z",
            }
        )

        assert body.id == "test_user_1"
        assert body.display_name == "Test User"
        assert body.attributes == {
            "avatar": "https://example.com/a.svg",
            "isOnline": True,
            "profileEnabled": True,
        }

    def test_canonical_body(self) -> None:
        body = PresenceUpsertRequest.model_validate(
            {"id": "u1", "displayName": "Alice", "attributes": {"status": "busy"}, "color": "red"}
        )

        assert body.display_name == "Alice"
        assert body.attributes == {"status": "busy", "color": "red"}

    def test_numeric_id_and_missing_name(self) -> None:
        body = PresenceUpsertRequest.model_validate({"id": 42, "name": None})

        assert body.id == "42"
        assert body.display_name == ""

    def test_display_name_preferred_over_legacy_name(self) -> None:
        body = PresenceUpsertRequest.model_validate({"id": "u1", "displayName": "Alice", "name": "alice_legacy"})

        assert body.display_name == "Alice"
        assert body.attributes == {}

    def test_null_attributes(self) -> None:
        assert PresenceUpsertRequest.model_validate({"id": "u1", "attributes": None}).attributes == {}

    def test_missing_id_is_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            PresenceUpsertRequest.model_validate({"name": "Alice"})

    def test_non_object_attributes_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            PresenceUpsertRequest.model_validate({"id": "u1", "attributes": ["x"]})


class TestMessageAppendRequest:
    def test_legacy_keys(self) -> None:
        body = MessageAppendRequest.model_validate(
            {"userId": "u1", "userName": "Alice", "message": "hi", "type": "system", "extra": 1}
        )

        assert body.sender_id == "u1"
        assert body.sender_name == "Alice"
        assert body.body == "hi"
        assert body.kind == "system"
        assert body.id is None

    def test_canonical_keys(self) -> None:
        body = MessageAppendRequest.model_validate(
            {"id": "m-1", "senderId": "u1", "senderName": "Alice", "body": "hi", "kind": "text"}
        )

        assert body.id == "m-1"
        assert body.sender_id == "u1"

    def test_blank_id_means_generate(self) -> None:
        assert MessageAppendRequest.model_validate({"id": " ", "senderId": "u1", "body": "x"}).id is None

    def test_missing_fields_default_to_empty(self) -> None:
        # Empty sender/body are rejected by the store, not by decoding.
        body = MessageAppendRequest.model_validate({})
        assert body.sender_id == ""
        assert body.body == ""
        assert body.kind is None


def test_sync_request_shape() -> None:
    body = SyncRequest.model_validate(
        {
            "key": "essentia_online_users",
            "data": {
                "data": [{"id": "u1", "name": "Alice", "isOnline": True}],
                "timestamp": 1767225600000,
                "origin": "test_script",
            },
        }
    )

    assert body.key == "essentia_online_users"
    assert body.data.origin == "test_script"
    [user] = body.data.data
    assert user.display_name == "Alice"
    assert user.attributes == {"isOnline": True}
