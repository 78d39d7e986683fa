from __future__ import annotations

from presencerelay._redact import redact_for_log


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "id": "u1",
        "name": "Alice",
        "password": "pw",
        "access_token": "abc",
        "attributes": {"email": "alice@example.com", "avatar": "a.png"},
    }

    redacted = redact_for_log(payload)
    assert redacted["id"] == "u1"
    assert redacted["password"] == "<redacted>"
    assert redacted["access_token"] == "<redacted>"
    assert redacted["attributes"]["email"] == "<redacted>"
    assert redacted["attributes"]["avatar"] == "a.png"


def test_redact_for_log_truncates_long_strings() -> None:
    redacted = redact_for_log({"message": "x" * 600}, max_string=10)
    assert redacted["message"].startswith("x" * 10)
    assert "<truncated 600 chars>" in redacted["message"]


def test_redact_for_log_caps_collections() -> None:
    redacted = redact_for_log({"data": list(range(30))}, max_items=5)
    assert redacted["data"][:5] == [0, 1, 2, 3, 4]
    assert redacted["data"][-1] == "<25 more items>"
