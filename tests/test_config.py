from __future__ import annotations

from datetime import timedelta

import pytest

from presencerelay.__main__ import build_parser, config_from_args
from presencerelay.config import RelayConfig
from presencerelay.exceptions import RelayConfigError

_RELAY_VARS = (
    "RELAY_HOST",
    "RELAY_PORT",
    "RELAY_STALE_AFTER",
    "RELAY_PURGE_AFTER",
    "RELAY_PURGE_INTERVAL",
    "RELAY_MESSAGE_CAPACITY",
    "RELAY_DEFAULT_MESSAGE_LIMIT",
    "RELAY_MAX_BODY_BYTES",
    "RELAY_CORS_ORIGINS",
    "RELAY_LOG_LEVEL",
    "RELAY_ACCESS_LOG",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _RELAY_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    config = RelayConfig.from_env()

    assert config.port == 3001
    assert config.message_capacity == 100
    assert config.stale_after_delta == timedelta(minutes=5)
    assert config.purge_after_delta == timedelta(minutes=10)
    assert config.cors_origins == ("*",)
    assert config.access_log is False


def test_env_values_are_parsed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RELAY_PORT", "8080")
    monkeypatch.setenv("RELAY_STALE_AFTER", "600")
    monkeypatch.setenv("RELAY_PURGE_AFTER", "900")
    monkeypatch.setenv("RELAY_MESSAGE_CAPACITY", "500")
    monkeypatch.setenv("RELAY_CORS_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("RELAY_LOG_LEVEL", "debug")
    monkeypatch.setenv("RELAY_ACCESS_LOG", "yes")

    config = RelayConfig.from_env()

    assert config.port == 8080
    assert config.stale_after == 600.0
    assert config.purge_after == 900.0
    assert config.message_capacity == 500
    assert config.cors_origins == ("https://a.example", "https://b.example")
    assert config.log_level == "DEBUG"
    assert config.access_log is True


def test_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RELAY_MESSAGE_CAPACITY", "500")
    config = RelayConfig.from_env(message_capacity=200)
    assert config.message_capacity == 200


def test_unparseable_env_value(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RELAY_PORT", "not-a-port")
    with pytest.raises(RelayConfigError, match="RELAY_PORT"):
        RelayConfig.from_env()


@pytest.mark.parametrize(
    "overrides",
    [
        {"message_capacity": 0},
        {"default_message_limit": 0},
        {"stale_after": -1.0},
        {"stale_after": 600.0, "purge_after": 300.0},
        {"purge_interval": -5.0},
        {"port": 0},
        {"max_body_bytes": 0},
    ],
)
def test_out_of_range_values_rejected(overrides: dict[str, float]) -> None:
    with pytest.raises(RelayConfigError):
        RelayConfig.from_env(**overrides)


@pytest.mark.parametrize("value", ["nan", "inf", "-inf", "1e15"])
def test_non_finite_durations_in_env_rejected(monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    monkeypatch.setenv("RELAY_STALE_AFTER", value)
    with pytest.raises(RelayConfigError, match="stale_after"):
        RelayConfig.from_env()


@pytest.mark.parametrize("field", ["purge_after", "purge_interval"])
def test_non_finite_override_rejected(field: str) -> None:
    with pytest.raises(RelayConfigError, match=field):
        RelayConfig.from_env(**{field: float("nan")})


def test_cli_options_override_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RELAY_PORT", "8080")
    args = build_parser().parse_args(
        ["--port", "9000", "--message-capacity", "150", "--cors-origin", "https://app.example", "--log-level", "warning"]
    )

    config = config_from_args(args)

    assert config.port == 9000
    assert config.message_capacity == 150
    assert config.cors_origins == ("https://app.example",)
    assert config.log_level == "WARNING"


def test_cli_without_options_uses_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RELAY_PORT", "8080")
    config = config_from_args(build_parser().parse_args([]))
    assert config.port == 8080
