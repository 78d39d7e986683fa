"""Relay configuration for presencerelay."""

from __future__ import annotations

import dataclasses
import math
import os
from datetime import timedelta
from typing import Any

from presencerelay.exceptions import RelayConfigError


# Largest duration a timedelta can hold.
_MAX_SECONDS = timedelta.max.total_seconds()


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_origins(value: str) -> tuple[str, ...]:
    return tuple(origin.strip() for origin in value.split(",") if origin.strip())


@dataclasses.dataclass(frozen=True)
class RelayConfig:
    """Relay server configuration.

    Parameters
    ----------
    host : str
        Interface the HTTP server binds to.
    port : int
        TCP port of the HTTP server.
    stale_after : float
        Seconds since the last heartbeat after which a presence record is
        no longer reported as online (and is evicted on the next read).
    purge_after : float
        Seconds since the last heartbeat after which the periodic
        maintenance task removes a presence record even if nobody reads
        the presence list.  Must not be shorter than ``stale_after``.
    purge_interval : float
        Seconds between maintenance runs.  Set to ``0`` to disable the
        background task (``/maintenance/purge`` still works).
    message_capacity : int
        Maximum number of chat messages retained; oldest are dropped first.
    default_message_limit : int
        Number of messages returned when a read does not ask for a
        positive limit.
    max_body_bytes : int
        Largest accepted request body.
    cors_origins : tuple[str, ...]
        Origins allowed by the CORS middleware.  ``("*",)`` allows any.
    log_level : str
        Root logging level used by the CLI.
    access_log : bool
        Emit aiohttp access log lines.
    """

    host: str = "0.0.0.0"
    port: int = 3001
    stale_after: float = 300.0
    purge_after: float = 600.0
    purge_interval: float = 60.0
    message_capacity: int = 100
    default_message_limit: int = 50
    max_body_bytes: int = 64 * 1024
    cors_origins: tuple[str, ...] = ("*",)
    log_level: str = "INFO"
    access_log: bool = False

    @property
    def stale_after_delta(self) -> timedelta:
        return timedelta(seconds=self.stale_after)

    @property
    def purge_after_delta(self) -> timedelta:
        return timedelta(seconds=self.purge_after)

    def validate(self) -> RelayConfig:
        """Check value ranges, returning ``self`` so calls can be chained.

        Raises
        ------
        RelayConfigError
            If any field is out of range.
        """
        if not 0 < self.port < 65536:
            raise RelayConfigError(f"port must be between 1 and 65535, got {self.port}")
        for name in ("stale_after", "purge_after", "purge_interval"):
            seconds = getattr(self, name)
            if not math.isfinite(seconds) or abs(seconds) > _MAX_SECONDS:
                raise RelayConfigError(f"{name} must be a finite number of seconds, got {seconds}")
        if self.stale_after < 0:
            raise RelayConfigError(f"stale_after must be >= 0, got {self.stale_after}")
        if self.purge_after < self.stale_after:
            raise RelayConfigError(
                f"purge_after ({self.purge_after}) must not be shorter than stale_after ({self.stale_after})"
            )
        if self.purge_interval < 0:
            raise RelayConfigError(f"purge_interval must be >= 0, got {self.purge_interval}")
        if self.message_capacity < 1:
            raise RelayConfigError(f"message_capacity must be >= 1, got {self.message_capacity}")
        if self.default_message_limit < 1:
            raise RelayConfigError(f"default_message_limit must be >= 1, got {self.default_message_limit}")
        if self.max_body_bytes < 1:
            raise RelayConfigError(f"max_body_bytes must be >= 1, got {self.max_body_bytes}")
        return self

    @classmethod
    def from_env(cls, **overrides: Any) -> RelayConfig:
        """Create configuration from environment variables.

        Reads optional ``RELAY_*`` variables.  Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        RelayConfig
            Populated and validated configuration.

        Raises
        ------
        RelayConfigError
            If a variable cannot be parsed or a value is out of range.
        """
        env = os.environ

        _ENV_CONVERTERS: dict[str, tuple[str, Any]] = {
            "RELAY_HOST": ("host", str),
            "RELAY_PORT": ("port", int),
            "RELAY_STALE_AFTER": ("stale_after", float),
            "RELAY_PURGE_AFTER": ("purge_after", float),
            "RELAY_PURGE_INTERVAL": ("purge_interval", float),
            "RELAY_MESSAGE_CAPACITY": ("message_capacity", int),
            "RELAY_DEFAULT_MESSAGE_LIMIT": ("default_message_limit", int),
            "RELAY_MAX_BODY_BYTES": ("max_body_bytes", int),
            "RELAY_CORS_ORIGINS": ("cors_origins", _env_origins),
            "RELAY_LOG_LEVEL": ("log_level", str.upper),
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, (field_name, convert) in _ENV_CONVERTERS.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = convert(val)
            except ValueError as exc:
                raise RelayConfigError(f"invalid value for {env_key}: {val!r}") from exc

        if "access_log" not in overrides:
            config_kwargs["access_log"] = _env_bool(env.get("RELAY_ACCESS_LOG"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs).validate()
