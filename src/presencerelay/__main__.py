"""Command-line entry point: ``presence-relay`` / ``python -m presencerelay``.

Settings come from ``RELAY_*`` environment variables; command-line options
override them.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from typing import Any

from presencerelay.config import RelayConfig
from presencerelay.exceptions import RelayConfigError
from presencerelay.server import run

_logger = logging.getLogger("presencerelay")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="presence-relay",
        description="Serve the in-memory presence and chat relay over HTTP.",
    )
    parser.add_argument("--host", help="Bind address (RELAY_HOST, default 0.0.0.0)")
    parser.add_argument("--port", type=int, help="TCP port (RELAY_PORT, default 3001)")
    parser.add_argument("--stale-after", type=float, help="Presence staleness threshold in seconds")
    parser.add_argument("--purge-after", type=float, help="Maintenance purge threshold in seconds")
    parser.add_argument("--purge-interval", type=float, help="Seconds between purges; 0 disables")
    parser.add_argument("--message-capacity", type=int, help="Chat messages retained")
    parser.add_argument("--default-message-limit", type=int, help="Messages returned when no limit is given")
    parser.add_argument("--max-body-bytes", type=int, help="Largest accepted request body")
    parser.add_argument(
        "--cors-origin",
        action="append",
        dest="cors_origins",
        help="Allowed CORS origin (repeatable, '*' for any)",
    )
    parser.add_argument("--log-level", help="Logging level (RELAY_LOG_LEVEL, default INFO)")
    parser.add_argument("--access-log", action="store_true", default=None, help="Emit aiohttp access log lines")
    return parser


def config_from_args(args: argparse.Namespace) -> RelayConfig:
    """Merge parsed CLI options over the environment configuration."""
    overrides: dict[str, Any] = {
        key: value for key, value in vars(args).items() if value is not None
    }
    if "cors_origins" in overrides:
        overrides["cors_origins"] = tuple(overrides["cors_origins"])
    if "log_level" in overrides:
        overrides["log_level"] = overrides["log_level"].upper()
    return RelayConfig.from_env(**overrides)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = config_from_args(args)
    except RelayConfigError as exc:
        print(f"presence-relay: {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _logger.debug("Effective configuration: %s", config)

    run(config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
