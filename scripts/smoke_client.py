#!/usr/bin/env python3
"""Exercise a running relay end to end.

Sends a presence heartbeat, a sync batch and a chat message, then reads
everything back and prints the JSON responses.

Usage
-----
Start a relay (``presence-relay --port 3001``) and run::

    python scripts/smoke_client.py --base-url http://localhost:3001

Options::

    --base-url URL      Relay base URL (default: http://localhost:3001)
    --user-id ID        Presence id to heartbeat as (default: smoke_user_1)
    --skip-sync         Skip the /sync batch request
    --verbose           Enable DEBUG logging
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

import aiohttp

_LOG = logging.getLogger("smoke_client")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Smoke-test a presence relay.")
    parser.add_argument("--base-url", default="http://localhost:3001")
    parser.add_argument("--user-id", default="smoke_user_1")
    parser.add_argument("--skip-sync", action="store_true")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args()


def _print_step(title: str, payload: Any) -> None:
    print(f"\n== {title}")
    print(json.dumps(payload, indent=2, ensure_ascii=False))


async def _request(session: aiohttp.ClientSession, method: str, url: str, body: Any = None) -> Any:
    _LOG.debug("%s %s", method, url)
    async with session.request(method, url, json=body) as resp:
        payload = await resp.json(content_type=None)
        if resp.status >= 400:
            _LOG.warning("%s %s -> HTTP %d: %s", method, url, resp.status, payload)
        return payload


async def _run(base_url: str, user_id: str, skip_sync: bool) -> None:
    timeout = aiohttp.ClientTimeout(total=10)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        _print_step("status", await _request(session, "GET", f"{base_url}/status"))
        _print_step("stats", await _request(session, "GET", f"{base_url}/stats"))

        user = {
            "id": user_id,
            "name": "Smoke Test User",
            "avatar": f"https://api.dicebear.com/7.x/avataaars/svg?seed={user_id}",
            "isOnline": True,
        }
        _print_step("heartbeat", await _request(session, "POST", f"{base_url}/online-users", user))

        if not skip_sync:
            sync = {
                "key": "online_users",
                "data": {
                    "data": [{**user, "id": f"{user_id}_sync", "profileEnabled": True}],
                    "origin": "smoke_client",
                },
            }
            _print_step("sync", await _request(session, "POST", f"{base_url}/sync", sync))

        message = {"userId": user_id, "userName": "Smoke Test User", "message": "hello from smoke_client"}
        _print_step("message", await _request(session, "POST", f"{base_url}/chat-messages", message))

        _print_step("online users", await _request(session, "GET", f"{base_url}/online-users"))
        _print_step("recent messages", await _request(session, "GET", f"{base_url}/chat-messages?limit=5"))


def main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(_run(args.base_url.rstrip("/"), args.user_id, args.skip_sync))
    except aiohttp.ClientError as exc:  # pragma: no cover - network interaction
        print(f"[smoke] Request failed: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
