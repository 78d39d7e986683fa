"""HTTP transport for the relay.

Each handler decodes one request, makes exactly one
:class:`~presencerelay.state.store.StateStore` call and encodes the result
as JSON.  Everything HTTP-specific (CORS, content checks, status codes,
logging) lives here; the store knows nothing about it.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from aiohttp import web
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from presencerelay._redact import redact_for_log
from presencerelay.config import RelayConfig
from presencerelay.exceptions import DuplicateMessageError, RelayRequestError, ValidationError
from presencerelay.models.requests import MessageAppendRequest, PresenceUpsertRequest, SyncRequest
from presencerelay.state.store import StateStore

_logger = logging.getLogger(__name__)

STORE_KEY = web.AppKey("store", StateStore)
CONFIG_KEY = web.AppKey("config", RelayConfig)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

_CORS_ALLOW_METHODS = "GET, POST, OPTIONS"
_CORS_ALLOW_HEADERS = "Content-Type, Authorization"


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


def _error_response(status: int, message: str) -> web.Response:
    return web.json_response({"success": False, "error": message}, status=status)


def _describe_pydantic_error(exc: PydanticValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "body"
        parts.append(f"{location}: {error.get('msg', 'invalid')}")
    return "; ".join(parts)


# ----------------------------------------------------------------------
# Request decoding
# ----------------------------------------------------------------------


async def _read_model(request: web.Request, model: type[BaseModel]) -> Any:
    """Decode a JSON body into *model*, raising :class:`RelayRequestError` on failure."""
    endpoint = request.path
    max_body = request.app[CONFIG_KEY].max_body_bytes
    if request.content_length is not None and request.content_length > max_body:
        raise RelayRequestError(
            f"request body exceeds {max_body} bytes",
            status_code=413,
            endpoint=endpoint,
        )
    if request.content_type != "application/json":
        raise RelayRequestError(
            f"expected application/json, got {request.content_type or 'no content type'}",
            status_code=415,
            endpoint=endpoint,
        )

    try:
        payload = await request.json()
    except json.JSONDecodeError as exc:
        raise RelayRequestError(f"invalid JSON body: {exc.msg}", endpoint=endpoint) from exc
    except UnicodeDecodeError as exc:
        raise RelayRequestError(f"request body is not valid {exc.encoding}", endpoint=endpoint) from exc

    _logger.debug("%s %s payload=%s", request.method, endpoint, redact_for_log(payload))

    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        raise RelayRequestError(_describe_pydantic_error(exc), endpoint=endpoint) from exc


def _query_number(request: web.Request, name: str, convert: Callable[[str], Any]) -> Any:
    raw = request.query.get(name)
    if raw is None or raw == "":
        return None
    try:
        return convert(raw)
    except ValueError as exc:
        raise RelayRequestError(f"query parameter {name!r} is not a number: {raw!r}", endpoint=request.path) from exc


# ----------------------------------------------------------------------
# Middlewares
# ----------------------------------------------------------------------


def _make_cors_middleware(origins: tuple[str, ...]) -> Any:
    allow_any = "*" in origins

    @web.middleware
    async def cors_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        origin = request.headers.get("Origin", "")
        allowed = bool(origin) and (allow_any or origin in origins)

        if request.method == "OPTIONS" and "Access-Control-Request-Method" in request.headers:
            response: web.StreamResponse = web.Response(status=204 if allowed else 403)
        else:
            response = await handler(request)

        if allowed:
            response.headers["Access-Control-Allow-Origin"] = "*" if allow_any else origin
            response.headers["Access-Control-Allow-Methods"] = _CORS_ALLOW_METHODS
            response.headers["Access-Control-Allow-Headers"] = _CORS_ALLOW_HEADERS
            if not allow_any:
                response.headers["Vary"] = "Origin"
        return response

    return cors_middleware


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Map relay and HTTP errors to JSON error bodies."""
    try:
        return await handler(request)
    except DuplicateMessageError as exc:
        _logger.info("Rejected %s %s: %s", request.method, request.path, exc)
        return _error_response(409, str(exc))
    except ValidationError as exc:
        _logger.info("Rejected %s %s: %s", request.method, request.path, exc)
        return _error_response(400, str(exc))
    except RelayRequestError as exc:
        _logger.info("Bad request %s %s: %s", request.method, request.path, exc)
        return _error_response(exc.status_code, str(exc))
    except web.HTTPException as exc:
        if exc.status < 400:
            raise
        return _error_response(exc.status, exc.reason)
    except Exception:
        _logger.exception("Unhandled error in %s %s", request.method, request.path)
        return _error_response(500, "internal server error")


# ----------------------------------------------------------------------
# Handlers
# ----------------------------------------------------------------------


async def list_online_users(request: web.Request) -> web.Response:
    store = request.app[STORE_KEY]
    stale_after = _query_number(request, "staleAfter", float)
    records = store.list_presence(stale_after)
    _logger.debug("Sending %d online users", len(records))
    return web.json_response([record.to_wire() for record in records])


async def upsert_online_user(request: web.Request) -> web.Response:
    store = request.app[STORE_KEY]
    body: PresenceUpsertRequest = await _read_model(request, PresenceUpsertRequest)
    record, count = store.upsert_presence(body.id, body.display_name, body.attributes)
    _logger.info("Presence updated for %s (%s); %d users held", record.id, record.display_name, count)
    return web.json_response({"success": True, "count": count, "user": record.to_wire()})


async def list_chat_messages(request: web.Request) -> web.Response:
    store = request.app[STORE_KEY]
    limit = _query_number(request, "limit", int)
    messages = store.list_messages(limit)
    _logger.debug("Sending %d messages", len(messages))
    return web.json_response([message.to_wire() for message in messages])


async def append_chat_message(request: web.Request) -> web.Response:
    store = request.app[STORE_KEY]
    body: MessageAppendRequest = await _read_model(request, MessageAppendRequest)
    message, total = store.append_message(body.sender_id, body.sender_name, body.body, body.kind, body.id)
    _logger.info("Message %s from %s (%s); total %d", message.id, message.sender_name, message.kind, total)
    return web.json_response({"success": True, "message": message.to_wire(), "total": total})


async def sync_online_users(request: web.Request) -> web.Response:
    store = request.app[STORE_KEY]
    body: SyncRequest = await _read_model(request, SyncRequest)
    entries = [(user.id, user.display_name, user.attributes) for user in body.data.data]
    records, count = store.upsert_presence_batch(entries)
    _logger.info("Synced %d users from %s (key=%s)", len(records), body.data.origin or "unknown", body.key)
    return web.json_response({"success": True, "key": body.key, "count": count, "synced": len(records)})


async def purge_presence(request: web.Request) -> web.Response:
    store = request.app[STORE_KEY]
    max_age = _query_number(request, "maxAge", float)
    if max_age is None:
        max_age = request.app[CONFIG_KEY].purge_after
    removed = store.purge_presence(max_age)
    _logger.info("Purged %d presence records older than %ss", removed, max_age)
    return web.json_response({"success": True, "removed": removed})


async def get_status(request: web.Request) -> web.Response:
    stats = request.app[STORE_KEY].snapshot_stats()
    wire = stats.to_wire()
    return web.json_response(
        {
            "status": "online",
            "users": stats.presence_count,
            "activeUsers": stats.active_presence_count,
            "messages": stats.message_count,
            "lastActivityAt": wire["lastActivityAt"],
            "timestamp": _now_ms(),
        }
    )


async def get_stats(request: web.Request) -> web.Response:
    store = request.app[STORE_KEY]
    config = request.app[CONFIG_KEY]
    payload = store.snapshot_stats().to_wire()
    payload.update(
        {
            "messageCapacity": store.capacity,
            "staleAfter": store.stale_after.total_seconds(),
            "purgeAfter": config.purge_after,
            "purgeInterval": config.purge_interval,
        }
    )
    return web.json_response(payload)


async def get_health(request: web.Request) -> web.Response:
    return web.Response(text="ok")


# ----------------------------------------------------------------------
# Maintenance
# ----------------------------------------------------------------------


async def _purge_loop(store: StateStore, config: RelayConfig) -> None:
    while True:
        await asyncio.sleep(config.purge_interval)
        try:
            removed = store.purge_presence(config.purge_after)
        except Exception:
            _logger.exception("Maintenance purge failed")
            continue
        if removed:
            _logger.info("Maintenance purged %d stale presence records", removed)


async def _maintenance_ctx(app: web.Application) -> AsyncIterator[None]:
    config = app[CONFIG_KEY]
    task: asyncio.Task[None] | None = None
    if config.purge_interval > 0:
        task = asyncio.create_task(_purge_loop(app[STORE_KEY], config))
    yield
    if task is not None:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


# ----------------------------------------------------------------------
# Application
# ----------------------------------------------------------------------


def create_app(config: RelayConfig | None = None, *, store: StateStore | None = None) -> web.Application:
    """Build the aiohttp application.

    A fresh :class:`StateStore` is created from *config* unless one is
    passed in explicitly.
    """
    config = config or RelayConfig()
    if store is None:
        store = StateStore(
            capacity=config.message_capacity,
            default_limit=config.default_message_limit,
            stale_after=config.stale_after_delta,
        )

    app = web.Application(
        middlewares=[_make_cors_middleware(config.cors_origins), error_middleware],
        client_max_size=config.max_body_bytes,
    )
    app[CONFIG_KEY] = config
    app[STORE_KEY] = store
    app.cleanup_ctx.append(_maintenance_ctx)

    app.router.add_get("/online-users", list_online_users)
    app.router.add_post("/online-users", upsert_online_user)
    app.router.add_get("/chat-messages", list_chat_messages)
    app.router.add_post("/chat-messages", append_chat_message)
    app.router.add_post("/sync", sync_online_users)
    app.router.add_post("/maintenance/purge", purge_presence)
    app.router.add_get("/status", get_status)
    app.router.add_get("/stats", get_stats)
    app.router.add_get("/health", get_health)
    return app


def run(config: RelayConfig) -> None:
    """Serve until interrupted; ``web.run_app`` handles SIGINT/SIGTERM."""
    app = create_app(config)
    _logger.info(
        "Relay listening on %s:%d (capacity=%d, stale_after=%ss)",
        config.host,
        config.port,
        config.message_capacity,
        config.stale_after,
    )
    web.run_app(
        app,
        host=config.host,
        port=config.port,
        access_log=logging.getLogger("aiohttp.access") if config.access_log else None,
        print=None,
    )
