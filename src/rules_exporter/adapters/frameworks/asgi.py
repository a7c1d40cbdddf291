"""ASGI application exposing the exporter's HTTP surface.

Framework-agnostic: runs on any ASGI server (uvicorn, hypercorn, daphne)
without FastAPI installed.

Routes:
    /probe?target=<name>  - evaluate a target's rules, Prometheus text format
    /logs                 - buffered exporter log as NDJSON (since, level)
    /-/healthy            - liveness check
"""

import asyncio
import contextlib
import json
from collections.abc import Callable, Coroutine
from typing import Any
from urllib.parse import parse_qs

from rules_exporter.adapters.frameworks.query_params import (
    _parse_level_param,
    _parse_since_param,
    _parse_target_param,
)
from rules_exporter.core.encoding import ndjson, prometheus
from rules_exporter.core.errors import BadRequestError, NotFoundError
from rules_exporter.core.logs import log_exception
from rules_exporter.core.pipeline import ExporterContext, sweep_cache
from rules_exporter.core.ports import LogStoragePort

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]


def _parse_query_params(scope: Scope) -> dict[str, list[str]]:
    """Parse query string from ASGI scope into parameter dictionary.

    Returns an empty dict if query_string is missing or empty.
    """
    query_string = scope.get("query_string", b"").decode(errors="replace")
    return parse_qs(query_string)


async def _send_response(
    send: Send, status: int, content_type: str, body: str | bytes
) -> None:
    """Send an HTTP response with headers and body."""
    payload = body.encode() if isinstance(body, str) else body
    headers = [
        (b"content-type", content_type.encode()),
        (b"content-length", str(len(payload)).encode()),
    ]
    await send({"type": "http.response.start", "status": status, "headers": headers})
    await send({"type": "http.response.body", "body": payload})


async def _send_internal_error(send: Send) -> None:
    error_body = json.dumps({"error": "Internal Server Error"})
    await _send_response(send, 500, "application/json", error_body)


async def _handle_probe(context: ExporterContext, scope: Scope, send: Send) -> None:
    """Serve /probe: 400 without target, 404 for unknown target, else 200."""
    target_name = _parse_target_param(_parse_query_params(scope))
    try:
        body = await context.probe(target_name)
    except BadRequestError as e:
        await _send_response(send, 400, "text/plain; charset=utf-8", f"{e}\n")
        return
    except NotFoundError as e:
        await _send_response(send, 404, "text/plain; charset=utf-8", f"{e}\n")
        return
    except Exception:
        log_exception("Error handling probe", target=target_name or "")
        await _send_internal_error(send)
        return
    await _send_response(send, 200, prometheus.CONTENT_TYPE, body)


async def _handle_logs(
    log_storage: LogStoragePort | None, scope: Scope, send: Send
) -> None:
    if log_storage is None:
        await _send_response(send, 404, "text/plain", "Not Found")
        return
    params = _parse_query_params(scope)
    since = _parse_since_param(params)
    level = _parse_level_param(params)
    try:
        body = ndjson.encode_logs(log_storage.read(since=since, level=level))
    except Exception:
        log_exception("Error encoding logs endpoint")
        await _send_internal_error(send)
        return
    await _send_response(send, 200, ndjson.CONTENT_TYPE, body)


class _Lifespan:
    """Runs the optional cache sweeper and closes the backend on shutdown."""

    def __init__(self, context: ExporterContext, interval: float) -> None:
        self.context = context
        self.cache = context.evaluator.cache
        self.interval = interval
        self._task: asyncio.Task[None] | None = None

    def start(self) -> None:
        if self.cache is not None and self.interval > 0 and self._task is None:
            self._task = asyncio.create_task(sweep_cache(self.cache, self.interval))

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        await self.context.aclose()

    async def __call__(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                self.start()
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await self.stop()
                await send({"type": "lifespan.shutdown.complete"})
                return


def create_asgi_app(
    context: ExporterContext,
    log_storage: LogStoragePort | None = None,
    cache_cleanup_interval: float = 0.0,
) -> ASGIApp:
    """Create an ASGI app with /probe, /logs and /-/healthy endpoints.

    Args:
        context: Shared exporter state, reused by every request.
        log_storage: Storage backing /logs. Without it /logs is 404.
        cache_cleanup_interval: Seconds between expired-entry sweeps of
            the evaluator's cache; 0 disables the sweeper.

    Returns:
        ASGI application callable.
    """
    lifespan = _Lifespan(context, cache_cleanup_interval)

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await lifespan(receive, send)
            return
        if scope["type"] != "http":
            return

        path = scope["path"]
        if scope["method"] not in ("GET", "HEAD"):
            await _send_response(send, 405, "text/plain", "Method Not Allowed")
        elif path == "/probe":
            await _handle_probe(context, scope, send)
        elif path == "/logs":
            await _handle_logs(log_storage, scope, send)
        elif path == "/-/healthy":
            await _send_response(send, 200, "text/plain", "OK")
        else:
            await _send_response(send, 404, "text/plain", "Not Found")

    return app
