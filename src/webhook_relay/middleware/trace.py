"""Request correlation: trace/request ids in structlog context and response headers."""
from __future__ import annotations

import time
from typing import Mapping
from uuid import UUID, uuid4

import structlog
from aiohttp import web

TRACE_ID_HEADER = "X-Trace-Id"
REQUEST_ID_HEADER = "X-Request-Id"

logger = structlog.get_logger(__name__)

# Dropped from request logs.
SENSITIVE_HEADERS = frozenset({
    "authorization",
    "cookie",
    "set-cookie",
    "x-line-signature",
})


def _incoming_id(request: web.Request, header: str) -> str:
    """Reuse a caller-supplied UUID, otherwise mint one."""
    value = request.headers.get(header)
    if value:
        try:
            return str(UUID(value))
        except ValueError:
            pass
    return str(uuid4())


def get_safe_headers(headers: Mapping[str, str]) -> dict[str, str]:
    return {k: v for k, v in headers.items() if k.lower() not in SENSITIVE_HEADERS}


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def _log_finished(status: int, started: float) -> None:
    log = logger.warning if status >= 400 else logger.info
    log("request_finished", status_code=status, duration_ms=_elapsed_ms(started))


def create_trace_middleware(service_name: str):
    """Build the outermost middleware; it sees every response the app produces."""

    @web.middleware
    async def trace_middleware(request: web.Request, handler):
        started = time.perf_counter()
        trace_id = _incoming_id(request, TRACE_ID_HEADER)
        request_id = _incoming_id(request, REQUEST_ID_HEADER)
        request["trace_id"] = trace_id
        request["request_id"] = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            trace_id=trace_id,
            request_id=request_id,
            service=service_name,
            method=request.method,
            path=request.path,
        )
        logger.info(
            "request_started",
            remote=request.remote,
            content_length=request.content_length,
            headers=get_safe_headers(request.headers),
        )

        try:
            response = await handler(request)
        except web.HTTPException as exc:
            # redirects and other non-error HTTP exceptions pass through as-is
            _log_finished(exc.status, started)
            exc.headers[TRACE_ID_HEADER] = trace_id
            exc.headers[REQUEST_ID_HEADER] = request_id
            raise
        except Exception as exc:
            logger.error(
                "request_failed",
                duration_ms=_elapsed_ms(started),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            raise
        else:
            _log_finished(response.status, started)
            response.headers[TRACE_ID_HEADER] = trace_id
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            structlog.contextvars.clear_contextvars()

    return trace_middleware
