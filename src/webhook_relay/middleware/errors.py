"""Map exceptions to JSON error responses at the HTTP boundary."""
from __future__ import annotations

import structlog
from aiohttp import web

from webhook_relay.core.exceptions import InternalError, RelayError

logger = structlog.get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def error_response(status: int, message: str) -> web.Response:
    return web.json_response({"error": message}, status=status)


@web.middleware
async def error_middleware(request: web.Request, handler):
    """Turn relay errors and aiohttp HTTP errors into ``{"error": ...}`` bodies.

    5xx responses always carry the generic message; the cause is logged.
    """
    try:
        return await handler(request)
    except InternalError as exc:
        logger.error(
            "request_internal_error",
            error=exc.message,
            error_type=type(exc).__name__,
            exc_info=True,
        )
        return error_response(exc.status, INTERNAL_ERROR_MESSAGE)
    except RelayError as exc:
        return error_response(exc.status, exc.message)
    except web.HTTPException as exc:
        if exc.status < 400:
            raise
        return error_response(exc.status, exc.reason)
    except Exception:
        logger.exception("request_unhandled_error")
        return error_response(500, INTERNAL_ERROR_MESSAGE)
