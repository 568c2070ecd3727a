"""structlog setup: one key=value record per line on stdout."""
from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

# Event keys whose values never reach the log output.
REDACTED_KEYS = frozenset({
    "password",
    "password_hash",
    "line_channel_secret",
    "channel_secret",
    "token",
    "jwt_secret",
})
REDACTED = "[redacted]"


def _escape(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )


def _flatten(value: Any) -> Any:
    if isinstance(value, str):
        return _escape(value)
    if isinstance(value, (list, tuple)):
        return [_escape(item) if isinstance(item, str) else item for item in value]
    if isinstance(value, dict):
        return {k: _escape(v) if isinstance(v, str) else v for k, v in value.items()}
    return value


def redact_secrets_processor(logger, method_name, event_dict):
    """Mask credentials passed as event keys, including one level of nesting."""
    for key, value in event_dict.items():
        if key in REDACTED_KEYS:
            event_dict[key] = REDACTED
        elif isinstance(value, dict):
            event_dict[key] = {
                k: REDACTED if k.lower() in REDACTED_KEYS else v for k, v in value.items()
            }
    return event_dict


def replace_newlines_processor(logger, method_name, event_dict):
    """
    Escape newlines in string values, tracebacks included.
    Webhook bodies are multi-line; every record must stay on one line.
    """
    for key, value in event_dict.items():
        event_dict[key] = _flatten(value)
    return event_dict


class SingleLineFormatter(logging.Formatter):
    """Flattens records from plain stdlib loggers (aiohttp.access, asyncpg)."""

    def format(self, record):
        return super().format(record).replace("\n", "\\n").replace("\r", "\\r")


def configure_logging(level: str | int = logging.INFO) -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(SingleLineFormatter("%(message)s"))

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)

    access_logger = logging.getLogger("aiohttp.access")
    access_logger.setLevel(level)
    access_logger.propagate = True
    access_logger.handlers = []

    structlog.configure(
        processors=[
            # trace_id / request_id bound by the trace middleware
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            redact_secrets_processor,
            # after format_exc_info so the traceback is flattened too
            replace_newlines_processor,
            structlog.processors.KeyValueRenderer(
                key_order=["timestamp", "level", "logger", "event"],
                drop_missing=True,
            ),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
