"""Logging processor tests."""
import logging

from webhook_relay.logging_config import (
    REDACTED,
    SingleLineFormatter,
    configure_logging,
    redact_secrets_processor,
    replace_newlines_processor,
)


def test_credentials_are_redacted():
    event = redact_secrets_processor(
        None,
        "info",
        {
            "event": "user_registered",
            "password": "secret1",
            "line_channel_secret": "topsecret",
            "headers": {"Content-Type": "application/json", "token": "abc"},
        },
    )
    assert event["event"] == "user_registered"
    assert event["password"] == REDACTED
    assert event["line_channel_secret"] == REDACTED
    assert event["headers"] == {"Content-Type": "application/json", "token": REDACTED}


def test_newlines_are_escaped():
    event = replace_newlines_processor(
        None,
        "error",
        {
            "event": "boom",
            "exception": "Traceback\n  line 1\n",
            "items": ["a\nb", 3],
            "body": {"text": "x\ty"},
        },
    )
    assert event["exception"] == "Traceback\\n  line 1\\n"
    assert event["items"] == ["a\\nb", 3]
    assert event["body"] == {"text": "x\\ty"}


def test_formatter_keeps_stdlib_records_single_line():
    record = logging.LogRecord("aiohttp.access", logging.INFO, __file__, 1, "a\nb", None, None)
    assert SingleLineFormatter("%(message)s").format(record) == "a\\nb"


def test_configure_logging_accepts_level_names():
    root = logging.getLogger()
    previous_handlers, previous_level = root.handlers[:], root.level
    try:
        configure_logging("warning")
        assert root.level == logging.WARNING
    finally:
        root.handlers = previous_handlers
        root.setLevel(previous_level)
