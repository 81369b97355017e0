"""Unit tests for logging setup and token redaction."""

import json
import logging
import sys
from datetime import UTC, datetime

import pytest

from sessionauth.core.logging import (
    REDACTED,
    JSONFormatter,
    TokenRedactionFilter,
    setup_logging,
    token_fingerprint,
)
from sessionauth.services.session_store import SessionRecord

TOKEN = (
    "eyJhbGciOiJIUzUxMiIsInR5cCI6IkpXVCJ9"
    ".eyJ1c2VybmFtZSI6ImFsaWNlMSJ9"
    ".c2lnbmF0dXJlLWJ5dGVzLWdvLWhlcmU"
)


def _record(msg, *args):
    return logging.LogRecord("sessionauth.test", logging.INFO, __file__, 1, msg, args, None)


def test_fingerprint_is_short_and_stable():
    fingerprint = token_fingerprint(TOKEN)
    assert len(fingerprint) == 12
    assert fingerprint == token_fingerprint(TOKEN)
    assert fingerprint not in TOKEN
    assert token_fingerprint(TOKEN + "x") != fingerprint


def test_filter_redacts_token_in_message():
    record = _record(f"issued {TOKEN} to alice1")

    assert TokenRedactionFilter().filter(record) is True
    assert record.getMessage() == f"issued {REDACTED} to alice1"


def test_filter_redacts_token_in_args():
    record = _record("issued %s to %s", TOKEN, "alice1")

    TokenRedactionFilter().filter(record)
    message = record.getMessage()
    assert TOKEN not in message
    assert message == f"issued {REDACTED} to alice1"


def test_filter_leaves_other_messages_alone():
    record = _record("user %s logged in", "alice1")

    TokenRedactionFilter().filter(record)
    assert record.msg == "user %s logged in"
    assert record.args == ("alice1",)


def test_session_record_repr_hides_token():
    record = SessionRecord(TOKEN, datetime(2026, 3, 17, tzinfo=UTC), "alice1")

    text = repr(record)
    assert TOKEN not in text
    assert token_fingerprint(TOKEN) in text
    assert "alice1" in text


@pytest.fixture
def restore_root_logging():
    """Put the root logger back the way pytest configured it."""
    handlers = logging.root.handlers[:]
    level = logging.root.level
    yield
    logging.root.handlers = handlers
    logging.root.setLevel(level)


def test_structured_setup_emits_redacted_json(restore_root_logging):
    setup_logging(level="WARNING", format_type="structured")

    [handler] = logging.root.handlers
    assert isinstance(handler.formatter, JSONFormatter)
    assert logging.root.level == logging.WARNING

    record = _record("issued %s to %s", TOKEN, "alice1")
    assert handler.filter(record)
    entry = json.loads(handler.format(record))

    assert entry["message"] == f"issued {REDACTED} to alice1"
    assert entry["level"] == "INFO"
    assert entry["logger"] == "sessionauth.test"
    assert TOKEN not in json.dumps(entry)


def test_dev_setup_also_redacts(restore_root_logging):
    setup_logging(level="INFO", format_type="dev")

    handler = logging.root.handlers[0]
    assert not isinstance(handler.formatter, JSONFormatter)

    record = _record(f"issued {TOKEN}")
    assert handler.filter(record)
    assert TOKEN not in handler.format(record)


def test_json_formatter_includes_exception():
    try:
        raise RuntimeError("store unavailable")
    except RuntimeError:
        record = logging.LogRecord(
            "sessionauth.test", logging.ERROR, __file__, 1, "cleanup failed", None, sys.exc_info()
        )

    entry = json.loads(JSONFormatter().format(record))

    assert entry["message"] == "cleanup failed"
    assert "RuntimeError: store unavailable" in entry["exception"]
