"""Tests for logging formatters and log context."""

import io
import json
import logging
import sys

import pytest

from slack_tools.observability import (
    HumanReadableFormatter,
    StructuredFormatter,
    clear_log_context,
    configure_logging,
    get_log_context,
    set_log_context,
    strip_ansi_codes,
)


@pytest.fixture(autouse=True)
def _reset_logging(monkeypatch):
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.delenv("FORCE_COLOR", raising=False)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    clear_log_context()
    yield
    clear_log_context()
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(message: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("slack_tools.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLogContext:
    def test_set_merges(self):
        set_log_context(team="Acme")
        set_log_context(credential_kind="bot")

        assert get_log_context() == {"team": "Acme", "credential_kind": "bot"}

    def test_get_returns_copy(self):
        set_log_context(team="Acme")
        get_log_context()["team"] = "Other"

        assert get_log_context()["team"] == "Acme"

    def test_clear(self):
        set_log_context(team="Acme")
        clear_log_context()

        assert get_log_context() == {}


class TestStructuredFormatter:
    def test_json_fields(self):
        set_log_context(team="Acme", credential_kind="user")

        entry = json.loads(
            StructuredFormatter().format(_record("\033[32mdone\033[0m", event="scope_detection"))
        )

        assert entry["message"] == "done"
        assert entry["level"] == "info"
        assert entry["logger"] == "slack_tools.test"
        assert entry["team"] == "Acme"
        assert entry["credential_kind"] == "user"
        assert entry["event"] == "scope_detection"

    def test_exception_included(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = _record("failed")
            record.exc_info = sys.exc_info()

        entry = json.loads(StructuredFormatter().format(record))

        assert "ValueError: bad" in entry["exception"]


class TestHumanReadableFormatter:
    def test_context_prefix(self):
        set_log_context(team="Acme", credential_kind="bot", unrelated="x")

        line = HumanReadableFormatter().format(_record("hello", event="refresh"))

        assert "[team:Acme | credential_kind:bot]" in line
        assert "unrelated" not in line
        assert "hello" in line
        assert "[refresh]" in line

    def test_no_context(self):
        line = strip_ansi_codes(HumanReadableFormatter().format(_record("hello")))

        assert line == "[INFO    ] hello"


class TestConfigureLogging:
    def test_json_to_stream(self):
        stream = io.StringIO()
        configure_logging(level="DEBUG", format="json", stream=stream)

        logging.getLogger("slack_tools.test").debug("probe done")

        entry = json.loads(stream.getvalue().strip())
        assert entry["message"] == "probe done"

    def test_human_format(self):
        stream = io.StringIO()
        configure_logging(level="INFO", format="human", stream=stream)

        logging.getLogger("slack_tools.test").info("ready")

        assert "ready" in stream.getvalue()

    def test_httpx_quieted(self):
        configure_logging(level="DEBUG", format="human", stream=io.StringIO())

        assert logging.getLogger("httpx").level == logging.WARNING
