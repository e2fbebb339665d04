"""
Logging setup for the Slack MCP server.

Fields that describe the whole process or the current task (workspace and
credential kind) live in a ContextVar and are stamped onto every
record, so call sites only log the message itself.

Two renderings:
- json: one object per line, for log shippers
- human: colored single line with a short context prefix

The server calls configure_logging() once at startup; library modules only
use ``logging.getLogger(__name__)``.
"""

import json
import logging
import os
import re
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any, TextIO

log_context: ContextVar[dict[str, Any] | None] = ContextVar("log_context", default=None)

_ANSI = re.compile(r"\x1b\[[0-9;]*m")

THIRD_PARTY_LOGGERS = ("httpx", "httpcore", "mcp", "fastmcp", "uvicorn")
CONTEXT_PREFIX_KEYS = ("team", "credential_kind")

LEVEL_COLORS = {
    logging.DEBUG: "\x1b[36m",
    logging.INFO: "\x1b[32m",
    logging.WARNING: "\x1b[33m",
    logging.ERROR: "\x1b[31m",
    logging.CRITICAL: "\x1b[35m",
}
RESET = "\x1b[0m"


def strip_ansi_codes(text: str) -> str:
    return _ANSI.sub("", text)


def _event_of(record: logging.LogRecord) -> Any:
    return getattr(record, "event", None)


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per record.

    Keys: timestamp, level, logger, message, then every log context field,
    then ``event`` (from ``extra``) and ``exception`` when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": strip_ansi_codes(record.getMessage()),
            **(log_context.get() or {}),
        }

        event = _event_of(record)
        if event is not None:
            entry["event"] = strip_ansi_codes(event) if isinstance(event, str) else event
        if record.exc_info:
            entry["exception"] = strip_ansi_codes(self.formatException(record.exc_info))

        return json.dumps(entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """``[LEVEL   ] [team:x | credential_kind:y] message [event]``, level colored."""

    def format(self, record: logging.LogRecord) -> str:
        context = log_context.get() or {}
        parts = [f"{key}:{context[key]}" for key in CONTEXT_PREFIX_KEYS if context.get(key)]
        prefix = f"[{' | '.join(parts)}] " if parts else ""

        event = _event_of(record)
        suffix = f" [{event}]" if event is not None else ""

        color = LEVEL_COLORS.get(record.levelno, "")
        line = f"{color}[{record.levelname:<8}]{RESET} {prefix}{record.getMessage()}{suffix}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _pick_format(format: str) -> str:
    if format != "auto":
        return format
    if os.getenv("LOG_FORMAT", "").lower() == "json":
        return "json"
    return "json" if os.getenv("ENV", "development").lower() == "production" else "human"


def configure_logging(
    level: str = "INFO",
    format: str = "auto",
    stream: TextIO | None = None,
) -> None:
    """
    Install a single root handler. Call once at startup.

    Args:
        level: Root log level name
        format: "json", "human", or "auto" (json when LOG_FORMAT=json or
            ENV=production)
        stream: Output stream, stderr by default. The STDIO transport needs
            stdout to carry only JSON-RPC.
    """
    format = _pick_format(format)
    if format == "json":
        formatter: logging.Formatter = StructuredFormatter()
        os.environ["NO_COLOR"] = "1"
        os.environ["FORCE_COLOR"] = "0"
    else:
        formatter = HumanReadableFormatter()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    # Library records go through the root handler only
    for name in THIRD_PARTY_LOGGERS:
        third_party = logging.getLogger(name)
        third_party.handlers.clear()
        third_party.propagate = True
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(root.level, logging.WARNING))


def set_log_context(**fields: Any) -> None:
    """Merge ``fields`` into the log context of the current execution context."""
    log_context.set({**(log_context.get() or {}), **fields})


def get_log_context() -> dict[str, Any]:
    return dict(log_context.get() or {})


def clear_log_context() -> None:
    log_context.set(None)
