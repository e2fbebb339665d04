"""Helpers shared by the Slack tool modules."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, TypeVar

import httpx
from fastmcp import FastMCP

from ..client import SlackApiError, SlackRateLimitError
from ..directory import EntityKind, ReferenceNotFoundError
from ..gate import OPERATIONS_BY_NAME
from ..scopes import Scope

if TYPE_CHECKING:
    from ..runtime import SlackRuntime

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

# Errors a tool turns into {"error": ...} instead of raising
TOOL_ERRORS = (ReferenceNotFoundError, SlackApiError, httpx.HTTPError)


def gated(mcp: FastMCP, runtime: SlackRuntime) -> Callable[[F], F]:
    """Decorator registering a tool only if the runtime enabled it."""

    def register(fn: F) -> F:
        if fn.__name__ not in runtime.enabled:
            logger.debug(f"Skipping tool {fn.__name__}: not enabled for this credential")
            return fn
        operation = OPERATIONS_BY_NAME[fn.__name__]
        mcp.tool(
            annotations={"title": operation.description, "readOnlyHint": not operation.write}
        )(fn)
        return fn

    return register


def error_response(e: Exception) -> dict[str, str]:
    """Map a tool failure to the error dict returned to the agent."""
    if isinstance(e, ReferenceNotFoundError):
        return {"error": str(e)}
    if isinstance(e, SlackRateLimitError):
        return {"error": "Rate limit exceeded. Try again later."}
    if isinstance(e, SlackApiError):
        return {"error": f"Slack API error: {e.error}"}
    if isinstance(e, httpx.TimeoutException):
        return {"error": "Slack request timed out"}
    return {"error": f"Network error: {e}"}


def timestamp_to_iso(ts: str | int | float | None) -> str:
    """Convert a Slack timestamp ("1700000000.123456") to ISO-8601 UTC."""
    if ts is None or ts == "":
        return ""
    try:
        seconds = float(ts)
    except (TypeError, ValueError):
        return str(ts)
    return datetime.fromtimestamp(seconds, UTC).isoformat().replace("+00:00", "Z")


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


async def ensure_users_loaded(runtime: SlackRuntime) -> None:
    """Load the user directory once so message authors get names."""
    if runtime.directory.is_loaded(EntityKind.USER) or not runtime.has_permission(Scope.USERS_READ):
        return
    try:
        await runtime.directory.refresh(EntityKind.USER)
    except Exception as e:
        logger.warning(f"Could not load users for name lookup: {e}")


def format_message(runtime: SlackRuntime, message: dict[str, Any]) -> dict[str, Any]:
    user_id = message.get("user") or message.get("bot_id", "")
    return {
        "ts": message.get("ts", ""),
        "time": timestamp_to_iso(message.get("ts")),
        "user_id": user_id,
        "user_name": runtime.directory.user_name(user_id) if user_id else "",
        "text": message.get("text", ""),
        "thread_ts": message.get("thread_ts", ""),
        "reply_count": message.get("reply_count", 0),
    }


def page_slice(
    items: list[Any] | tuple[Any, ...], limit: int, cursor: str
) -> tuple[list[Any], str]:
    """Offset pagination over an in-memory directory snapshot."""
    try:
        start = max(0, int(cursor)) if cursor else 0
    except ValueError:
        start = 0
    end = start + limit
    next_cursor = str(end) if end < len(items) else ""
    return list(items[start:end]), next_cursor
