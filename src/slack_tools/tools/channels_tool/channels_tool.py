"""
Channels Tool - List channels, DMs, group DMs and users.

Served from the DirectoryCache, so listing does not hit Slack once the
directory is loaded. Only conversation types the credential can read are
returned.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastmcp import FastMCP

from ...directory import DirectoryEntry, EntityKind
from ...scopes import EntityType
from ..common import TOOL_ERRORS, clamp, error_response, gated, page_slice

if TYPE_CHECKING:
    from ...runtime import SlackRuntime

MAX_LIMIT = 1000
VALID_TYPES = tuple(t.value for t in EntityType)


def _channel_dict(entry: DirectoryEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "name": entry.reference,
        "type": entry.entity_type,
        "topic": entry.topic,
        "purpose": entry.purpose,
        "member_count": entry.member_count,
    }


def _user_dict(entry: DirectoryEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "name": entry.name,
        "real_name": entry.real_name,
    }


def register_tools(mcp: FastMCP, runtime: SlackRuntime) -> None:
    """Register directory listing tools with the MCP server."""
    tool = gated(mcp, runtime)

    @tool
    async def channels_list(
        channel_types: str = "",
        limit: int = 100,
        cursor: str = "",
    ) -> dict[str, Any]:
        """
        List Slack conversations the credential can see.

        Args:
            channel_types: Comma-separated subset of public_channel, private_channel,
                im, mpim. Empty for every readable type.
            limit: Maximum number of channels to return (1-1000)
            cursor: Pagination cursor from a previous call's next_cursor

        Returns:
            Dict with channels (id, name, type, topic, purpose, member_count),
            count and next_cursor, or error dict on failure.
        """
        available = [t.value for t in runtime.available_entity_types()]
        if channel_types.strip():
            requested = [t.strip() for t in channel_types.split(",") if t.strip()]
            unknown = [t for t in requested if t not in VALID_TYPES]
            if unknown:
                return {
                    "error": f"Unknown channel types: {', '.join(unknown)}",
                    "help": f"Valid types: {', '.join(VALID_TYPES)}",
                }
            types = [t for t in requested if t in available]
            if not types:
                return {
                    "error": "No access to the requested channel types",
                    "available_types": available,
                }
        else:
            types = available

        try:
            entries = await runtime.directory.entries(EntityKind.CHANNEL)
        except TOOL_ERRORS as e:
            return error_response(e)

        selected = sorted(
            (e for e in entries if e.entity_type in types),
            key=lambda e: e.name.lower(),
        )
        page, next_cursor = page_slice(selected, clamp(limit, 1, MAX_LIMIT), cursor)
        return {
            "channels": [_channel_dict(e) for e in page],
            "count": len(page),
            "next_cursor": next_cursor,
        }

    @tool
    async def users_list(limit: int = 100, cursor: str = "") -> dict[str, Any]:
        """
        List workspace users.

        Args:
            limit: Maximum number of users to return (1-1000)
            cursor: Pagination cursor from a previous call's next_cursor

        Returns:
            Dict with users (id, name, real_name), count and next_cursor,
            or error dict on failure.
        """
        try:
            entries = await runtime.directory.entries(EntityKind.USER)
        except TOOL_ERRORS as e:
            return error_response(e)

        page, next_cursor = page_slice(entries, clamp(limit, 1, MAX_LIMIT), cursor)
        return {
            "users": [_user_dict(e) for e in page],
            "count": len(page),
            "next_cursor": next_cursor,
        }
