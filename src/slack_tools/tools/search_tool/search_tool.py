"""
Search Tool - Search messages across the workspace.

Slack's search.messages only accepts user tokens (and browser sessions),
so this tool is never advertised for a bot credential.

API Reference: https://api.slack.com/methods/search.messages
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastmcp import FastMCP

from ..common import TOOL_ERRORS, clamp, error_response, gated, timestamp_to_iso

if TYPE_CHECKING:
    from ...runtime import SlackRuntime

MAX_COUNT = 100


def _format_match(match: dict[str, Any]) -> dict[str, Any]:
    channel = match.get("channel") or {}
    return {
        "ts": match.get("ts", ""),
        "time": timestamp_to_iso(match.get("ts")),
        "channel_id": channel.get("id", ""),
        "channel_name": channel.get("name", ""),
        "user_id": match.get("user", ""),
        "user_name": match.get("username", ""),
        "text": match.get("text", ""),
        "permalink": match.get("permalink", ""),
    }


def register_tools(mcp: FastMCP, runtime: SlackRuntime) -> None:
    """Register search tools with the MCP server."""
    tool = gated(mcp, runtime)

    @tool
    async def conversations_search_messages(
        query: str,
        limit: int = 20,
        page: int = 1,
    ) -> dict[str, Any]:
        """
        Search messages with Slack search syntax.

        Use modifiers such as "in:#channel", "from:@user", "before:2024-01-01",
        "after:2024-01-01" or "has:link" inside the query.

        Args:
            query: Search query (1-500 characters)
            limit: Results per page (1-100)
            page: Page number, starting at 1

        Returns:
            Dict with messages (ts, time, channel_id, channel_name, user_id,
            user_name, text, permalink), total, page and pages, or error dict.
        """
        query = query.strip()
        if not query:
            return {"error": "query must not be empty"}
        if len(query) > 500:
            return {"error": "query must be 500 characters or less"}

        try:
            result = await runtime.client.search_messages(
                query,
                count=clamp(limit, 1, MAX_COUNT),
                page=max(1, page),
            )
        except TOOL_ERRORS as e:
            return error_response(e)

        paging = result.get("paging") or {}
        return {
            "messages": [_format_match(m) for m in result.get("matches", [])],
            "total": result.get("total", paging.get("total", 0)),
            "page": paging.get("page", page),
            "pages": paging.get("pages", 1),
        }
