"""
Conversations Tool - Read channel history and threads, post messages.

Channel arguments accept an ID ("C0123ABCD"), "#channel-name", "@username"
for a direct message, or "@mpdm-..." for a group DM.

API Reference: https://api.slack.com/methods/conversations.history
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastmcp import FastMCP

from ..common import (
    TOOL_ERRORS,
    clamp,
    ensure_users_loaded,
    error_response,
    format_message,
    gated,
)

if TYPE_CHECKING:
    from ...runtime import SlackRuntime

MAX_LIMIT = 1000
MAX_TEXT_LENGTH = 40000


def register_tools(mcp: FastMCP, runtime: SlackRuntime) -> None:
    """Register conversation tools with the MCP server."""
    tool = gated(mcp, runtime)

    @tool
    async def conversations_history(
        channel_id: str,
        limit: int = 50,
        cursor: str = "",
        oldest: str = "",
        latest: str = "",
    ) -> dict[str, Any]:
        """
        Read recent messages from a channel, DM or group DM.

        Args:
            channel_id: Channel ID, "#channel-name", "@username" (DM) or "@mpdm-..." (group DM)
            limit: Maximum number of messages (1-1000)
            cursor: Pagination cursor from a previous call's next_cursor
            oldest: Only messages after this Slack timestamp
            latest: Only messages before this Slack timestamp

        Returns:
            Dict with channel_id, messages (ts, time, user_id, user_name, text,
            thread_ts, reply_count) and next_cursor, or error dict on failure.
        """
        try:
            channel = await runtime.resolve(channel_id)
            await ensure_users_loaded(runtime)
            messages, next_cursor = await runtime.client.conversations_history(
                channel,
                limit=clamp(limit, 1, MAX_LIMIT),
                cursor=cursor,
                oldest=oldest,
                latest=latest,
            )
        except TOOL_ERRORS as e:
            return error_response(e)

        return {
            "channel_id": channel,
            "messages": [format_message(runtime, m) for m in messages],
            "next_cursor": next_cursor,
        }

    @tool
    async def conversations_replies(
        channel_id: str,
        thread_ts: str,
        limit: int = 50,
        cursor: str = "",
    ) -> dict[str, Any]:
        """
        Read a thread: the parent message followed by its replies.

        Args:
            channel_id: Channel ID, "#channel-name", "@username" or "@mpdm-..."
            thread_ts: Timestamp of the thread's parent message (e.g. "1700000000.123456")
            limit: Maximum number of messages (1-1000)
            cursor: Pagination cursor from a previous call's next_cursor

        Returns:
            Dict with channel_id, thread_ts, messages and next_cursor, or error dict.
        """
        if not thread_ts.strip():
            return {"error": "thread_ts is required"}

        try:
            channel = await runtime.resolve(channel_id)
            await ensure_users_loaded(runtime)
            messages, next_cursor = await runtime.client.conversations_replies(
                channel,
                thread_ts.strip(),
                limit=clamp(limit, 1, MAX_LIMIT),
                cursor=cursor,
            )
        except TOOL_ERRORS as e:
            return error_response(e)

        return {
            "channel_id": channel,
            "thread_ts": thread_ts.strip(),
            "messages": [format_message(runtime, m) for m in messages],
            "next_cursor": next_cursor,
        }

    @tool
    async def conversations_add_message(
        channel_id: str,
        text: str,
        thread_ts: str = "",
    ) -> dict[str, Any]:
        """
        Post a message to a channel, DM or group DM.

        Only available when the server runs with SLACK_MCP_ADD_MESSAGE_TOOL enabled.

        Args:
            channel_id: Channel ID, "#channel-name", "@username" or "@mpdm-..."
            text: Message text (Slack mrkdwn)
            thread_ts: Parent message timestamp to reply in a thread. Empty for top level.

        Returns:
            Dict with ok, channel_id and ts of the posted message, or error dict.
        """
        if not text.strip():
            return {"error": "text must not be empty"}
        if len(text) > MAX_TEXT_LENGTH:
            return {"error": f"text exceeds {MAX_TEXT_LENGTH} characters"}

        try:
            channel = await runtime.resolve(channel_id)
            result = await runtime.client.chat_post_message(channel, text, thread_ts=thread_ts)
        except TOOL_ERRORS as e:
            return error_response(e)

        return {
            "ok": True,
            "channel_id": result.get("channel", channel),
            "ts": result.get("ts", ""),
        }
