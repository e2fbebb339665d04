"""
Attachments Tool - Files shared in conversations.

Lists the files attached to messages in a conversation and shows the
metadata of a single file. File content is not downloaded.

API Reference: https://api.slack.com/methods/files.info
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastmcp import FastMCP

from ..common import (
    TOOL_ERRORS,
    clamp,
    ensure_users_loaded,
    error_response,
    gated,
    timestamp_to_iso,
)

if TYPE_CHECKING:
    from ...runtime import SlackRuntime

MAX_LIMIT = 100
THUMBNAIL_SIZES = (64, 80, 160, 360, 480, 720, 1024)


def _attachment_dict(
    runtime: SlackRuntime,
    file: dict[str, Any],
    message: dict[str, Any],
    channel: str,
) -> dict[str, Any]:
    user_id = file.get("user", "")
    return {
        "id": file.get("id", ""),
        "name": file.get("name", ""),
        "title": file.get("title", ""),
        "mime_type": file.get("mimetype", ""),
        "file_type": file.get("filetype", ""),
        "size": file.get("size", 0),
        "url": file.get("url_private", ""),
        "url_download": file.get("url_private_download", ""),
        "permalink": file.get("permalink", ""),
        "message_ts": message.get("ts", ""),
        "channel_id": channel,
        "user_id": user_id,
        "user_name": runtime.directory.user_name(user_id) if user_id else "",
        "time": timestamp_to_iso(message.get("ts")),
    }


def _details_dict(runtime: SlackRuntime, file: dict[str, Any]) -> dict[str, Any]:
    user_id = file.get("user", "")
    details: dict[str, Any] = {
        "id": file.get("id", ""),
        "name": file.get("name", ""),
        "title": file.get("title", ""),
        "mime_type": file.get("mimetype", ""),
        "file_type": file.get("filetype", ""),
        "pretty_type": file.get("pretty_type", ""),
        "size": file.get("size", 0),
        "url": file.get("url_private", ""),
        "url_download": file.get("url_private_download", ""),
        "permalink": file.get("permalink", ""),
        "user_id": user_id,
        "user_name": runtime.directory.user_name(user_id) if user_id else "",
        "time": timestamp_to_iso(file.get("timestamp") or file.get("created")),
        "is_public": file.get("is_public", False),
        "is_external": file.get("is_external", False),
        "channels": file.get("channels", []),
        "groups": file.get("groups", []),
        "ims": file.get("ims", []),
    }

    thumbnails = {
        f"thumb{size}": file[f"thumb_{size}"]
        for size in THUMBNAIL_SIZES
        if file.get(f"thumb_{size}")
    }
    if thumbnails:
        details["thumbnails"] = thumbnails

    width, height = file.get("original_w", 0), file.get("original_h", 0)
    if width or height:
        details["dimensions"] = {"width": width, "height": height}

    return details


def register_tools(mcp: FastMCP, runtime: SlackRuntime) -> None:
    """Register attachment tools with the MCP server."""
    tool = gated(mcp, runtime)

    @tool
    async def attachments_list(
        channel_id: str,
        limit: int = 100,
        cursor: str = "",
    ) -> dict[str, Any]:
        """
        List files attached to recent messages in a conversation.

        Scans one page of history (up to ``limit`` messages) and returns the
        files found in it.

        Args:
            channel_id: Channel ID, "#channel-name", "@username" or "@mpdm-..."
            limit: Number of messages to scan (1-100)
            cursor: Pagination cursor from a previous call's next_cursor

        Returns:
            Dict with attachments (id, name, title, mime_type, file_type, size,
            url, url_download, permalink, message_ts, channel_id, user_id,
            user_name, time) and next_cursor, or error dict on failure.
        """
        try:
            channel = await runtime.resolve(channel_id)
            await ensure_users_loaded(runtime)
            messages, next_cursor = await runtime.client.conversations_history(
                channel, limit=clamp(limit, 1, MAX_LIMIT), cursor=cursor
            )
        except TOOL_ERRORS as e:
            return error_response(e)

        attachments = [
            _attachment_dict(runtime, file, message, channel)
            for message in messages
            for file in message.get("files") or []
        ]
        return {
            "channel_id": channel,
            "attachments": attachments,
            "count": len(attachments),
            "next_cursor": next_cursor,
        }

    @tool
    async def attachment_get_details(file_id: str) -> dict[str, Any]:
        """
        Show metadata of one file: type, size, URLs, owner, where it is shared,
        thumbnails and image dimensions when available.

        Args:
            file_id: Slack file ID (e.g. "F0123ABCD")

        Returns:
            Dict with file metadata, or error dict on failure.
        """
        file_id = file_id.strip()
        if not file_id:
            return {"error": "file_id is required"}

        try:
            await ensure_users_loaded(runtime)
            file = await runtime.client.files_info(file_id)
        except TOOL_ERRORS as e:
            return error_response(e)

        return _details_dict(runtime, file)
