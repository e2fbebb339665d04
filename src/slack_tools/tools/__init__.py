"""
Slack Tools - MCP tool registration.

Each tool module registers only the tools the runtime enabled for the
active credential and its detected scopes.

Usage:
    from fastmcp import FastMCP
    from slack_tools.runtime import build_runtime
    from slack_tools.tools import register_all_tools

    mcp = FastMCP("slack")
    runtime = asyncio.run(build_runtime())
    register_all_tools(mcp, runtime)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastmcp import FastMCP

from .attachments_tool import register_tools as register_attachments
from .channels_tool import register_tools as register_channels
from .conversations_tool import register_tools as register_conversations
from .search_tool import register_tools as register_search

if TYPE_CHECKING:
    from ..runtime import SlackRuntime


def register_all_tools(mcp: FastMCP, runtime: SlackRuntime) -> list[str]:
    """
    Register every enabled Slack tool with the MCP server.

    Returns:
        Names of the registered tools, sorted
    """
    register_channels(mcp, runtime)
    register_conversations(mcp, runtime)
    register_search(mcp, runtime)
    register_attachments(mcp, runtime)

    return sorted(runtime.enabled)


__all__ = ["register_all_tools"]
