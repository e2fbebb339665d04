#!/usr/bin/env python3
"""
Slack Tools MCP Server

Exposes Slack workspace tools via Model Context Protocol using FastMCP.

Usage:
    # Run with HTTP transport (default, for Docker)
    python mcp_server.py

    # Run with custom port
    python mcp_server.py --port 8001

    # Run with STDIO transport (for local testing)
    python mcp_server.py --stdio

Environment Variables:
    SLACK_MCP_XOXP_TOKEN         - User OAuth token (highest priority)
    SLACK_MCP_XOXB_TOKEN         - Bot OAuth token
    SLACK_MCP_XOXC_TOKEN         - Browser session token (needs SLACK_MCP_XOXD_TOKEN)
    SLACK_MCP_XOXD_TOKEN         - Browser session cookie (needs SLACK_MCP_XOXC_TOKEN)
    SLACK_MCP_ADD_MESSAGE_TOOL   - "true" to expose conversations_add_message
    SLACK_MCP_DETECTION_TIMEOUT  - Seconds to wait for scope probes (default: 30, 0 = no limit)
    MCP_PORT                     - Server port (default: 4001)
    LOG_LEVEL / LOG_FORMAT       - Logging level and format (json, human, auto)

Note:
    Startup happens in two steps:
    - The credential is selected (exits if none, or if the xoxc/xoxd pair is incomplete)
    - Scopes are probed; only tools the credential can use are registered
"""

import argparse
import asyncio
import logging
import sys

logger = logging.getLogger("slack_tools.server")

# Suppress FastMCP banner in STDIO mode
if "--stdio" in sys.argv:
    # Monkey-patch rich Console to redirect to stderr
    import rich.console

    _original_console_init = rich.console.Console.__init__

    def _patched_console_init(self, *args, **kwargs):
        kwargs["file"] = sys.stderr  # Force all rich output to stderr
        _original_console_init(self, *args, **kwargs)

    rich.console.Console.__init__ = _patched_console_init

from fastmcp import FastMCP  # noqa: E402
from starlette.requests import Request  # noqa: E402
from starlette.responses import JSONResponse, PlainTextResponse  # noqa: E402

from slack_tools.config import ServerConfig  # noqa: E402
from slack_tools.credentials import CredentialError  # noqa: E402
from slack_tools.observability import configure_logging, set_log_context  # noqa: E402
from slack_tools.runtime import SlackRuntime, build_runtime  # noqa: E402
from slack_tools.tools import register_all_tools  # noqa: E402


def create_server(runtime: SlackRuntime) -> FastMCP:
    """Build the FastMCP server for an assembled runtime."""
    mcp = FastMCP("slack")

    tools = register_all_tools(mcp, runtime)
    # Only print to stdout in HTTP mode (STDIO mode requires clean stdout for JSON-RPC)
    if "--stdio" not in sys.argv:
        logger.info(f"Registered {len(tools)} tools: {tools}")

    @mcp.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> PlainTextResponse:
        """Health check endpoint for container orchestration."""
        return PlainTextResponse("OK")

    @mcp.custom_route("/capabilities", methods=["GET"])
    async def capabilities(request: Request) -> JSONResponse:
        """Detected scopes and enabled tools, for operators."""
        return JSONResponse(
            {
                "credential_kind": runtime.credential.kind.value,
                "team": runtime.team,
                "scopes": {str(s): ok for s, ok in runtime.capabilities.scopes.items()},
                "entity_types": [t.value for t in runtime.available_entity_types()],
                "tools": sorted(runtime.enabled_operations()),
            }
        )

    return mcp


def main() -> None:
    """Entry point for the MCP server."""
    config = ServerConfig.from_env()

    parser = argparse.ArgumentParser(description="Slack Tools MCP Server")
    parser.add_argument(
        "--port",
        type=int,
        default=config.port,
        help="HTTP server port (default: 4001)",
    )
    parser.add_argument(
        "--host",
        default=config.host,
        help="HTTP server host (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--stdio",
        action="store_true",
        help="Use STDIO transport instead of HTTP",
    )
    args = parser.parse_args()

    # For STDIO mode, log to stderr; for HTTP mode, log to stdout
    configure_logging(
        level=config.log_level,
        format=config.log_format,
        stream=sys.stderr if args.stdio else sys.stdout,
    )

    try:
        runtime = asyncio.run(build_runtime(config))
    except CredentialError as e:
        logger.error(str(e))
        sys.exit(1)
    # asyncio.run() works on a copy of the context; keep the fields for tool calls
    set_log_context(**runtime.log_fields())

    mcp = create_server(runtime)

    if args.stdio:
        # STDIO mode: only JSON-RPC messages go to stdout
        mcp.run(transport="stdio")
    else:
        logger.info(f"Starting HTTP server on {args.host}:{args.port}")
        mcp.run(transport="http", host=args.host, port=args.port)


if __name__ == "__main__":
    main()
