"""
Slack Tools - Slack workspace access for AI agents over MCP.

Picks one Slack credential, probes which scopes it really has, and exposes
only the tools those scopes support.

Usage:
    import asyncio
    from fastmcp import FastMCP
    from slack_tools.runtime import build_runtime
    from slack_tools.tools import register_all_tools

    mcp = FastMCP("slack")
    runtime = asyncio.run(build_runtime())
    register_all_tools(mcp, runtime)
"""

__version__ = "0.1.0"

# Credential management (no fastmcp dependency)
from .credentials import (
    SLACK_CREDENTIALS,
    CredentialError,
    CredentialKind,
    CredentialStore,
    IncompletePairError,
    NoCredentialError,
    SlackCredential,
    resolve_credential,
)
from .scopes import CapabilitySet, EntityType, Scope, ScopeDetector


def __getattr__(name: str):
    """Lazy import for registration that requires fastmcp."""
    if name == "register_all_tools":
        from .tools import register_all_tools

        return register_all_tools
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    # Version
    "__version__",
    # Credentials
    "CredentialError",
    "CredentialKind",
    "CredentialStore",
    "IncompletePairError",
    "NoCredentialError",
    "SLACK_CREDENTIALS",
    "SlackCredential",
    "resolve_credential",
    # Scopes
    "CapabilitySet",
    "EntityType",
    "Scope",
    "ScopeDetector",
    # MCP registration (lazy loaded)
    "register_all_tools",
]
