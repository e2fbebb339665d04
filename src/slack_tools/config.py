"""Server configuration read from the environment (and .env)."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import dotenv_values

TRUTHY = {"1", "true", "yes", "on"}


def _read_env(dotenv_path: Path | None = None) -> dict[str, Any]:
    """os.environ layered over the .env file; os.environ wins."""
    path = dotenv_path or Path.cwd() / ".env"
    values: dict[str, Any] = dict(dotenv_values(path)) if path.exists() else {}
    values.update(os.environ)
    return values


def _as_int(value: str | None, default: int) -> int:
    try:
        return int(value) if value else default
    except ValueError:
        return default


def _as_float(value: str | None, default: float | None) -> float | None:
    if value is None or value.strip() == "":
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    # 0 (or less) disables the timeout
    return parsed if parsed > 0 else None


@dataclass
class ServerConfig:
    """MCP server settings."""

    host: str = "0.0.0.0"
    port: int = 4001
    detection_timeout: float | None = 30.0
    add_message_enabled: bool = False
    log_level: str = "INFO"
    log_format: str = "auto"

    @classmethod
    def from_env(cls, dotenv_path: Path | None = None) -> "ServerConfig":
        env = _read_env(dotenv_path)
        return cls(
            host=env.get("MCP_HOST", "0.0.0.0"),
            port=_as_int(env.get("MCP_PORT"), 4001),
            detection_timeout=_as_float(env.get("SLACK_MCP_DETECTION_TIMEOUT"), 30.0),
            add_message_enabled=str(env.get("SLACK_MCP_ADD_MESSAGE_TOOL", "")).lower() in TRUTHY,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            log_format=env.get("LOG_FORMAT", "auto").lower() or "auto",
        )
