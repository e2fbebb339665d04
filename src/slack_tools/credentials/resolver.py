"""
Authentication mode selection.

resolve_credential() looks at every configured Slack credential and returns
exactly one SlackCredential. It performs no network calls.

Priority (highest first):
    1. user token     (SLACK_MCP_XOXP_TOKEN)
    2. bot token      (SLACK_MCP_XOXB_TOKEN)
    3. session pair   (SLACK_MCP_XOXC_TOKEN + SLACK_MCP_XOXD_TOKEN)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum

from .base import CredentialError
from .slack import SLACK_CREDENTIALS

logger = logging.getLogger(__name__)


class CredentialKind(StrEnum):
    USER = "user"
    BOT = "bot"
    SESSION = "session"


# Logical credential names (see SLACK_CREDENTIALS) behind each kind
CREDENTIAL_NAMES: dict[CredentialKind, tuple[str, ...]] = {
    CredentialKind.USER: ("slack_user_token",),
    CredentialKind.BOT: ("slack_bot_token",),
    CredentialKind.SESSION: ("slack_session_token", "slack_session_cookie"),
}


class NoCredentialError(CredentialError):
    """None of the supported Slack credentials is configured."""


class IncompletePairError(CredentialError):
    """Only one half of the xoxc/xoxd session pair is configured."""


@dataclass(frozen=True)
class SlackCredential:
    """The single authentication mode used for the whole process."""

    kind: CredentialKind
    token: str
    cookie: str | None = None

    def __repr__(self) -> str:
        # Secrets stay out of logs and tracebacks
        cookie = ", cookie=<redacted>" if self.cookie else ""
        return f"SlackCredential(kind={self.kind.value!r}, token=<redacted>{cookie})"

    @property
    def auth_headers(self) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self.token}"}
        if self.kind is CredentialKind.SESSION and self.cookie:
            headers["Cookie"] = f"d={self.cookie}"
        return headers


def _present(sources: Mapping[str, str | None], name: str) -> str | None:
    value = sources.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _warn_on_prefix(name: str, value: str) -> None:
    spec = SLACK_CREDENTIALS[name]
    if not spec.matches_prefix(value):
        logger.warning(f"{spec.env_var} does not start with '{spec.prefix}'")


def _credential_groups() -> dict[str, list[str]]:
    groups: dict[str, list[str]] = {}
    for name, spec in SLACK_CREDENTIALS.items():
        if spec.credential_group:
            groups.setdefault(spec.credential_group, []).append(name)
    return groups


def _check_groups(sources: Mapping[str, str | None]) -> None:
    for members in _credential_groups().values():
        present = [name for name in members if _present(sources, name)]
        if present and len(present) < len(members):
            missing = [name for name in members if name not in present]
            raise IncompletePairError(_format_incomplete_pair(present, missing))


def resolve_credential(sources: Mapping[str, str | None]) -> SlackCredential:
    """
    Select exactly one credential from the configured sources.

    Args:
        sources: Raw values keyed by logical credential name (see SLACK_CREDENTIALS),
            e.g. CredentialStore().snapshot(). Empty strings count as absent.

    Returns:
        The selected SlackCredential

    Raises:
        IncompletePairError: If only part of a credential group (the session
            pair) is set
        NoCredentialError: If nothing usable is configured
    """
    # A half-configured pair is a misconfiguration even when a token wins
    _check_groups(sources)

    user_token = _present(sources, "slack_user_token")
    if user_token:
        _warn_on_prefix("slack_user_token", user_token)
        return SlackCredential(kind=CredentialKind.USER, token=user_token)

    bot_token = _present(sources, "slack_bot_token")
    if bot_token:
        _warn_on_prefix("slack_bot_token", bot_token)
        return SlackCredential(kind=CredentialKind.BOT, token=bot_token)

    session_token = _present(sources, "slack_session_token")
    session_cookie = _present(sources, "slack_session_cookie")
    if session_token and session_cookie:
        _warn_on_prefix("slack_session_token", session_token)
        _warn_on_prefix("slack_session_cookie", session_cookie)
        return SlackCredential(
            kind=CredentialKind.SESSION, token=session_token, cookie=session_cookie
        )

    raise NoCredentialError(_format_no_credential())


def _format_incomplete_pair(present: list[str], missing: list[str]) -> str:
    set_vars = ", ".join(SLACK_CREDENTIALS[name].env_var for name in present)
    lines = ["Server startup failed: Incomplete Slack session credentials\n"]
    for name in missing:
        spec = SLACK_CREDENTIALS[name]
        lines.append(f"  {set_vars} is set but {spec.env_var} is not.")
        lines.append(f"    {spec.description}")
        lines.append(f"    Set via: export {spec.env_var}=your_value")
    lines.append(f"    Or unset {set_vars} to use a token instead.")
    return "\n".join(lines)


def _format_no_credential() -> str:
    lines = ["Server startup failed: No Slack credentials configured\n"]
    lines.append("Set one of the following:\n")
    for name in ("slack_user_token", "slack_bot_token"):
        spec = SLACK_CREDENTIALS[name]
        lines.append(f"  {spec.env_var}")
        lines.append(f"    {spec.description}")
        lines.append(f"    Get one at: {spec.help_url}")
    token = SLACK_CREDENTIALS["slack_session_token"]
    cookie = SLACK_CREDENTIALS["slack_session_cookie"]
    lines.append(f"  {token.env_var} and {cookie.env_var} (both required)")
    lines.append("    Browser session token and cookie")
    return "\n".join(lines)
