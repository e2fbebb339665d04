"""
Credential plumbing shared by the Slack credential definitions.

CredentialSpec describes one secret (its env var, where to get it, what it
should look like). CredentialStore looks secrets up by logical name and
never decides which one to use; that happens in resolver.py.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from functools import cached_property
from pathlib import Path

from dotenv import dotenv_values


@dataclass(frozen=True)
class CredentialSpec:
    """One secret the server can be configured with."""

    env_var: str
    """Environment variable holding the value (e.g., 'SLACK_MCP_XOXP_TOKEN')"""

    description: str = ""
    """Shown to the operator when the value is missing"""

    help_url: str = ""
    """Where the operator can create the credential"""

    prefix: str = ""
    """Expected token prefix (e.g., 'xoxp-'); a mismatch is only warned about"""

    credential_group: str = ""
    """Credentials sharing a group are only usable together (e.g., 'slack_session')"""

    def matches_prefix(self, value: str) -> bool:
        return not self.prefix or value.startswith(self.prefix)


class CredentialError(Exception):
    """No usable credential could be selected; the server cannot start."""


class CredentialStore:
    """
    Read-only lookup of credential values by logical name.

    Lookup order for each name: explicit overrides, the process environment,
    then the .env file (parsed once, never exported into os.environ).

    Usage:
        store = CredentialStore()
        store.get("slack_bot_token")

        # Tests: fixed values, no environment involved for those names
        store = CredentialStore.for_testing({"slack_user_token": "xoxp-1"})
    """

    def __init__(
        self,
        specs: Mapping[str, CredentialSpec] | None = None,
        overrides: Mapping[str, str | None] | None = None,
        dotenv_path: Path | None = None,
    ):
        if specs is None:
            from .slack import SLACK_CREDENTIALS

            specs = SLACK_CREDENTIALS
        self._specs = dict(specs)
        self._overrides = dict(overrides or {})
        self._dotenv_path = dotenv_path

    @classmethod
    def for_testing(
        cls,
        values: Mapping[str, str | None],
        specs: Mapping[str, CredentialSpec] | None = None,
        dotenv_path: Path | None = None,
    ) -> CredentialStore:
        """Store whose listed names resolve to ``values`` regardless of the environment."""
        return cls(specs=specs, overrides=values, dotenv_path=dotenv_path)

    @cached_property
    def _dotenv(self) -> dict[str, str | None]:
        path = self._dotenv_path or Path.cwd() / ".env"
        return dict(dotenv_values(path)) if path.is_file() else {}

    def _lookup(self, name: str) -> str | None:
        if name in self._overrides:
            return self._overrides[name]
        env_var = self._specs[name].env_var
        return os.environ.get(env_var) or self._dotenv.get(env_var)

    def source_of(self, name: str) -> str:
        """Where the value for ``name`` comes from: override, environment, dotenv or unset."""
        if name in self._overrides:
            return "override"
        env_var = self.get_spec(name).env_var
        if os.environ.get(env_var):
            return "environment"
        if self._dotenv.get(env_var):
            return "dotenv"
        return "unset"

    def get(self, name: str) -> str | None:
        """
        Value of a credential, or None when it is not configured.

        Raises:
            KeyError: If ``name`` is not a known credential
        """
        if name not in self._specs:
            raise KeyError(f"Unknown credential '{name}'. Available: {sorted(self._specs)}")
        return self._lookup(name)

    def get_spec(self, name: str) -> CredentialSpec:
        try:
            return self._specs[name]
        except KeyError:
            raise KeyError(f"Unknown credential '{name}'") from None

    def snapshot(self) -> dict[str, str | None]:
        """Every known credential read once, for handing to resolve_credential()."""
        return {name: self.get(name) for name in self._specs}
