"""
Composition root.

build_runtime() wires the process-wide objects once at startup: the
selected credential, the API client, the finalized scope detection, the
directory cache and the set of enabled tools. Tool handlers receive the
SlackRuntime explicitly; nothing here is a module-level singleton.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from .client import SlackClient
from .config import ServerConfig
from .credentials import (
    CREDENTIAL_NAMES,
    CredentialStore,
    SlackCredential,
    resolve_credential,
)
from .directory import DirectoryCache, EntityKind
from .gate import enabled_operations
from .observability import set_log_context
from .scopes import CapabilitySet, EntityType, Scope, ScopeDetector

logger = logging.getLogger(__name__)


@dataclass
class SlackRuntime:
    """Everything tool handlers may use, owned by the server process."""

    credential: SlackCredential
    client: SlackClient
    detector: ScopeDetector
    directory: DirectoryCache
    config: ServerConfig = field(default_factory=ServerConfig)
    enabled: frozenset[str] = frozenset()
    team: str = ""

    @property
    def capabilities(self) -> CapabilitySet:
        return self.detector.capabilities

    def has_permission(self, scope: Scope) -> bool:
        return self.detector.has_permission(scope)

    def available_entity_types(self) -> list[EntityType]:
        return self.detector.available_entity_types()

    def enabled_operations(self) -> frozenset[str]:
        return self.enabled

    def log_fields(self) -> dict[str, str]:
        """Log context fields that hold for the life of the process."""
        return {"team": self.team, "credential_kind": self.credential.kind.value}

    async def resolve(self, reference: str, kind: EntityKind = EntityKind.CHANNEL) -> str:
        return await self.directory.resolve(reference, kind)


async def build_runtime(
    config: ServerConfig | None = None,
    store: CredentialStore | None = None,
    client_factory: Callable[[SlackCredential], SlackClient] = SlackClient,
) -> SlackRuntime:
    """
    Resolve the credential, detect scopes and assemble the runtime.

    Raises:
        CredentialError: NoCredentialError or IncompletePairError; the
            server cannot start without a credential
    """
    config = config or ServerConfig()
    store = store or CredentialStore()

    credential = resolve_credential(store.snapshot())
    set_log_context(credential_kind=credential.kind.value)
    sources = sorted({store.source_of(name) for name in CREDENTIAL_NAMES[credential.kind]})
    logger.info(f"Using Slack {credential.kind.value} credential from {', '.join(sources)}")

    client = client_factory(credential)

    team = ""
    try:
        identity = await client.auth_test()
        team = identity.get("team", "")
        set_log_context(team=team)
        logger.info(f"Authenticated as {identity.get('user', '?')} in workspace {team or '?'}")
    except Exception as e:
        logger.warning(f"auth.test failed: {e}")

    detector = ScopeDetector(client, timeout=config.detection_timeout)
    capabilities = await detector.detect()

    enabled = enabled_operations(
        capabilities, credential.kind, write_enabled=config.add_message_enabled
    )
    logger.info(f"Enabled tools: {', '.join(sorted(enabled)) or 'none'}")

    return SlackRuntime(
        credential=credential,
        client=client,
        detector=detector,
        directory=DirectoryCache(client, capabilities),
        config=config,
        enabled=enabled,
        team=team,
    )
