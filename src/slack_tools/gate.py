"""
Which tools to advertise.

enabled_operations() is a pure function of the detected CapabilitySet and
the credential kind, driven by the static OPERATIONS table.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .credentials import CredentialKind
from .scopes import CapabilitySet, Scope
from .scopes.permissions import HISTORY_SCOPES, READ_SCOPES


@dataclass(frozen=True)
class Operation:
    """Requirements for advertising one tool."""

    name: str
    all_of: frozenset[Scope] = frozenset()
    """Every one of these scopes must be available"""

    any_of: frozenset[Scope] = frozenset()
    """At least one of these scopes must be available (ignored when empty)"""

    credential_kinds: frozenset[CredentialKind] | None = None
    """Credential kinds the operation works with (None means any)"""

    write: bool = False
    """Mutates the workspace; only advertised when writes are enabled"""

    description: str = field(default="", compare=False)

    def is_enabled(
        self,
        capabilities: CapabilitySet,
        credential_kind: CredentialKind,
        write_enabled: bool = False,
    ) -> bool:
        if self.write and not write_enabled:
            return False
        if self.credential_kinds is not None and credential_kind not in self.credential_kinds:
            return False
        if not all(capabilities.has(scope) for scope in self.all_of):
            return False
        if self.any_of and not any(capabilities.has(scope) for scope in self.any_of):
            return False
        return True


ANY_READ = frozenset(READ_SCOPES)
ANY_HISTORY = frozenset(HISTORY_SCOPES)

OPERATIONS: tuple[Operation, ...] = (
    Operation(
        "channels_list",
        any_of=ANY_READ,
        description="List channels, DMs and group DMs",
    ),
    Operation(
        "users_list",
        all_of=frozenset({Scope.USERS_READ}),
        description="List workspace users",
    ),
    Operation(
        "conversations_history",
        any_of=ANY_HISTORY,
        description="Read messages from a conversation",
    ),
    Operation(
        "conversations_replies",
        any_of=ANY_HISTORY,
        description="Read a message thread",
    ),
    Operation(
        "conversations_search_messages",
        all_of=frozenset({Scope.SEARCH_READ}),
        # search.messages rejects bot tokens
        credential_kinds=frozenset({CredentialKind.USER, CredentialKind.SESSION}),
        description="Search messages across the workspace",
    ),
    Operation(
        "attachments_list",
        any_of=ANY_HISTORY,
        description="List files attached to messages in a conversation",
    ),
    Operation(
        "attachment_get_details",
        any_of=ANY_HISTORY,
        description="Show metadata of one file",
    ),
    Operation(
        "conversations_add_message",
        any_of=ANY_READ,
        write=True,
        description="Post a message to a conversation",
    ),
)

OPERATIONS_BY_NAME: dict[str, Operation] = {op.name: op for op in OPERATIONS}


def enabled_operations(
    capabilities: CapabilitySet,
    credential_kind: CredentialKind,
    *,
    write_enabled: bool = False,
    operations: tuple[Operation, ...] = OPERATIONS,
) -> frozenset[str]:
    """
    Names of the operations to advertise.

    Args:
        capabilities: Finalized scope detection result
        credential_kind: Kind of the active credential
        write_enabled: Whether write operations are allowed by configuration
        operations: Operation table (defaults to OPERATIONS)
    """
    return frozenset(
        op.name for op in operations if op.is_enabled(capabilities, credential_kind, write_enabled)
    )
