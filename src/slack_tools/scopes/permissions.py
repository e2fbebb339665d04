"""Slack OAuth scopes and the entity types they unlock."""

from __future__ import annotations

from enum import StrEnum


class Scope(StrEnum):
    CHANNELS_READ = "channels:read"
    CHANNELS_HISTORY = "channels:history"
    GROUPS_READ = "groups:read"
    GROUPS_HISTORY = "groups:history"
    IM_READ = "im:read"
    IM_HISTORY = "im:history"
    IM_WRITE = "im:write"
    MPIM_READ = "mpim:read"
    MPIM_HISTORY = "mpim:history"
    MPIM_WRITE = "mpim:write"
    USERS_READ = "users:read"
    CHAT_WRITE = "chat:write"
    SEARCH_READ = "search:read"


class EntityType(StrEnum):
    """Conversation types as named by conversations.list."""

    PUBLIC_CHANNEL = "public_channel"
    PRIVATE_CHANNEL = "private_channel"
    IM = "im"
    MPIM = "mpim"


# Ordered: available_entity_types() reports in this order
ENTITY_READ_SCOPES: tuple[tuple[EntityType, Scope], ...] = (
    (EntityType.PUBLIC_CHANNEL, Scope.CHANNELS_READ),
    (EntityType.PRIVATE_CHANNEL, Scope.GROUPS_READ),
    (EntityType.IM, Scope.IM_READ),
    (EntityType.MPIM, Scope.MPIM_READ),
)

# History cannot be probed without a known channel; it mirrors the read scope
HISTORY_FROM_READ: dict[Scope, Scope] = {
    Scope.CHANNELS_HISTORY: Scope.CHANNELS_READ,
    Scope.GROUPS_HISTORY: Scope.GROUPS_READ,
    Scope.IM_HISTORY: Scope.IM_READ,
    Scope.MPIM_HISTORY: Scope.MPIM_READ,
}

READ_SCOPES: tuple[Scope, ...] = tuple(scope for _, scope in ENTITY_READ_SCOPES)
HISTORY_SCOPES: tuple[Scope, ...] = tuple(HISTORY_FROM_READ)
