"""
Single-scope probes.

Each probe makes the cheapest call that exercises exactly one scope and
reports whether the scope is usable. Only a recognised permission denial
makes a scope unavailable; any other failure (network, rate limit, server
error) counts as available, since the probe is not a health check.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from ..client import SlackClient
from .classifier import Classifier, is_permission_denied
from .permissions import EntityType, Scope

logger = logging.getLogger(__name__)

ProbeCall = Callable[[SlackClient], Awaitable[Any]]


def _list_one(entity_type: EntityType) -> ProbeCall:
    async def call(client: SlackClient) -> Any:
        return await client.conversations_list(types=[entity_type.value], limit=1)

    return call


async def _users_one(client: SlackClient) -> Any:
    return await client.users_list(limit=1)


async def _search_one(client: SlackClient) -> Any:
    return await client.search_messages("test", count=1)


PROBES: dict[Scope, ProbeCall] = {
    Scope.CHANNELS_READ: _list_one(EntityType.PUBLIC_CHANNEL),
    Scope.GROUPS_READ: _list_one(EntityType.PRIVATE_CHANNEL),
    Scope.IM_READ: _list_one(EntityType.IM),
    Scope.MPIM_READ: _list_one(EntityType.MPIM),
    Scope.USERS_READ: _users_one,
    Scope.SEARCH_READ: _search_one,
}


async def probe_scope(
    scope: Scope,
    client: SlackClient,
    classifier: Classifier = is_permission_denied,
    probes: dict[Scope, ProbeCall] | None = None,
) -> bool:
    """
    Test whether ``scope`` is usable with the client's credential.

    Args:
        scope: Scope to test; must have an entry in ``probes``
        client: Client bound to the credential under test
        classifier: Decides whether an exception is a permission denial
        probes: Probe table (defaults to PROBES)

    Returns:
        False only if the call failed with a permission denial

    Raises:
        KeyError: If the scope cannot be probed directly
    """
    call = (probes or PROBES)[scope]
    try:
        await call(client)
    except Exception as e:
        if classifier(e):
            logger.debug(f"Probe for {scope} denied: {e}")
            return False
        logger.debug(f"Probe for {scope} failed without a denial, assuming available: {e}")
        return True
    return True
