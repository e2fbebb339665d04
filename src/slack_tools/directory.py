"""
Directory of channels and users.

Keeps one immutable DirectorySnapshot per entity kind and resolves
human-readable references ("#general", "@alice") to Slack IDs.

A refresh pages through the Web API until the cursor runs out, builds a new
snapshot off to the side and swaps it in. Readers always see a complete
snapshot. Concurrent refreshes of the same kind share one in-flight task.

Reference forms:
    "#name"        public or private channel
    "@username"    direct message with that user (channels) or the user (users)
    "@mpdm-..."    group direct message
    "C0123..."     bare ID, returned unchanged if it exists
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from .client import SlackClient
from .scopes import CapabilitySet, EntityType, Scope

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 200

CHANNEL_PREFIX = "#"
USER_PREFIX = "@"


class EntityKind(StrEnum):
    CHANNEL = "channel"
    USER = "user"


class ReferenceNotFoundError(LookupError):
    """A reference did not match anything, even after a refresh."""

    def __init__(self, reference: str, kind: EntityKind):
        self.reference = reference
        self.kind = kind
        super().__init__(f"{kind.value} {reference!r} not found")


@dataclass(frozen=True)
class DirectoryEntry:
    id: str
    name: str
    reference: str
    entity_type: str
    topic: str = ""
    purpose: str = ""
    member_count: int | None = None
    real_name: str = ""
    user_id: str = ""


@dataclass(frozen=True)
class DirectorySnapshot:
    """Ordered entries plus lookup maps derived from them."""

    entries: tuple[DirectoryEntry, ...] = ()
    refreshed_at: datetime | None = None
    by_reference: Mapping[str, str] = field(init=False, repr=False, compare=False)
    by_id: Mapping[str, DirectoryEntry] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_reference: dict[str, str] = {}
        by_id: dict[str, DirectoryEntry] = {}
        for entry in self.entries:
            by_id.setdefault(entry.id, entry)
            by_reference.setdefault(entry.reference, entry.id)
        object.__setattr__(self, "by_reference", MappingProxyType(by_reference))
        object.__setattr__(self, "by_id", MappingProxyType(by_id))

    @classmethod
    def from_entries(
        cls,
        entries: Iterable[DirectoryEntry],
        refreshed_at: datetime | None = None,
    ) -> DirectorySnapshot:
        return cls(tuple(entries), refreshed_at=refreshed_at)

    def __len__(self) -> int:
        return len(self.entries)

    def lookup(self, reference: str) -> str | None:
        if reference.startswith((CHANNEL_PREFIX, USER_PREFIX)):
            return self.by_reference.get(reference)
        return reference if reference in self.by_id else None


EMPTY_SNAPSHOT = DirectorySnapshot()


def user_entry(raw: dict[str, Any]) -> DirectoryEntry:
    profile = raw.get("profile") or {}
    name = raw.get("name") or raw["id"]
    return DirectoryEntry(
        id=raw["id"],
        name=name,
        reference=f"{USER_PREFIX}{name}",
        entity_type="user",
        real_name=raw.get("real_name") or profile.get("real_name", ""),
    )


def channel_entry(raw: dict[str, Any], users: DirectorySnapshot = EMPTY_SNAPSHOT) -> DirectoryEntry:
    topic = (raw.get("topic") or {}).get("value", "")
    purpose = (raw.get("purpose") or {}).get("value", "")
    member_count = raw.get("num_members")

    if raw.get("is_im"):
        user_id = raw.get("user", "")
        user = users.by_id.get(user_id)
        name = user.name if user else user_id
        return DirectoryEntry(
            id=raw["id"],
            name=name,
            reference=f"{USER_PREFIX}{name}",
            entity_type=EntityType.IM.value,
            user_id=user_id,
        )

    name = raw.get("name") or raw["id"]
    if raw.get("is_mpim"):
        entity_type, reference = EntityType.MPIM, f"{USER_PREFIX}{name}"
    elif raw.get("is_private"):
        entity_type, reference = EntityType.PRIVATE_CHANNEL, f"{CHANNEL_PREFIX}{name}"
    else:
        entity_type, reference = EntityType.PUBLIC_CHANNEL, f"{CHANNEL_PREFIX}{name}"

    return DirectoryEntry(
        id=raw["id"],
        name=name,
        reference=reference,
        entity_type=entity_type.value,
        topic=topic,
        purpose=purpose,
        member_count=member_count,
    )


FetchPage = Callable[[str], Awaitable[tuple[list[dict[str, Any]], str]]]


class DirectoryCache:
    """Refreshable channel/user directory owned by the runtime."""

    def __init__(
        self,
        client: SlackClient,
        capabilities: CapabilitySet,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self._client = client
        self._capabilities = capabilities
        self._page_size = page_size
        self._snapshots: dict[EntityKind, DirectorySnapshot | None] = {
            kind: None for kind in EntityKind
        }
        self._inflight: dict[EntityKind, asyncio.Task[DirectorySnapshot]] = {}
        self._swap_lock = asyncio.Lock()

    def snapshot(self, kind: EntityKind) -> DirectorySnapshot:
        """Current snapshot for ``kind`` (empty if never loaded). Never blocks."""
        snapshot = self._snapshots[kind]
        return EMPTY_SNAPSHOT if snapshot is None else snapshot

    def is_loaded(self, kind: EntityKind) -> bool:
        return self._snapshots[kind] is not None

    async def entries(self, kind: EntityKind) -> tuple[DirectoryEntry, ...]:
        """Entries for ``kind``, loading the directory on first use."""
        if not self.is_loaded(kind):
            await self.refresh(kind)
        return self.snapshot(kind).entries

    async def refresh(self, kind: EntityKind) -> DirectorySnapshot:
        """
        Reload ``kind`` from Slack and publish the new snapshot.

        Joins an in-flight refresh of the same kind instead of starting another.
        On failure the previous snapshot stays published and the error propagates.
        """
        task = self._inflight.get(kind)
        if task is None:
            task = asyncio.create_task(self._refresh(kind), name=f"directory-refresh:{kind}")
            self._inflight[kind] = task
            task.add_done_callback(lambda t, k=kind: self._clear_inflight(k, t))
        return await asyncio.shield(task)

    def _clear_inflight(self, kind: EntityKind, task: asyncio.Task[DirectorySnapshot]) -> None:
        if self._inflight.get(kind) is task:
            del self._inflight[kind]

    async def _refresh(self, kind: EntityKind) -> DirectorySnapshot:
        if kind is EntityKind.USER:
            entries = await self._fetch_users()
        else:
            entries = await self._fetch_channels()

        snapshot = DirectorySnapshot.from_entries(entries, refreshed_at=datetime.now(UTC))
        async with self._swap_lock:
            self._snapshots[kind] = snapshot
        logger.info(f"Directory refreshed: {len(snapshot)} {kind.value} entries")
        return snapshot

    async def _collect(self, fetch_page: FetchPage) -> list[dict[str, Any]]:
        """Follow the cursor until exhausted; items are de-duplicated by id."""
        items: dict[str, dict[str, Any]] = {}
        seen_cursors: set[str] = set()
        cursor = ""
        while True:
            page, cursor = await fetch_page(cursor)
            for item in page:
                items.setdefault(item["id"], item)
            if not cursor:
                break
            if cursor in seen_cursors:
                logger.warning(f"Pagination cursor repeated, stopping: {cursor}")
                break
            seen_cursors.add(cursor)
        return list(items.values())

    async def _fetch_users(self) -> list[DirectoryEntry]:
        if not self._capabilities.has(Scope.USERS_READ):
            logger.debug("users:read not available, user directory stays empty")
            return []

        async def fetch_page(cursor: str) -> tuple[list[dict[str, Any]], str]:
            return await self._client.users_list(limit=self._page_size, cursor=cursor)

        return [user_entry(raw) for raw in await self._collect(fetch_page)]

    async def _fetch_channels(self) -> list[DirectoryEntry]:
        types = [t.value for t in self._capabilities.available_entity_types()]
        if not types:
            logger.debug("No conversation read scopes available, channel directory stays empty")
            return []

        # DM references are named after the other user
        if EntityType.IM.value in types and not self.is_loaded(EntityKind.USER):
            try:
                await self.refresh(EntityKind.USER)
            except Exception as e:
                logger.warning(f"User directory refresh failed, DMs keep user IDs: {e}")

        async def fetch_page(cursor: str) -> tuple[list[dict[str, Any]], str]:
            return await self._client.conversations_list(
                types=types, limit=self._page_size, cursor=cursor
            )

        users = self.snapshot(EntityKind.USER)
        return [channel_entry(raw, users) for raw in await self._collect(fetch_page)]

    async def _refresh_for_resolve(self, kind: EntityKind) -> DirectorySnapshot:
        try:
            return await self.refresh(kind)
        except Exception as e:
            logger.warning(f"Directory refresh for {kind.value} failed: {e}")
            return self.snapshot(kind)

    async def resolve(self, reference: str, kind: EntityKind = EntityKind.CHANNEL) -> str:
        """
        Resolve a reference to a Slack ID.

        A miss against the current snapshot triggers one refresh (the first
        lookup of a kind loads it, which counts as that refresh).

        Raises:
            ReferenceNotFoundError: If nothing matches after the refresh
        """
        reference = reference.strip()
        if not reference:
            raise ReferenceNotFoundError(reference, kind)

        refreshed = False
        snapshot = self._snapshots[kind]
        if snapshot is None:
            snapshot = await self._refresh_for_resolve(kind)
            refreshed = True

        found = snapshot.lookup(reference)
        if found is None and not refreshed:
            snapshot = await self._refresh_for_resolve(kind)
            found = snapshot.lookup(reference)

        if found is None:
            raise ReferenceNotFoundError(reference, kind)
        return found

    def user_name(self, user_id: str) -> str:
        """Username for ``user_id`` from the current snapshot, or the ID itself."""
        entry = self.snapshot(EntityKind.USER).by_id.get(user_id)
        return entry.name if entry else user_id
