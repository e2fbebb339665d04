"""
Scope detection.

Slack offers no call that lists the scopes of every token kind, so the
detector probes them: one concurrent probe per directly testable scope,
joined before anything is published. History scopes are inferred from the
matching read scope. The result is an immutable CapabilitySet, published by
a single reference swap and read without locking afterwards.

Lifecycle:
    IDLE -> DETECTING -> FINALIZED (terminal)

Example:
    detector = ScopeDetector(client, timeout=30)
    capabilities = await detector.detect()
    if capabilities.has(Scope.SEARCH_READ):
        ...
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType

from ..client import SlackClient
from .classifier import Classifier, is_permission_denied
from .permissions import (
    ENTITY_READ_SCOPES,
    HISTORY_FROM_READ,
    HISTORY_SCOPES,
    READ_SCOPES,
    EntityType,
    Scope,
)
from .probes import PROBES, ProbeCall, probe_scope

logger = logging.getLogger(__name__)


class DetectionState(StrEnum):
    IDLE = "idle"
    DETECTING = "detecting"
    FINALIZED = "finalized"


@dataclass(frozen=True)
class CapabilitySet:
    """Immutable scope -> availability mapping. Unknown scopes read as False."""

    scopes: Mapping[Scope, bool] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "scopes", MappingProxyType(dict(self.scopes)))

    @classmethod
    def from_probe_results(
        cls,
        results: Mapping[Scope, bool],
        probed: Iterable[Scope] = (),
    ) -> CapabilitySet:
        """Build the final set: probed scopes default to False, history mirrors read."""
        scopes = {scope: False for scope in probed}
        scopes.update(results)
        for history, read in HISTORY_FROM_READ.items():
            scopes[history] = scopes.get(read, False)
        return cls(scopes)

    def has(self, scope: Scope) -> bool:
        return self.scopes.get(scope, False)

    def has_any_read(self) -> bool:
        return any(self.has(scope) for scope in READ_SCOPES)

    def has_any_history(self) -> bool:
        return any(self.has(scope) for scope in HISTORY_SCOPES)

    def available_entity_types(self) -> list[EntityType]:
        return [entity for entity, scope in ENTITY_READ_SCOPES if self.has(scope)]

    def available(self) -> list[Scope]:
        return sorted(scope for scope, ok in self.scopes.items() if ok)

    def unavailable(self) -> list[Scope]:
        return sorted(scope for scope, ok in self.scopes.items() if not ok)


EMPTY_CAPABILITIES = CapabilitySet()


class ScopeDetector:
    """Probes a credential's scopes once and publishes the result."""

    def __init__(
        self,
        client: SlackClient,
        classifier: Classifier = is_permission_denied,
        probes: Mapping[Scope, ProbeCall] | None = None,
        timeout: float | None = None,
    ):
        """
        Args:
            client: Client bound to the credential under test
            classifier: Decides whether a probe error is a permission denial
            probes: Scopes to probe and how (defaults to PROBES)
            timeout: Seconds to wait for all probes; on expiry the remaining
                probes are cancelled and recorded unavailable. None waits forever.
        """
        self._client = client
        self._classifier = classifier
        self._probes = dict(probes if probes is not None else PROBES)
        self._timeout = timeout
        self._state = DetectionState.IDLE
        self._capabilities = EMPTY_CAPABILITIES
        self._task: asyncio.Task[CapabilitySet] | None = None

    @classmethod
    def for_testing(cls, client: SlackClient, capabilities: CapabilitySet) -> ScopeDetector:
        """Detector already finalized with ``capabilities``; it never probes."""
        detector = cls(client, probes={})
        detector._capabilities = capabilities
        detector._state = DetectionState.FINALIZED
        return detector

    @property
    def state(self) -> DetectionState:
        return self._state

    @property
    def capabilities(self) -> CapabilitySet:
        return self._capabilities

    async def detect(self) -> CapabilitySet:
        """
        Run detection once and return the finalized CapabilitySet.

        Callers arriving while detection runs wait for the same run; callers
        after finalization get the published set without new probes.
        Cancelling one caller leaves the run to the others; cancel() stops
        the run itself and every caller gets the partial set.
        Never raises for probe failures.
        """
        if self._state is DetectionState.FINALIZED:
            return self._capabilities
        if self._task is None:
            self._state = DetectionState.DETECTING
            self._task = asyncio.create_task(self._run(), name="scope-detection")
        task = self._task
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
            # Cancelled before any probe started
            if self._state is not DetectionState.FINALIZED:
                self._publish({})
            return self._capabilities

    def cancel(self) -> None:
        """Stop a running detection; unfinished probes are recorded unavailable."""
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _run(self) -> CapabilitySet:
        logger.info("Detecting available OAuth scopes...")
        results: dict[Scope, bool] = {}
        lock = asyncio.Lock()

        tasks = [
            asyncio.create_task(self._probe(scope, results, lock), name=f"probe:{scope}")
            for scope in self._probes
        ]
        pending: set[asyncio.Task[None]] = set(tasks)
        try:
            if tasks:
                _, pending = await asyncio.wait(tasks, timeout=self._timeout)
            if pending:
                logger.warning(
                    f"Scope detection timed out after {self._timeout}s; "
                    f"{len(pending)} probe(s) marked unavailable"
                )
        except asyncio.CancelledError:
            logger.warning("Scope detection cancelled; unfinished probes marked unavailable")
            raise
        finally:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            self._publish(results)
        return self._capabilities

    async def _probe(self, scope: Scope, results: dict[Scope, bool], lock: asyncio.Lock) -> None:
        try:
            available = await probe_scope(scope, self._client, self._classifier, self._probes)
        except Exception as e:
            logger.warning(f"Probe for {scope} raised unexpectedly: {e}")
            available = False

        async with lock:
            results[scope] = available

        if available:
            logger.debug(f"Scope available: {scope}")
        else:
            logger.warning(f"Scope not available: {scope}")

    def _publish(self, results: Mapping[Scope, bool]) -> None:
        capabilities = CapabilitySet.from_probe_results(results, probed=self._probes)
        self._capabilities = capabilities
        self._state = DetectionState.FINALIZED
        available = ", ".join(capabilities.available()) or "none"
        unavailable = ", ".join(capabilities.unavailable()) or "none"
        logger.info(
            f"Scope detection complete. Available: {available}. Unavailable: {unavailable}",
            extra={"event": "scope_detection_complete"},
        )

    # Query helpers: pure reads of the published snapshot

    def has_permission(self, scope: Scope) -> bool:
        return self._capabilities.has(scope)

    def has_any_read_permission(self) -> bool:
        return self._capabilities.has_any_read()

    def has_any_history_permission(self) -> bool:
        return self._capabilities.has_any_history()

    def available_entity_types(self) -> list[EntityType]:
        return self._capabilities.available_entity_types()
