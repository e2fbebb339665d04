"""Scope (permission) detection for a Slack credential."""

from .classifier import Classifier, is_permission_denied
from .detector import EMPTY_CAPABILITIES, CapabilitySet, DetectionState, ScopeDetector
from .permissions import EntityType, Scope
from .probes import PROBES, probe_scope

__all__ = [
    "EMPTY_CAPABILITIES",
    "PROBES",
    "CapabilitySet",
    "Classifier",
    "DetectionState",
    "EntityType",
    "Scope",
    "ScopeDetector",
    "is_permission_denied",
    "probe_scope",
]
