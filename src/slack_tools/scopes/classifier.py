"""
Classify probe failures into "permission denied" or "something else".

Kept apart from the detector so the matching rules can change (or be
replaced by a different classifier) without touching the probing logic.
"""

from __future__ import annotations

from collections.abc import Callable

from ..client import SlackApiError

Classifier = Callable[[BaseException], bool]

DENIAL_ERROR_CODES = frozenset(
    {
        "missing_scope",
        "not_allowed_token_type",
        "not_allowed",
        "access_denied",
    }
)

# Fallback for errors that only carry text
DENIAL_MARKERS = ("missing_scope", "not_allowed", "access_denied")


def is_permission_denied(error: BaseException | None) -> bool:
    """Return True if ``error`` means the credential lacks the permission."""
    if error is None:
        return False
    if isinstance(error, SlackApiError) and error.error in DENIAL_ERROR_CODES:
        return True
    text = str(error)
    return any(marker in text for marker in DENIAL_MARKERS)
