"""
Engine error taxonomy.

Every failure is local to the single calculation or transition request
that raised it. Errors subclass ValueError so callers that only care
about "bad input" can catch that, while HTTP/storage collaborators can
render a precise message from ``kind`` and ``field``.
"""

from __future__ import annotations

from typing import Any, Optional


class EngineError(ValueError):
    """Base class for all pricing and workflow failures."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.value = value

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "field": self.field,
            "value": self.value,
            "message": self.message,
        }


# ── Pricing ──────────────────────────────────────────────

class InvalidScopeParameter(EngineError):
    """Malformed or out-of-domain input (negative area, bad discount tier, …)."""


class ScopeOutOfRange(EngineError):
    """Value falls outside every configured pricing band."""


class UnsupportedServiceType(EngineError):
    """No pricing strategy or stage list for the service type."""


# ── Workflow ─────────────────────────────────────────────

class InvalidStageReference(EngineError):
    """Stage id is not part of the project's stage snapshot."""


class StageNotFound(EngineError):
    """The project's current stage is missing from its own snapshot."""


class InvalidTimeEntry(EngineError):
    """Time entry hours or date are outside the accepted domain."""


class InvalidProjectState(EngineError):
    """Operation is not allowed for the project's current status."""


# ── Budget lifecycle ─────────────────────────────────────

class InvalidBudgetTransition(EngineError):
    """Budget status change not allowed from the current status."""
