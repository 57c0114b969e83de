# whs_core/incidents/exceptions.py
from __future__ import annotations

from typing import Any, Dict

from whs_core.cases.exceptions import CaseRuleError


class IntakeError(CaseRuleError):
    code = "intake_error"


class IntakeValidationError(IntakeError):
    """Report rejected before any step ran. `details` maps field -> messages."""
    code = "validation_error"


class DuplicateOpenCase(IntakeError):
    code = "duplicate_open_case"


class RoutingContextMissing(IntakeError):
    code = "routing_context_missing"


class IntakeDependencyError(IntakeError):
    """
    A required step failed for a non-business reason (store down, bug).
    The message stays generic; the cause is chained and logged.
    """
    code = "dependency_unavailable"

    def __init__(self, step: str, details: Dict[str, Any] | None = None):
        super().__init__(
            "Could not record the incident right now. Please try again.",
            {"step": step, **(details or {})},
        )
        self.step = step
