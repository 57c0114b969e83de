# whs_core/cases/exceptions.py
from __future__ import annotations

from typing import Any, Dict


class CaseRuleError(Exception):
    """
    Expected, user-facing business rule failure.
    Never logged as a system error; `details` explains the rule.
    """
    code = "case_rule_error"

    def __init__(self, message: str, details: Dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class CaseNotFound(CaseRuleError):
    code = "case_not_found"


class TransitionError(CaseRuleError):
    code = "transition_error"


class InvalidTransition(TransitionError):
    code = "invalid_transition"


class MissingReturnToWorkDetails(TransitionError):
    code = "missing_return_to_work_details"


class UnexpectedReturnToWorkDetails(TransitionError):
    code = "unexpected_return_to_work_details"


class ClinicalNotesRejected(CaseRuleError):
    code = "clinical_notes_rejected"
