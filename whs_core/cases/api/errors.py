# whs_core/cases/api/errors.py
from __future__ import annotations

from rest_framework.exceptions import NotFound, ValidationError as DRFValidationError

from whs_core.cases.exceptions import CaseNotFound, CaseRuleError
from whs_core.common.api.exceptions import ConflictError, DependencyUnavailable, UnprocessableError
from whs_core.incidents.exceptions import IntakeDependencyError, IntakeValidationError, RoutingContextMissing


def to_api_error(exc: CaseRuleError) -> Exception:
    """
    Map an engine rule failure to the API exception carrying the right
    status; the envelope handler does the rest.
    """
    if isinstance(exc, CaseNotFound):
        return NotFound(exc.message)
    if isinstance(exc, IntakeValidationError):
        return DRFValidationError(exc.details)

    payload = {"detail": exc.message, **exc.details}
    if isinstance(exc, RoutingContextMissing):
        return UnprocessableError(detail=payload, error_code=exc.code)
    if isinstance(exc, IntakeDependencyError):
        return DependencyUnavailable(detail=payload, error_code=exc.code)
    return ConflictError(detail=payload, error_code=exc.code)
