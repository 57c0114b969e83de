# whs_core/common/api/exceptions.py
"""
One error shape for every failing API call:

    {"error": {"code": ..., "message": ..., "details": ..., "request_id": ...}}

Engine rule failures reach this module as the _RuleError subclasses below
(raised by views), so the envelope carries the rule's own code.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, NotAuthenticated, PermissionDenied, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

log = logging.getLogger(__name__)

REQUEST_ID_HEADER = "HTTP_X_REQUEST_ID"


def ensure_request_id(request) -> str:
    """
    Request id for correlating logs with error responses. Reuses an incoming
    X-Request-ID header when the gateway sent one.
    """
    if request is None:
        return uuid.uuid4().hex

    rid = getattr(request, "request_id", None)
    if rid:
        return rid

    meta = getattr(request, "META", {}) or {}
    rid = (meta.get(REQUEST_ID_HEADER) or "").strip()[:64] or uuid.uuid4().hex
    setattr(request, "request_id", rid)
    return rid


def build_error_envelope(*, request=None, code: str, message: str, details: Any = None) -> dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "request_id": ensure_request_id(request),
        }
    }


class _RuleError(APIException):
    """
    APIException that reports a business-rule code (e.g. "duplicate_open_case")
    in the envelope instead of the HTTP-level default.
    """

    def __init__(self, detail=None, code=None, *, error_code: str | None = None):
        super().__init__(detail=detail or self.default_detail, code=code or self.default_code)
        self.error_code = error_code or self.default_code


class ConflictError(_RuleError):
    """409: a lifecycle rule blocks the request (open case exists, illegal transition)."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."
    default_code = "conflict"


class UnprocessableError(_RuleError):
    """422: well-formed request the engine cannot route (worker has no team)."""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Unprocessable request."
    default_code = "unprocessable"


class DependencyUnavailable(_RuleError):
    """503: a required store failed. The message stays generic."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "A required service is unavailable. Please try again."
    default_code = "dependency_unavailable"


_CODES_BY_TYPE = (
    (ValidationError, "validation_error"),
    (NotAuthenticated, "not_authenticated"),
    (PermissionDenied, "permission_denied"),
    (Http404, "not_found"),
)


def _error_code(exc: Exception, http_status: int) -> str:
    if isinstance(exc, _RuleError):
        return exc.error_code
    for exc_type, code in _CODES_BY_TYPE:
        if isinstance(exc, exc_type):
            return code
    if isinstance(exc, APIException):
        return exc.default_code or "api_error"
    return "server_error" if http_status >= 500 else "error"


def _split_detail(data: Any) -> tuple[str, Any]:
    """
    {"detail": msg}            -> (msg, None)
    {"detail": msg, **rest}    -> (msg, rest)
    anything else (field map)  -> ("Request failed.", data)
    """
    if isinstance(data, dict) and "detail" in data:
        rest = {k: v for k, v in data.items() if k != "detail"}
        return str(data["detail"]), rest or None
    return "Request failed.", data


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    request = context.get("request")
    response = drf_exception_handler(exc, context)

    if response is None:
        log.exception(
            "unhandled API error view=%s request_id=%s",
            type(context.get("view")).__name__,
            ensure_request_id(request),
            exc_info=exc,
        )
        return Response(
            build_error_envelope(request=request, code="server_error", message="Unexpected server error."),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    message, details = _split_detail(response.data)
    return Response(
        build_error_envelope(
            request=request,
            code=_error_code(exc, response.status_code),
            message=message,
            details=details,
        ),
        status=response.status_code,
        headers=response.headers,
    )
