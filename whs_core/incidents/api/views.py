# whs_core/incidents/api/views.py
from __future__ import annotations

import json
import logging
from uuid import UUID

from django.conf import settings
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response

from whs_core.api.wiring import build_intake_workflow
from whs_core.cases.api.errors import to_api_error
from whs_core.cases.derivation import derive_status
from whs_core.cases.exceptions import CaseRuleError
from whs_core.cases.models import format_case_number
from whs_core.cases.ports import MediaUpload
from whs_core.common.api.actors import actor_from_request
from whs_core.incidents.api.serializers import (
    EligibilitySerializer,
    IncidentReportInputSerializer,
    IntakeResultSerializer,
)
from whs_core.incidents.intake import IncidentReport
from whs_core.incidents.models import Incident

log = logging.getLogger(__name__)


def _ai_analysis(value):
    """Multipart clients send the analysis as a JSON string; unparsable -> dropped."""
    if value is None or isinstance(value, dict):
        return value
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            parsed = json.loads(value)
        except ValueError:
            log.warning("ignoring unparsable ai_analysis payload")
            return None
        return parsed if isinstance(parsed, dict) else None
    return None


def _upload(file_obj) -> MediaUpload | None:
    if file_obj is None:
        return None
    filename = getattr(file_obj, "name", "") or "upload"
    content_type = getattr(file_obj, "content_type", "") or ""

    size = getattr(file_obj, "size", None) or 0
    if size > settings.WHS_MEDIA_MAX_BYTES:
        # Body left unread; the attach step rejects it on size.
        return MediaUpload(filename=filename, content=b"", content_type=content_type, declared_size=size)
    return MediaUpload(filename=filename, content=file_obj.read(), content_type=content_type)


class IncidentViewSet(viewsets.GenericViewSet):
    """
    Incident intake. One POST runs the whole workflow and answers with the
    case it opened plus what happened at each step.
    """

    serializer_class = IncidentReportInputSerializer
    queryset = Incident.objects.none()
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    @extend_schema(
        tags=["Incidents"],
        request=IncidentReportInputSerializer,
        responses={201: IntakeResultSerializer},
    )
    def create(self, request):
        ser = IncidentReportInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        report = IncidentReport(
            subject_id=data["subject_id"],
            kind=data["kind"],
            incident_date=data["incident_date"],
            description=data["description"],
            location=data.get("location", "") or "",
            severity=data.get("severity") or None,
            photo=_upload(data.get("photo")),
            ai_analysis=_ai_analysis(data.get("ai_analysis")),
            reported_by=actor_from_request(request),
        )

        try:
            result = build_intake_workflow().run(report)
        except CaseRuleError as e:
            raise to_api_error(e)

        out = {
            "case_id": result.case.id,
            "case_number": format_case_number(result.case.id, result.case.created_at),
            "status": derive_status(result.case).value,
            "incident_id": result.incident.id if result.incident else None,
            "photo_ref": result.photo_ref,
            "schedules_deactivated": result.schedules_deactivated,
            "notifications_sent": result.notifications_sent,
            "steps": [
                {
                    "name": s.name,
                    "required": s.required,
                    "ok": s.ok,
                    "skipped": s.skipped,
                    "detail": s.detail,
                }
                for s in result.steps
            ],
        }
        return Response(IntakeResultSerializer(out).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Incidents"],
        responses={200: EligibilitySerializer},
        parameters=[
            OpenApiParameter(
                name="subject_id",
                type=OpenApiTypes.UUID,
                location=OpenApiParameter.QUERY,
                required=True,
                description="Worker to check for an open case.",
            ),
        ],
    )
    @action(detail=False, methods=["get"], url_path="eligibility")
    def eligibility(self, request):
        raw = request.query_params.get("subject_id")
        if not raw:
            raise DRFValidationError({"subject_id": ["This field is required."]})
        try:
            subject_id = UUID(str(raw))
        except ValueError:
            raise DRFValidationError({"subject_id": ["Must be a valid UUID."]}) from None

        existing = build_intake_workflow().check_eligibility(subject_id=subject_id)
        out = {
            "can_report": existing is None,
            "open_case_id": existing.id if existing else None,
            "open_case_status": derive_status(existing).value if existing else None,
        }
        return Response(EligibilitySerializer(out).data, status=status.HTTP_200_OK)
