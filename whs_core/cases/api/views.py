# whs_core/cases/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from whs_core.api.wiring import build_case_service
from whs_core.audit.selectors import case_history
from whs_core.cases.api.errors import to_api_error
from whs_core.cases.api.filters import CaseFilter
from whs_core.cases.api.serializers import (
    AvailableTransitionsSerializer,
    CaseHistoryEntrySerializer,
    CaseSerializer,
    ClinicalNotesInputSerializer,
    CloseInputSerializer,
    StatusChangeInputSerializer,
)
from whs_core.cases.exceptions import CaseRuleError
from whs_core.cases.models import Case
from whs_core.cases.selectors import CaseSelectors
from whs_core.common.api.actors import actor_from_request
from whs_core.common.api.pagination import paginate


def _case_id(pk) -> UUID:
    try:
        return UUID(str(pk))
    except ValueError:
        raise NotFound("Case not found.") from None


class CaseViewSet(viewsets.GenericViewSet):
    """
    Thin API layer:
    - django-filter for column filters, derived status filtered in Python
    - delegates every write to CaseLifecycleService
    - maps engine rule errors onto the standard error envelope
    """

    serializer_class = CaseSerializer
    queryset = Case.objects.none()
    filterset_class = CaseFilter
    ordering_fields = ["created_at", "opened_on", "closed_on"]

    def get_queryset(self):
        return CaseSelectors.base_queryset()

    def _get_case(self, pk) -> Case:
        case = Case.objects.filter(id=_case_id(pk)).first()
        if case is None:
            raise NotFound("Case not found.")
        return case

    @extend_schema(
        tags=["Cases"],
        responses={200: CaseSerializer(many=True)},
        parameters=[
            OpenApiParameter(
                name="status",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Filter by derived status (new, triaged, assessed, in_rehab, return_to_work, closed).",
            ),
        ],
    )
    def list(self, request):
        qs = self.filter_queryset(self.get_queryset())
        cases = CaseSelectors.with_status(qs, status=request.query_params.get("status"))
        return paginate(request, cases, CaseSerializer)

    @extend_schema(tags=["Cases"], responses={200: CaseSerializer})
    def retrieve(self, request, pk=None):
        return Response(CaseSerializer(self._get_case(pk)).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Cases"], responses={200: AvailableTransitionsSerializer})
    @action(detail=True, methods=["get"], url_path="transitions")
    def transitions(self, request, pk=None):
        try:
            result = build_case_service().available_transitions(case_id=_case_id(pk))
        except CaseRuleError as e:
            raise to_api_error(e)

        return Response(
            {
                "case_id": str(result.case_id),
                "current": result.current.value,
                "available": sorted(s.value for s in result.available),
                "has_active_rehab_plan": result.has_active_rehab_plan,
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(tags=["Cases"], request=StatusChangeInputSerializer, responses={200: CaseSerializer})
    @action(detail=True, methods=["post"], url_path="status")
    def change_status(self, request, pk=None):
        ser = StatusChangeInputSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        details = {
            key: data[key]
            for key in ("return_to_work_duty_type", "return_to_work_date")
            if data.get(key)
        }
        try:
            build_case_service().change_status(
                case_id=_case_id(pk),
                target=data["status"],
                actor=actor_from_request(request),
                details=details,
            )
        except CaseRuleError as e:
            raise to_api_error(e)

        return Response(CaseSerializer(self._get_case(pk)).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Cases"], request=ClinicalNotesInputSerializer, responses={200: CaseSerializer})
    @action(detail=True, methods=["post"], url_path="clinical-notes")
    def clinical_notes(self, request, pk=None):
        ser = ClinicalNotesInputSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        try:
            build_case_service().update_clinical_notes(
                case_id=_case_id(pk),
                notes=ser.validated_data["clinical_notes"],
                actor=actor_from_request(request),
            )
        except CaseRuleError as e:
            raise to_api_error(e)

        return Response(CaseSerializer(self._get_case(pk)).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Cases"], request=CloseInputSerializer, responses={200: CaseSerializer})
    @action(detail=True, methods=["post"], url_path="close")
    def close(self, request, pk=None):
        ser = CloseInputSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        try:
            build_case_service().close_administratively(
                case_id=_case_id(pk),
                actor=actor_from_request(request),
                reason=ser.validated_data.get("reason", "") or "",
            )
        except CaseRuleError as e:
            raise to_api_error(e)

        return Response(CaseSerializer(self._get_case(pk)).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Cases"], responses={200: CaseHistoryEntrySerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="history")
    def history(self, request, pk=None):
        case = self._get_case(pk)
        return paginate(request, case_history(case_id=case.id), CaseHistoryEntrySerializer)
