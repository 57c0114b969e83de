# whs_core/cases/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from whs_core.audit.models import AuditEvent
from whs_core.cases.codec import decode
from whs_core.cases.constants import CaseStatus
from whs_core.cases.derivation import derive
from whs_core.cases.models import Case


class CaseSerializer(serializers.ModelSerializer):
    case_number = serializers.CharField(read_only=True)
    status = serializers.SerializerMethodField()
    status_source = serializers.SerializerMethodField()
    legacy_status = serializers.CharField(source="status", read_only=True)
    annotation = serializers.SerializerMethodField()

    class Meta:
        model = Case
        fields = [
            "id",
            "case_number",
            "subject_id",
            "team_id",
            "kind",
            "reason",
            "status",
            "status_source",
            "legacy_status",
            "annotation",
            "opened_on",
            "closed_on",
            "is_active",
            "closed_at",
            "incident_id",
            "created_by_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_status(self, obj: Case) -> str:
        return derive(obj).status.value

    def get_status_source(self, obj: Case) -> str:
        return derive(obj).source

    def get_annotation(self, obj: Case) -> dict:
        a = decode(obj.annotation)
        return {
            "status_updated_at": a.status_updated_at.isoformat() if a.status_updated_at else None,
            "approved_by": a.approved_by,
            "approved_by_id": a.approved_by_id,
            "approved_at": a.approved_at.isoformat() if a.approved_at else None,
            "return_to_work_duty_type": a.return_to_work_duty_type.value if a.return_to_work_duty_type else None,
            "return_to_work_date": a.return_to_work_date.isoformat() if a.return_to_work_date else None,
            "clinical_notes": a.clinical_notes,
            "clinical_notes_updated_at": (
                a.clinical_notes_updated_at.isoformat() if a.clinical_notes_updated_at else None
            ),
        }


class StatusChangeInputSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=CaseStatus.choices)
    # Left as free text: the state machine owns the duty type/date rules.
    return_to_work_duty_type = serializers.CharField(required=False, allow_blank=True)
    return_to_work_date = serializers.CharField(required=False, allow_blank=True)


class ClinicalNotesInputSerializer(serializers.Serializer):
    clinical_notes = serializers.CharField(allow_blank=True, trim_whitespace=False)


class CloseInputSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=500)


class AvailableTransitionsSerializer(serializers.Serializer):
    case_id = serializers.UUIDField()
    current = serializers.CharField()
    available = serializers.ListField(child=serializers.CharField())
    has_active_rehab_plan = serializers.BooleanField()


class CaseHistoryEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = AuditEvent
        fields = ["id", "event_code", "actor_id", "occurred_at", "metadata"]
        read_only_fields = fields
