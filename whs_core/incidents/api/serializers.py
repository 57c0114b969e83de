# whs_core/incidents/api/serializers.py
from __future__ import annotations

from rest_framework import serializers


class IncidentReportInputSerializer(serializers.Serializer):
    """
    Transport-level shape only. Kind/severity rules live in
    intake.validate_report so every caller gets the same answers.
    """
    subject_id = serializers.UUIDField()
    kind = serializers.CharField(max_length=32)
    incident_date = serializers.DateField()
    description = serializers.CharField()
    location = serializers.CharField(required=False, allow_blank=True, max_length=255)
    severity = serializers.CharField(required=False, allow_blank=True, max_length=16)
    photo = serializers.FileField(required=False, allow_null=True)
    ai_analysis = serializers.JSONField(required=False, allow_null=True)


class StepOutcomeSerializer(serializers.Serializer):
    name = serializers.CharField()
    required = serializers.BooleanField()
    ok = serializers.BooleanField()
    skipped = serializers.BooleanField()
    detail = serializers.CharField(allow_blank=True)


class IntakeResultSerializer(serializers.Serializer):
    case_id = serializers.UUIDField()
    case_number = serializers.CharField()
    status = serializers.CharField()
    incident_id = serializers.UUIDField(allow_null=True)
    photo_ref = serializers.CharField(allow_null=True)
    schedules_deactivated = serializers.IntegerField()
    notifications_sent = serializers.IntegerField()
    steps = StepOutcomeSerializer(many=True)


class EligibilitySerializer(serializers.Serializer):
    can_report = serializers.BooleanField()
    open_case_id = serializers.UUIDField(allow_null=True)
    open_case_status = serializers.CharField(allow_null=True)
