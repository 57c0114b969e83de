# whs_core/incidents/services.py
from __future__ import annotations

from django.db import transaction

from whs_core.cases.ports import IncidentRecord
from whs_core.incidents.models import Incident


class IncidentService:
    @staticmethod
    @transaction.atomic
    def create(*, incident: IncidentRecord) -> IncidentRecord:
        fields = dict(
            subject_id=incident.subject_id,
            team_id=incident.team_id,
            incident_type=incident.incident_type,
            incident_date=incident.incident_date,
            description=incident.description,
            location=incident.location or "",
            severity=incident.severity,
            photo_ref=incident.photo_ref,
            ai_analysis=incident.ai_analysis,
            reported_by_id=incident.reported_by_id,
        )
        if incident.id is not None:
            fields["id"] = incident.id
        return Incident.objects.create(**fields).to_record()
