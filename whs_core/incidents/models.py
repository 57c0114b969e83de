# whs_core/incidents/models.py
from django.db import models

from whs_core.cases.constants import Severity
from whs_core.cases.ports import IncidentRecord
from whs_core.common.models import UUIDModel


class Incident(UUIDModel):
    """
    Immutable factual record of what happened.
    Correlated with its Case by Case.incident_id (may be missing when the
    incident write failed during intake).
    """
    subject_id = models.UUIDField(db_index=True)
    team_id = models.UUIDField(db_index=True)

    incident_type = models.CharField(max_length=32)
    incident_date = models.DateField(db_index=True)
    description = models.TextField()
    location = models.CharField(max_length=255, blank=True, default="")
    severity = models.CharField(max_length=16, choices=Severity.choices, default=Severity.MEDIUM)

    photo_ref = models.CharField(max_length=512, null=True, blank=True)
    ai_analysis = models.JSONField(null=True, blank=True)

    reported_by_id = models.CharField(max_length=64, blank=True, default="")

    class Meta:
        db_table = "incidents_incident"
        indexes = [
            models.Index(fields=["subject_id", "incident_date"]),
        ]

    def to_record(self) -> IncidentRecord:
        return IncidentRecord(
            id=self.id,
            subject_id=self.subject_id,
            team_id=self.team_id,
            incident_type=self.incident_type,
            incident_date=self.incident_date,
            description=self.description,
            severity=self.severity,
            location=self.location,
            photo_ref=self.photo_ref,
            ai_analysis=self.ai_analysis,
            reported_by_id=self.reported_by_id,
        )
