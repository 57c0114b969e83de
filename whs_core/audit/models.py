# whs_core/audit/models.py
from django.db import models

from whs_core.common.models import UUIDModel


class AuditEvent(UUIDModel):
    """
    Append-only trail of engine writes: intake, status changes,
    clinical-notes edits and administrative closure.
    """
    event_code = models.CharField(max_length=128, db_index=True)  # "case.status_changed"
    entity_type = models.CharField(max_length=64)  # "Case", "Incident"
    entity_id = models.UUIDField()
    actor_id = models.CharField(max_length=64, null=True, blank=True)
    occurred_at = models.DateTimeField(auto_now_add=True, db_index=True)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "audit_event"
        ordering = ["-occurred_at"]
        indexes = [
            models.Index(fields=["entity_type", "entity_id", "occurred_at"], name="audit_entity_timeline_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.event_code} {self.entity_type}:{self.entity_id}"
