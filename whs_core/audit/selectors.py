# whs_core/audit/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from whs_core.audit.models import AuditEvent

CASE_ENTITY = "Case"


def list_audit_events(
    *,
    entity_type: str | None = None,
    entity_id: UUID | None = None,
    event_code: str | None = None,
) -> QuerySet[AuditEvent]:
    """Newest first; every filter is optional."""
    filters = {
        "entity_type": entity_type,
        "entity_id": entity_id,
        "event_code": event_code,
    }
    return AuditEvent.objects.filter(**{k: v for k, v in filters.items() if v}).order_by("-occurred_at")


def case_history(*, case_id: UUID) -> QuerySet[AuditEvent]:
    """Engine writes for one case, oldest first (intake, status changes, closure)."""
    return AuditEvent.objects.filter(entity_type=CASE_ENTITY, entity_id=case_id).order_by("occurred_at", "created_at")
