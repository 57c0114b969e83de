# whs_core/audit/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from whs_core.audit.models import AuditEvent

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditRecord:
    event_code: str
    entity_type: str
    entity_id: UUID
    actor_id: str | None
    occurred_at: datetime
    metadata: Dict[str, Any] = field(default_factory=dict)


class AuditService:
    """
    Durable AuditSink for the case engine. Rows are append-only; callers treat
    a failure here as non-fatal and log it themselves.
    """

    @staticmethod
    def log(
        *,
        event_code: str,
        entity_type: str,
        entity_id: UUID,
        actor_id: str | None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditRecord:
        event = AuditEvent.objects.create(
            event_code=event_code,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id or None,
            metadata=dict(metadata or {}),
        )
        log.info("audit %s %s=%s actor=%s", event_code, entity_type, entity_id, actor_id or "-")

        return AuditRecord(
            event_code=event.event_code,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            actor_id=event.actor_id,
            occurred_at=event.occurred_at,
            metadata=event.metadata,
        )
