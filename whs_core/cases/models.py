# whs_core/cases/models.py
from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from django.db import models

from whs_core.cases.constants import CaseKind
from whs_core.cases.ports import CaseRecord
from whs_core.common.models import UUIDModel


def format_case_number(case_id: Optional[UUID], created_at: Optional[datetime]) -> str:
    """
    Human-facing number: CASE-YYYYMMDD-HHMMSS-XXXX
    (creation timestamp + first four hex chars of the id).
    """
    stamp = created_at.strftime("%Y%m%d-%H%M%S") if created_at else "00000000-000000"
    prefix = case_id.hex[:4].upper() if case_id else "0000"
    return f"CASE-{stamp}-{prefix}"


class Case(UUIDModel):
    """
    Lifecycle record for a worker injury/incident (historically "exception").

    Status signals are deliberately redundant and may disagree:
      - annotation (JSON blob with case_status)  <- canonical when present
      - closed_at (administrative close marker)  <- overrides everything
      - status (legacy coarse column)            <- fallback only
      - is_active / opened_on / closed_on        <- scheduling window
    Always read the status through cases.derivation.derive().
    """
    subject_id = models.UUIDField(db_index=True)
    team_id = models.UUIDField(db_index=True)

    kind = models.CharField(max_length=32, choices=CaseKind.choices, default=CaseKind.INJURY)
    reason = models.TextField(blank=True, default="")

    opened_on = models.DateField()
    closed_on = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    status = models.CharField(max_length=32, blank=True, default="")
    annotation = models.TextField(blank=True, default="")
    closed_at = models.DateTimeField(null=True, blank=True)

    # Loose link (no FK): the incident write is best-effort during intake.
    incident_id = models.UUIDField(null=True, blank=True, db_index=True)
    created_by_id = models.CharField(max_length=64, blank=True, default="")

    class Meta:
        db_table = "cases_case"
        indexes = [
            models.Index(fields=["subject_id", "is_active"]),
            models.Index(fields=["team_id", "is_active"]),
        ]

    def __str__(self) -> str:
        return self.case_number

    @property
    def case_number(self) -> str:
        return format_case_number(self.id, self.created_at)

    def to_record(self) -> CaseRecord:
        return CaseRecord(
            id=self.id,
            subject_id=self.subject_id,
            team_id=self.team_id,
            kind=self.kind,
            opened_on=self.opened_on,
            closed_on=self.closed_on,
            is_active=self.is_active,
            status=self.status,
            annotation=self.annotation,
            closed_at=self.closed_at,
            incident_id=self.incident_id,
            reason=self.reason,
            created_by_id=self.created_by_id,
            created_at=self.created_at,
        )
