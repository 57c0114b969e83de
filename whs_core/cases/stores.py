# whs_core/cases/stores.py
from __future__ import annotations

from typing import Iterable, Optional
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from whs_core.cases.derivation import derive_status
from whs_core.cases.models import Case
from whs_core.cases.ports import CaseRecord, CaseUpdate


class DjangoCaseStore:
    """
    CaseStore backed by the cases_case table.

    Status lives partly in the annotation blob, so "find a case not in these
    statuses" is evaluated through the derivation engine, not in SQL.
    """

    @staticmethod
    def get(*, case_id: UUID) -> Optional[CaseRecord]:
        case = Case.objects.filter(id=case_id).first()
        return case.to_record() if case else None

    @staticmethod
    def find(*, subject_id: UUID, status_not_in: Iterable[str]) -> Optional[CaseRecord]:
        excluded = {str(s) for s in status_not_in}
        for case in Case.objects.filter(subject_id=subject_id).order_by("-created_at"):
            if derive_status(case).value not in excluded:
                return case.to_record()
        return None

    @staticmethod
    @transaction.atomic
    def create(*, case: CaseRecord) -> CaseRecord:
        fields = dict(
            subject_id=case.subject_id,
            team_id=case.team_id,
            kind=case.kind,
            reason=case.reason,
            opened_on=case.opened_on,
            closed_on=case.closed_on,
            is_active=case.is_active,
            status=case.status,
            annotation=case.annotation or "",
            closed_at=case.closed_at,
            incident_id=case.incident_id,
            created_by_id=case.created_by_id,
        )
        if case.id is not None:
            fields["id"] = case.id
        return Case.objects.create(**fields).to_record()

    @staticmethod
    def update(*, case_id: UUID, changes: CaseUpdate) -> None:
        """
        One UPDATE ... WHERE id = %s. Columns left as None are not touched.
        """
        values = {
            name: getattr(changes, name)
            for name in ("status", "annotation", "is_active", "closed_on", "closed_at")
            if getattr(changes, name) is not None
        }
        if not values:
            return
        # .update() bypasses auto_now
        values["updated_at"] = timezone.now()
        Case.objects.filter(id=case_id).update(**values)
