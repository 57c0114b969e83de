# whs_core/cases/selectors.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from django.db.models import QuerySet

from whs_core.cases.constants import CaseStatus
from whs_core.cases.derivation import derive_status
from whs_core.cases.models import Case


class CaseSelectors:
    @staticmethod
    def base_queryset() -> QuerySet[Case]:
        return Case.objects.all().order_by("-created_at")

    @staticmethod
    def with_status(qs: QuerySet[Case], *, status: Optional[str]) -> list[Case]:
        """
        Filter on the derived status. Runs in Python because the canonical
        value may only exist inside the annotation blob.
        """
        if not status:
            return list(qs)
        try:
            wanted = CaseStatus(status.strip().lower())
        except ValueError:
            return []
        return [c for c in qs if derive_status(c) == wanted]

    @staticmethod
    def list_cases(
        *,
        subject_id: UUID | None = None,
        team_id: UUID | None = None,
        status: str | None = None,
    ) -> list[Case]:
        qs = CaseSelectors.base_queryset()
        if subject_id:
            qs = qs.filter(subject_id=subject_id)
        if team_id:
            qs = qs.filter(team_id=team_id)
        return CaseSelectors.with_status(qs, status=status)
