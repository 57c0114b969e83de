# whs_core/rehab/selectors.py
from __future__ import annotations

from uuid import UUID

from whs_core.rehab.models import RehabilitationPlan, RehabPlanStatus


class RehabPlanSelectors:
    @staticmethod
    def has_active_plan(*, case_id: UUID) -> bool:
        return RehabilitationPlan.objects.filter(case_id=case_id, status=RehabPlanStatus.ACTIVE).exists()
