# whs_core/api/wiring.py
"""
Composition root: the only place that binds engine ports to the Django
adapters. Views call these; tests build the engine with fakes instead.
"""
from __future__ import annotations

from whs_core.audit.services import AuditService
from whs_core.cases.services import CaseLifecycleService
from whs_core.cases.stores import DjangoCaseStore
from whs_core.incidents.intake import IncidentIntakeWorkflow
from whs_core.incidents.media import StorageMediaStore
from whs_core.incidents.services import IncidentService
from whs_core.notifications.services import NotificationService
from whs_core.rehab.selectors import RehabPlanSelectors
from whs_core.schedules.services import ScheduleService
from whs_core.teams.selectors import TeamSelectors


def build_intake_workflow() -> IncidentIntakeWorkflow:
    return IncidentIntakeWorkflow(
        cases=DjangoCaseStore,
        incidents=IncidentService,
        directory=TeamSelectors,
        schedules=ScheduleService,
        notifications=NotificationService,
        media=StorageMediaStore,
    )


def build_case_service() -> CaseLifecycleService:
    return CaseLifecycleService(
        cases=DjangoCaseStore,
        rehab_plans=RehabPlanSelectors,
        audit=AuditService,
        notifications=NotificationService,
        directory=TeamSelectors,
        schedules=ScheduleService,
    )
