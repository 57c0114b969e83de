# whs_core/incidents/tests/test_adapters.py
"""Django-backed implementations of the engine's collaborator ports."""
import uuid
from datetime import date, time

import pytest
from django.core.files.storage import default_storage

from whs_core.audit.models import AuditEvent
from whs_core.audit.selectors import list_audit_events
from whs_core.audit.services import AuditService
from whs_core.cases.ports import IncidentRecord, MediaUpload, NotificationMessage
from whs_core.incidents.media import MediaRejected, StorageMediaStore
from whs_core.incidents.services import IncidentService
from whs_core.notifications.models import Notification
from whs_core.notifications.services import NotificationService
from whs_core.rehab.models import RehabilitationPlan, RehabPlanStatus
from whs_core.rehab.selectors import RehabPlanSelectors
from whs_core.schedules.models import WorkSchedule
from whs_core.schedules.services import ScheduleService
from whs_core.teams.models import Team
from whs_core.teams.selectors import TeamSelectors

pytestmark = pytest.mark.django_db


def test_team_selectors_resolve_routing(team, subject_id, supervisor_id, lead_id):
    routing = TeamSelectors.resolve_team(subject_id=subject_id)
    assert routing.team_id == team.id
    assert routing.team_name == "Warehouse A"
    assert routing.supervisor_id == supervisor_id
    assert routing.lead_id == lead_id

    assert TeamSelectors.resolve_team(subject_id=uuid.uuid4()) is None


def test_team_without_leaders(db):
    team = Team.objects.create(name="Night shift")
    sid = uuid.uuid4()
    team.members.create(subject_id=sid)

    routing = TeamSelectors.resolve_team(subject_id=sid)
    assert routing.supervisor_id is None
    assert routing.lead_id is None


def test_schedule_service_counts_only_active_rows(team, subject_id):
    for active in (True, True, False):
        WorkSchedule.objects.create(
            worker_id=subject_id,
            team_id=team.id,
            scheduled_date=date(2024, 6, 3),
            start_time=time(8, 0),
            end_time=time(16, 0),
            is_active=active,
        )

    assert ScheduleService.deactivate_all(subject_id=subject_id) == 2
    assert ScheduleService.deactivate_all(subject_id=subject_id) == 0

    assert ScheduleService.reactivate_all(subject_id=subject_id) == 3
    assert WorkSchedule.objects.filter(worker_id=subject_id, is_active=False).count() == 0


def test_notification_service_persists_messages(db):
    created = NotificationService.enqueue(
        messages=[
            NotificationMessage(recipient_id="u-1", kind="incident_reported", title="t", message="m", data={"a": 1}),
        ]
    )
    assert len(created) == 1
    row = Notification.objects.get()
    assert row.recipient_id == "u-1"
    assert row.data == {"a": 1}
    assert row.is_read is False


def test_rehab_selector_sees_only_active_plans(case):
    assert RehabPlanSelectors.has_active_plan(case_id=case.id) is False

    RehabilitationPlan.objects.create(case=case, title="Old", status=RehabPlanStatus.CANCELLED, start_date=date(2024, 1, 1))
    assert RehabPlanSelectors.has_active_plan(case_id=case.id) is False

    RehabilitationPlan.objects.create(case=case, title="Current", start_date=date(2024, 3, 1))
    assert RehabPlanSelectors.has_active_plan(case_id=case.id) is True


def test_incident_service_create(team, subject_id):
    record = IncidentService.create(
        incident=IncidentRecord(
            id=None,
            subject_id=subject_id,
            team_id=team.id,
            incident_type="accident",
            incident_date=date(2024, 6, 1),
            description="Vehicle reversed into bollard",
            severity="medium",
            ai_analysis={"risk": "moderate"},
            reported_by_id="9",
        )
    )
    assert record.id is not None
    assert record.location == ""
    assert record.ai_analysis == {"risk": "moderate"}


def test_storage_media_store_saves_and_checks(subject_id):
    ref = StorageMediaStore.save(
        subject_id=subject_id,
        upload=MediaUpload(filename="x.jpg", content=b"\xff\xd8\xff" + b"0" * 10, content_type="image/jpeg"),
    )
    assert ref.startswith(f"incidents/{subject_id}/")
    assert default_storage.exists(ref)

    with pytest.raises(MediaRejected):
        StorageMediaStore.save(
            subject_id=subject_id,
            upload=MediaUpload(filename="x.svg", content=b"<svg/>", content_type="image/svg+xml"),
        )


def test_media_size_limit_comes_from_settings(settings, subject_id):
    settings.WHS_MEDIA_MAX_BYTES = 10
    with pytest.raises(MediaRejected):
        StorageMediaStore.save(
            subject_id=subject_id,
            upload=MediaUpload(filename="x.png", content=b"0" * 11, content_type="image/png"),
        )


def test_audit_service_and_selector(case):
    record = AuditService.log(
        event_code="case.status_changed",
        entity_type="Case",
        entity_id=case.id,
        actor_id="42",
        metadata={"from": "new", "to": "triaged"},
    )
    assert record.actor_id == "42"
    assert AuditEvent.objects.count() == 1

    events = list(list_audit_events(entity_type="Case", entity_id=case.id, event_code="case.status_changed"))
    assert len(events) == 1
    assert events[0].metadata == {"from": "new", "to": "triaged"}
    assert list(list_audit_events(event_code="case.closed_administratively")) == []
