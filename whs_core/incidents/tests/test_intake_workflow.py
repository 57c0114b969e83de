# whs_core/incidents/tests/test_intake_workflow.py
import json
import logging
import uuid
from datetime import date

import pytest

from whs_core.cases.codec import decode
from whs_core.cases.constants import CaseStatus
from whs_core.cases.derivation import derive_status
from whs_core.cases.ports import Actor, MediaUpload, TeamRouting
from whs_core.incidents.exceptions import (
    DuplicateOpenCase,
    IntakeDependencyError,
    IntakeValidationError,
    RoutingContextMissing,
)
from whs_core.incidents.intake import IncidentIntakeWorkflow, IncidentReport, validate_report
from whs_core.tests.fakes import (
    FakeCaseStore,
    FakeIncidentStore,
    FakeMediaStore,
    FakeNotificationSink,
    FakeScheduleRegistry,
    FakeTeamDirectory,
    make_case,
)

SUBJECT = uuid.uuid4()
TEAM = uuid.uuid4()
SUPERVISOR = uuid.uuid4()
LEAD = uuid.uuid4()
WORKER = Actor(id=str(SUBJECT), name="Alex Worker")

PNG = MediaUpload(filename="wrist.png", content=b"\x89PNG" + b"0" * 64, content_type="image/png")


def _report(**overrides):
    fields = dict(
        subject_id=SUBJECT,
        kind="injury",
        incident_date=date(2024, 6, 1),
        description="Cut hand on box cutter",
        reported_by=WORKER,
        location="Dock 3",
    )
    fields.update(overrides)
    return IncidentReport(**fields)


def _routing(**overrides):
    fields = dict(team_id=TEAM, team_name="Dock crew", supervisor_id=SUPERVISOR, lead_id=LEAD)
    fields.update(overrides)
    return TeamRouting(**fields)


def _workflow(
    *,
    cases=None,
    incidents=None,
    routing="default",
    schedules=None,
    sink=None,
    media=None,
):
    return IncidentIntakeWorkflow(
        cases=cases if cases is not None else FakeCaseStore(),
        incidents=incidents or FakeIncidentStore(),
        directory=FakeTeamDirectory(_routing() if routing == "default" else routing),
        schedules=schedules or FakeScheduleRegistry(count=2),
        notifications=sink or FakeNotificationSink(),
        media=media,
    )


def test_happy_path_records_case_incident_and_side_effects():
    cases, incidents, sink = FakeCaseStore(), FakeIncidentStore(), FakeNotificationSink()
    schedules = FakeScheduleRegistry(count=2)
    wf = _workflow(cases=cases, incidents=incidents, sink=sink, schedules=schedules)

    result = wf.run(_report())

    case = result.case
    assert derive_status(case) == CaseStatus.NEW
    assert case.team_id == TEAM
    assert case.is_active is True
    assert case.opened_on == date(2024, 6, 1)
    assert case.incident_id == result.incident.id
    assert case.status == "ACTIVE_LEGACY"
    assert decode(case.annotation).status_updated_at is not None

    assert incidents.created[0].severity == "high"  # injury default
    assert result.schedules_deactivated == 2
    assert schedules.calls == [SUBJECT]

    assert result.notifications_sent == 3
    assert sink.recipients() == [str(SUPERVISOR), str(LEAD), str(SUBJECT)]
    assert [s.name for s in result.steps] == [
        "check_eligibility",
        "resolve_routing",
        "attach_media",
        "create_incident",
        "create_case",
        "deactivate_schedules",
        "notify",
    ]
    assert all(s.ok for s in result.steps if s.name != "attach_media")
    assert result.step("attach_media").skipped is True


def test_existing_triaged_case_blocks_and_writes_nothing():
    existing = make_case(subject_id=SUBJECT, annotation=json.dumps({"case_status": "triaged"}))
    cases, incidents, sink = FakeCaseStore([existing]), FakeIncidentStore(), FakeNotificationSink()
    schedules = FakeScheduleRegistry()

    with pytest.raises(DuplicateOpenCase) as exc:
        _workflow(cases=cases, incidents=incidents, sink=sink, schedules=schedules).run(_report())

    assert exc.value.details == {"case_id": str(existing.id)}
    assert cases.writes == 0
    assert incidents.created == []
    assert schedules.calls == []
    assert sink.attempts == 0


@pytest.mark.parametrize(
    "existing",
    [
        {"annotation": json.dumps({"case_status": "return_to_work"})},
        {"annotation": json.dumps({"case_status": "closed"})},
        {"status": "CLOSED"},
        {"annotation": json.dumps({"case_status": "in_rehab"}), "closed_at": "2024-01-01T00:00:00Z"},
    ],
)
def test_settled_cases_do_not_block(existing):
    cases = FakeCaseStore([make_case(subject_id=SUBJECT, **existing)])
    result = _workflow(cases=cases).run(_report())
    assert len(cases.created) == 1
    assert result.case.id != next(iter(cases.rows))


def test_no_team_fails_without_writes():
    cases, incidents = FakeCaseStore(), FakeIncidentStore()

    with pytest.raises(RoutingContextMissing):
        _workflow(cases=cases, incidents=incidents, routing=None).run(_report())

    assert cases.writes == 0
    assert incidents.created == []


def test_notification_sink_always_failing_still_succeeds(caplog):
    cases = FakeCaseStore()
    with caplog.at_level(logging.WARNING, logger="whs_core.incidents.intake"):
        result = _workflow(cases=cases, sink=FakeNotificationSink(fail_all=True)).run(_report())

    assert len(cases.created) == 1
    assert result.notifications_sent == 0
    assert result.step("notify").ok is False
    assert any(r.levelno == logging.ERROR and "all intake notifications failed" in r.message for r in caplog.records)


def test_partial_notification_delivery_is_accepted():
    sink = FakeNotificationSink(fail_for=[str(LEAD)])
    result = _workflow(sink=sink).run(_report())

    assert result.notifications_sent == 2
    assert result.step("notify").detail == "2/3 delivered"
    assert sink.recipients() == [str(SUPERVISOR), str(SUBJECT)]


def test_lead_same_as_supervisor_is_notified_once():
    sink = FakeNotificationSink()
    _workflow(routing=_routing(lead_id=SUPERVISOR), sink=sink).run(_report())
    assert sink.recipients() == [str(SUPERVISOR), str(SUBJECT)]


def test_team_without_supervisor_still_confirms_to_submitter():
    sink = FakeNotificationSink()
    result = _workflow(routing=_routing(supervisor_id=None, lead_id=None), sink=sink).run(_report())
    assert result.notifications_sent == 1
    assert sink.delivered[0].kind == "incident_submitted"


@pytest.mark.parametrize(
    "incidents",
    [FakeIncidentStore(returns_none=True), FakeIncidentStore(error=ConnectionError("incident table locked"))],
)
def test_incident_failure_still_opens_case(incidents):
    cases = FakeCaseStore()
    result = _workflow(cases=cases, incidents=incidents).run(_report())

    assert result.incident is None
    assert result.case.incident_id is None
    assert result.step("create_incident").ok is False
    assert len(cases.created) == 1


def test_case_write_failure_is_a_dependency_error(caplog):
    with caplog.at_level(logging.ERROR, logger="whs_core.incidents.intake"):
        with pytest.raises(IntakeDependencyError) as exc:
            _workflow(cases=FakeCaseStore(fail_create=True)).run(_report())

    assert exc.value.step == "create_case"
    assert isinstance(exc.value.__cause__, ConnectionError)
    assert "unreachable" not in exc.value.message
    assert any(r.exc_info for r in caplog.records)


def test_team_lookup_crash_is_a_dependency_error():
    wf = IncidentIntakeWorkflow(
        cases=FakeCaseStore(),
        incidents=FakeIncidentStore(),
        directory=FakeTeamDirectory(error=TimeoutError("directory timeout")),
        schedules=FakeScheduleRegistry(),
        notifications=FakeNotificationSink(),
    )
    with pytest.raises(IntakeDependencyError) as exc:
        wf.run(_report())
    assert exc.value.step == "resolve_routing"


def test_schedule_failure_is_soft():
    result = _workflow(schedules=FakeScheduleRegistry(error=RuntimeError("boom"))).run(_report())
    assert result.schedules_deactivated == 0
    assert result.step("deactivate_schedules").ok is False
    assert result.notifications_sent == 3


def test_photo_is_stored_and_linked():
    media, incidents = FakeMediaStore(), FakeIncidentStore()
    result = _workflow(media=media, incidents=incidents).run(_report(photo=PNG))

    assert result.photo_ref == f"incidents/{SUBJECT}/wrist.png"
    assert incidents.created[0].photo_ref == result.photo_ref


@pytest.mark.parametrize(
    "upload",
    [
        MediaUpload(filename="notes.pdf", content=b"%PDF-1.4", content_type="application/pdf"),
        MediaUpload(filename="huge.jpg", content=b"0" * (5 * 1024 * 1024 + 1), content_type="image/jpeg"),
        MediaUpload(filename="empty.png", content=b"", content_type="image/png"),
    ],
)
def test_rejected_photo_is_skipped(upload):
    media, cases = FakeMediaStore(), FakeCaseStore()
    result = _workflow(media=media, cases=cases).run(_report(photo=upload))

    assert media.saved == {}
    assert result.photo_ref is None
    assert result.step("attach_media").skipped is True
    assert len(cases.created) == 1


def test_media_store_failure_is_soft():
    result = _workflow(media=FakeMediaStore(error=OSError("bucket gone"))).run(_report(photo=PNG))
    assert result.photo_ref is None
    assert result.step("attach_media").ok is False
    assert result.incident is not None


def test_validation_runs_before_any_step():
    cases = FakeCaseStore()
    with pytest.raises(IntakeValidationError) as exc:
        _workflow(cases=cases).run(_report(kind="meteor", description="  ", severity="apocalyptic"))

    assert set(exc.value.details) == {"kind", "description", "severity"}
    assert cases.writes == 0


@pytest.mark.parametrize(
    "kind, expected",
    [("injury", "high"), ("accident", "high"), ("medical_leave", "medium"), ("transfer", "low"), ("other", "medium")],
)
def test_severity_defaults_from_kind(kind, expected):
    assert validate_report(_report(kind=kind)).severity == expected


def test_explicit_severity_wins():
    report = validate_report(_report(kind="Transfer", severity="CRITICAL"))
    assert report.kind == "transfer"
    assert report.severity == "critical"


def test_check_eligibility_reports_open_case():
    open_case = make_case(subject_id=SUBJECT, status="IN_REHAB_LEGACY")
    wf = _workflow(cases=FakeCaseStore([open_case]))

    assert wf.check_eligibility(subject_id=SUBJECT) == open_case
    assert wf.check_eligibility(subject_id=uuid.uuid4()) is None
