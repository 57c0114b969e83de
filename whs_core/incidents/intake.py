# whs_core/incidents/intake.py
"""
Incident intake: turn a worker's report into an Incident + a NEW Case.

The workflow is an ordered list of steps, each flagged required or soft.
Required steps front-load every hard failure (duplicate case, missing team,
case write). Soft steps after them only enrich the result; their failures
are logged and recorded in IntakeResult.steps, never raised.

Known race: the eligibility check and the case write are not serialised,
so two concurrent reports for one worker can both pass step 1.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Callable, Optional
from uuid import UUID

from whs_core.cases.constants import DEFAULT_SEVERITY_BY_KIND, SETTLED_STATUSES, CaseKind, Severity
from whs_core.cases.exceptions import CaseRuleError
from whs_core.cases.lifecycle import initial_outcome
from whs_core.cases.ports import (
    Actor,
    CaseRecord,
    CaseStore,
    IncidentRecord,
    IncidentStore,
    MediaStore,
    MediaUpload,
    NotificationMessage,
    NotificationSink,
    ScheduleRegistry,
    TeamDirectory,
    TeamRouting,
)
from whs_core.incidents.exceptions import (
    DuplicateOpenCase,
    IntakeDependencyError,
    IntakeValidationError,
    RoutingContextMissing,
)
from whs_core.incidents.media import check_upload

log = logging.getLogger(__name__)

DESCRIPTION_MAX_LENGTH = 5000


@dataclass(frozen=True)
class IncidentReport:
    subject_id: Optional[UUID]
    kind: str
    incident_date: Optional[date]
    description: str
    reported_by: Actor
    location: str = ""
    severity: Optional[str] = None
    photo: Optional[MediaUpload] = None
    ai_analysis: Optional[dict] = None


def validate_report(report: IncidentReport) -> IncidentReport:
    """
    Reject bad input before anything runs. Returns the report with kind and
    severity normalised (severity defaults from the kind).
    """
    errors: dict[str, list[str]] = {}

    if not report.subject_id:
        errors.setdefault("subject_id", []).append("This field is required.")
    if not report.incident_date:
        errors.setdefault("incident_date", []).append("This field is required.")

    description = (report.description or "").strip()
    if not description:
        errors.setdefault("description", []).append("This field is required.")
    elif len(description) > DESCRIPTION_MAX_LENGTH:
        errors.setdefault("description", []).append(
            f"Ensure this field has no more than {DESCRIPTION_MAX_LENGTH} characters."
        )

    kind = (report.kind or "").strip().lower()
    if not kind:
        errors.setdefault("kind", []).append("This field is required.")
    elif kind not in CaseKind.values:
        errors.setdefault("kind", []).append(f"Must be one of: {', '.join(CaseKind.values)}.")

    severity = (report.severity or "").strip().lower()
    if severity and severity not in Severity.values:
        errors.setdefault("severity", []).append(f"Must be one of: {', '.join(Severity.values)}.")

    if errors:
        raise IntakeValidationError("Invalid incident report.", errors)

    if not severity:
        severity = DEFAULT_SEVERITY_BY_KIND[CaseKind(kind)].value
    return replace(
        report,
        kind=kind,
        severity=severity,
        description=description,
        location=(report.location or "").strip(),
    )


@dataclass
class IntakeContext:
    """Mutable scratch state threaded through the steps of one run."""
    report: IncidentReport
    routing: Optional[TeamRouting] = None
    photo_ref: Optional[str] = None
    incident: Optional[IncidentRecord] = None
    case: Optional[CaseRecord] = None
    schedules_deactivated: int = 0
    notifications_sent: int = 0
    notifications_attempted: int = 0


@dataclass(frozen=True)
class StepOutcome:
    name: str
    required: bool
    ok: bool
    skipped: bool = False
    detail: str = ""


@dataclass(frozen=True)
class IntakeStep:
    name: str
    required: bool
    run: Callable[[IntakeContext], Optional[StepOutcome]]


@dataclass(frozen=True)
class IntakeResult:
    case: CaseRecord
    incident: Optional[IncidentRecord]
    photo_ref: Optional[str]
    schedules_deactivated: int
    notifications_sent: int
    steps: tuple[StepOutcome, ...] = field(default_factory=tuple)

    def step(self, name: str) -> Optional[StepOutcome]:
        return next((s for s in self.steps if s.name == name), None)


class IncidentIntakeWorkflow:
    def __init__(
        self,
        *,
        cases: CaseStore,
        incidents: IncidentStore,
        directory: TeamDirectory,
        schedules: ScheduleRegistry,
        notifications: NotificationSink,
        media: Optional[MediaStore] = None,
    ):
        self.cases = cases
        self.incidents = incidents
        self.directory = directory
        self.schedules = schedules
        self.notifications = notifications
        self.media = media

    def steps(self) -> list[IntakeStep]:
        return [
            IntakeStep("check_eligibility", True, self._check_eligibility),
            IntakeStep("resolve_routing", True, self._resolve_routing),
            IntakeStep("attach_media", False, self._attach_media),
            IntakeStep("create_incident", False, self._create_incident),
            IntakeStep("create_case", True, self._create_case),
            IntakeStep("deactivate_schedules", False, self._deactivate_schedules),
            IntakeStep("notify", False, self._notify),
        ]

    # -------------------------
    # Public API
    # -------------------------
    def check_eligibility(self, *, subject_id: UUID) -> Optional[CaseRecord]:
        """The worker's open case, or None when a new report is allowed."""
        return self.cases.find(
            subject_id=subject_id,
            status_not_in=[s.value for s in SETTLED_STATUSES],
        )

    def run(self, report: IncidentReport) -> IntakeResult:
        ctx = IntakeContext(report=validate_report(report))
        outcomes: list[StepOutcome] = []

        for step in self.steps():
            try:
                outcome = step.run(ctx) or StepOutcome(step.name, step.required, ok=True)
            except CaseRuleError as exc:
                if step.required:
                    log.info(
                        "intake rejected step=%s subject_id=%s code=%s",
                        step.name,
                        ctx.report.subject_id,
                        exc.code,
                    )
                    raise
                log.warning("intake step skipped step=%s reason=%s", step.name, exc.message)
                outcome = StepOutcome(step.name, False, ok=False, detail=exc.message)
            except Exception as exc:
                if step.required:
                    log.exception("intake step failed step=%s subject_id=%s", step.name, ctx.report.subject_id)
                    raise IntakeDependencyError(step.name) from exc
                log.warning(
                    "intake step failed step=%s subject_id=%s",
                    step.name,
                    ctx.report.subject_id,
                    exc_info=True,
                )
                outcome = StepOutcome(step.name, False, ok=False, detail=str(exc))
            outcomes.append(outcome)

        log.info(
            "incident intake complete case_id=%s incident_id=%s schedules=%d notifications=%d/%d",
            ctx.case.id,
            ctx.incident.id if ctx.incident else None,
            ctx.schedules_deactivated,
            ctx.notifications_sent,
            ctx.notifications_attempted,
        )
        return IntakeResult(
            case=ctx.case,
            incident=ctx.incident,
            photo_ref=ctx.photo_ref,
            schedules_deactivated=ctx.schedules_deactivated,
            notifications_sent=ctx.notifications_sent,
            steps=tuple(outcomes),
        )

    # -------------------------
    # Steps
    # -------------------------
    def _check_eligibility(self, ctx: IntakeContext) -> None:
        existing = self.check_eligibility(subject_id=ctx.report.subject_id)
        if existing is not None:
            raise DuplicateOpenCase(
                "This worker already has an open case. Close it before reporting a new incident.",
                {"case_id": str(existing.id)},
            )

    def _resolve_routing(self, ctx: IntakeContext) -> None:
        routing = self.directory.resolve_team(subject_id=ctx.report.subject_id)
        if routing is None or not routing.team_id:
            raise RoutingContextMissing(
                "Worker is not assigned to a team.",
                {"subject_id": str(ctx.report.subject_id)},
            )
        ctx.routing = routing

    def _attach_media(self, ctx: IntakeContext) -> Optional[StepOutcome]:
        upload = ctx.report.photo
        if upload is None:
            return StepOutcome("attach_media", False, ok=True, skipped=True)
        if self.media is None:
            return StepOutcome("attach_media", False, ok=False, skipped=True, detail="no media store configured")

        try:
            check_upload(upload)
        except ValueError as exc:
            log.warning("photo rejected subject_id=%s reason=%s", ctx.report.subject_id, exc)
            return StepOutcome("attach_media", False, ok=False, skipped=True, detail=str(exc))

        ctx.photo_ref = self.media.save(subject_id=ctx.report.subject_id, upload=upload)
        return None

    def _create_incident(self, ctx: IntakeContext) -> Optional[StepOutcome]:
        report = ctx.report
        created = self.incidents.create(
            incident=IncidentRecord(
                id=None,
                subject_id=report.subject_id,
                team_id=ctx.routing.team_id,
                incident_type=report.kind,
                incident_date=report.incident_date,
                description=report.description,
                severity=report.severity,
                location=report.location,
                photo_ref=ctx.photo_ref,
                ai_analysis=report.ai_analysis,
                reported_by_id=report.reported_by.id,
            )
        )
        if created is None:
            log.warning("incident store returned nothing subject_id=%s", report.subject_id)
            return StepOutcome("create_incident", False, ok=False, detail="incident not recorded")
        ctx.incident = created
        return None

    def _create_case(self, ctx: IntakeContext) -> None:
        report = ctx.report
        initial = initial_outcome()
        ctx.case = self.cases.create(
            case=CaseRecord(
                id=None,
                subject_id=report.subject_id,
                team_id=ctx.routing.team_id,
                kind=report.kind,
                opened_on=report.incident_date,
                is_active=initial.is_active,
                status=initial.legacy_status,
                annotation=initial.encoded_annotation,
                incident_id=ctx.incident.id if ctx.incident else None,
                reason=report.description,
                created_by_id=report.reported_by.id,
            )
        )

    def _deactivate_schedules(self, ctx: IntakeContext) -> StepOutcome:
        count = self.schedules.deactivate_all(subject_id=ctx.report.subject_id)
        ctx.schedules_deactivated = count or 0
        return StepOutcome("deactivate_schedules", False, ok=True, detail=f"{ctx.schedules_deactivated} deactivated")

    def _notify(self, ctx: IntakeContext) -> StepOutcome:
        messages = self._build_notifications(ctx)
        ctx.notifications_attempted = len(messages)

        for message in messages:
            try:
                self.notifications.enqueue(messages=[message])
                ctx.notifications_sent += 1
            except Exception:
                log.warning(
                    "notification failed case_id=%s recipient=%s kind=%s",
                    ctx.case.id,
                    message.recipient_id,
                    message.kind,
                    exc_info=True,
                )

        if messages and ctx.notifications_sent == 0:
            log.error("all intake notifications failed case_id=%s attempted=%d", ctx.case.id, len(messages))
        return StepOutcome(
            "notify",
            False,
            ok=ctx.notifications_sent == len(messages),
            detail=f"{ctx.notifications_sent}/{len(messages)} delivered",
        )

    def _build_notifications(self, ctx: IntakeContext) -> list[NotificationMessage]:
        report = ctx.report
        routing = ctx.routing
        reporter = report.reported_by.display_name
        data: dict[str, Any] = {
            "case_id": str(ctx.case.id),
            "incident_id": str(ctx.incident.id) if ctx.incident else None,
            "subject_id": str(report.subject_id),
            "kind": report.kind,
            "severity": report.severity,
            "incident_date": report.incident_date.isoformat(),
        }
        summary = f"{report.kind.replace('_', ' ').title()} reported by {reporter} ({report.severity})."

        messages: list[NotificationMessage] = []
        if routing.supervisor_id:
            messages.append(
                NotificationMessage(
                    recipient_id=str(routing.supervisor_id),
                    kind="incident_reported",
                    title="New incident reported",
                    message=summary,
                    data=data,
                )
            )
        if routing.lead_id and routing.lead_id != routing.supervisor_id:
            messages.append(
                NotificationMessage(
                    recipient_id=str(routing.lead_id),
                    kind="incident_reported",
                    title="New incident reported",
                    message=summary,
                    data=data,
                )
            )
        messages.append(
            NotificationMessage(
                recipient_id=report.reported_by.id,
                kind="incident_submitted",
                title="Report submitted",
                message="Your incident report has been submitted and a case has been opened.",
                data=data,
            )
        )
        return messages
