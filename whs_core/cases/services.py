# whs_core/cases/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Mapping, Optional
from uuid import UUID

from django.utils import timezone

from whs_core.cases.codec import CLINICAL_NOTES_MAX_LENGTH, Annotation, decode_preserving, encode
from whs_core.cases.constants import CaseStatus
from whs_core.cases.derivation import derive_status
from whs_core.cases.exceptions import CaseNotFound, ClinicalNotesRejected
from whs_core.cases.lifecycle import available_from, transition
from whs_core.cases.ports import (
    Actor,
    AuditSink,
    CaseRecord,
    CaseStore,
    CaseUpdate,
    NotificationMessage,
    NotificationSink,
    RehabPlanOracle,
    ScheduleRegistry,
    TeamDirectory,
)

log = logging.getLogger(__name__)

_SETTLEMENT_TITLES = {
    CaseStatus.RETURN_TO_WORK: "Return to work approved",
    CaseStatus.CLOSED: "Case closed",
}


@dataclass(frozen=True)
class AvailableTransitions:
    case_id: UUID
    current: CaseStatus
    available: frozenset
    has_active_rehab_plan: bool


@dataclass(frozen=True)
class StatusChange:
    case: CaseRecord
    previous: Optional[CaseStatus]
    status: CaseStatus
    annotation: Annotation
    notifications_sent: int = 0


@dataclass(frozen=True)
class AdministrativeClose:
    case: CaseRecord
    already_closed: bool = False
    schedules_reactivated: int = 0


class CaseLifecycleService:
    """
    Application service around the pure state machine.

    Reads the case, asks the rehab oracle, lets `lifecycle.transition`
    decide, then writes the result in a single row update. Audit and
    notifications trail the write and never undo it.
    """

    def __init__(
        self,
        *,
        cases: CaseStore,
        rehab_plans: RehabPlanOracle,
        audit: Optional[AuditSink] = None,
        notifications: Optional[NotificationSink] = None,
        directory: Optional[TeamDirectory] = None,
        schedules: Optional[ScheduleRegistry] = None,
    ):
        self.cases = cases
        self.rehab_plans = rehab_plans
        self.audit = audit
        self.notifications = notifications
        self.directory = directory
        self.schedules = schedules

    def _load(self, case_id: UUID) -> CaseRecord:
        case = self.cases.get(case_id=case_id)
        if case is None:
            raise CaseNotFound("Case not found.", {"case_id": str(case_id)})
        return case

    def available_transitions(self, *, case_id: UUID) -> AvailableTransitions:
        case = self._load(case_id)
        has_plan = self.rehab_plans.has_active_plan(case_id=case.id)
        current = derive_status(case)
        return AvailableTransitions(
            case_id=case.id,
            current=current,
            available=available_from(current, has_active_rehab_plan=has_plan),
            has_active_rehab_plan=has_plan,
        )

    def change_status(
        self,
        *,
        case_id: UUID,
        target: CaseStatus | str,
        actor: Actor,
        details: Optional[Mapping[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> StatusChange:
        case = self._load(case_id)
        has_plan = self.rehab_plans.has_active_plan(case_id=case.id)

        # Guard failures propagate before anything is written.
        outcome = transition(
            case,
            target,
            details,
            has_active_rehab_plan=has_plan,
            actor=actor,
            now=now,
        )

        self.cases.update(
            case_id=case.id,
            changes=CaseUpdate(
                status=outcome.legacy_status,
                annotation=outcome.encoded_annotation,
                is_active=outcome.is_active,
                closed_on=outcome.closed_on,
            ),
        )
        log.info(
            "case status changed case_id=%s from=%s to=%s actor=%s",
            case.id,
            outcome.previous.value if outcome.previous else None,
            outcome.status.value,
            actor.id,
        )

        metadata = {
            "from": outcome.previous.value if outcome.previous else None,
            "to": outcome.status.value,
        }
        if outcome.annotation.return_to_work_duty_type:
            metadata["duty_type"] = outcome.annotation.return_to_work_duty_type.value
            metadata["return_date"] = outcome.annotation.return_to_work_date.isoformat()
        self._audit("case.status_changed", case.id, actor, metadata)

        sent = 0
        if outcome.status in _SETTLEMENT_TITLES:
            sent = self._notify_settlement(case, outcome.status, actor)

        updated = self.cases.get(case_id=case.id) or case
        return StatusChange(
            case=updated,
            previous=outcome.previous,
            status=outcome.status,
            annotation=outcome.annotation,
            notifications_sent=sent,
        )

    def update_clinical_notes(
        self,
        *,
        case_id: UUID,
        notes: str,
        actor: Actor,
        now: Optional[datetime] = None,
    ) -> Annotation:
        """
        Replace the clinical notes inside the annotation, kept as written;
        blank text clears them. Only the blob is written; status columns are
        left alone.
        """
        case = self._load(case_id)
        now = now or timezone.now()

        text = notes or ""
        if len(text) > CLINICAL_NOTES_MAX_LENGTH:
            raise ClinicalNotesRejected(
                f"Clinical notes cannot exceed {CLINICAL_NOTES_MAX_LENGTH} characters.",
                {"max_length": CLINICAL_NOTES_MAX_LENGTH, "length": len(text)},
            )

        annotation = replace(
            decode_preserving(case.annotation),
            clinical_notes=text if text.strip() else None,
            clinical_notes_updated_at=now,
        )
        self.cases.update(case_id=case.id, changes=CaseUpdate(annotation=encode(annotation)))
        self._audit("case.clinical_notes_updated", case.id, actor, {"length": len(text)})
        return annotation

    def close_administratively(
        self,
        *,
        case_id: UUID,
        actor: Actor,
        reason: str = "",
        now: Optional[datetime] = None,
    ) -> AdministrativeClose:
        """
        Hard close: stamps closed_at, which outranks every other status
        signal. Idempotent when the marker is already set. The worker goes
        back on their schedules afterwards; that step never undoes the close.
        """
        case = self._load(case_id)
        if case.closed_at:
            return AdministrativeClose(case=case, already_closed=True)

        now = now or timezone.now()
        self.cases.update(
            case_id=case.id,
            changes=CaseUpdate(
                closed_at=now,
                is_active=False,
                closed_on=case.closed_on or timezone.localdate(now),
            ),
        )
        log.info("case closed administratively case_id=%s actor=%s", case.id, actor.id)
        self._audit(
            "case.closed_administratively",
            case.id,
            actor,
            {"previous": derive_status(case).value, "reason": reason},
        )
        return AdministrativeClose(
            case=self.cases.get(case_id=case.id) or case,
            schedules_reactivated=self._reactivate_schedules(case),
        )

    # -------------------------
    # Trailing side effects
    # -------------------------
    def _audit(self, event_code: str, case_id: UUID, actor: Actor, metadata: dict) -> None:
        if self.audit is None:
            return
        try:
            self.audit.log(
                event_code=event_code,
                entity_type="Case",
                entity_id=case_id,
                actor_id=actor.id,
                metadata=metadata,
            )
        except Exception:
            log.warning("audit write failed event=%s case_id=%s", event_code, case_id, exc_info=True)

    def _reactivate_schedules(self, case: CaseRecord) -> int:
        if self.schedules is None:
            return 0
        try:
            return self.schedules.reactivate_all(subject_id=case.subject_id)
        except Exception:
            log.warning(
                "schedule reactivation failed case_id=%s subject_id=%s", case.id, case.subject_id, exc_info=True
            )
            return 0

    def _notify_settlement(self, case: CaseRecord, status: CaseStatus, actor: Actor) -> int:
        if self.notifications is None:
            return 0

        recipients: list[str] = []
        routing = None
        if self.directory is not None:
            try:
                routing = self.directory.resolve_team(subject_id=case.subject_id)
            except Exception:
                log.warning("team lookup failed case_id=%s", case.id, exc_info=True)
        if routing is not None:
            recipients.extend(str(r) for r in (routing.supervisor_id, routing.lead_id) if r)
        recipients.append(str(case.subject_id))

        title = _SETTLEMENT_TITLES[status]
        sent = 0
        for recipient in dict.fromkeys(recipients):
            message = NotificationMessage(
                recipient_id=recipient,
                kind=f"case_{status.value}",
                title=title,
                message=f"{title} by {actor.display_name}.",
                data={"case_id": str(case.id), "status": status.value},
            )
            try:
                self.notifications.enqueue(messages=[message])
                sent += 1
            except Exception:
                log.warning("notification failed case_id=%s recipient=%s", case.id, recipient, exc_info=True)
        return sent
