# whs_core/cases/lifecycle.py
"""
Case lifecycle state machine.

    NEW -> TRIAGED -> ASSESSED -> IN_REHAB -> RETURN_TO_WORK -> CLOSED

Any non-settled state may move to any other state; RETURN_TO_WORK may only
move to CLOSED; CLOSED is terminal. An active rehabilitation plan blocks
RETURN_TO_WORK and CLOSED.

Nothing here persists. `transition` returns the new annotation plus the raw
columns to write; the caller applies them in one single-row update.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Mapping, Optional

from django.utils import timezone

from whs_core.cases.codec import Annotation, decode_preserving, encode, parse_duty_type, parse_iso_date
from whs_core.cases.constants import APPROVAL_STATUSES, CaseStatus, DutyType
from whs_core.cases.derivation import derive_status, legacy_projection
from whs_core.cases.exceptions import (
    InvalidTransition,
    MissingReturnToWorkDetails,
    UnexpectedReturnToWorkDetails,
)
from whs_core.cases.ports import Actor

ALL_STATUSES = frozenset(CaseStatus)
REHAB_BLOCKED = frozenset({CaseStatus.RETURN_TO_WORK, CaseStatus.CLOSED})

DUTY_TYPE_KEY = "return_to_work_duty_type"
RETURN_DATE_KEY = "return_to_work_date"


@dataclass(frozen=True)
class TransitionOutcome:
    previous: Optional[CaseStatus]
    status: CaseStatus
    annotation: Annotation
    legacy_status: str
    is_active: bool
    closed_on: Optional[date]

    @property
    def encoded_annotation(self) -> str:
        return encode(self.annotation)


def available_from(current: CaseStatus, *, has_active_rehab_plan: bool) -> frozenset:
    if current == CaseStatus.RETURN_TO_WORK:
        return frozenset({CaseStatus.CLOSED})
    if current == CaseStatus.CLOSED:
        return frozenset()

    candidates = ALL_STATUSES - {current}
    if has_active_rehab_plan:
        candidates = candidates - REHAB_BLOCKED
    return frozenset(candidates)


def compute_available_transitions(case: Any, *, has_active_rehab_plan: bool) -> frozenset:
    return available_from(derive_status(case), has_active_rehab_plan=has_active_rehab_plan)


def _coerce_return_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_iso_date(value)


def _pick(extra: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = extra.get(key)
        if value:
            return value
    return None


def _return_to_work_details(extra: Mapping[str, Any], *, today: date) -> tuple[DutyType, date]:
    raw_duty = _pick(extra, DUTY_TYPE_KEY, "duty_type")
    raw_date = _pick(extra, RETURN_DATE_KEY, "return_date")

    if not raw_duty:
        raise MissingReturnToWorkDetails(
            "Return to work requires a duty type.",
            {"field": DUTY_TYPE_KEY, "allowed": [d.value for d in DutyType]},
        )
    duty_type = parse_duty_type(raw_duty)
    if duty_type is None:
        raise MissingReturnToWorkDetails(
            'Duty type must be either "modified" or "full".',
            {"field": DUTY_TYPE_KEY, "value": str(raw_duty), "allowed": [d.value for d in DutyType]},
        )

    if not raw_date:
        raise MissingReturnToWorkDetails(
            "Return to work requires a return date.",
            {"field": RETURN_DATE_KEY},
        )
    return_date = _coerce_return_date(raw_date)
    if return_date is None:
        raise MissingReturnToWorkDetails(
            "Invalid return date format. Expected YYYY-MM-DD.",
            {"field": RETURN_DATE_KEY, "value": str(raw_date)},
        )
    if return_date < today:
        raise MissingReturnToWorkDetails(
            "Return date cannot be in the past.",
            {"field": RETURN_DATE_KEY, "value": return_date.isoformat(), "today": today.isoformat()},
        )
    return duty_type, return_date


def transition(
    case: Any,
    target: CaseStatus | str,
    extra: Optional[Mapping[str, Any]] = None,
    *,
    has_active_rehab_plan: bool,
    actor: Actor,
    now: Optional[datetime] = None,
) -> TransitionOutcome:
    """
    Validate and compute a status change.

    Raises InvalidTransition, MissingReturnToWorkDetails or
    UnexpectedReturnToWorkDetails; on failure nothing must be written.
    """
    now = now or timezone.now()
    today = timezone.localdate(now) if timezone.is_aware(now) else now.date()
    extra = extra or {}

    current = derive_status(case)
    try:
        target = CaseStatus(str(target).strip().lower())
    except ValueError:
        raise InvalidTransition(
            f"Unknown case status {target!r}.",
            {"current": current.value, "target": str(target), "allowed": sorted(s.value for s in CaseStatus)},
        ) from None

    available = available_from(current, has_active_rehab_plan=has_active_rehab_plan)
    details = {
        "current": current.value,
        "target": target.value,
        "available": sorted(s.value for s in available),
        "has_active_rehab_plan": has_active_rehab_plan,
    }
    # The plan guard also covers RETURN_TO_WORK -> CLOSED.
    if has_active_rehab_plan and target in REHAB_BLOCKED and target != current:
        raise InvalidTransition(
            "Cannot update case status while active rehabilitation plans exist.",
            details,
        )
    if target not in available:
        if current == CaseStatus.RETURN_TO_WORK:
            raise InvalidTransition(
                'Once a case is marked "Return to Work" it can only be closed.',
                details,
            )
        raise InvalidTransition(
            f"Cannot move case from {current.value} to {target.value}.",
            details,
        )

    has_rtw_details = bool(
        _pick(extra, DUTY_TYPE_KEY, "duty_type") or _pick(extra, RETURN_DATE_KEY, "return_date")
    )
    if target != CaseStatus.RETURN_TO_WORK and has_rtw_details:
        raise UnexpectedReturnToWorkDetails(
            "Return to work fields can only be set when status is return_to_work.",
            {"target": target.value},
        )

    annotation = replace(
        decode_preserving(getattr(case, "annotation", None)),
        status=target,
        status_updated_at=now,
    )

    if target in APPROVAL_STATUSES:
        annotation = replace(
            annotation,
            approved_by=actor.display_name,
            approved_by_id=actor.id,
            approved_at=now,
        )

    closed_on = getattr(case, "closed_on", None)
    is_active = True
    if target == CaseStatus.RETURN_TO_WORK:
        duty_type, return_date = _return_to_work_details(extra, today=today)
        annotation = replace(
            annotation,
            return_to_work_duty_type=duty_type,
            return_to_work_date=return_date,
        )
        is_active = False
        closed_on = today
    elif target == CaseStatus.CLOSED:
        is_active = False
        closed_on = closed_on or today

    return TransitionOutcome(
        previous=current,
        status=target,
        annotation=annotation,
        legacy_status=legacy_projection(target),
        is_active=is_active,
        closed_on=closed_on,
    )


def initial_outcome(*, now: Optional[datetime] = None) -> TransitionOutcome:
    """State written for a freshly created case."""
    now = now or timezone.now()
    return TransitionOutcome(
        previous=None,
        status=CaseStatus.NEW,
        annotation=Annotation(status=CaseStatus.NEW, status_updated_at=now),
        legacy_status=legacy_projection(CaseStatus.NEW),
        is_active=True,
        closed_on=None,
    )
