# whs_core/cases/derivation.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from whs_core.cases.codec import decode
from whs_core.cases.constants import SETTLED_STATUSES, CaseStatus, LegacyStatus

log = logging.getLogger(__name__)


class StatusSource:
    CLOSED_AT = "closed_at"
    ANNOTATION = "annotation"
    LEGACY = "legacy"
    DEFAULT = "default"


_LEGACY_MAP = {
    LegacyStatus.CLOSED: CaseStatus.CLOSED,
    LegacyStatus.IN_REHAB: CaseStatus.IN_REHAB,
    LegacyStatus.ACTIVE: CaseStatus.ASSESSED,
}

# Inverse projection written alongside every status change, so clients that
# still read the coarse column see something sensible.
_LEGACY_PROJECTION = {
    CaseStatus.CLOSED: LegacyStatus.CLOSED,
    CaseStatus.IN_REHAB: LegacyStatus.IN_REHAB,
}


@dataclass(frozen=True)
class DerivedStatus:
    status: CaseStatus
    source: str
    raw: Any = None


def derive(case: Any) -> DerivedStatus:
    """
    Single canonical status for a case record.

    Precedence (highest first):
      1. closed_at set              -> CLOSED
      2. recognised annotation status
      3. legacy coarse column        (CLOSED / IN_REHAB_LEGACY / ACTIVE_LEGACY)
      4. NEW

    Later signals never override an explicit annotation status, except the
    hard closure marker. Total: works on any object exposing closed_at,
    annotation and status; missing attributes count as absent.
    """
    closed_at = getattr(case, "closed_at", None)
    if closed_at:
        result = DerivedStatus(CaseStatus.CLOSED, StatusSource.CLOSED_AT, closed_at)
        _trace(case, result)
        return result

    annotation = decode(getattr(case, "annotation", None))
    if annotation.status is not None:
        result = DerivedStatus(CaseStatus(annotation.status), StatusSource.ANNOTATION, annotation.status.value)
        _trace(case, result)
        return result

    legacy = getattr(case, "status", None)
    mapped = _LEGACY_MAP.get(legacy) if isinstance(legacy, str) else None
    if mapped is not None:
        result = DerivedStatus(mapped, StatusSource.LEGACY, legacy)
    else:
        result = DerivedStatus(CaseStatus.NEW, StatusSource.DEFAULT, legacy)
    _trace(case, result)
    return result


def derive_status(case: Any) -> CaseStatus:
    return derive(case).status


def is_open(status: CaseStatus) -> bool:
    """Open cases block a new intake for the same worker."""
    return status not in SETTLED_STATUSES


def legacy_projection(status: CaseStatus) -> str:
    return _LEGACY_PROJECTION.get(status, LegacyStatus.ACTIVE)


def _trace(case: Any, result: DerivedStatus) -> None:
    case_id: Optional[Any] = getattr(case, "id", None)
    log.debug(
        "derived case status case_id=%s status=%s source=%s raw=%r",
        case_id,
        result.status.value,
        result.source,
        result.raw,
    )
