# whs_core/cases/constants.py
from django.db import models


class CaseStatus(models.TextChoices):
    """
    Canonical lifecycle status. Values are the lowercase strings stored in
    the annotation blob.
    """
    NEW = "new", "New"
    TRIAGED = "triaged", "Triaged"
    ASSESSED = "assessed", "Assessed"
    IN_REHAB = "in_rehab", "In Rehab"
    RETURN_TO_WORK = "return_to_work", "Return to Work"
    CLOSED = "closed", "Closed"


class LegacyStatus:
    """
    Coarse values of the pre-annotation `Case.status` column.
    Keep strings aligned with rows written by older clients.
    """
    CLOSED = "CLOSED"
    IN_REHAB = "IN_REHAB_LEGACY"
    ACTIVE = "ACTIVE_LEGACY"


class CaseKind(models.TextChoices):
    INJURY = "injury", "Injury"
    ACCIDENT = "accident", "Accident"
    MEDICAL_LEAVE = "medical_leave", "Medical Leave"
    TRANSFER = "transfer", "Transfer"
    OTHER = "other", "Other"


class DutyType(models.TextChoices):
    MODIFIED = "modified", "Modified Duties"
    FULL = "full", "Full Duties"


class Severity(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"
    CRITICAL = "critical", "Critical"


DEFAULT_SEVERITY_BY_KIND = {
    CaseKind.INJURY: Severity.HIGH,
    CaseKind.ACCIDENT: Severity.HIGH,
    CaseKind.MEDICAL_LEAVE: Severity.MEDIUM,
    CaseKind.TRANSFER: Severity.LOW,
    CaseKind.OTHER: Severity.MEDIUM,
}

# A case in one of these states does not block a new intake.
SETTLED_STATUSES = frozenset({CaseStatus.CLOSED, CaseStatus.RETURN_TO_WORK})

# Transitions into these states stamp approver identity + time.
APPROVAL_STATUSES = frozenset({CaseStatus.CLOSED, CaseStatus.RETURN_TO_WORK})
