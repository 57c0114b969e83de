# whs_core/cases/codec.py
"""
Annotation blob codec.

Cases carry a JSON "notes" blob written by several generations of clients.
It holds the canonical status plus approval and return-to-work metadata.
`decode` is total: missing, malformed or partially-shaped input degrades to
an empty (or partial) Annotation, never an exception.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from datetime import date, datetime, time
from typing import Any, Optional

from django.utils.dateparse import parse_date, parse_datetime

from whs_core.cases.constants import CaseStatus, DutyType

APPROVER_MAX_LENGTH = 255
CLINICAL_NOTES_MAX_LENGTH = 10000

# Annotation attribute -> key in the stored blob.
_KEYS = {
    "status": "case_status",
    "status_updated_at": "case_status_updated_at",
    "approved_by": "approved_by",
    "approved_by_id": "approved_by_id",
    "approved_at": "approved_at",
    "return_to_work_duty_type": "return_to_work_duty_type",
    "return_to_work_date": "return_to_work_date",
    "clinical_notes": "clinical_notes",
    "clinical_notes_updated_at": "clinical_notes_updated_at",
}

ORIGINAL_NOTES_KEY = "original_notes"
_STORED_KEYS = frozenset(_KEYS.values())


@dataclass(frozen=True)
class Annotation:
    status: Optional[CaseStatus] = None
    status_updated_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    approved_by_id: Optional[str] = None
    approved_at: Optional[datetime] = None
    return_to_work_duty_type: Optional[DutyType] = None
    return_to_work_date: Optional[date] = None
    clinical_notes: Optional[str] = None
    clinical_notes_updated_at: Optional[datetime] = None
    # Keys this codec does not know about; written back untouched.
    extra: dict = field(default_factory=dict)

    def __post_init__(self):
        # A stored key in extra would be read back as the real field.
        if _STORED_KEYS.intersection(self.extra):
            object.__setattr__(self, "extra", {k: v for k, v in self.extra.items() if k not in _STORED_KEYS})

    def is_empty(self) -> bool:
        return self == Annotation()


# -------------------------
# Field validators (return None on anything unusable)
# -------------------------
def _status(value: Any) -> Optional[CaseStatus]:
    if not isinstance(value, str):
        return None
    try:
        return CaseStatus(value.strip().lower())
    except ValueError:
        return None


def parse_duty_type(value: Any) -> Optional[DutyType]:
    if not isinstance(value, str):
        return None
    try:
        return DutyType(value.strip().lower())
    except ValueError:
        return None


def _text(value: Any, *, max_length: int) -> Optional[str]:
    # Kept as written; blank text counts as absent.
    if not isinstance(value, str) or not value.strip() or len(value) > max_length:
        return None
    return value


def _datetime(value: Any) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    raw = value.strip()
    try:
        parsed = parse_datetime(raw)
        if parsed is not None:
            return parsed
        # older clients stamped bare dates
        day = parse_date(raw)
    except ValueError:
        return None
    return datetime.combine(day, time.min) if day is not None else None


def parse_iso_date(value: Any) -> Optional[date]:
    if not isinstance(value, str):
        return None
    raw = value.strip()
    try:
        parsed = parse_date(raw)
        if parsed is not None:
            return parsed
        dt = parse_datetime(raw)
    except ValueError:
        return None
    return dt.date() if dt is not None else None


_PARSERS = {
    "status": _status,
    "status_updated_at": _datetime,
    "approved_by": lambda v: _text(v, max_length=APPROVER_MAX_LENGTH),
    "approved_by_id": lambda v: _text(v, max_length=APPROVER_MAX_LENGTH),
    "approved_at": _datetime,
    "return_to_work_duty_type": parse_duty_type,
    "return_to_work_date": parse_iso_date,
    "clinical_notes": lambda v: _text(v, max_length=CLINICAL_NOTES_MAX_LENGTH),
    "clinical_notes_updated_at": _datetime,
}


def _load_object(raw: Optional[str]) -> Optional[dict]:
    if not raw or not isinstance(raw, str):
        return None
    try:
        parsed = json.loads(raw)
    except (ValueError, RecursionError):
        return None
    return parsed if isinstance(parsed, dict) else None


def _from_object(obj: dict) -> Annotation:
    values: dict[str, Any] = {}
    for attr, key in _KEYS.items():
        if key in obj:
            values[attr] = _PARSERS[attr](obj[key])
    extra = {k: v for k, v in obj.items() if k not in _STORED_KEYS}
    return Annotation(extra=extra, **values)


def decode(raw: Optional[str]) -> Annotation:
    """
    Parse a stored blob. Never raises: unusable input yields Annotation().
    Invalid known keys are dropped one by one; unknown keys land in `extra`.
    """
    obj = _load_object(raw)
    if obj is None:
        return Annotation()
    return _from_object(obj)


def decode_preserving(raw: Optional[str]) -> Annotation:
    """
    Same as `decode`, except free-text legacy notes (non-JSON) are kept in
    extra["original_notes"] so that writing the annotation back keeps them.
    """
    obj = _load_object(raw)
    if obj is not None:
        return _from_object(obj)
    if isinstance(raw, str) and raw.strip():
        return Annotation(extra={ORIGINAL_NOTES_KEY: raw})
    return Annotation()


def _serialise(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, CaseStatus) or isinstance(value, DutyType):
        return value.value
    return value


def encode(annotation: Annotation) -> str:
    """
    Deterministic JSON: sorted keys, compact separators, None fields omitted.
    """
    payload: dict[str, Any] = dict(annotation.extra)
    for f in fields(annotation):
        if f.name == "extra":
            continue
        value = getattr(annotation, f.name)
        if value is None:
            continue
        payload[_KEYS[f.name]] = _serialise(value)
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))
