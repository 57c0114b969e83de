# whs_core/cases/ports.py
"""
Boundary shapes and collaborator ports of the case engine.

The engine never imports a store client; every operation receives the
collaborators it needs. Django-backed implementations live next to their
models (see DjangoCaseStore, IncidentService, TeamSelectors, ...), tests use
in-memory fakes.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Optional, Protocol
from uuid import UUID


@dataclass(frozen=True)
class Actor:
    """Whoever is performing the operation (worker, supervisor, clinician)."""
    id: str
    name: str = ""

    @property
    def display_name(self) -> str:
        return self.name or self.id


@dataclass(frozen=True)
class CaseRecord:
    id: Optional[UUID]
    subject_id: UUID
    team_id: UUID
    kind: str
    opened_on: date
    closed_on: Optional[date] = None
    is_active: bool = True
    status: str = ""  # legacy coarse field
    annotation: Optional[str] = None
    closed_at: Optional[datetime] = None
    incident_id: Optional[UUID] = None
    reason: str = ""
    created_by_id: str = ""
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class CaseUpdate:
    """
    One single-row write. `None` means "leave the column as it is".
    """
    status: Optional[str] = None
    annotation: Optional[str] = None
    is_active: Optional[bool] = None
    closed_on: Optional[date] = None
    closed_at: Optional[datetime] = None


@dataclass(frozen=True)
class IncidentRecord:
    id: Optional[UUID]
    subject_id: UUID
    team_id: UUID
    incident_type: str
    incident_date: date
    description: str
    severity: str
    location: str = ""
    photo_ref: Optional[str] = None
    ai_analysis: Optional[dict] = None
    reported_by_id: str = ""


@dataclass(frozen=True)
class TeamRouting:
    team_id: UUID
    team_name: str = ""
    supervisor_id: Optional[UUID] = None
    lead_id: Optional[UUID] = None


@dataclass(frozen=True)
class NotificationMessage:
    recipient_id: str
    kind: str
    title: str
    message: str
    data: dict = field(default_factory=dict)


@dataclass(frozen=True)
class MediaUpload:
    filename: str
    content: bytes
    content_type: str
    # Set when the body was left unread (too large to accept).
    declared_size: Optional[int] = None

    @property
    def size(self) -> int:
        return len(self.content) if self.declared_size is None else self.declared_size


class CaseStore(Protocol):
    def get(self, *, case_id: UUID) -> Optional[CaseRecord]: ...

    def find(self, *, subject_id: UUID, status_not_in: Iterable[str]) -> Optional[CaseRecord]: ...

    def create(self, *, case: CaseRecord) -> CaseRecord: ...

    def update(self, *, case_id: UUID, changes: CaseUpdate) -> None: ...


class IncidentStore(Protocol):
    def create(self, *, incident: IncidentRecord) -> Optional[IncidentRecord]: ...


class TeamDirectory(Protocol):
    def resolve_team(self, *, subject_id: UUID) -> Optional[TeamRouting]: ...


class ScheduleRegistry(Protocol):
    def deactivate_all(self, *, subject_id: UUID) -> int: ...

    def reactivate_all(self, *, subject_id: UUID) -> int: ...


class NotificationSink(Protocol):
    def enqueue(self, *, messages: list[NotificationMessage]) -> None: ...


class RehabPlanOracle(Protocol):
    def has_active_plan(self, *, case_id: UUID) -> bool: ...


class MediaStore(Protocol):
    def save(self, *, subject_id: UUID, upload: MediaUpload) -> str: ...


class AuditSink(Protocol):
    def log(
        self,
        *,
        event_code: str,
        entity_type: str,
        entity_id: UUID,
        actor_id: str | None,
        metadata: dict[str, Any] | None = None,
    ) -> Any: ...
