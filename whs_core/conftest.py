# whs_core/conftest.py
import uuid
from datetime import date

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from whs_core.cases.lifecycle import initial_outcome
from whs_core.cases.models import Case
from whs_core.teams.models import Team, TeamMember


@pytest.fixture
def supervisor_id():
    return uuid.uuid4()


@pytest.fixture
def lead_id():
    return uuid.uuid4()


@pytest.fixture
def team(db, supervisor_id, lead_id):
    return Team.objects.create(name="Warehouse A", supervisor_id=supervisor_id, team_lead_id=lead_id)


@pytest.fixture
def subject_id(team):
    """A worker who belongs to `team`."""
    sid = uuid.uuid4()
    TeamMember.objects.create(team=team, subject_id=sid)
    return sid


@pytest.fixture
def case(db, team, subject_id):
    """A freshly opened case, exactly as intake writes it."""
    initial = initial_outcome()
    return Case.objects.create(
        subject_id=subject_id,
        team_id=team.id,
        kind="injury",
        reason="Slipped on wet floor",
        opened_on=date(2024, 3, 1),
        status=initial.legacy_status,
        annotation=initial.encoded_annotation,
    )


@pytest.fixture
def user(db):
    User = get_user_model()
    return User.objects.create_user(
        username="supervisor",
        password="testpass",
        first_name="Sam",
        last_name="Lee",
        is_active=True,
    )


@pytest.fixture
def api_client(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c
