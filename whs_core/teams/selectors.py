# whs_core/teams/selectors.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from whs_core.cases.ports import TeamRouting
from whs_core.teams.models import TeamMember


class TeamSelectors:
    @staticmethod
    def resolve_team(*, subject_id: UUID) -> Optional[TeamRouting]:
        member = (
            TeamMember.objects.select_related("team")
            .filter(subject_id=subject_id)
            .first()
        )
        if member is None:
            return None

        team = member.team
        return TeamRouting(
            team_id=team.id,
            team_name=team.name,
            supervisor_id=team.supervisor_id,
            lead_id=team.team_lead_id,
        )
