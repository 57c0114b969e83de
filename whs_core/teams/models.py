# whs_core/teams/models.py
from django.db import models

from whs_core.common.models import UUIDModel


class Team(UUIDModel):
    name = models.CharField(max_length=255)
    supervisor_id = models.UUIDField(null=True, blank=True, db_index=True)
    team_lead_id = models.UUIDField(null=True, blank=True, db_index=True)

    class Meta:
        db_table = "teams_team"

    def __str__(self) -> str:
        return self.name


class TeamMember(UUIDModel):
    """
    A worker belongs to at most one team; incidents and cases are routed
    through this membership.
    """
    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name="members")
    subject_id = models.UUIDField(unique=True)

    class Meta:
        db_table = "teams_team_member"

    def __str__(self) -> str:
        return f"{self.subject_id} @ {self.team_id}"
