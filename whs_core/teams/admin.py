from django.contrib import admin

from whs_core.teams.models import Team, TeamMember


class TeamMemberInline(admin.TabularInline):
    model = TeamMember
    extra = 0


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    list_display = ("name", "supervisor_id", "team_lead_id", "created_at")
    search_fields = ("name",)
    inlines = [TeamMemberInline]
