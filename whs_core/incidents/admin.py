from django.contrib import admin

from whs_core.incidents.models import Incident


@admin.register(Incident)
class IncidentAdmin(admin.ModelAdmin):
    list_display = ("incident_type", "subject_id", "team_id", "incident_date", "severity", "created_at")
    list_filter = ("incident_type", "severity")
    search_fields = ("subject_id", "description", "location")
    readonly_fields = ("created_at", "updated_at")
    ordering = ("-incident_date",)
