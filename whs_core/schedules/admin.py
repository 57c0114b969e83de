from django.contrib import admin

from whs_core.schedules.models import WorkSchedule


@admin.register(WorkSchedule)
class WorkScheduleAdmin(admin.ModelAdmin):
    list_display = ("worker_id", "team_id", "scheduled_date", "day_of_week", "start_time", "end_time", "is_active")
    list_filter = ("is_active", "day_of_week")
    search_fields = ("worker_id",)
