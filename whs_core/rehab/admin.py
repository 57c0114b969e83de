from django.contrib import admin

from whs_core.rehab.models import RehabilitationPlan


@admin.register(RehabilitationPlan)
class RehabilitationPlanAdmin(admin.ModelAdmin):
    list_display = ("title", "case", "status", "start_date", "end_date")
    list_filter = ("status",)
    search_fields = ("title",)
