from django.contrib import admin

from whs_core.cases.derivation import derive_status
from whs_core.cases.models import Case


@admin.register(Case)
class CaseAdmin(admin.ModelAdmin):
    list_display = (
        "case_number",
        "subject_id",
        "team_id",
        "kind",
        "derived_status",
        "is_active",
        "opened_on",
        "closed_on",
    )
    list_filter = ("kind", "is_active", "status")
    search_fields = ("subject_id", "team_id", "reason")
    readonly_fields = ("created_at", "updated_at", "closed_at")
    ordering = ("-created_at",)

    @admin.display(description="Status")
    def derived_status(self, obj: Case) -> str:
        return derive_status(obj).label
