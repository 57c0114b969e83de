from django.contrib import admin

from whs_core.audit.models import AuditEvent


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ("occurred_at", "event_code", "entity_id", "actor_id")
    list_filter = ("event_code",)
    search_fields = ("=entity_id", "actor_id")
    date_hierarchy = "occurred_at"

    # Append-only trail.
    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
