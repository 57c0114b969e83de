# whs_core/notifications/models.py
from django.db import models

from whs_core.common.models import UUIDModel


class Notification(UUIDModel):
    """
    In-app delivery record per recipient. Recipients are plain ids so the
    engine never depends on the auth user table.
    """
    recipient_id = models.CharField(max_length=64, db_index=True)
    kind = models.CharField(max_length=64, db_index=True)  # e.g. "incident_reported"
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True, default="")
    data = models.JSONField(default=dict, blank=True)

    is_read = models.BooleanField(default=False, db_index=True)
    read_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "notifications_notification"
        indexes = [
            models.Index(fields=["recipient_id", "is_read", "created_at"]),
        ]
