# whs_core/schedules/models.py
from django.db import models

from whs_core.common.models import UUIDModel


class WorkSchedule(UUIDModel):
    """
    Either a one-off shift (scheduled_date) or a weekly recurring one
    (day_of_week, 0=Monday) bounded by effective/expiry dates.
    """
    worker_id = models.UUIDField(db_index=True)
    team_id = models.UUIDField(null=True, blank=True, db_index=True)

    scheduled_date = models.DateField(null=True, blank=True)
    day_of_week = models.PositiveSmallIntegerField(null=True, blank=True)
    start_time = models.TimeField()
    end_time = models.TimeField()

    effective_date = models.DateField(null=True, blank=True)
    expiry_date = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = "schedules_work_schedule"
        indexes = [
            models.Index(fields=["worker_id", "is_active"]),
        ]
