# whs_core/schedules/services.py
from __future__ import annotations

import logging
from uuid import UUID

from django.db import transaction

from whs_core.schedules.models import WorkSchedule

log = logging.getLogger(__name__)


class ScheduleService:
    @staticmethod
    @transaction.atomic
    def deactivate_all(*, subject_id: UUID) -> int:
        """
        Take a worker off every active schedule. Returns the number of rows
        changed (0 when they had none).
        """
        count = WorkSchedule.objects.filter(worker_id=subject_id, is_active=True).update(is_active=False)
        log.info("deactivated schedules subject_id=%s count=%d", subject_id, count)
        return count

    @staticmethod
    @transaction.atomic
    def reactivate_all(*, subject_id: UUID) -> int:
        """Put a worker back on the schedules taken off at intake."""
        count = WorkSchedule.objects.filter(worker_id=subject_id, is_active=False).update(is_active=True)
        log.info("reactivated schedules subject_id=%s count=%d", subject_id, count)
        return count
