# whs_core/notifications/services.py
from __future__ import annotations

from typing import Iterable

from django.db import transaction

from whs_core.cases.ports import NotificationMessage
from whs_core.notifications.models import Notification


class NotificationService:
    @staticmethod
    @transaction.atomic
    def enqueue(*, messages: Iterable[NotificationMessage]) -> list[Notification]:
        objs = [
            Notification(
                recipient_id=str(m.recipient_id),
                kind=m.kind,
                title=m.title,
                message=m.message,
                data=m.data or {},
            )
            for m in messages
        ]
        return Notification.objects.bulk_create(objs)
