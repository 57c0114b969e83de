# whs_core/rehab/models.py
from django.db import models

from whs_core.common.models import UUIDModel


class RehabPlanStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class RehabilitationPlan(UUIDModel):
    case = models.ForeignKey("cases.Case", on_delete=models.CASCADE, related_name="rehab_plans")
    title = models.CharField(max_length=255)
    status = models.CharField(
        max_length=16,
        choices=RehabPlanStatus.choices,
        default=RehabPlanStatus.ACTIVE,
        db_index=True,
    )
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)

    class Meta:
        db_table = "rehab_rehabilitation_plan"

    def __str__(self) -> str:
        return self.title
