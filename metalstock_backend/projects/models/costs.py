# projects/models/costs.py

"""
LABOR ENTRIES & OTHER COSTS

Child rows of a Project that feed cost_labor and cost_other.
total_cost of a labor entry is always hours × hourly_rate (2 dp).
"""

import uuid
from decimal import Decimal, ROUND_HALF_UP

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone


TWOPLACES = Decimal("0.01")


class LaborEntry(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    project = models.ForeignKey(
        "projects.Project",
        on_delete=models.CASCADE,
        related_name="labor_entries",
    )

    date = models.DateField(default=timezone.localdate)
    worker = models.CharField(max_length=120)
    hours = models.DecimalField(max_digits=8, decimal_places=2)
    hourly_rate = models.DecimalField(max_digits=10, decimal_places=2)
    description = models.CharField(max_length=255, blank=True, default="")

    total_cost = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        editable=False,
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["date", "created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(hours__gte=0),
                name="labor_hours_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(hourly_rate__gte=0),
                name="labor_rate_non_negative",
            ),
        ]

    def clean(self):
        if self.hours is not None and self.hours < 0:
            raise ValidationError({"hours": "hours cannot be negative"})
        if self.hourly_rate is not None and self.hourly_rate < 0:
            raise ValidationError({"hourly_rate": "hourly_rate cannot be negative"})

    def save(self, *args, **kwargs):
        self.total_cost = (
            Decimal(self.hours or 0) * Decimal(self.hourly_rate or 0)
        ).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
        self.full_clean()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.worker} | {self.hours}h @ {self.hourly_rate}"


class OtherCost(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    project = models.ForeignKey(
        "projects.Project",
        on_delete=models.CASCADE,
        related_name="other_costs",
    )

    date = models.DateField(default=timezone.localdate)
    description = models.CharField(max_length=255)
    amount = models.DecimalField(max_digits=14, decimal_places=2)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["date", "created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gte=0),
                name="other_cost_amount_non_negative",
            ),
        ]

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.description} | {self.amount}"
