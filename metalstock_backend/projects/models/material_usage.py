# projects/models/material_usage.py

"""
PROJECT MATERIAL USAGE

One row per "add material to project" call. It records what was taken,
in which unit, and at which unit cost. The stock side lives in the OUT
movement the row points at.

Rules:
- quantity > 0
- total_cost = round(quantity × unit_cost, 2), computed on save
- Rows are removed only through the project materials service, which
  restores stock and books the IN movement first.
"""

import uuid
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone


TWOPLACES = Decimal("0.01")


class ProjectMaterialUsage(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    project = models.ForeignKey(
        "projects.Project",
        on_delete=models.CASCADE,
        related_name="material_usages",
    )

    material = models.ForeignKey(
        "inventory.MaterialSpec",
        on_delete=models.PROTECT,
        related_name="project_usages",
    )

    quantity = models.DecimalField(max_digits=14, decimal_places=4)
    unit = models.CharField(max_length=4)
    unit_cost = models.DecimalField(max_digits=12, decimal_places=4, default=Decimal("0"))
    total_cost = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        editable=False,
    )

    movement = models.ForeignKey(
        "inventory.StockMovement",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="project_usages",
    )

    added_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="project_material_usages",
    )
    added_at = models.DateTimeField(default=timezone.now)

    notes = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["added_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name="usage_quantity_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(unit_cost__gte=0),
                name="usage_unit_cost_non_negative",
            ),
        ]

    def clean(self):
        if self.quantity is not None and self.quantity <= 0:
            raise ValidationError({"quantity": "quantity must be greater than zero"})
        if self.unit_cost is not None and self.unit_cost < 0:
            raise ValidationError({"unit_cost": "unit_cost cannot be negative"})

    def save(self, *args, **kwargs):
        self.total_cost = (
            Decimal(self.quantity or 0) * Decimal(self.unit_cost or 0)
        ).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
        self.full_clean()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.material_id} | {self.quantity} {self.unit}"
