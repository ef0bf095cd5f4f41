# inventory/models/stock_alert.py

"""
STOCK ALERT

Written by the stock-level checker when a material's available stock
falls to or below its thresholds. Delivery (email, push) is not handled here.
"""

import uuid
from decimal import Decimal

from django.db import models

from .material_spec import MaterialSpec


class StockAlert(models.Model):
    class Level(models.TextChoices):
        CRITICAL = "critical", "Critical"
        WARNING = "warning", "Warning"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    material = models.ForeignKey(
        MaterialSpec,
        on_delete=models.CASCADE,
        related_name="alerts",
    )
    level = models.CharField(max_length=10, choices=Level.choices)

    stock_amount = models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0"))
    min_stock = models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0"))
    safety_stock = models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0"))

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["material", "level", "created_at"], name="inv_alert_mat_level_idx"),
        ]

    def __str__(self):
        code = getattr(self.material, "code", "MATERIAL")
        return f"{code} | {self.level} | {self.stock_amount}"
