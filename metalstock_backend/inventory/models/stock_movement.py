# inventory/models/stock_movement.py

"""
CANONICAL INVENTORY LEDGER

Immutable stock movement entry. The append-only source of truth for all
financial reporting; project and period cost figures are derived from it.

GUARANTEES:
- Append-only (no updates, no deletes)
- Signed quantity_delta validated against movement_type:
    IN > 0, OUT < 0, CUT < 0, ADJUST != 0
- total_cost = round(|quantity_delta| × cost_snapshot, 2), computed once at creation
- Corrections are new compensating entries, never edits
"""

import uuid
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from .material_spec import MaterialSpec
from .stock_lot import StockLot


TWOPLACES = Decimal("0.01")


def movement_total_cost(quantity_delta, cost_snapshot) -> Decimal:
    return (
        abs(Decimal(quantity_delta or 0)) * Decimal(cost_snapshot or 0)
    ).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


class StockMovement(models.Model):
    class MovementType(models.TextChoices):
        IN = "IN", "Stock In"
        OUT = "OUT", "Stock Out"
        CUT = "CUT", "Cut"
        ADJUST = "ADJUST", "Adjustment"

    class Unit(models.TextChoices):
        KG = "kg", "Kilogram"
        UN = "un", "Unit"
        MM = "mm", "Millimeter"
        M = "m", "Meter"

    class RemainderAction(models.TextChoices):
        OFFCUT = "offcut", "Kept as offcut"
        SCRAP = "scrap", "Scrapped"
        RETURNED = "returned", "Returned to supplier"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    movement_type = models.CharField(max_length=6, choices=MovementType.choices)

    material = models.ForeignKey(
        MaterialSpec,
        on_delete=models.PROTECT,
        related_name="movements",
    )
    lot = models.ForeignKey(
        StockLot,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="movements",
    )

    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    quantity_delta = models.DecimalField(max_digits=14, decimal_places=4)
    unit = models.CharField(max_length=2, choices=Unit.choices, default=Unit.KG)

    # Plain reference (e.g. "PRJ-2026-001"), not a FK: the ledger outlives usages
    project_reference = models.CharField(max_length=32, blank=True, default="", db_index=True)

    occurred_at = models.DateTimeField(default=timezone.now)

    cost_snapshot = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        default=Decimal("0"),
        help_text="Unit cost at movement time (immutable).",
    )
    total_cost = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))

    notes = models.TextField(blank=True, default="")

    # Cut details (CUT movements only)
    cut_original_length_mm = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    cut_length_mm = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    cut_remainder_length_mm = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    cut_remainder_action = models.CharField(
        max_length=10,
        choices=RemainderAction.choices,
        blank=True,
        default="",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["occurred_at", "created_at"]
        indexes = [
            models.Index(fields=["occurred_at"], name="inv_mov_occurred_idx"),
            models.Index(fields=["movement_type"], name="inv_mov_type_idx"),
            models.Index(fields=["material", "occurred_at"], name="inv_mov_material_occ_idx"),
            models.Index(fields=["lot", "occurred_at"], name="inv_mov_lot_occurred_idx"),
            models.Index(fields=["project_reference", "movement_type"], name="inv_mov_project_type_idx"),
        ]

    def clean(self):
        delta = Decimal(self.quantity_delta or 0)

        if self.movement_type == self.MovementType.IN and delta <= 0:
            raise ValidationError({"quantity_delta": "IN movements must be positive"})

        if self.movement_type in {self.MovementType.OUT, self.MovementType.CUT} and delta >= 0:
            raise ValidationError(
                {"quantity_delta": f"{self.movement_type} movements must be negative"}
            )

        if self.movement_type == self.MovementType.ADJUST and delta == 0:
            raise ValidationError({"quantity_delta": "ADJUST movements cannot be zero"})

        if self.cost_snapshot is not None and self.cost_snapshot < 0:
            raise ValidationError({"cost_snapshot": "cost_snapshot cannot be negative"})

        if self.lot_id and self.material_id:
            lot_material_id = (
                StockLot.objects.filter(id=self.lot_id)
                .values_list("material_id", flat=True)
                .first()
            )
            if lot_material_id and lot_material_id != self.material_id:
                raise ValidationError("Lot does not belong to material")

        if self.cut_remainder_action and self.movement_type != self.MovementType.CUT:
            raise ValidationError("Cut details are only valid on CUT movements")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("StockMovement records are immutable")

        if self.cost_snapshot is None:
            self.cost_snapshot = Decimal("0")

        self.total_cost = movement_total_cost(self.quantity_delta, self.cost_snapshot)

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "StockMovement records are immutable and cannot be deleted"
        )

    def __str__(self):
        code = getattr(self.material, "code", "MATERIAL")
        return f"{code} | {self.movement_type} | {self.quantity_delta} {self.unit}"
