# inventory/models/stock_lot.py

"""
STOCK LOT (PHYSICAL INVENTORY UNIT)

One physically distinct, independently trackable quantity of a material:
a stack of full bars, an offcut, a box of consumables.

GUARANTEES:
- weight is ALWAYS derived:
    weight = round(count × length_mm / 1000 × material.effective_weight_per_meter, 2)
  and never set independently.
- count <= 0 ⇒ count = 0 and status = consumed.
- consumed is terminal (a consumed lot never comes back).
- Lots are never deleted; they only transition to consumed.
- count is mutated ONLY via services (allocation, intake, adjust, cut),
  using `version` as a compare-and-swap token.
"""

import uuid
from decimal import Decimal, ROUND_HALF_UP

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from .material_spec import MaterialSpec


TWOPLACES = Decimal("0.01")
COUNT_PLACES = Decimal("0.000001")


def derive_lot_weight(count, length_mm, weight_per_meter) -> Decimal:
    """Pure function of (count, length, kg/m); rounded at the boundary only."""
    raw = (
        Decimal(count or 0)
        * Decimal(length_mm or 0)
        / Decimal("1000")
        * Decimal(weight_per_meter or 0)
    )
    return raw.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


class StockLot(models.Model):
    class Kind(models.TextChoices):
        FULL_BAR = "FULL_BAR", "Full bar"
        OFFCUT = "OFFCUT", "Offcut"
        BOX = "BOX", "Box / bulk"

    class Status(models.TextChoices):
        AVAILABLE = "available", "Available"
        RESERVED = "reserved", "Reserved"
        CONSUMED = "consumed", "Consumed"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    material = models.ForeignKey(
        MaterialSpec,
        on_delete=models.PROTECT,
        related_name="lots",
    )

    kind = models.CharField(max_length=10, choices=Kind.choices, default=Kind.FULL_BAR)

    # Fractional after proportional deduction
    count = models.DecimalField(max_digits=14, decimal_places=6, default=Decimal("1"))
    length_mm = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("6000"))

    # Derived field: NEVER edited directly
    weight = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))

    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.AVAILABLE,
    )

    location = models.CharField(max_length=64, blank=True, default="")
    batch_ref = models.CharField(max_length=128, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    # Optimistic-lock token, bumped on every service write
    version = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["material", "status"], name="inv_lot_material_status_idx"),
            models.Index(fields=["material", "kind", "status"], name="inv_lot_mat_kind_status_idx"),
            models.Index(fields=["created_at"], name="inv_lot_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(count__gte=0),
                name="chk_stocklot_count_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(length_mm__gte=0),
                name="chk_stocklot_length_gte_zero",
            ),
        ]

    # -------------------------------------------------
    # DERIVED STATE
    # -------------------------------------------------

    def derive_state(self, weight_per_meter=None):
        """
        Normalize count/status and recompute weight in place.

        Services call this before a compare-and-swap update, since
        QuerySet.update() bypasses save().
        """
        if weight_per_meter is None:
            weight_per_meter = self.material.effective_weight_per_meter

        count = Decimal(self.count or 0).quantize(COUNT_PLACES, rounding=ROUND_HALF_UP)
        if count <= 0:
            count = Decimal("0")
            self.status = self.Status.CONSUMED

        self.count = count
        self.weight = derive_lot_weight(count, self.length_mm, weight_per_meter)
        return self

    # -------------------------------------------------
    # VALIDATION
    # -------------------------------------------------

    def clean(self):
        if self.length_mm is None or self.length_mm < 0:
            raise ValidationError({"length_mm": "length_mm cannot be negative"})

        if self.status == self.Status.CONSUMED and self.count and self.count > 0:
            raise ValidationError({"status": "A consumed lot cannot hold stock"})

    def save(self, *args, **kwargs):
        if not self._state.adding:
            original_status = (
                StockLot.objects.filter(pk=self.pk)
                .values_list("status", flat=True)
                .first()
            )
            if (
                original_status == self.Status.CONSUMED
                and self.status != self.Status.CONSUMED
            ):
                raise ValidationError({"status": "consumed is a terminal state"})

        self.derive_state()
        self.full_clean()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "StockLot records are never deleted; consume or adjust them instead."
        )

    # -------------------------------------------------
    # READ-ONLY HELPERS
    # -------------------------------------------------

    @property
    def is_available(self) -> bool:
        return self.status == self.Status.AVAILABLE and Decimal(self.count or 0) > 0

    @property
    def total_length_mm(self) -> Decimal:
        return Decimal(self.count or 0) * Decimal(self.length_mm or 0)

    @property
    def piece_weight(self) -> Decimal:
        """Weight of one piece (unrounded)."""
        return (
            Decimal(self.length_mm or 0)
            / Decimal("1000")
            * Decimal(self.material.effective_weight_per_meter or 0)
        )

    def __str__(self):
        code = getattr(self.material, "code", "MATERIAL")
        return f"{code} | {self.kind} | {self.count} × {self.length_mm}mm"
