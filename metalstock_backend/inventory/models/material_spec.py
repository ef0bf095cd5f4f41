# inventory/models/material_spec.py

"""
MATERIAL SPEC (CATALOG ENTRY)

The catalog definition of a material, independent of what is on hand.

RULES:
- code is unique and always stored upper-cased
- density > 0 (g/cm³)
- only the dimensional fields relevant to `shape` are meaningful;
  the others are ignored by geometry (see `dimensions`)
- weight_per_meter is an optional precomputed shortcut (kg/m), 0 = unknown;
  effective_weight_per_meter falls back to the geometry
- stock lives in StockLot rows, never on the catalog entry
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class MaterialSpec(models.Model):
    class Category(models.TextChoices):
        RAW_MATERIAL = "raw_material", "Raw material"
        CONSUMABLE = "consumable", "Consumable"
        TOOL = "tool", "Tool"
        MISC = "misc", "Miscellaneous"

    class MaterialType(models.TextChoices):
        STEEL = "steel", "Steel"
        STAINLESS = "stainless", "Stainless steel"
        ALUMINUM = "aluminum", "Aluminum"
        BRASS = "brass", "Brass"
        BRONZE = "bronze", "Bronze"
        PLASTIC = "plastic", "Plastic"
        OTHER = "other", "Other"

    class Shape(models.TextChoices):
        ROUND = "round", "Round bar"
        HEX = "hex", "Hexagonal bar"
        TUBE = "tube", "Tube"
        PLATE = "plate", "Plate"
        BOX = "box", "Box section"

    class Unit(models.TextChoices):
        KG = "kg", "Kilogram"
        M = "m", "Meter"
        UN = "un", "Unit"

    # Which dimension fields each shape reads (see metal_math)
    SHAPE_DIMENSIONS = {
        Shape.ROUND: ("diameter_mm",),
        Shape.HEX: ("diameter_mm",),
        Shape.TUBE: ("diameter_mm", "wall_mm"),
        Shape.PLATE: ("width_mm", "height_mm"),
        Shape.BOX: ("width_mm", "height_mm"),
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    code = models.CharField(max_length=64, unique=True, db_index=True)
    description = models.CharField(max_length=255)

    category = models.CharField(
        max_length=20,
        choices=Category.choices,
        default=Category.RAW_MATERIAL,
    )
    material_type = models.CharField(
        max_length=20,
        choices=MaterialType.choices,
        default=MaterialType.STEEL,
    )
    shape = models.CharField(
        max_length=10,
        choices=Shape.choices,
        default=Shape.ROUND,
    )

    # Dimensional profile (mm). diameter_mm doubles as hex across-flats.
    diameter_mm = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    width_mm = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    height_mm = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    wall_mm = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    density = models.DecimalField(
        max_digits=6,
        decimal_places=3,
        default=Decimal("7.850"),
        help_text="g/cm³",
    )
    weight_per_meter = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        default=Decimal("0"),
        help_text="kg/m (0 = unknown)",
    )

    unit = models.CharField(max_length=2, choices=Unit.choices, default=Unit.KG)

    # Thresholds, expressed in `unit`
    min_stock = models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0"))
    safety_stock = models.DecimalField(
        max_digits=14,
        decimal_places=4,
        null=True,
        blank=True,
        help_text="Defaults to 1.5 × min_stock when empty",
    )

    # Pricing per `unit`
    last_price = models.DecimalField(max_digits=12, decimal_places=4, default=Decimal("0"))
    average_price = models.DecimalField(max_digits=12, decimal_places=4, default=Decimal("0"))

    is_active = models.BooleanField(default=True)
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]
        indexes = [
            models.Index(fields=["material_type", "shape"], name="inv_material_type_shape_idx"),
            models.Index(fields=["category"], name="inv_material_category_idx"),
            models.Index(fields=["is_active"], name="inv_material_active_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(density__gt=0),
                name="chk_materialspec_density_gt_zero",
            ),
            models.CheckConstraint(
                condition=Q(weight_per_meter__gte=0),
                name="chk_materialspec_wpm_gte_zero",
            ),
        ]

    # -------------------------------------------------
    # VALIDATION
    # -------------------------------------------------

    def clean(self):
        self.code = (self.code or "").strip().upper()
        if not self.code:
            raise ValidationError({"code": "code is required"})

        if self.density is None or self.density <= 0:
            raise ValidationError({"density": "density must be greater than zero"})

        if self.weight_per_meter is not None and self.weight_per_meter < 0:
            raise ValidationError({"weight_per_meter": "weight_per_meter cannot be negative"})

        for field in ("diameter_mm", "width_mm", "height_mm", "wall_mm"):
            value = getattr(self, field)
            if value is not None and value < 0:
                raise ValidationError({field: f"{field} cannot be negative"})

        if (
            self.shape == self.Shape.TUBE
            and self.diameter_mm
            and self.wall_mm
            and self.wall_mm * 2 > self.diameter_mm
        ):
            raise ValidationError({"wall_mm": "wall_mm cannot exceed half the outer diameter"})

        if self.min_stock is not None and self.min_stock < 0:
            raise ValidationError({"min_stock": "min_stock cannot be negative"})

        if self.safety_stock is not None and self.safety_stock < 0:
            raise ValidationError({"safety_stock": "safety_stock cannot be negative"})

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().upper()
        if self.weight_per_meter is None:
            self.weight_per_meter = Decimal("0")
        self.full_clean()
        super().save(*args, **kwargs)

    # -------------------------------------------------
    # READ-ONLY HELPERS
    # -------------------------------------------------

    @property
    def dimensions(self) -> dict:
        """Only the dimension fields `shape` actually uses."""
        fields = self.SHAPE_DIMENSIONS.get(self.shape, ())
        return {f: getattr(self, f) for f in fields}

    @property
    def effective_weight_per_meter(self) -> Decimal:
        """Stored kg/m, else derived from shape, dimensions and density (0 = unknown)."""
        from inventory.services.metal_math import material_weight_per_meter

        return material_weight_per_meter(self)

    @property
    def effective_safety_stock(self) -> Decimal:
        if self.safety_stock is not None and self.safety_stock > 0:
            return Decimal(self.safety_stock)
        return Decimal(self.min_stock or 0) * Decimal("1.5")

    @property
    def current_unit_cost(self) -> Decimal:
        """Cost snapshot source: last purchase price, else weighted average."""
        last = Decimal(self.last_price or 0)
        if last > 0:
            return last
        return Decimal(self.average_price or 0)

    @property
    def is_length_based(self) -> bool:
        return self.unit in {self.Unit.KG, self.Unit.M}

    def __str__(self):
        return f"{self.code} | {self.description}"
