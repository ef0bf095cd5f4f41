"""
MIGRATION: CREATE inventory tables

- MaterialSpec (catalog)
- StockLot (physical stock, optimistic version token)
- StockMovement (append-only ledger)
- StockAlert (threshold crossings)
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="MaterialSpec",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("code", models.CharField(db_index=True, max_length=64, unique=True)),
                ("description", models.CharField(max_length=255)),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("raw_material", "Raw material"),
                            ("consumable", "Consumable"),
                            ("tool", "Tool"),
                            ("misc", "Miscellaneous"),
                        ],
                        default="raw_material",
                        max_length=20,
                    ),
                ),
                (
                    "material_type",
                    models.CharField(
                        choices=[
                            ("steel", "Steel"),
                            ("stainless", "Stainless steel"),
                            ("aluminum", "Aluminum"),
                            ("brass", "Brass"),
                            ("bronze", "Bronze"),
                            ("plastic", "Plastic"),
                            ("other", "Other"),
                        ],
                        default="steel",
                        max_length=20,
                    ),
                ),
                (
                    "shape",
                    models.CharField(
                        choices=[
                            ("round", "Round bar"),
                            ("hex", "Hexagonal bar"),
                            ("tube", "Tube"),
                            ("plate", "Plate"),
                            ("box", "Box section"),
                        ],
                        default="round",
                        max_length=10,
                    ),
                ),
                (
                    "diameter_mm",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True),
                ),
                (
                    "width_mm",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True),
                ),
                (
                    "height_mm",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True),
                ),
                (
                    "wall_mm",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True),
                ),
                (
                    "density",
                    models.DecimalField(
                        decimal_places=3,
                        default=Decimal("7.850"),
                        help_text="g/cm³",
                        max_digits=6,
                    ),
                ),
                (
                    "weight_per_meter",
                    models.DecimalField(
                        decimal_places=4,
                        default=Decimal("0"),
                        help_text="kg/m (0 = unknown)",
                        max_digits=12,
                    ),
                ),
                (
                    "unit",
                    models.CharField(
                        choices=[("kg", "Kilogram"), ("m", "Meter"), ("un", "Unit")],
                        default="kg",
                        max_length=2,
                    ),
                ),
                (
                    "min_stock",
                    models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=14),
                ),
                (
                    "safety_stock",
                    models.DecimalField(
                        blank=True,
                        decimal_places=4,
                        help_text="Defaults to 1.5 × min_stock when empty",
                        max_digits=14,
                        null=True,
                    ),
                ),
                (
                    "last_price",
                    models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=12),
                ),
                (
                    "average_price",
                    models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=12),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["code"],
                "indexes": [
                    models.Index(fields=["material_type", "shape"], name="inv_material_type_shape_idx"),
                    models.Index(fields=["category"], name="inv_material_category_idx"),
                    models.Index(fields=["is_active"], name="inv_material_active_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(density__gt=0),
                        name="chk_materialspec_density_gt_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(weight_per_meter__gte=0),
                        name="chk_materialspec_wpm_gte_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockLot",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("FULL_BAR", "Full bar"),
                            ("OFFCUT", "Offcut"),
                            ("BOX", "Box / bulk"),
                        ],
                        default="FULL_BAR",
                        max_length=10,
                    ),
                ),
                (
                    "count",
                    models.DecimalField(decimal_places=6, default=Decimal("1"), max_digits=14),
                ),
                (
                    "length_mm",
                    models.DecimalField(decimal_places=2, default=Decimal("6000"), max_digits=10),
                ),
                (
                    "weight",
                    models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("available", "Available"),
                            ("reserved", "Reserved"),
                            ("consumed", "Consumed"),
                        ],
                        default="available",
                        max_length=10,
                    ),
                ),
                ("location", models.CharField(blank=True, default="", max_length=64)),
                ("batch_ref", models.CharField(blank=True, default="", max_length=128)),
                ("notes", models.TextField(blank=True, default="")),
                ("version", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "material",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="lots",
                        to="inventory.materialspec",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["material", "status"], name="inv_lot_material_status_idx"),
                    models.Index(
                        fields=["material", "kind", "status"], name="inv_lot_mat_kind_status_idx"
                    ),
                    models.Index(fields=["created_at"], name="inv_lot_created_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(count__gte=0),
                        name="chk_stocklot_count_gte_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(length_mm__gte=0),
                        name="chk_stocklot_length_gte_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockMovement",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "movement_type",
                    models.CharField(
                        choices=[
                            ("IN", "Stock In"),
                            ("OUT", "Stock Out"),
                            ("CUT", "Cut"),
                            ("ADJUST", "Adjustment"),
                        ],
                        max_length=6,
                    ),
                ),
                ("quantity_delta", models.DecimalField(decimal_places=4, max_digits=14)),
                (
                    "unit",
                    models.CharField(
                        choices=[
                            ("kg", "Kilogram"),
                            ("un", "Unit"),
                            ("mm", "Millimeter"),
                            ("m", "Meter"),
                        ],
                        default="kg",
                        max_length=2,
                    ),
                ),
                (
                    "project_reference",
                    models.CharField(blank=True, db_index=True, default="", max_length=32),
                ),
                ("occurred_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "cost_snapshot",
                    models.DecimalField(
                        decimal_places=4,
                        default=Decimal("0"),
                        help_text="Unit cost at movement time (immutable).",
                        max_digits=12,
                    ),
                ),
                (
                    "total_cost",
                    models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14),
                ),
                ("notes", models.TextField(blank=True, default="")),
                (
                    "cut_original_length_mm",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True),
                ),
                (
                    "cut_length_mm",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True),
                ),
                (
                    "cut_remainder_length_mm",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True),
                ),
                (
                    "cut_remainder_action",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("offcut", "Kept as offcut"),
                            ("scrap", "Scrapped"),
                            ("returned", "Returned to supplier"),
                        ],
                        default="",
                        max_length=10,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "material",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="movements",
                        to="inventory.materialspec",
                    ),
                ),
                (
                    "lot",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="movements",
                        to="inventory.stocklot",
                    ),
                ),
                (
                    "performed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_movements",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["occurred_at", "created_at"],
                "indexes": [
                    models.Index(fields=["occurred_at"], name="inv_mov_occurred_idx"),
                    models.Index(fields=["movement_type"], name="inv_mov_type_idx"),
                    models.Index(fields=["material", "occurred_at"], name="inv_mov_material_occ_idx"),
                    models.Index(fields=["lot", "occurred_at"], name="inv_mov_lot_occurred_idx"),
                    models.Index(
                        fields=["project_reference", "movement_type"],
                        name="inv_mov_project_type_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockAlert",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "level",
                    models.CharField(
                        choices=[("critical", "Critical"), ("warning", "Warning")],
                        max_length=10,
                    ),
                ),
                (
                    "stock_amount",
                    models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=14),
                ),
                (
                    "min_stock",
                    models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=14),
                ),
                (
                    "safety_stock",
                    models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=14),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "material",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="alerts",
                        to="inventory.materialspec",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["material", "level", "created_at"],
                        name="inv_alert_mat_level_idx",
                    ),
                ],
            },
        ),
    ]
