# inventory/serializers/stock.py

"""
STOCK LOT & MOVEMENT SERIALIZERS

Lots are read through StockLotSerializer; every write goes through a
service (intake / adjust / cut), so the write-side serializers are plain
input validators.
"""

from __future__ import annotations

from rest_framework import serializers

from inventory.models import StockLot, StockMovement


class StockLotSerializer(serializers.ModelSerializer):
    material_code = serializers.CharField(source="material.code", read_only=True)
    total_length_mm = serializers.DecimalField(
        max_digits=20, decimal_places=2, read_only=True
    )

    class Meta:
        model = StockLot
        fields = [
            "id",
            "material",
            "material_code",
            "kind",
            "count",
            "length_mm",
            "total_length_mm",
            "weight",
            "status",
            "location",
            "batch_ref",
            "notes",
            "version",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class StockIntakeSerializer(serializers.Serializer):
    material = serializers.UUIDField()
    count = serializers.DecimalField(max_digits=14, decimal_places=6)
    length_mm = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True
    )
    kind = serializers.ChoiceField(choices=StockLot.Kind.choices, default=StockLot.Kind.FULL_BAR)
    unit_cost = serializers.DecimalField(
        max_digits=12, decimal_places=4, required=False, allow_null=True
    )
    location = serializers.CharField(required=False, allow_blank=True, default="")
    batch_ref = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class StockAdjustSerializer(serializers.Serializer):
    count_delta = serializers.DecimalField(max_digits=14, decimal_places=6)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class StockCutSerializer(serializers.Serializer):
    cut_length_mm = serializers.DecimalField(max_digits=10, decimal_places=2)
    remainder_action = serializers.ChoiceField(
        choices=StockMovement.RemainderAction.choices,
        default=StockMovement.RemainderAction.OFFCUT,
    )
    project_reference = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class StockMovementSerializer(serializers.ModelSerializer):
    material_code = serializers.CharField(source="material.code", read_only=True)
    performed_by = serializers.SerializerMethodField()

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "movement_type",
            "material",
            "material_code",
            "lot",
            "quantity_delta",
            "unit",
            "project_reference",
            "occurred_at",
            "cost_snapshot",
            "total_cost",
            "performed_by",
            "notes",
            "cut_original_length_mm",
            "cut_length_mm",
            "cut_remainder_length_mm",
            "cut_remainder_action",
            "created_at",
        ]
        read_only_fields = fields

    def get_performed_by(self, obj):
        user = obj.performed_by
        return getattr(user, "email", None) if user else None
