# inventory/serializers/material.py

"""
MATERIAL SERIALIZERS

Purpose:
- Validate MaterialSpec metadata at the API boundary.
- Expose stock figures read from the allocation engine (never stored).
- Input shapes for the weight calculator and catalog import actions.

Prices are not writable here; they move with stock intake.
"""

from __future__ import annotations

from rest_framework import serializers

from inventory.models import MaterialSpec
from inventory.services.stock_alerts import stock_level
from inventory.services.stock_allocation import available_amount


class MaterialSpecSerializer(serializers.ModelSerializer):
    available_stock = serializers.SerializerMethodField()
    stock_status = serializers.SerializerMethodField()
    effective_safety_stock = serializers.DecimalField(
        max_digits=14, decimal_places=4, read_only=True
    )

    class Meta:
        model = MaterialSpec
        fields = [
            "id",
            "code",
            "description",
            "category",
            "material_type",
            "shape",
            "diameter_mm",
            "width_mm",
            "height_mm",
            "wall_mm",
            "density",
            "weight_per_meter",
            "unit",
            "min_stock",
            "safety_stock",
            "effective_safety_stock",
            "last_price",
            "average_price",
            "available_stock",
            "stock_status",
            "is_active",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "last_price",
            "average_price",
            "created_at",
            "updated_at",
        ]

    def _amount(self, obj):
        cache = self.context.setdefault("_available", {})
        if obj.pk not in cache:
            cache[obj.pk] = available_amount(obj)
        return cache[obj.pk]

    def get_available_stock(self, obj) -> str:
        return str(self._amount(obj))

    def get_stock_status(self, obj) -> str:
        return stock_level(obj, self._amount(obj))

    def validate_code(self, value):
        code = (value or "").strip().upper()
        if not code:
            raise serializers.ValidationError("code is required")
        return code


class WeightCalculationSerializer(serializers.Serializer):
    shape = serializers.CharField()
    length_mm = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    density = serializers.DecimalField(
        max_digits=6, decimal_places=3, required=False, allow_null=True
    )
    material_type = serializers.CharField(required=False, allow_blank=True)
    diameter_mm = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True
    )
    width_mm = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True
    )
    height_mm = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True
    )
    wall_mm = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True
    )


class CatalogImportSerializer(serializers.Serializer):
    rows = serializers.ListField(child=serializers.DictField(), allow_empty=False)
    mapping = serializers.DictField(child=serializers.CharField(), required=False)
