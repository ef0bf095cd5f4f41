# inventory/admin.py

"""
Admin rules:

- MaterialSpec metadata is editable; prices are read-only (they move with intake).
- Stock lots and movements are view-only. Stock changes go through the
  API services so every change pairs with a ledger entry.
"""

from __future__ import annotations

from django.contrib import admin

from inventory.models import MaterialSpec, StockAlert, StockLot, StockMovement
from inventory.services.stock_alerts import stock_level
from inventory.services.stock_allocation import available_amount


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(MaterialSpec)
class MaterialSpecAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "description",
        "material_type",
        "shape",
        "unit",
        "weight_per_meter",
        "available_stock",
        "stock_status",
        "is_active",
    )
    list_filter = ("is_active", "category", "material_type", "shape", "unit")
    search_fields = ("code", "description")
    ordering = ("code",)
    readonly_fields = ("last_price", "average_price", "created_at", "updated_at")

    def available_stock(self, obj):
        return available_amount(obj)

    def stock_status(self, obj):
        return stock_level(obj)


@admin.register(StockLot)
class StockLotAdmin(ReadOnlyAdmin):
    list_display = (
        "material",
        "kind",
        "count",
        "length_mm",
        "weight",
        "status",
        "location",
        "created_at",
    )
    list_filter = ("kind", "status", "created_at")
    search_fields = ("material__code", "batch_ref", "location")
    ordering = ("material__code", "created_at")


@admin.register(StockMovement)
class StockMovementAdmin(ReadOnlyAdmin):
    list_display = (
        "occurred_at",
        "movement_type",
        "material",
        "quantity_delta",
        "unit",
        "cost_snapshot",
        "total_cost",
        "project_reference",
        "performed_by",
    )
    list_filter = ("movement_type", "unit", "occurred_at")
    search_fields = ("material__code", "project_reference", "notes")
    ordering = ("-occurred_at",)


@admin.register(StockAlert)
class StockAlertAdmin(ReadOnlyAdmin):
    list_display = ("material", "level", "stock_amount", "min_stock", "safety_stock", "created_at")
    list_filter = ("level", "created_at")
    ordering = ("-created_at",)
