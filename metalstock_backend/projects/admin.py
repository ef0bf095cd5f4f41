# projects/admin.py

"""
Admin rules:

- Project metadata and budget are editable; cost aggregates are read-only.
- Material usages are view-only inlines: issuing and returning stock must go
  through the API so the ledger and lots stay in step.
- Labor entries and other costs are editable inline; the project's save
  recomputes the aggregates afterwards.
"""

from __future__ import annotations

from django.contrib import admin

from projects.models import LaborEntry, OtherCost, Project, ProjectMaterialUsage
from projects.services.cost_reconciler import reconcile_project_costs


class ProjectMaterialUsageInline(admin.TabularInline):
    model = ProjectMaterialUsage
    extra = 0
    can_delete = False
    fields = ("material", "quantity", "unit", "unit_cost", "total_cost", "added_at")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


class LaborEntryInline(admin.TabularInline):
    model = LaborEntry
    extra = 0
    fields = ("date", "worker", "hours", "hourly_rate", "total_cost", "description")
    readonly_fields = ("total_cost",)


class OtherCostInline(admin.TabularInline):
    model = OtherCost
    extra = 0
    fields = ("date", "description", "amount")


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = (
        "reference",
        "name",
        "client",
        "status",
        "budget_total",
        "cost_total",
        "sale_value",
        "start_date",
        "end_date",
    )
    list_filter = ("status", "start_date")
    search_fields = ("reference", "name", "client")
    ordering = ("-created_at",)
    readonly_fields = (
        "reference",
        "budget_total",
        "cost_materials",
        "cost_labor",
        "cost_other",
        "cost_total",
        "actual_end_date",
        "created_by",
        "created_at",
        "updated_at",
    )

    inlines = [ProjectMaterialUsageInline, LaborEntryInline, OtherCostInline]

    def save_model(self, request, obj, form, change):
        if not change and obj.created_by_id is None:
            obj.created_by = request.user
        super().save_model(request, obj, form, change)

    def save_related(self, request, form, formsets, change):
        super().save_related(request, form, formsets, change)
        reconcile_project_costs(form.instance)

    def has_delete_permission(self, request, obj=None):
        if obj is not None and obj.material_usages.exists():
            return False
        return super().has_delete_permission(request, obj)
