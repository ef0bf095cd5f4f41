# projects/serializers/project.py

"""
PROJECT SERIALIZERS

Rules:
- reference, budget_total and every cost_* field are read-only (derived).
- status is settable on create only; later changes go through the
  transition action so the lifecycle rules apply.
"""

from __future__ import annotations

from rest_framework import serializers

from projects.models import LaborEntry, OtherCost, Project, ProjectMaterialUsage


class ProjectMaterialUsageSerializer(serializers.ModelSerializer):
    material_code = serializers.CharField(source="material.code", read_only=True)

    class Meta:
        model = ProjectMaterialUsage
        fields = [
            "id",
            "material",
            "material_code",
            "quantity",
            "unit",
            "unit_cost",
            "total_cost",
            "movement",
            "added_by",
            "added_at",
            "notes",
        ]
        read_only_fields = fields


class LaborEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = LaborEntry
        fields = [
            "id",
            "date",
            "worker",
            "hours",
            "hourly_rate",
            "description",
            "total_cost",
            "created_at",
        ]
        read_only_fields = ["id", "total_cost", "created_at"]

    def validate_hours(self, value):
        if value < 0:
            raise serializers.ValidationError("hours cannot be negative")
        return value

    def validate_hourly_rate(self, value):
        if value < 0:
            raise serializers.ValidationError("hourly_rate cannot be negative")
        return value


class OtherCostSerializer(serializers.ModelSerializer):
    class Meta:
        model = OtherCost
        fields = ["id", "date", "description", "amount", "created_at"]
        read_only_fields = ["id", "created_at"]

    def validate_amount(self, value):
        if value < 0:
            raise serializers.ValidationError("amount cannot be negative")
        return value


class ProjectSerializer(serializers.ModelSerializer):
    class Meta:
        model = Project
        fields = [
            "id",
            "reference",
            "name",
            "client",
            "description",
            "start_date",
            "end_date",
            "actual_end_date",
            "status",
            "budget_materials",
            "budget_labor",
            "budget_other",
            "budget_total",
            "cost_materials",
            "cost_labor",
            "cost_other",
            "cost_total",
            "sale_value",
            "created_by",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "reference",
            "actual_end_date",
            "budget_total",
            "cost_materials",
            "cost_labor",
            "cost_other",
            "cost_total",
            "created_by",
            "created_at",
            "updated_at",
        ]

    def validate_status(self, value):
        if self.instance is not None and value != self.instance.status:
            raise serializers.ValidationError(
                "Use the transition endpoint to change a project's status."
            )
        if self.instance is None and value not in {Project.Status.DRAFT, Project.Status.ACTIVE}:
            raise serializers.ValidationError("New projects start as draft or active.")
        return value

    def validate(self, attrs):
        start = attrs.get("start_date", getattr(self.instance, "start_date", None))
        end = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if start and end and end < start:
            raise serializers.ValidationError({"end_date": "end_date cannot be before start_date"})
        return attrs


class ProjectDetailSerializer(ProjectSerializer):
    material_usages = ProjectMaterialUsageSerializer(many=True, read_only=True)
    labor_entries = LaborEntrySerializer(many=True, read_only=True)
    other_costs = OtherCostSerializer(many=True, read_only=True)

    class Meta(ProjectSerializer.Meta):
        fields = ProjectSerializer.Meta.fields + [
            "material_usages",
            "labor_entries",
            "other_costs",
        ]


class AddMaterialSerializer(serializers.Serializer):
    material = serializers.UUIDField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=4)
    unit = serializers.ChoiceField(
        choices=["kg", "m", "mm", "un"], required=False, allow_null=True
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("quantity must be greater than zero")
        return value


class TransitionSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Project.Status.choices)
