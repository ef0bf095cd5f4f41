# inventory/views/material.py

"""
MATERIAL VIEWSET

Purpose:
- CRUD for MaterialSpec metadata.
- Stock read-outs: per-material totals and the low-stock list.
- Catalog import (rows already parsed by the client).
- Weight calculator.

RULES:
- Stock is never edited here; lots and movements own it.
- Materials with lots, movements or project usages cannot be deleted
  (deactivate them instead).
"""

from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Q
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.models import MaterialSpec
from inventory.serializers import (
    CatalogImportSerializer,
    MaterialSpecSerializer,
    WeightCalculationSerializer,
)
from inventory.services.catalog_import import import_catalog_rows
from inventory.services.metal_math import calculate_weight, density_for, weight_per_meter
from inventory.services.stock_alerts import get_low_stock_materials, stock_level
from inventory.services.stock_allocation import (
    allocation_basis,
    available_amount,
    total_available_stock,
)
from inventory.views.errors import HANDLED_ERRORS, as_drf_validation_error, error_response
from permissions.roles import (
    CAP_CATALOG_IMPORT,
    CAP_INVENTORY_ADJUST,
    CAP_INVENTORY_EDIT,
    CAP_INVENTORY_VIEW,
    HasAnyCapability,
    HasCapability,
)


class MaterialSpecViewSet(viewsets.ModelViewSet):
    serializer_class = MaterialSpecSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["category", "material_type", "shape", "unit", "is_active"]

    required_capability = None
    required_any_capabilities = None

    def get_permissions(self):
        # reset per request
        self.required_capability = None
        self.required_any_capabilities = None

        if self.action in {"list", "retrieve", "stock", "low_stock", "weight"}:
            self.required_any_capabilities = {
                CAP_INVENTORY_VIEW,
                CAP_INVENTORY_EDIT,
                CAP_INVENTORY_ADJUST,
            }
            return [IsAuthenticated(), HasAnyCapability()]

        if self.action == "import_catalog":
            self.required_capability = CAP_CATALOG_IMPORT
            return [IsAuthenticated(), HasCapability()]

        if self.action in {"create", "update", "partial_update", "destroy"}:
            self.required_capability = CAP_INVENTORY_EDIT
            return [IsAuthenticated(), HasCapability()]

        return [IsAuthenticated()]

    def get_queryset(self):
        qs = MaterialSpec.objects.all().order_by("code")

        search = (self.request.query_params.get("search") or "").strip()
        if search:
            qs = qs.filter(Q(code__icontains=search) | Q(description__icontains=search))

        return qs

    def perform_create(self, serializer):
        try:
            serializer.save()
        except DjangoValidationError as exc:
            raise as_drf_validation_error(exc) from exc

    def perform_update(self, serializer):
        try:
            serializer.save()
        except DjangoValidationError as exc:
            raise as_drf_validation_error(exc) from exc

    def destroy(self, request, *args, **kwargs):
        material = self.get_object()
        try:
            material.delete()
        except HANDLED_ERRORS as exc:
            return error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # -------------------------------------------------
    # STOCK READ-OUTS
    # -------------------------------------------------
    @action(detail=True, methods=["get"], url_path="stock")
    def stock(self, request, pk=None):
        material = self.get_object()
        totals = total_available_stock(material)
        amount = available_amount(material, totals)

        return Response(
            {
                "material": str(material.id),
                "code": material.code,
                "unit": material.unit,
                "basis": allocation_basis(material, totals),
                "available": str(amount),
                "quantity": str(totals["quantity"]),
                "weight": str(totals["weight"]),
                "length_mm": str(totals["length"]),
                "status": stock_level(material, amount),
            }
        )

    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request):
        rows = get_low_stock_materials()
        results = [
            {
                "material": str(r["material"].id),
                "code": r["material"].code,
                "description": r["material"].description,
                "current_stock": str(r["current_stock"]),
                "min_stock": str(r["min_stock"]),
                "safety_stock": str(r["safety_stock"]),
                "status": r["status"],
                "unit": r["unit"],
            }
            for r in rows
        ]
        return Response({"count": len(results), "results": results})

    # -------------------------------------------------
    # CATALOG IMPORT
    # -------------------------------------------------
    @action(detail=False, methods=["post"], url_path="import")
    def import_catalog(self, request):
        serializer = CatalogImportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        v = serializer.validated_data

        result = import_catalog_rows(v["rows"], mapping=v.get("mapping"), user=request.user)
        return Response(result, status=status.HTTP_200_OK)

    # -------------------------------------------------
    # CALCULATOR
    # -------------------------------------------------
    @action(detail=False, methods=["post"], url_path="weight")
    def weight(self, request):
        serializer = WeightCalculationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        v = serializer.validated_data

        density = v.get("density") or density_for(v.get("material_type"))
        dims = {
            f: v.get(f)
            for f in ("diameter_mm", "width_mm", "height_mm", "wall_mm")
            if v.get(f) is not None
        }

        try:
            weight_kg = calculate_weight(v["shape"], dims, v["length_mm"], density)
            per_meter = weight_per_meter(v["shape"], dims, density)
        except HANDLED_ERRORS as exc:
            return error_response(exc)

        return Response(
            {
                "shape": v["shape"],
                "length_mm": str(v["length_mm"]),
                "density": str(density),
                "weight_kg": str(weight_kg),
                "weight_per_meter": str(per_meter),
            }
        )
