# inventory/views/stock.py

"""
STOCK LOT & MOVEMENT VIEWSETS

Lots:
- POST /lots/            intake (lot + IN movement)
- POST /lots/{id}/adjust/
- POST /lots/{id}/cut/
- No PUT/PATCH/DELETE: quantities are service-managed.

Movements:
- Read-only ledger, filterable by type, material and project reference.
- /movements/cost-summary/ totals per movement type for a period.
"""

from __future__ import annotations

from datetime import datetime

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.models import StockLot, StockMovement
from inventory.serializers import (
    StockAdjustSerializer,
    StockCutSerializer,
    StockIntakeSerializer,
    StockLotSerializer,
    StockMovementSerializer,
)
from inventory.services.movements import movement_cost_summary
from inventory.services.stock_operations import adjust_lot, cut_lot, intake_lot
from inventory.views.errors import HANDLED_ERRORS, error_response
from permissions.roles import (
    CAP_INVENTORY_ADJUST,
    CAP_INVENTORY_EDIT,
    CAP_INVENTORY_VIEW,
    CAP_REPORTS_VIEW,
    HasAnyCapability,
    HasCapability,
)


VIEW_CAPABILITIES = {CAP_INVENTORY_VIEW, CAP_INVENTORY_EDIT, CAP_INVENTORY_ADJUST}


def _parse_date(raw: str):
    try:
        return datetime.strptime(raw, "%Y-%m-%d").date()
    except ValueError:
        return None


class StockLotViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = StockLotSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["material", "kind", "status"]

    required_capability = None
    required_any_capabilities = None

    def get_permissions(self):
        self.required_capability = None
        self.required_any_capabilities = None

        if self.action in {"list", "retrieve"}:
            self.required_any_capabilities = VIEW_CAPABILITIES
            return [IsAuthenticated(), HasAnyCapability()]

        if self.action in {"create", "cut"}:
            self.required_capability = CAP_INVENTORY_EDIT
            return [IsAuthenticated(), HasCapability()]

        if self.action == "adjust":
            self.required_capability = CAP_INVENTORY_ADJUST
            return [IsAuthenticated(), HasCapability()]

        return [IsAuthenticated()]

    def get_queryset(self):
        qs = StockLot.objects.select_related("material").order_by("material__code", "created_at")

        include_consumed = (self.request.query_params.get("include_consumed") or "").strip().lower()
        if include_consumed not in {"1", "true", "yes"} and not self.request.query_params.get("status"):
            qs = qs.exclude(status=StockLot.Status.CONSUMED)

        return qs

    def create(self, request, *args, **kwargs):
        """POST /api/inventory/lots/ - receive stock into a new lot."""
        serializer = StockIntakeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        v = serializer.validated_data

        try:
            lot = intake_lot(
                material=v["material"],
                count=v["count"],
                length_mm=v.get("length_mm"),
                kind=v["kind"],
                unit_cost=v.get("unit_cost"),
                location=v.get("location", ""),
                batch_ref=v.get("batch_ref", ""),
                notes=v.get("notes", ""),
                user=request.user,
            )
        except HANDLED_ERRORS as exc:
            return error_response(exc)

        return Response(StockLotSerializer(lot).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"], url_path="adjust")
    def adjust(self, request, pk=None):
        lot = self.get_object()
        serializer = StockAdjustSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        v = serializer.validated_data

        try:
            movement = adjust_lot(
                lot=lot,
                count_delta=v["count_delta"],
                user=request.user,
                notes=v.get("notes", ""),
            )
        except HANDLED_ERRORS as exc:
            return error_response(exc)

        lot.refresh_from_db()
        return Response(
            {
                "lot": StockLotSerializer(lot).data,
                "movement": StockMovementSerializer(movement).data,
            },
            status=status.HTTP_200_OK,
        )

    @action(detail=True, methods=["post"], url_path="cut")
    def cut(self, request, pk=None):
        lot = self.get_object()
        serializer = StockCutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        v = serializer.validated_data

        try:
            result = cut_lot(
                lot=lot,
                cut_length_mm=v["cut_length_mm"],
                remainder_action=v["remainder_action"],
                user=request.user,
                project_reference=v.get("project_reference", ""),
                notes=v.get("notes", ""),
            )
        except HANDLED_ERRORS as exc:
            return error_response(exc)

        return Response(
            {
                "lot": StockLotSerializer(result.lot).data,
                "offcut": StockLotSerializer(result.offcut).data if result.offcut else None,
                "movement": StockMovementSerializer(result.movement).data,
            },
            status=status.HTTP_200_OK,
        )


class StockMovementViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = StockMovementSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["movement_type", "material", "lot", "project_reference"]

    required_capability = None
    required_any_capabilities = None

    def get_permissions(self):
        self.required_capability = None
        self.required_any_capabilities = None

        if self.action == "cost_summary":
            self.required_capability = CAP_REPORTS_VIEW
            return [IsAuthenticated(), HasCapability()]

        self.required_any_capabilities = VIEW_CAPABILITIES
        return [IsAuthenticated(), HasAnyCapability()]

    def get_queryset(self):
        qs = StockMovement.objects.select_related("material", "lot", "performed_by").order_by(
            "-occurred_at", "-created_at"
        )

        date_from = _parse_date((self.request.query_params.get("date_from") or "").strip())
        date_to = _parse_date((self.request.query_params.get("date_to") or "").strip())
        if date_from:
            qs = qs.filter(occurred_at__date__gte=date_from)
        if date_to:
            qs = qs.filter(occurred_at__date__lte=date_to)

        return qs

    @action(detail=False, methods=["get"], url_path="cost-summary")
    def cost_summary(self, request):
        params = request.query_params
        raw_from = (params.get("date_from") or "").strip()
        raw_to = (params.get("date_to") or "").strip()

        date_from = _parse_date(raw_from) if raw_from else None
        if raw_from and not date_from:
            return Response({"detail": "date_from must be YYYY-MM-DD"}, status=400)

        date_to = _parse_date(raw_to) if raw_to else None
        if raw_to and not date_to:
            return Response({"detail": "date_to must be YYYY-MM-DD"}, status=400)

        summary = movement_cost_summary(
            date_from=date_from,
            date_to=date_to,
            movement_type=(params.get("movement_type") or "").strip() or None,
            material=(params.get("material") or "").strip() or None,
        )

        return Response(
            {
                "date_from": summary["date_from"],
                "date_to": summary["date_to"],
                "total_cost": str(summary["total_cost"]),
                "by_type": {
                    key: {
                        "movements": row["movements"],
                        "quantity": str(row["quantity"]),
                        "total_cost": str(row["total_cost"]),
                    }
                    for key, row in summary["by_type"].items()
                },
            }
        )
