# projects/views/project.py

"""
PROJECT VIEWSET

Purpose:
- Project CRUD (aggregates and reference are read-only).
- Status transitions through the lifecycle service.
- Material issue/return, labor entries and other costs, each through its
  service so stock, ledger and aggregates move together.
- Stats and next-reference read-outs.

RULES:
- Completing or cancelling needs projects.close; other changes projects.edit.
- A project still holding material cannot be deleted (409).
"""

from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.views.errors import HANDLED_ERRORS, as_drf_validation_error, error_response
from permissions.roles import (
    CAP_PROJECTS_CLOSE,
    CAP_PROJECTS_EDIT,
    CAP_PROJECTS_VIEW,
    CAP_REPORTS_VIEW,
    HasAnyCapability,
    HasCapability,
    user_has_capability,
)
from projects.models import Project
from projects.serializers import (
    AddMaterialSerializer,
    LaborEntrySerializer,
    OtherCostSerializer,
    ProjectDetailSerializer,
    ProjectMaterialUsageSerializer,
    ProjectSerializer,
    TransitionSerializer,
)
from projects.services.exceptions import (
    InvalidProjectTransitionError,
    ProjectChildNotFoundError,
    ProjectClosedError,
    ProjectNotFoundError,
    ProjectServiceError,
)
from projects.services.labor import (
    add_labor_entry,
    add_other_cost,
    remove_labor_entry,
    remove_other_cost,
)
from projects.services.lifecycle import transition_project
from projects.services.project_materials import (
    add_material_to_project,
    remove_material_from_project,
)
from projects.services.stats import generate_project_reference, project_stats


CLOSING_STATUSES = {Project.Status.COMPLETED, Project.Status.CANCELLED}


def project_error_response(exc: Exception) -> Response:
    if isinstance(exc, (ProjectNotFoundError, ProjectChildNotFoundError)):
        return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, (ProjectClosedError, InvalidProjectTransitionError)):
        return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
    if isinstance(exc, ProjectServiceError):
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    return error_response(exc)


PROJECT_ERRORS = (ProjectServiceError, *HANDLED_ERRORS)


class ProjectViewSet(viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated]
    filterset_fields = ["status", "client"]

    required_capability = None
    required_any_capabilities = None

    def get_permissions(self):
        # reset per request
        self.required_capability = None
        self.required_any_capabilities = None

        listing_children = (
            self.action in {"materials", "labor", "other_costs"}
            and self.request.method == "GET"
        )

        if self.action in {"list", "retrieve", "next_reference"} or listing_children:
            self.required_any_capabilities = {CAP_PROJECTS_VIEW, CAP_PROJECTS_EDIT}
            return [IsAuthenticated(), HasAnyCapability()]

        if self.action == "stats":
            self.required_any_capabilities = {CAP_PROJECTS_VIEW, CAP_REPORTS_VIEW}
            return [IsAuthenticated(), HasAnyCapability()]

        if self.action == "destroy":
            self.required_capability = CAP_PROJECTS_CLOSE
            return [IsAuthenticated(), HasCapability()]

        if self.action in {
            "create",
            "update",
            "partial_update",
            "transition",
            "materials",
            "remove_material",
            "labor",
            "remove_labor",
            "other_costs",
            "remove_other_cost",
        }:
            self.required_capability = CAP_PROJECTS_EDIT
            return [IsAuthenticated(), HasCapability()]

        return [IsAuthenticated()]

    def get_serializer_class(self):
        if self.action == "retrieve":
            return ProjectDetailSerializer
        return ProjectSerializer

    def get_queryset(self):
        qs = Project.objects.all().order_by("-created_at")
        if self.action == "retrieve":
            qs = qs.prefetch_related("material_usages__material", "labor_entries", "other_costs")
        return qs

    # -------------------------------------------------
    # CRUD
    # -------------------------------------------------
    def perform_create(self, serializer):
        try:
            serializer.save(created_by=self.request.user)
        except DjangoValidationError as exc:
            raise as_drf_validation_error(exc) from exc

    def perform_update(self, serializer):
        try:
            serializer.save()
        except DjangoValidationError as exc:
            raise as_drf_validation_error(exc) from exc

    def destroy(self, request, *args, **kwargs):
        project = self.get_object()
        try:
            project.delete()
        except DjangoValidationError as exc:
            return Response({"detail": " ".join(exc.messages)}, status=status.HTTP_409_CONFLICT)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # -------------------------------------------------
    # LIFECYCLE
    # -------------------------------------------------
    @action(detail=True, methods=["post"], url_path="transition")
    def transition(self, request, pk=None):
        project = self.get_object()
        serializer = TransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        new_status = serializer.validated_data["status"]

        if new_status in CLOSING_STATUSES and not user_has_capability(
            request.user, CAP_PROJECTS_CLOSE
        ):
            return Response(
                {"detail": "You do not have permission to close projects."},
                status=status.HTTP_403_FORBIDDEN,
            )

        try:
            project = transition_project(project, new_status, user=request.user)
        except PROJECT_ERRORS as exc:
            return project_error_response(exc)

        return Response(ProjectSerializer(project).data)

    # -------------------------------------------------
    # MATERIALS
    # -------------------------------------------------
    @action(detail=True, methods=["get", "post"], url_path="materials")
    def materials(self, request, pk=None):
        project = self.get_object()

        if request.method == "GET":
            usages = project.material_usages.select_related("material")
            return Response(ProjectMaterialUsageSerializer(usages, many=True).data)

        serializer = AddMaterialSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        v = serializer.validated_data

        try:
            usage = add_material_to_project(
                project.pk,
                v["material"],
                v["quantity"],
                unit=v.get("unit"),
                user=request.user,
                notes=v.get("notes", ""),
            )
        except PROJECT_ERRORS as exc:
            return project_error_response(exc)

        project.refresh_from_db()
        return Response(
            {
                "usage": ProjectMaterialUsageSerializer(usage).data,
                "project": ProjectSerializer(project).data,
            },
            status=status.HTTP_201_CREATED,
        )

    @action(
        detail=True,
        methods=["delete"],
        url_path=r"materials/(?P<usage_id>[^/.]+)",
    )
    def remove_material(self, request, pk=None, usage_id=None):
        project = self.get_object()
        try:
            remove_material_from_project(project.pk, usage_id, user=request.user)
        except PROJECT_ERRORS as exc:
            return project_error_response(exc)

        project.refresh_from_db()
        return Response(ProjectSerializer(project).data)

    # -------------------------------------------------
    # LABOR
    # -------------------------------------------------
    @action(detail=True, methods=["get", "post"], url_path="labor")
    def labor(self, request, pk=None):
        project = self.get_object()

        if request.method == "GET":
            return Response(LaborEntrySerializer(project.labor_entries.all(), many=True).data)

        serializer = LaborEntrySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        v = serializer.validated_data

        try:
            entry = add_labor_entry(
                project.pk,
                worker=v["worker"],
                hours=v["hours"],
                hourly_rate=v["hourly_rate"],
                date=v.get("date"),
                description=v.get("description", ""),
                user=request.user,
            )
        except PROJECT_ERRORS as exc:
            return project_error_response(exc)

        return Response(LaborEntrySerializer(entry).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["delete"], url_path=r"labor/(?P<entry_id>[^/.]+)")
    def remove_labor(self, request, pk=None, entry_id=None):
        project = self.get_object()
        try:
            remove_labor_entry(project.pk, entry_id, user=request.user)
        except PROJECT_ERRORS as exc:
            return project_error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # -------------------------------------------------
    # OTHER COSTS
    # -------------------------------------------------
    @action(detail=True, methods=["get", "post"], url_path="other-costs")
    def other_costs(self, request, pk=None):
        project = self.get_object()

        if request.method == "GET":
            return Response(OtherCostSerializer(project.other_costs.all(), many=True).data)

        serializer = OtherCostSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        v = serializer.validated_data

        try:
            cost = add_other_cost(
                project.pk,
                description=v["description"],
                amount=v["amount"],
                date=v.get("date"),
                user=request.user,
            )
        except PROJECT_ERRORS as exc:
            return project_error_response(exc)

        return Response(OtherCostSerializer(cost).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["delete"], url_path=r"other-costs/(?P<cost_id>[^/.]+)")
    def remove_other_cost(self, request, pk=None, cost_id=None):
        project = self.get_object()
        try:
            remove_other_cost(project.pk, cost_id, user=request.user)
        except PROJECT_ERRORS as exc:
            return project_error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # -------------------------------------------------
    # REPORTING
    # -------------------------------------------------
    @action(detail=True, methods=["get"], url_path="stats")
    def stats(self, request, pk=None):
        project = self.get_object()
        data = project_stats(project)

        for key in (
            "margin",
            "margin_percent",
            "budget_used_percent",
            "labor_hours",
            "cost_materials",
            "ledger_material_cost",
        ):
            data[key] = str(data[key])

        return Response(data)

    @action(detail=False, methods=["get"], url_path="next-reference")
    def next_reference(self, request):
        raw_year = (request.query_params.get("year") or "").strip()
        if raw_year and not raw_year.isdigit():
            return Response({"detail": "year must be a number"}, status=400)

        return Response({"reference": generate_project_reference(int(raw_year) if raw_year else None)})
