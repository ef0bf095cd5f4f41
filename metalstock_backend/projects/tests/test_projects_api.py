# projects/tests/test_projects_api.py

from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from inventory.models import MaterialSpec, StockMovement
from inventory.services.stock_operations import intake_lot
from permissions.roles import ROLE_MANAGER, ROLE_OPERATOR, ROLE_VIEWER
from projects.models import Project, ProjectMaterialUsage


User = get_user_model()

PROJECTS_URL = "/api/projects/projects/"


class ProjectApiTestBase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.manager = User.objects.create_user(
            email="manager@example.com", password="password123", role=ROLE_MANAGER
        )
        self.operator = User.objects.create_user(
            email="operator@example.com", password="password123", role=ROLE_OPERATOR
        )
        self.viewer = User.objects.create_user(
            email="viewer@example.com", password="password123", role=ROLE_VIEWER
        )

        self.material = MaterialSpec.objects.create(
            code="AC4R020",
            description="Varão aço redondo Ø20",
            weight_per_meter=Decimal("2.0000"),
        )
        intake_lot(material=self.material, count=2, unit_cost="1.50")

        self.project = Project.objects.create(
            name="Escada exterior",
            client="Moradia Pinheiro",
            start_date=date(2026, 5, 4),
            sale_value=Decimal("500"),
        )

    def url(self, suffix=""):
        return f"{PROJECTS_URL}{self.project.id}/{suffix}"


class ProjectCrudApiTests(ProjectApiTestBase):
    """
    GUARANTEES:
    - Viewers read, editors write, only closers delete
    - reference and cost fields cannot be written
    - status changes after creation go through transition/
    """

    def test_anonymous_is_rejected(self):
        res = self.client.get(PROJECTS_URL)
        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_viewer_lists_projects(self):
        self.client.force_authenticate(self.viewer)
        res = self.client.get(PROJECTS_URL)

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["count"], 1)
        self.assertEqual(res.data["results"][0]["reference"], "PRJ-2026-001")

    def test_viewer_cannot_create(self):
        self.client.force_authenticate(self.viewer)
        res = self.client.post(
            PROJECTS_URL,
            {"name": "X", "client": "Y", "start_date": "2026-05-01"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_operator_creates_project(self):
        self.client.force_authenticate(self.operator)
        res = self.client.post(
            PROJECTS_URL,
            {
                "name": "Pérgula",
                "client": "Hotel Mar",
                "start_date": "2026-06-01",
                "budget_materials": "300.00",
                "budget_labor": "200.00",
                "reference": "PRJ-2026-900",
                "cost_total": "999",
                "status": "draft",
            },
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["reference"], "PRJ-2026-002")
        self.assertEqual(res.data["status"], "draft")
        self.assertEqual(Decimal(res.data["budget_total"]), Decimal("500"))
        self.assertEqual(Decimal(res.data["cost_total"]), Decimal("0"))
        self.assertEqual(str(res.data["created_by"]), str(self.operator.id))

    def test_new_project_cannot_start_completed(self):
        self.client.force_authenticate(self.manager)
        res = self.client.post(
            PROJECTS_URL,
            {"name": "X", "client": "Y", "start_date": "2026-05-01", "status": "completed"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status_cannot_be_patched(self):
        self.client.force_authenticate(self.manager)
        res = self.client.patch(self.url(), {"status": "on_hold"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_end_date_before_start(self):
        self.client.force_authenticate(self.manager)
        res = self.client.patch(self.url(), {"end_date": "2026-01-01"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_detail_includes_children(self):
        self.client.force_authenticate(self.viewer)
        res = self.client.get(self.url())

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["material_usages"], [])
        self.assertEqual(res.data["labor_entries"], [])

    def test_delete_needs_close_capability(self):
        self.client.force_authenticate(self.operator)
        res = self.client.delete(self.url())
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.manager)
        res = self.client.delete(self.url())
        self.assertEqual(res.status_code, status.HTTP_204_NO_CONTENT)

    def test_project_holding_material_cannot_be_deleted(self):
        self.client.force_authenticate(self.manager)
        self.client.post(
            self.url("materials/"),
            {"material": str(self.material.id), "quantity": "1"},
            format="json",
        )

        res = self.client.delete(self.url())
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(Project.objects.filter(pk=self.project.pk).exists())

    def test_next_reference(self):
        self.client.force_authenticate(self.viewer)

        res = self.client.get(f"{PROJECTS_URL}next-reference/", {"year": "2026"})
        self.assertEqual(res.data["reference"], "PRJ-2026-002")

        res = self.client.get(f"{PROJECTS_URL}next-reference/", {"year": "soon"})
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)


class ProjectTransitionApiTests(ProjectApiTestBase):
    def test_operator_can_pause_but_not_close(self):
        self.client.force_authenticate(self.operator)

        res = self.client.post(self.url("transition/"), {"status": "on_hold"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["status"], "on_hold")

        res = self.client.post(self.url("transition/"), {"status": "cancelled"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_manager_completes(self):
        self.client.force_authenticate(self.manager)
        res = self.client.post(self.url("transition/"), {"status": "completed"}, format="json")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(res.data["actual_end_date"])

    def test_invalid_transition_is_a_conflict(self):
        Project.objects.filter(pk=self.project.pk).update(status=Project.Status.COMPLETED)
        self.client.force_authenticate(self.manager)

        res = self.client.post(self.url("transition/"), {"status": "active"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)

    def test_unknown_status(self):
        self.client.force_authenticate(self.manager)
        res = self.client.post(self.url("transition/"), {"status": "archived"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)


class ProjectMaterialApiTests(ProjectApiTestBase):
    """
    GUARANTEES:
    - POST materials/ issues stock and returns the usage with the refreshed project
    - Shortages are a 400 carrying available and requested
    - DELETE materials/{id}/ returns the stock
    """

    def test_issue_and_return(self):
        self.client.force_authenticate(self.operator)

        res = self.client.post(
            self.url("materials/"),
            {"material": str(self.material.id), "quantity": "5", "notes": "Degraus"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["usage"]["material_code"], "AC4R020")
        self.assertEqual(Decimal(res.data["usage"]["total_cost"]), Decimal("7.50"))
        self.assertEqual(Decimal(res.data["project"]["cost_materials"]), Decimal("7.50"))

        res = self.client.get(self.url("materials/"))
        self.assertEqual(len(res.data), 1)
        usage_id = res.data[0]["id"]

        res = self.client.delete(self.url(f"materials/{usage_id}/"))
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(res.data["cost_materials"]), Decimal("0"))
        self.assertEqual(
            StockMovement.objects.filter(project_reference=self.project.reference).count(), 2
        )

    def test_insufficient_stock(self):
        self.client.force_authenticate(self.operator)
        res = self.client.post(
            self.url("materials/"),
            {"material": str(self.material.id), "quantity": "100"},
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Decimal(res.data["available"]), Decimal("24"))
        self.assertEqual(Decimal(res.data["requested"]), Decimal("100"))
        self.assertFalse(ProjectMaterialUsage.objects.exists())

    def test_unknown_material(self):
        self.client.force_authenticate(self.operator)
        res = self.client.post(
            self.url("materials/"),
            {"material": "00000000-0000-0000-0000-000000000000", "quantity": "1"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

    def test_closed_project_is_a_conflict(self):
        Project.objects.filter(pk=self.project.pk).update(status=Project.Status.CANCELLED)
        self.client.force_authenticate(self.operator)

        res = self.client.post(
            self.url("materials/"),
            {"material": str(self.material.id), "quantity": "1"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)

    def test_unknown_usage(self):
        self.client.force_authenticate(self.operator)
        res = self.client.delete(self.url("materials/00000000-0000-0000-0000-000000000000/"))
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

    def test_viewer_cannot_issue(self):
        self.client.force_authenticate(self.viewer)
        res = self.client.post(
            self.url("materials/"),
            {"material": str(self.material.id), "quantity": "1"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)


class ProjectCostApiTests(ProjectApiTestBase):
    def test_labor_round_trip(self):
        self.client.force_authenticate(self.operator)

        res = self.client.post(
            self.url("labor/"),
            {"worker": "Rui", "hours": "4", "hourly_rate": "20"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Decimal(res.data["total_cost"]), Decimal("80"))

        entry_id = res.data["id"]
        res = self.client.delete(self.url(f"labor/{entry_id}/"))
        self.assertEqual(res.status_code, status.HTTP_204_NO_CONTENT)

        self.project.refresh_from_db()
        self.assertEqual(self.project.cost_labor, Decimal("0"))

    def test_negative_labor_is_rejected(self):
        self.client.force_authenticate(self.operator)
        res = self.client.post(
            self.url("labor/"),
            {"worker": "Rui", "hours": "-4", "hourly_rate": "20"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_other_costs(self):
        self.client.force_authenticate(self.operator)

        res = self.client.post(
            self.url("other-costs/"),
            {"description": "Grua", "amount": "120.00"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)

        res = self.client.get(self.url("other-costs/"))
        self.assertEqual(len(res.data), 1)

        self.project.refresh_from_db()
        self.assertEqual(self.project.cost_other, Decimal("120.00"))

    def test_stats(self):
        self.client.force_authenticate(self.operator)
        self.client.post(
            self.url("labor/"),
            {"worker": "Rui", "hours": "5", "hourly_rate": "20"},
            format="json",
        )

        self.client.force_authenticate(self.viewer)
        res = self.client.get(self.url("stats/"))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["margin"], "400.00")
        self.assertEqual(res.data["margin_percent"], "80.0")
        self.assertTrue(res.data["is_profitable"])
        self.assertTrue(res.data["ledger_matches"])
