# projects/tests/test_project_materials.py

import uuid
from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase

from inventory.models import MaterialSpec, StockLot, StockMovement
from inventory.services.exceptions import InsufficientStockError, MaterialNotFoundError
from inventory.services.movements import project_material_cost
from inventory.services.stock_allocation import available_amount
from inventory.services.stock_operations import intake_lot
from projects.models import Project, ProjectMaterialUsage
from projects.services.exceptions import (
    ProjectClosedError,
    ProjectNotFoundError,
    UsageNotFoundError,
)
from projects.services.lifecycle import transition_project
from projects.services.project_materials import (
    add_material_to_project,
    remove_material_from_project,
)


User = get_user_model()


class ProjectMaterialTests(TestCase):
    """
    Issuing stock to a project and returning it.

    GUARANTEES:
    - Issue = allocation + OUT movement + usage row, all or nothing
    - Return = restore + IN movement at the original cost, usage row removed
    - cost_materials always equals the ledger-derived material cost
    - Closed projects refuse changes before stock is touched
    """

    def setUp(self):
        self.user = User.objects.create_user(email="operator@example.com", password="password123")
        self.material = MaterialSpec.objects.create(
            code="AC4R020",
            description="Varão aço redondo Ø20",
            weight_per_meter=Decimal("2.0000"),
        )
        self.lot = intake_lot(material=self.material, count=2, unit_cost="1.50")
        self.project = Project.objects.create(
            name="Corrimão",
            client="Condomínio Azul",
            start_date=date(2026, 4, 1),
        )

    def _issue(self, quantity="5", **kwargs):
        return add_material_to_project(
            self.project.pk, self.material.pk, Decimal(quantity), user=self.user, **kwargs
        )

    def test_issue_material(self):
        usage = self._issue(notes="Corte para corrimão")

        self.assertEqual(usage.quantity, Decimal("5.0000"))
        self.assertEqual(usage.unit, "kg")
        self.assertEqual(usage.unit_cost, Decimal("1.5000"))
        self.assertEqual(usage.total_cost, Decimal("7.50"))
        self.assertEqual(usage.added_by, self.user)

        movement = usage.movement
        self.assertEqual(movement.movement_type, StockMovement.MovementType.OUT)
        self.assertEqual(movement.quantity_delta, Decimal("-5.0000"))
        self.assertEqual(movement.project_reference, self.project.reference)
        self.assertEqual(movement.total_cost, Decimal("7.50"))

        self.project.refresh_from_db()
        self.assertEqual(self.project.cost_materials, Decimal("7.50"))
        self.assertEqual(self.project.cost_total, Decimal("7.50"))
        self.assertEqual(available_amount(self.material), Decimal("19.00"))

    def test_issue_in_another_unit(self):
        usage = self._issue("1500", unit="mm")

        # 1.5 m × 2 kg/m
        self.assertEqual(usage.quantity, Decimal("3.0000"))
        self.assertEqual(usage.unit, "kg")

    def test_cost_snapshot_survives_price_changes(self):
        usage = self._issue()
        intake_lot(material=self.material, count=1, unit_cost="3.00")

        usage.refresh_from_db()
        self.assertEqual(usage.unit_cost, Decimal("1.5000"))
        self.project.refresh_from_db()
        self.assertEqual(self.project.cost_materials, Decimal("7.50"))

    def test_return_material(self):
        usage = self._issue()

        movement = remove_material_from_project(self.project.pk, usage.pk, user=self.user)

        self.assertEqual(movement.movement_type, StockMovement.MovementType.IN)
        self.assertEqual(movement.quantity_delta, Decimal("5.0000"))
        self.assertEqual(movement.cost_snapshot, Decimal("1.5000"))
        self.assertEqual(movement.project_reference, self.project.reference)
        self.assertFalse(ProjectMaterialUsage.objects.filter(pk=usage.pk).exists())

        self.project.refresh_from_db()
        self.assertEqual(self.project.cost_materials, Decimal("0.00"))
        self.assertEqual(project_material_cost(self.project.reference), Decimal("0.00"))
        self.assertEqual(available_amount(self.material), Decimal("24.00"))

    def test_aggregate_matches_ledger(self):
        first = self._issue("5")
        self._issue("2.5")
        remove_material_from_project(self.project.pk, first.pk)

        self.project.refresh_from_db()
        self.assertEqual(self.project.cost_materials, Decimal("3.75"))
        self.assertEqual(project_material_cost(self.project.reference), Decimal("3.75"))

    def test_insufficient_stock_changes_nothing(self):
        with self.assertRaises(InsufficientStockError):
            self._issue("100")

        self.assertFalse(ProjectMaterialUsage.objects.exists())
        self.assertFalse(
            StockMovement.objects.filter(movement_type=StockMovement.MovementType.OUT).exists()
        )
        self.lot.refresh_from_db()
        self.assertEqual(self.lot.count, Decimal("2"))

    def test_shortfall_books_only_what_was_allocated(self):
        # 25 <= 24 × 1.05, but only 24 kg exist
        usage = self._issue("25")

        self.assertEqual(usage.quantity, Decimal("24.0000"))
        self.assertEqual(usage.total_cost, Decimal("36.00"))
        self.assertEqual(usage.movement.quantity_delta, Decimal("-24.0000"))
        self.assertEqual(available_amount(self.material), Decimal("0.00"))

        remove_material_from_project(self.project.pk, usage.pk)

        self.assertEqual(available_amount(self.material), Decimal("24.00"))
        self.project.refresh_from_db()
        self.assertEqual(self.project.cost_materials, Decimal("0.00"))

    def test_repeated_issue_and_return_does_not_drift(self):
        for _ in range(5):
            usage = self._issue("3.3")
            remove_material_from_project(self.project.pk, usage.pk)

        self.assertEqual(available_amount(self.material), Decimal("24.00"))
        self.project.refresh_from_db()
        self.assertEqual(self.project.cost_materials, Decimal("0.00"))
        self.assertEqual(project_material_cost(self.project.reference), Decimal("0.00"))

        self._issue("3.3")
        self.project.refresh_from_db()
        self.assertEqual(self.project.cost_materials, Decimal("4.95"))
        self.assertEqual(project_material_cost(self.project.reference), Decimal("4.95"))
        self.assertEqual(available_amount(self.material), Decimal("20.70"))

    def test_completed_project_is_frozen(self):
        usage = self._issue()
        transition_project(self.project, Project.Status.COMPLETED)

        with self.assertRaises(ProjectClosedError):
            self._issue("1")
        with self.assertRaises(ProjectClosedError):
            remove_material_from_project(self.project.pk, usage.pk)

        self.assertEqual(available_amount(self.material), Decimal("19.00"))

    def test_cancelled_project_can_still_return_material(self):
        usage = self._issue()
        transition_project(self.project, Project.Status.CANCELLED)

        with self.assertRaises(ProjectClosedError):
            self._issue("1")

        remove_material_from_project(self.project.pk, usage.pk)
        self.assertFalse(self.project.material_usages.exists())

    def test_project_with_material_cannot_be_deleted(self):
        self._issue()
        with self.assertRaises(ValidationError):
            self.project.delete()

    def test_lookups(self):
        with self.assertRaises(ProjectNotFoundError):
            add_material_to_project(uuid.uuid4(), self.material.pk, Decimal("1"))
        with self.assertRaises(MaterialNotFoundError):
            add_material_to_project(self.project.pk, uuid.uuid4(), Decimal("1"))
        with self.assertRaises(UsageNotFoundError):
            remove_material_from_project(self.project.pk, uuid.uuid4())
        with self.assertRaises(UsageNotFoundError):
            remove_material_from_project(self.project.pk, "not-a-uuid")

    def test_returned_stock_lands_in_a_full_bar(self):
        usage = self._issue()
        remove_material_from_project(self.project.pk, usage.pk)

        self.assertEqual(
            StockLot.objects.filter(material=self.material, kind=StockLot.Kind.FULL_BAR).count(),
            1,
        )
