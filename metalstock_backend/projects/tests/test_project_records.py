# projects/tests/test_project_records.py

from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from projects.models import LaborEntry, OtherCost, Project, next_project_reference


def make_project(**overrides):
    fields = {
        "name": "Portão de garagem",
        "client": "Serralharia Silva",
        "start_date": date(2026, 3, 2),
    }
    fields.update(overrides)
    return Project.objects.create(**fields)


class ProjectReferenceTests(TestCase):
    """
    GUARANTEES:
    - References are PRJ-YYYY-NNN, numbered per year
    - A reference never changes once assigned
    """

    def test_references_are_sequential_per_year(self):
        first = make_project()
        second = make_project(name="Escada")
        other_year = make_project(name="Grade", start_date=date(2025, 11, 5))

        self.assertEqual(first.reference, "PRJ-2026-001")
        self.assertEqual(second.reference, "PRJ-2026-002")
        self.assertEqual(other_year.reference, "PRJ-2025-001")

    def test_next_reference_follows_the_highest(self):
        make_project(reference="PRJ-2026-007")
        self.assertEqual(next_project_reference(2026), "PRJ-2026-008")
        self.assertEqual(next_project_reference(2031), "PRJ-2031-001")

    def test_reference_format_is_enforced(self):
        with self.assertRaises(ValidationError):
            make_project(reference="JOB-1")

    def test_reference_is_immutable(self):
        project = make_project()
        project.reference = "PRJ-2026-999"
        with self.assertRaises(ValidationError):
            project.save()


class ProjectAggregateTests(TestCase):
    """
    GUARANTEES:
    - budget_total is the sum of the budget lines
    - cost fields are rebuilt from child rows on every save, never taken as input
    - dates and money fields are validated
    """

    def test_budget_total(self):
        project = make_project(
            budget_materials=Decimal("100.00"),
            budget_labor=Decimal("250.50"),
            budget_other=Decimal("20.00"),
        )
        self.assertEqual(project.budget_total, Decimal("370.50"))
        self.assertEqual(project.status, Project.Status.ACTIVE)

    def test_costs_are_recomputed_from_children(self):
        project = make_project()
        LaborEntry.objects.create(
            project=project,
            worker="João",
            hours=Decimal("7.5"),
            hourly_rate=Decimal("18.00"),
        )
        OtherCost.objects.create(project=project, description="Galvanização", amount=Decimal("80"))

        project.cost_labor = Decimal("1")  # ignored
        project.save()

        self.assertEqual(project.cost_labor, Decimal("135.00"))
        self.assertEqual(project.cost_other, Decimal("80"))
        self.assertEqual(project.cost_total, Decimal("215.00"))

    def test_labor_total_is_rounded(self):
        project = make_project()
        entry = LaborEntry.objects.create(
            project=project,
            worker="Ana",
            hours=Decimal("1.25"),
            hourly_rate=Decimal("10.02"),
        )
        # 12.525 -> 12.53
        self.assertEqual(entry.total_cost, Decimal("12.53"))

    def test_end_date_before_start_is_rejected(self):
        with self.assertRaises(ValidationError):
            make_project(end_date=date(2026, 3, 1))

    def test_negative_budget_is_rejected(self):
        with self.assertRaises(ValidationError):
            make_project(budget_labor=Decimal("-1"))

    def test_negative_labor_is_rejected(self):
        project = make_project()
        with self.assertRaises(ValidationError):
            LaborEntry.objects.create(
                project=project, worker="X", hours=Decimal("-1"), hourly_rate=Decimal("10")
            )

    def test_project_without_material_can_be_deleted(self):
        project = make_project()
        project.delete()
        self.assertFalse(Project.objects.exists())
