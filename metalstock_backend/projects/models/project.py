# projects/models/project.py

"""
PROJECT (JOB)

A customer job that consumes stock and accrues labor and other costs.

GUARANTEES:
- reference is generated once as PRJ-YYYY-NNN and never changes.
- cost_* fields are caches: every save recomputes them from the child rows
  (material usages, labor entries, other costs). They are never settable.
- budget_total = budget_materials + budget_labor + budget_other.
- A project holding material usages cannot be deleted (return material first).
"""

import re
import uuid
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Sum
from django.utils import timezone


REFERENCE_PREFIX = "PRJ"
REFERENCE_PATTERN = re.compile(r"^PRJ-\d{4}-\d{3,}$")

ZERO = Decimal("0.00")
TWOPLACES = Decimal("0.01")


def _money(value) -> Decimal:
    # SQLite sums decimals as floats
    return Decimal(str(value or 0)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def next_project_reference(year=None) -> str:
    """Next free PRJ-YYYY-NNN for the given (default: current) year."""
    year = int(year or timezone.localdate().year)
    prefix = f"{REFERENCE_PREFIX}-{year}-"

    sequence = 0
    for reference in Project.objects.filter(reference__startswith=prefix).values_list(
        "reference", flat=True
    ):
        tail = reference[len(prefix):]
        if tail.isdigit():
            sequence = max(sequence, int(tail))

    return f"{prefix}{sequence + 1:03d}"


class Project(models.Model):
    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        ACTIVE = "active", "Active"
        COMPLETED = "completed", "Completed"
        ON_HOLD = "on_hold", "On hold"
        CANCELLED = "cancelled", "Cancelled"

    # No more stock/labor may be added
    CLOSED_FOR_ADDITIONS = {Status.COMPLETED, Status.CANCELLED}
    # No stock may be returned either
    CLOSED_FOR_REMOVALS = {Status.COMPLETED}

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    reference = models.CharField(max_length=32, unique=True, db_index=True, blank=True)
    name = models.CharField(max_length=200)
    client = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")

    start_date = models.DateField(default=timezone.localdate)
    end_date = models.DateField(null=True, blank=True)
    actual_end_date = models.DateField(null=True, blank=True)

    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.ACTIVE,
    )

    # Budget (planned)
    budget_materials = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    budget_labor = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    budget_other = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    budget_total = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)

    # Actual costs: derived, NEVER edited directly
    cost_materials = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    cost_labor = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    cost_other = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    cost_total = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)

    sale_value = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="projects_created",
    )

    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="prj_status_created_idx"),
            models.Index(fields=["start_date", "end_date"], name="prj_dates_idx"),
            models.Index(fields=["client"], name="prj_client_idx"),
        ]

    # -------------------------------------------------
    # VALIDATION
    # -------------------------------------------------

    def clean(self):
        if self.reference and not REFERENCE_PATTERN.match(self.reference):
            raise ValidationError({"reference": "reference must follow PRJ-YYYY-NNN"})

        if self.end_date and self.start_date and self.end_date < self.start_date:
            raise ValidationError({"end_date": "end_date cannot be before start_date"})

        for field in ("budget_materials", "budget_labor", "budget_other", "sale_value"):
            value = getattr(self, field)
            if value is not None and value < 0:
                raise ValidationError({field: f"{field} cannot be negative"})

    # -------------------------------------------------
    # DERIVED STATE
    # -------------------------------------------------

    def recompute_costs(self):
        """Recompute every aggregate from the child rows, from scratch."""
        self.budget_total = (
            Decimal(self.budget_materials or 0)
            + Decimal(self.budget_labor or 0)
            + Decimal(self.budget_other or 0)
        )

        if self._state.adding:
            materials = labor = other = ZERO
        else:
            materials = self.material_usages.aggregate(s=Sum("total_cost"))["s"] or ZERO
            labor = self.labor_entries.aggregate(s=Sum("total_cost"))["s"] or ZERO
            other = self.other_costs.aggregate(s=Sum("amount"))["s"] or ZERO

        self.cost_materials = _money(materials)
        self.cost_labor = _money(labor)
        self.cost_other = _money(other)
        self.cost_total = self.cost_materials + self.cost_labor + self.cost_other
        return self

    def save(self, *args, **kwargs):
        if self._state.adding and not self.reference:
            self.reference = next_project_reference(
                getattr(self.start_date, "year", None)
            )

        if not self._state.adding:
            original_reference = (
                Project.objects.filter(pk=self.pk)
                .values_list("reference", flat=True)
                .first()
            )
            if original_reference and original_reference != self.reference:
                raise ValidationError({"reference": "reference is immutable"})

        self.recompute_costs()

        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            kwargs["update_fields"] = set(update_fields) | {
                "budget_total",
                "cost_materials",
                "cost_labor",
                "cost_other",
                "cost_total",
                "updated_at",
            }

        self.full_clean()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.material_usages.exists():
            raise ValidationError(
                "Cannot delete a project that still holds material; remove its materials first."
            )
        return super().delete(*args, **kwargs)

    # -------------------------------------------------
    # READ-ONLY HELPERS
    # -------------------------------------------------

    @property
    def accepts_additions(self) -> bool:
        return self.status not in self.CLOSED_FOR_ADDITIONS

    @property
    def accepts_removals(self) -> bool:
        return self.status not in self.CLOSED_FOR_REMOVALS

    def __str__(self):
        return f"{self.reference} | {self.name}"
