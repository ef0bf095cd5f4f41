# projects/services/stats.py

"""
PROJECT REPORTING

Read-only figures derived from a project's stored aggregates:
- margin = sale_value − cost_total
- margin_percent = margin / sale_value × 100 (1 dp, 0 without a sale value)
- budget_used_percent = cost_total / budget_total × 100 (1 dp, 0 without a budget)
- days_planned / days_actual counted from start_date
- ledger_material_cost from the movement ledger, for cross-checking
  cost_materials
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from django.db.models import Sum

from inventory.services.movements import project_material_cost
from projects.models import Project, next_project_reference


ONEPLACE = Decimal("0.1")
TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def generate_project_reference(year=None) -> str:
    return next_project_reference(year)


def _percent(part: Decimal, whole: Decimal) -> Decimal:
    if not whole:
        return Decimal("0.0")
    return (part / whole * Decimal("100")).quantize(ONEPLACE, rounding=ROUND_HALF_UP)


def _days_between(start, end):
    if not start or not end:
        return None
    return (end - start).days


def project_stats(project: Project) -> dict:
    sale_value = Decimal(project.sale_value or 0)
    cost_total = Decimal(project.cost_total or 0)
    budget_total = Decimal(project.budget_total or 0)

    margin = (sale_value - cost_total).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    labor_hours = project.labor_entries.aggregate(s=Sum("hours"))["s"] or ZERO
    labor_hours = Decimal(str(labor_hours)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)

    ledger_cost = project_material_cost(project.reference)

    return {
        "reference": project.reference,
        "status": project.status,
        "margin": margin,
        "margin_percent": _percent(margin, sale_value),
        "budget_used_percent": _percent(cost_total, budget_total),
        "days_planned": _days_between(project.start_date, project.end_date),
        "days_actual": _days_between(
            project.start_date,
            project.actual_end_date or project.end_date,
        ),
        "labor_hours": labor_hours,
        "is_over_budget": budget_total > 0 and cost_total > budget_total,
        "is_profitable": margin > 0,
        "cost_materials": Decimal(project.cost_materials),
        "ledger_material_cost": ledger_cost,
        "ledger_matches": ledger_cost == Decimal(project.cost_materials),
    }
