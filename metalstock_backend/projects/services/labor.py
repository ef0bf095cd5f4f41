# projects/services/labor.py

"""
LABOR ENTRIES & OTHER COSTS

Same closed rules as materials: additions are refused on completed or
cancelled projects, removals on completed ones. Every change ends with a
from-scratch reconcile of the project aggregates.
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from projects.models import LaborEntry, OtherCost
from projects.services.cost_reconciler import get_project, reconcile_project_costs
from projects.services.exceptions import (
    LaborEntryNotFoundError,
    OtherCostNotFoundError,
    ProjectClosedError,
)


logger = logging.getLogger(__name__)

NOT_FOUND_ERRORS = {
    LaborEntry: LaborEntryNotFoundError,
    OtherCost: OtherCostNotFoundError,
}


def _open_for_additions(project_id):
    project = get_project(project_id, lock=True)
    if not project.accepts_additions:
        raise ProjectClosedError(project)
    return project


def _open_for_removals(project_id):
    project = get_project(project_id, lock=True)
    if not project.accepts_removals:
        raise ProjectClosedError(project)
    return project


def _child(model, project, child_id):
    try:
        return model.objects.get(pk=child_id, project=project)
    except (model.DoesNotExist, ValidationError, ValueError) as exc:
        raise NOT_FOUND_ERRORS[model](f"{model.__name__} not found: {child_id}") from exc


# ============================================================
# LABOR
# ============================================================

@transaction.atomic
def add_labor_entry(
    project_id,
    *,
    worker: str,
    hours,
    hourly_rate,
    date=None,
    description: str = "",
    user=None,
) -> LaborEntry:
    project = _open_for_additions(project_id)

    entry = LaborEntry(
        project=project,
        worker=(worker or "").strip(),
        hours=hours,
        hourly_rate=hourly_rate,
        description=description or "",
    )
    if date is not None:
        entry.date = date
    entry.save()

    reconcile_project_costs(project)

    logger.info(
        "Labor entry added",
        extra={
            "project": project.reference,
            "worker": entry.worker,
            "total_cost": str(entry.total_cost),
            "user": getattr(user, "email", None),
        },
    )
    return entry


@transaction.atomic
def remove_labor_entry(project_id, entry_id, user=None) -> None:
    project = _open_for_removals(project_id)
    entry = _child(LaborEntry, project, entry_id)
    entry.delete()
    reconcile_project_costs(project)

    logger.info(
        "Labor entry removed",
        extra={
            "project": project.reference,
            "entry": str(entry_id),
            "user": getattr(user, "email", None),
        },
    )


# ============================================================
# OTHER COSTS
# ============================================================

@transaction.atomic
def add_other_cost(
    project_id,
    *,
    description: str,
    amount,
    date=None,
    user=None,
) -> OtherCost:
    project = _open_for_additions(project_id)

    cost = OtherCost(project=project, description=(description or "").strip(), amount=amount)
    if date is not None:
        cost.date = date
    cost.save()

    reconcile_project_costs(project)

    logger.info(
        "Other cost added",
        extra={
            "project": project.reference,
            "amount": str(cost.amount),
            "user": getattr(user, "email", None),
        },
    )
    return cost


@transaction.atomic
def remove_other_cost(project_id, cost_id, user=None) -> None:
    project = _open_for_removals(project_id)
    cost = _child(OtherCost, project, cost_id)
    cost.delete()
    reconcile_project_costs(project)

    logger.info(
        "Other cost removed",
        extra={
            "project": project.reference,
            "cost": str(cost_id),
            "user": getattr(user, "email", None),
        },
    )
