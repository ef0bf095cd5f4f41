# projects/services/cost_reconciler.py

"""
CONSISTENCY RECONCILER

Purpose:
- Recompute a project's cost aggregates from its child rows.

GUARANTEES:
- Aggregates are always rebuilt from scratch, never incremented.
- The project row is locked while recomputing so concurrent child edits
  serialize on it.
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from projects.models import Project
from projects.services.exceptions import ProjectNotFoundError


logger = logging.getLogger(__name__)


def get_project(project, *, lock: bool = False) -> Project:
    if project is None:
        raise ProjectNotFoundError("project is required")

    project_id = getattr(project, "pk", project)
    qs = Project.objects.all()
    if lock:
        qs = qs.select_for_update()

    try:
        return qs.get(pk=project_id)
    except (Project.DoesNotExist, ValidationError, ValueError) as exc:
        raise ProjectNotFoundError(f"Project not found: {project_id}") from exc


@transaction.atomic
def reconcile_project_costs(project) -> Project:
    project = get_project(project, lock=True)

    before = project.cost_total
    project.save()

    if before != project.cost_total:
        logger.info(
            "Project costs reconciled",
            extra={
                "project": project.reference,
                "cost_total_before": str(before),
                "cost_total": str(project.cost_total),
            },
        )
    return project
