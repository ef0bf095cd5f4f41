# projects/services/lifecycle.py

"""
PROJECT STATUS MACHINE

draft    -> active, cancelled
active   -> completed, on_hold, cancelled
on_hold  -> active, cancelled
completed, cancelled: terminal

Re-applying the current status is a no-op. Completing a project stamps
actual_end_date unless it is already set.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from projects.models import Project
from projects.services.cost_reconciler import get_project
from projects.services.exceptions import InvalidProjectTransitionError


logger = logging.getLogger(__name__)

Status = Project.Status

TRANSITIONS = {
    Status.DRAFT: {Status.ACTIVE, Status.CANCELLED},
    Status.ACTIVE: {Status.COMPLETED, Status.ON_HOLD, Status.CANCELLED},
    Status.ON_HOLD: {Status.ACTIVE, Status.CANCELLED},
    Status.COMPLETED: set(),
    Status.CANCELLED: set(),
}


def can_transition(current: str, new_status: str) -> bool:
    if current == new_status:
        return True
    return new_status in TRANSITIONS.get(current, set())


@transaction.atomic
def transition_project(project, new_status: str, user=None) -> Project:
    project = get_project(project, lock=True)
    current = project.status

    if new_status not in Status.values:
        raise InvalidProjectTransitionError(current, new_status)

    if current == new_status:
        return project

    if not can_transition(current, new_status):
        raise InvalidProjectTransitionError(current, new_status)

    project.status = new_status
    if new_status == Status.COMPLETED and project.actual_end_date is None:
        project.actual_end_date = timezone.localdate()

    project.save()

    logger.info(
        "Project status changed",
        extra={
            "project": project.reference,
            "from": current,
            "to": new_status,
            "user": getattr(user, "email", None),
        },
    )
    return project
