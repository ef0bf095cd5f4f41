# projects/services/exceptions.py

"""
PROJECT DOMAIN ERRORS

Raised before the first write of the operation that detects them.
"""

from __future__ import annotations


class ProjectServiceError(Exception):
    pass


class ProjectNotFoundError(ProjectServiceError):
    pass


class ProjectChildNotFoundError(ProjectServiceError):
    """A row that hangs off a project is missing, or belongs to another project."""


class UsageNotFoundError(ProjectChildNotFoundError):
    """Material usage not found on the project."""


class LaborEntryNotFoundError(ProjectChildNotFoundError):
    pass


class OtherCostNotFoundError(ProjectChildNotFoundError):
    pass


class ProjectClosedError(ProjectServiceError):
    def __init__(self, project=None, message: str | None = None):
        self.project = project
        status = getattr(project, "status", None)
        super().__init__(message or f"Project is {status}; this change is not allowed")


class InvalidProjectTransitionError(ProjectServiceError):
    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move a project from '{current}' to '{requested}'")
