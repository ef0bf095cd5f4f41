from .exceptions import (
    InvalidProjectTransitionError,
    LaborEntryNotFoundError,
    OtherCostNotFoundError,
    ProjectChildNotFoundError,
    ProjectClosedError,
    ProjectNotFoundError,
    ProjectServiceError,
    UsageNotFoundError,
)
from .cost_reconciler import get_project, reconcile_project_costs
from .lifecycle import transition_project
from .project_materials import add_material_to_project, remove_material_from_project
from .labor import add_labor_entry, add_other_cost, remove_labor_entry, remove_other_cost
from .stats import generate_project_reference, project_stats

__all__ = [
    "InvalidProjectTransitionError",
    "LaborEntryNotFoundError",
    "OtherCostNotFoundError",
    "ProjectChildNotFoundError",
    "ProjectClosedError",
    "ProjectNotFoundError",
    "ProjectServiceError",
    "UsageNotFoundError",
    "get_project",
    "reconcile_project_costs",
    "transition_project",
    "add_material_to_project",
    "remove_material_from_project",
    "add_labor_entry",
    "add_other_cost",
    "remove_labor_entry",
    "remove_other_cost",
    "generate_project_reference",
    "project_stats",
]
