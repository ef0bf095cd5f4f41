from .project import Project, next_project_reference
from .costs import LaborEntry, OtherCost
from .material_usage import ProjectMaterialUsage

__all__ = [
    "Project",
    "next_project_reference",
    "LaborEntry",
    "OtherCost",
    "ProjectMaterialUsage",
]
