from .project import (
    AddMaterialSerializer,
    LaborEntrySerializer,
    OtherCostSerializer,
    ProjectDetailSerializer,
    ProjectMaterialUsageSerializer,
    ProjectSerializer,
    TransitionSerializer,
)

__all__ = [
    "AddMaterialSerializer",
    "LaborEntrySerializer",
    "OtherCostSerializer",
    "ProjectDetailSerializer",
    "ProjectMaterialUsageSerializer",
    "ProjectSerializer",
    "TransitionSerializer",
]
