from .project import ProjectViewSet

__all__ = ["ProjectViewSet"]
