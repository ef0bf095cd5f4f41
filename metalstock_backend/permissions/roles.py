# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS (WORKSHOP JOB ROLES)
# =========================================================
# They describe what the staff member does on the shop floor.
ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"  # production / purchasing manager
ROLE_OPERATOR = "operator"  # cuts, issues and receives material
ROLE_VIEWER = "viewer"  # read-only (estimators, accounting)

ROLE_CHOICES = [
    (ROLE_ADMIN, "Admin"),
    (ROLE_MANAGER, "Manager"),
    (ROLE_OPERATOR, "Operator"),
    (ROLE_VIEWER, "Viewer"),
]


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# Views should protect capabilities, not raw roles.
CAP_INVENTORY_VIEW = "inventory.view"
CAP_INVENTORY_EDIT = "inventory.edit"  # catalog + intake + cuts
CAP_INVENTORY_ADJUST = "inventory.adjust"  # manual count corrections

CAP_CATALOG_IMPORT = "catalog.import"

CAP_PROJECTS_VIEW = "projects.view"
CAP_PROJECTS_EDIT = "projects.edit"  # materials, labor, other costs
CAP_PROJECTS_CLOSE = "projects.close"  # status transitions

CAP_REPORTS_VIEW = "reports.view"

ALL_CAPABILITIES = {
    CAP_INVENTORY_VIEW,
    CAP_INVENTORY_EDIT,
    CAP_INVENTORY_ADJUST,
    CAP_CATALOG_IMPORT,
    CAP_PROJECTS_VIEW,
    CAP_PROJECTS_EDIT,
    CAP_PROJECTS_CLOSE,
    CAP_REPORTS_VIEW,
}


# =========================================================
# ROLE → CAPABILITY MAP
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_ADMIN: {
        *ALL_CAPABILITIES,
    },
    ROLE_MANAGER: {
        CAP_INVENTORY_VIEW,
        CAP_INVENTORY_EDIT,
        CAP_INVENTORY_ADJUST,
        CAP_CATALOG_IMPORT,
        CAP_PROJECTS_VIEW,
        CAP_PROJECTS_EDIT,
        CAP_PROJECTS_CLOSE,
        CAP_REPORTS_VIEW,
    },
    ROLE_OPERATOR: {
        CAP_INVENTORY_VIEW,
        CAP_INVENTORY_EDIT,
        CAP_PROJECTS_VIEW,
        CAP_PROJECTS_EDIT,
        # deliberately NOT adjust/close
    },
    ROLE_VIEWER: {
        CAP_INVENTORY_VIEW,
        CAP_PROJECTS_VIEW,
        CAP_REPORTS_VIEW,
    },
}


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> Optional[str]:
    return getattr(user, "role", None)


def effective_capabilities_for(user) -> set[str]:
    if getattr(user, "is_superuser", False):
        return set(ALL_CAPABILITIES)

    role = get_user_role(user)
    return set(ROLE_CAPABILITIES.get(role, set()))


def user_has_capability(user, capability: str) -> bool:
    return capability in effective_capabilities_for(user)


# =========================================================
# Capability Permissions
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        view.required_capability = CAP_INVENTORY_ADJUST
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_capability", None)
        if not required:
            # If not set, deny-by-default to avoid accidental open endpoints
            return False

        return required in effective_capabilities_for(user)


class HasAnyCapability(BasePermission):
    """
    Require ANY capability from a list.

    Usage:
        view.required_any_capabilities = {CAP_PROJECTS_VIEW, CAP_REPORTS_VIEW}
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_any_capabilities", None)
        if not required:
            return False

        caps = effective_capabilities_for(user)
        return any(cap in caps for cap in set(required))

