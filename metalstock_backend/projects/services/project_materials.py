# projects/services/project_materials.py

"""
PROJECT MATERIALS

Purpose:
- Take stock out of inventory for a project (allocation + OUT movement +
  usage row).
- Give it back (restore + IN movement + usage row removed).

GUARANTEES:
- One atomic transaction per call; the project row is locked first.
- Closed projects are rejected before any stock is touched.
- The usage row, the movement and the project aggregate agree:
  usage.total_cost == OUT movement total == IN movement total on return,
  so the ledger-derived project cost equals cost_materials.
- Usage and OUT movement carry the quantity actually allocated, so a
  within-tolerance shortfall is never booked or later restored.
- Quantities are stored in the material's own unit.
"""

from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP

from django.core.exceptions import ValidationError
from django.db import transaction

from inventory.models import StockMovement
from inventory.services.exceptions import InsufficientStockError, InvalidQuantityError
from inventory.services.lookups import get_material
from inventory.services.metal_math import convert_quantity
from inventory.services.movements import record_movement
from inventory.services.stock_allocation import decrement_stock, restore_stock
from projects.models import ProjectMaterialUsage
from projects.services.cost_reconciler import get_project, reconcile_project_costs
from projects.services.exceptions import ProjectClosedError, UsageNotFoundError


logger = logging.getLogger(__name__)

QTY_PLACES = Decimal("0.0001")


def _usage_for(project, usage_id) -> ProjectMaterialUsage:
    try:
        return (
            ProjectMaterialUsage.objects.select_related("material")
            .select_for_update(of=("self",))
            .get(pk=usage_id, project=project)
        )
    except (ProjectMaterialUsage.DoesNotExist, ValidationError, ValueError) as exc:
        raise UsageNotFoundError(f"Material usage not found: {usage_id}") from exc


# ============================================================
# ADD
# ============================================================

@transaction.atomic
def add_material_to_project(
    project_id,
    material_id,
    quantity,
    unit: str | None = None,
    user=None,
    notes: str = "",
) -> ProjectMaterialUsage:
    project = get_project(project_id, lock=True)
    if not project.accepts_additions:
        raise ProjectClosedError(project)

    material = get_material(material_id)

    qty = convert_quantity(material, quantity, unit or material.unit, material.unit)
    if qty <= 0:
        raise InvalidQuantityError("quantity must be greater than zero")

    unit_cost = Decimal(material.current_unit_cost)

    allocation = decrement_stock(material, qty)
    issued = Decimal(allocation.allocated).quantize(QTY_PLACES, rounding=ROUND_HALF_UP)
    if issued <= 0:
        raise InsufficientStockError(available=issued, requested=qty, material=material)

    movement = record_movement(
        movement_type=StockMovement.MovementType.OUT,
        material=material,
        quantity_delta=-issued,
        unit=material.unit,
        user=user,
        project_reference=project.reference,
        cost_snapshot=unit_cost,
        notes=notes or f"Issued to project {project.reference}",
    )

    usage = ProjectMaterialUsage.objects.create(
        project=project,
        material=material,
        quantity=issued,
        unit=material.unit,
        unit_cost=unit_cost,
        movement=movement,
        added_by=user if getattr(user, "is_authenticated", False) else None,
        notes=notes or "",
    )

    reconcile_project_costs(project)

    logger.info(
        "Material added to project",
        extra={
            "project": project.reference,
            "material": material.code,
            "requested": str(qty),
            "quantity": str(issued),
            "unit_cost": str(unit_cost),
            "shortfall": str(allocation.shortfall),
        },
    )
    return usage


# ============================================================
# REMOVE
# ============================================================

@transaction.atomic
def remove_material_from_project(project_id, usage_id, user=None) -> StockMovement:
    """Return a usage's quantity to stock and drop the usage row."""
    project = get_project(project_id, lock=True)
    if not project.accepts_removals:
        raise ProjectClosedError(project)

    usage = _usage_for(project, usage_id)
    material = usage.material

    lot = restore_stock(material, usage.quantity)

    movement = record_movement(
        movement_type=StockMovement.MovementType.IN,
        material=material,
        quantity_delta=usage.quantity,
        unit=usage.unit,
        lot=lot,
        user=user,
        project_reference=project.reference,
        cost_snapshot=usage.unit_cost,
        notes=f"Returned from project {project.reference}",
    )

    usage.delete()
    reconcile_project_costs(project)

    logger.info(
        "Material removed from project",
        extra={
            "project": project.reference,
            "material": material.code,
            "quantity": str(movement.quantity_delta),
        },
    )
    return movement
