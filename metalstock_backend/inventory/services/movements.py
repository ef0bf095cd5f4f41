# inventory/services/movements.py

"""
MOVEMENT RECORDER

Purpose:
- Append exactly one immutable StockMovement per stock-affecting call.
- Capture the cost snapshot at call time (last price, else average price).
- Derive cost figures from the ledger (project material cost, period totals).

The ledger is the source; project aggregates are caches of it, never the reverse.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from django.db.models import Count, Q, Sum
from django.utils import timezone

from inventory.models import StockMovement
from inventory.services.lookups import get_material


logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
DELTA_PLACES = Decimal("0.0001")

CONSUMING_TYPES = (StockMovement.MovementType.OUT, StockMovement.MovementType.CUT)


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _as_date(value):
    if isinstance(value, datetime):
        return value.date()
    return value


def record_movement(
    *,
    movement_type: str,
    material,
    quantity_delta,
    unit: str | None = None,
    lot=None,
    user=None,
    project_reference: str = "",
    cost_snapshot=None,
    notes: str = "",
    occurred_at=None,
    cut_original_length_mm=None,
    cut_length_mm=None,
    cut_remainder_length_mm=None,
    cut_remainder_action: str = "",
) -> StockMovement:
    """
    Create one ledger entry.

    Sign rules and immutability are enforced by the model; total_cost is
    computed there from |quantity_delta| × cost_snapshot.
    """
    material = get_material(material)

    if cost_snapshot is None:
        cost_snapshot = material.current_unit_cost

    movement = StockMovement.objects.create(
        movement_type=movement_type,
        material=material,
        lot=lot,
        performed_by=user if getattr(user, "is_authenticated", False) else None,
        quantity_delta=Decimal(str(quantity_delta)).quantize(
            DELTA_PLACES, rounding=ROUND_HALF_UP
        ),
        unit=unit or material.unit,
        project_reference=(project_reference or "").strip(),
        occurred_at=occurred_at or timezone.now(),
        cost_snapshot=Decimal(str(cost_snapshot)),
        notes=notes or "",
        cut_original_length_mm=cut_original_length_mm,
        cut_length_mm=cut_length_mm,
        cut_remainder_length_mm=cut_remainder_length_mm,
        cut_remainder_action=cut_remainder_action or "",
    )

    logger.info(
        "Stock movement recorded",
        extra={
            "movement_id": str(movement.id),
            "movement_type": movement.movement_type,
            "material": material.code,
            "quantity_delta": str(movement.quantity_delta),
            "project_reference": movement.project_reference,
        },
    )
    return movement


def project_material_cost(project_reference: str) -> Decimal:
    """
    Ledger-derived material cost of a project:
    Σ OUT/CUT totals − Σ IN totals carrying the reference.
    """
    reference = (project_reference or "").strip()
    if not reference:
        return Decimal("0.00")

    agg = StockMovement.objects.filter(project_reference=reference).aggregate(
        consumed=Sum("total_cost", filter=Q(movement_type__in=CONSUMING_TYPES)),
        returned=Sum("total_cost", filter=Q(movement_type=StockMovement.MovementType.IN)),
    )
    consumed, returned = agg["consumed"], agg["returned"]
    return _money(consumed) - _money(returned)


def movement_cost_summary(date_from=None, date_to=None, movement_type=None, material=None) -> dict:
    """
    Per-period totals grouped by movement type.

    date_from / date_to are inclusive dates (or datetimes) on occurred_at.
    """
    qs = StockMovement.objects.all()

    if date_from:
        qs = qs.filter(occurred_at__date__gte=_as_date(date_from))
    if date_to:
        qs = qs.filter(occurred_at__date__lte=_as_date(date_to))
    if movement_type:
        qs = qs.filter(movement_type=movement_type)
    if material is not None:
        qs = qs.filter(material_id=getattr(material, "pk", material))

    rows = (
        qs.values("movement_type")
        .annotate(
            movements=Count("id"),
            quantity=Sum("quantity_delta"),
            total_cost=Sum("total_cost"),
        )
        .order_by("movement_type")
    )

    by_type = {}
    grand_total = Decimal("0.00")
    for row in rows:
        total = _money(row["total_cost"])
        by_type[row["movement_type"]] = {
            "movements": int(row["movements"] or 0),
            "quantity": Decimal(str(row["quantity"] or 0)).quantize(
                DELTA_PLACES, rounding=ROUND_HALF_UP
            ),
            "total_cost": total,
        }
        grand_total += total

    return {
        "date_from": date_from,
        "date_to": date_to,
        "by_type": by_type,
        "total_cost": _money(grand_total),
    }
