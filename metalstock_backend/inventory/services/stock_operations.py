# inventory/services/stock_operations.py

"""
STOCK OPERATIONS (INTAKE / ADJUST / CUT)

Purpose:
- Intake: new lot + IN movement; refreshes last price and weighted average.
- Adjust: manual count correction + ADJUST movement (never below zero).
- Cut: take one piece off a lot, keep the remainder as an OFFCUT lot
  (or scrap/return it) + CUT movement with cut details.

Every operation is atomic and pairs its lot write with exactly one
movement. Lot writes go through the same compare-and-swap as allocation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.db import transaction

from inventory.models import MaterialSpec, StockLot, StockMovement
from inventory.services.exceptions import InvalidQuantityError
from inventory.services.lookups import get_lot, get_material
from inventory.services.movements import record_movement
from inventory.services.stock_allocation import (
    available_amount,
    standard_bar_length,
    write_lot,
)


logger = logging.getLogger(__name__)

PRICE_PLACES = Decimal("0.0001")
LENGTH_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class CutResult:
    lot: StockLot
    offcut: StockLot | None
    movement: StockMovement


def _decimal(value, name: str, *, allow_negative: bool = False) -> Decimal:
    if value is None or value == "" or isinstance(value, bool):
        raise InvalidQuantityError(f"{name} is required")
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise InvalidQuantityError(f"{name} must be a number") from exc
    if not number.is_finite():
        raise InvalidQuantityError(f"{name} must be finite")
    if not allow_negative and number < 0:
        raise InvalidQuantityError(f"{name} cannot be negative")
    return number


def unit_quantity(material: MaterialSpec, *, count, length_mm) -> Decimal:
    """Stock held by `count` pieces of `length_mm`, in the material's unit."""
    count = Decimal(count or 0)
    length = Decimal(length_mm or 0)
    wpm = Decimal(material.effective_weight_per_meter or 0)

    if material.unit == MaterialSpec.Unit.KG:
        if wpm > 0 and length > 0:
            return count * length / Decimal("1000") * wpm
        return count
    if material.unit == MaterialSpec.Unit.M:
        return count * length / Decimal("1000")
    return count


# ============================================================
# INTAKE
# ============================================================

@transaction.atomic
def intake_lot(
    *,
    material,
    count,
    length_mm=None,
    kind: str = StockLot.Kind.FULL_BAR,
    unit_cost=None,
    location: str = "",
    batch_ref: str = "",
    notes: str = "",
    user=None,
) -> StockLot:
    material = get_material(material, lock=True)

    pieces = _decimal(count, "count")
    if pieces <= 0:
        raise InvalidQuantityError("count must be greater than zero")

    if length_mm in (None, ""):
        length = standard_bar_length() if material.is_length_based else Decimal("0")
    else:
        length = _decimal(length_mm, "length_mm").quantize(LENGTH_PLACES, rounding=ROUND_HALF_UP)

    if material.is_length_based and length <= 0:
        raise InvalidQuantityError("length_mm is required for length-based materials")

    cost = None
    if unit_cost not in (None, ""):
        cost = _decimal(unit_cost, "unit_cost")

    on_hand_before = available_amount(material)

    lot = StockLot(
        material=material,
        kind=kind,
        count=pieces,
        length_mm=length,
        location=(location or "").strip(),
        batch_ref=(batch_ref or "").strip(),
        notes=notes or "",
    )
    lot.save()

    quantity = unit_quantity(material, count=lot.count, length_mm=lot.length_mm)

    if cost is not None and cost > 0:
        previous_avg = Decimal(material.average_price or 0)
        total_amount = on_hand_before + quantity
        if previous_avg > 0 and total_amount > 0:
            average = (on_hand_before * previous_avg + quantity * cost) / total_amount
        else:
            average = cost
        material.last_price = cost.quantize(PRICE_PLACES, rounding=ROUND_HALF_UP)
        material.average_price = average.quantize(PRICE_PLACES, rounding=ROUND_HALF_UP)
        material.save(update_fields=["last_price", "average_price", "updated_at"])

    record_movement(
        movement_type=StockMovement.MovementType.IN,
        material=material,
        lot=lot,
        quantity_delta=quantity,
        user=user,
        cost_snapshot=cost,
        notes=notes or "Stock intake",
    )

    logger.info(
        "Stock lot received",
        extra={"material": material.code, "lot": str(lot.pk), "quantity": str(quantity)},
    )
    return lot


# ============================================================
# ADJUST
# ============================================================

@transaction.atomic
def adjust_lot(*, lot, count_delta, user=None, notes: str = "") -> StockMovement:
    lot = get_lot(lot, lock=True)
    material = lot.material

    delta = _decimal(count_delta, "count_delta", allow_negative=True)
    if delta == 0:
        raise InvalidQuantityError("count_delta cannot be zero")

    if lot.status == StockLot.Status.CONSUMED:
        raise InvalidQuantityError("Consumed lots cannot be adjusted")

    before = unit_quantity(material, count=lot.count, length_mm=lot.length_mm)
    new_count = Decimal(lot.count) + delta
    if new_count < 0:
        raise InvalidQuantityError(
            f"Adjustment would make the lot negative (count {lot.count}, delta {delta})"
        )

    after = unit_quantity(material, count=new_count, length_mm=lot.length_mm)
    change = after - before
    if change == 0:
        raise InvalidQuantityError("Adjustment does not change the stock amount")

    lot.count = new_count
    lot.derive_state(material.effective_weight_per_meter)
    write_lot(lot)

    movement = record_movement(
        movement_type=StockMovement.MovementType.ADJUST,
        material=material,
        lot=lot,
        quantity_delta=change,
        user=user,
        notes=notes or "Manual adjustment",
    )

    logger.info(
        "Stock lot adjusted",
        extra={"material": material.code, "lot": str(lot.pk), "count_delta": str(delta)},
    )
    return movement


# ============================================================
# CUT
# ============================================================

@transaction.atomic
def cut_lot(
    *,
    lot,
    cut_length_mm,
    remainder_action: str = StockMovement.RemainderAction.OFFCUT,
    user=None,
    project_reference: str = "",
    notes: str = "",
) -> CutResult:
    """
    Cut one piece of the lot to `cut_length_mm`.

    The cut piece always leaves stock. The remainder either becomes a new
    OFFCUT lot (count 1) or leaves stock too (scrap / returned).
    """
    lot = get_lot(lot, lock=True)
    material = lot.material

    if not material.is_length_based:
        raise InvalidQuantityError("Cuts are only supported for length-based materials")

    if material.unit == MaterialSpec.Unit.KG and Decimal(material.effective_weight_per_meter or 0) <= 0:
        raise InvalidQuantityError("Material has no weight per meter; cannot cut by weight")

    if remainder_action not in StockMovement.RemainderAction.values:
        raise InvalidQuantityError(f"Unknown remainder action: {remainder_action!r}")

    if not lot.is_available:
        raise InvalidQuantityError("Only available lots can be cut")

    if Decimal(lot.count) < 1:
        raise InvalidQuantityError("Lot does not hold a whole piece to cut")

    original = Decimal(lot.length_mm)
    cut = _decimal(cut_length_mm, "cut_length_mm").quantize(LENGTH_PLACES, rounding=ROUND_HALF_UP)
    if cut <= 0:
        raise InvalidQuantityError("cut_length_mm must be greater than zero")
    if cut > original:
        raise InvalidQuantityError(
            f"cut_length_mm ({cut}) exceeds the piece length ({original})"
        )

    remainder = original - cut
    keep_offcut = remainder > 0 and remainder_action == StockMovement.RemainderAction.OFFCUT

    piece_amount = unit_quantity(material, count=1, length_mm=original)
    kept_amount = (
        unit_quantity(material, count=1, length_mm=remainder) if keep_offcut else Decimal("0")
    )
    leaving = piece_amount - kept_amount

    lot.count = Decimal(lot.count) - 1
    lot.derive_state(material.effective_weight_per_meter)
    write_lot(lot)

    offcut = None
    if keep_offcut:
        offcut = StockLot(
            material=material,
            kind=StockLot.Kind.OFFCUT,
            count=Decimal("1"),
            length_mm=remainder,
            location=lot.location,
            batch_ref=lot.batch_ref,
            notes=f"Offcut of lot {lot.pk}",
        )
        offcut.save()

    movement = record_movement(
        movement_type=StockMovement.MovementType.CUT,
        material=material,
        lot=lot,
        quantity_delta=-leaving,
        user=user,
        project_reference=project_reference,
        notes=notes,
        cut_original_length_mm=original,
        cut_length_mm=cut,
        cut_remainder_length_mm=remainder,
        cut_remainder_action=remainder_action,
    )

    logger.info(
        "Stock lot cut",
        extra={
            "material": material.code,
            "lot": str(lot.pk),
            "cut_length_mm": str(cut),
            "remainder_action": remainder_action,
        },
    )
    return CutResult(lot=lot, offcut=offcut, movement=movement)
