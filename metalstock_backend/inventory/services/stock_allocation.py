# inventory/services/stock_allocation.py

"""
ALLOCATION ENGINE

Purpose:
- Deduct a requested quantity from a material's physical lots.
- Put quantity back (approximate reversal).
- Expose the total-stock aggregation primitive used by alerts and reports.

Allocation policy:
- Candidates: status=available lots with count > 0.
- Order: OFFCUT -> FULL_BAR -> BOX, then ascending size (in the allocation
  unit), then created_at, then id. The order is stable across reads.
- Walk the list deducting min(remaining, lot amount):
    - weight/length tracked lots: proportional (count reduced by the same
      fraction; weight re-derived from count)
    - count tracked lots: straight subtraction
- A lot reaching <= 0 becomes consumed.

Pre-check:
- requested > available × (1 + STOCK_AVAILABILITY_TOLERANCE) raises
  InsufficientStockError before any lot is touched.

Write safety:
- Runs inside transaction.atomic with select_for_update.
- Each lot write is a compare-and-swap on `version`; a lost race raises
  StaleLotError and the whole allocation rolls back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from inventory.models import MaterialSpec, StockLot
from inventory.services.exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    StaleLotError,
)
from inventory.services.lookups import get_material


logger = logging.getLogger(__name__)

BASIS_WEIGHT = "weight"
BASIS_LENGTH = "length"
BASIS_COUNT = "count"

# Messiest stock first, keeps full bars intact
KIND_RANK = {
    StockLot.Kind.OFFCUT: 0,
    StockLot.Kind.FULL_BAR: 1,
    StockLot.Kind.BOX: 2,
}

ZERO = Decimal("0")


# ============================================================
# RESULT TYPES
# ============================================================

@dataclass(frozen=True)
class LotDeduction:
    lot_id: object
    kind: str
    amount: Decimal
    remaining: Decimal
    consumed: bool


@dataclass(frozen=True)
class AllocationResult:
    satisfied: bool
    shortfall: Decimal
    requested: Decimal
    available: Decimal
    basis: str
    deductions: tuple[LotDeduction, ...] = field(default_factory=tuple)

    @property
    def allocated(self) -> Decimal:
        return sum((d.amount for d in self.deductions), ZERO)


# ============================================================
# HELPERS
# ============================================================

def _tolerance() -> Decimal:
    raw = getattr(settings, "STOCK_AVAILABILITY_TOLERANCE", "0.05")
    return Decimal(str(raw))


def standard_bar_length() -> Decimal:
    return Decimal(str(getattr(settings, "STANDARD_BAR_LENGTH_MM", 6000)))


def _positive_quantity(value, name: str = "quantity") -> Decimal:
    if value is None or value == "" or isinstance(value, bool):
        raise InvalidQuantityError(f"{name} is required")
    try:
        qty = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise InvalidQuantityError(f"{name} must be a number") from exc
    if not qty.is_finite():
        raise InvalidQuantityError(f"{name} must be finite")
    if qty <= 0:
        raise InvalidQuantityError(f"{name} must be greater than zero")
    return qty


def available_lots(material):
    return StockLot.objects.filter(
        material=material,
        status=StockLot.Status.AVAILABLE,
        count__gt=0,
    )


def _totals_for(lots) -> dict:
    quantity = ZERO
    weight = ZERO
    length = ZERO
    for lot in lots:
        count = Decimal(lot.count or 0)
        quantity += count
        weight += Decimal(lot.weight or 0)
        length += count * Decimal(lot.length_mm or 0)
    return {"quantity": quantity, "weight": weight, "length": length}


def allocation_basis(material: MaterialSpec, totals: dict) -> str:
    """
    Which lot quantity the material's unit is measured against.

    kg falls back to piece count when the lots carry no weight data.
    """
    if material.unit == MaterialSpec.Unit.KG:
        return BASIS_WEIGHT if totals["weight"] > 0 else BASIS_COUNT
    if material.unit == MaterialSpec.Unit.M:
        return BASIS_LENGTH
    return BASIS_COUNT


def lot_amount(lot: StockLot, basis: str) -> Decimal:
    if basis == BASIS_WEIGHT:
        return Decimal(lot.weight or 0)
    if basis == BASIS_LENGTH:
        return Decimal(lot.count or 0) * Decimal(lot.length_mm or 0) / Decimal("1000")
    return Decimal(lot.count or 0)


def _amount_from_totals(totals: dict, basis: str) -> Decimal:
    if basis == BASIS_WEIGHT:
        return totals["weight"]
    if basis == BASIS_LENGTH:
        return totals["length"] / Decimal("1000")
    return totals["quantity"]


def allocation_order(lots, basis: str) -> list:
    return sorted(
        lots,
        key=lambda lot: (
            KIND_RANK.get(lot.kind, len(KIND_RANK)),
            lot_amount(lot, basis),
            lot.created_at,
            str(lot.pk),
        ),
    )


def write_lot(lot: StockLot) -> StockLot:
    """Compare-and-swap the lot's derived state against its read version."""
    expected = lot.version
    updated = StockLot.objects.filter(pk=lot.pk, version=expected).update(
        count=lot.count,
        weight=lot.weight,
        status=lot.status,
        version=F("version") + 1,
        updated_at=timezone.now(),
    )
    if updated != 1:
        raise StaleLotError(f"Stock lot {lot.pk} changed during allocation")

    lot.version = expected + 1
    return lot


# ============================================================
# AGGREGATION PRIMITIVE
# ============================================================

def total_available_stock(material) -> dict:
    """
    {quantity, weight, length} over available lots with positive count.
    length is Σ count × length_mm (mm).
    """
    material = get_material(material)
    return _totals_for(available_lots(material))


def available_amount(material, totals: dict | None = None) -> Decimal:
    """Total available stock expressed in the material's unit."""
    material = get_material(material)
    if totals is None:
        totals = _totals_for(available_lots(material))
    return _amount_from_totals(totals, allocation_basis(material, totals))


# ============================================================
# DECREMENT
# ============================================================

@transaction.atomic
def decrement_stock(material, quantity) -> AllocationResult:
    """
    Deduct `quantity` (in the material's unit) across available lots.

    Raises InsufficientStockError before touching anything when the request
    exceeds available stock plus tolerance. Within tolerance, the walk may
    end with a shortfall (satisfied=False).
    """
    material = get_material(material)
    qty = _positive_quantity(quantity)

    lots = list(available_lots(material).select_for_update())
    totals = _totals_for(lots)
    basis = allocation_basis(material, totals)
    available = _amount_from_totals(totals, basis)

    if qty > available * (Decimal("1") + _tolerance()):
        logger.warning(
            "Allocation rejected: insufficient stock",
            extra={
                "material": material.code,
                "requested": str(qty),
                "available": str(available),
            },
        )
        raise InsufficientStockError(available=available, requested=qty, material=material)

    wpm = material.effective_weight_per_meter
    remaining = qty
    deductions = []

    for lot in allocation_order(lots, basis):
        if remaining <= 0:
            break

        amount = lot_amount(lot, basis)
        if amount <= 0:
            continue

        to_deduct = remaining if remaining < amount else amount

        if basis == BASIS_COUNT:
            lot.count = Decimal(lot.count) - to_deduct
        elif to_deduct >= amount:
            lot.count = ZERO
        else:
            count = Decimal(lot.count)
            lot.count = count - (count * to_deduct / amount)

        lot.derive_state(wpm)

        if basis == BASIS_WEIGHT and lot.weight <= 0:
            lot.count = ZERO
            lot.status = StockLot.Status.CONSUMED
            lot.derive_state(wpm)

        write_lot(lot)

        deductions.append(
            LotDeduction(
                lot_id=lot.pk,
                kind=lot.kind,
                amount=to_deduct,
                remaining=lot_amount(lot, basis),
                consumed=lot.status == StockLot.Status.CONSUMED,
            )
        )
        remaining -= to_deduct

    shortfall = remaining if remaining > 0 else ZERO

    if shortfall > 0:
        logger.warning(
            "Allocation within tolerance left a shortfall",
            extra={"material": material.code, "shortfall": str(shortfall)},
        )

    logger.info(
        "Stock allocated",
        extra={
            "material": material.code,
            "requested": str(qty),
            "basis": basis,
            "lots": len(deductions),
        },
    )

    return AllocationResult(
        satisfied=shortfall <= 0,
        shortfall=shortfall,
        requested=qty,
        available=available,
        basis=basis,
        deductions=tuple(deductions),
    )


# ============================================================
# RESTORE (APPROXIMATE REVERSAL)
# ============================================================

def _pieces_for(material: MaterialSpec, quantity: Decimal, length_mm: Decimal) -> Decimal:
    """How many pieces of `length_mm` make up `quantity` in the material's unit."""
    wpm = Decimal(material.effective_weight_per_meter or 0)

    if material.unit == MaterialSpec.Unit.KG and wpm > 0 and length_mm > 0:
        return quantity / (length_mm / Decimal("1000") * wpm)
    if material.unit == MaterialSpec.Unit.M and length_mm > 0:
        return quantity * Decimal("1000") / length_mm
    return quantity


@transaction.atomic
def restore_stock(material, quantity) -> StockLot:
    """
    Put `quantity` (material unit) back into stock.

    Increments the oldest available FULL_BAR lot, or creates a new FULL_BAR
    lot of standard bar length. Does not rebuild the original lots.
    """
    material = get_material(material)
    qty = _positive_quantity(quantity)

    candidates = (
        available_lots(material)
        .filter(kind=StockLot.Kind.FULL_BAR)
        .select_for_update()
        .order_by("created_at", "id")
    )
    if material.unit in {MaterialSpec.Unit.KG, MaterialSpec.Unit.M}:
        candidates = candidates.filter(length_mm__gt=0)

    lot = candidates.first()

    if lot is not None:
        lot.count = Decimal(lot.count) + _pieces_for(material, qty, Decimal(lot.length_mm))
        lot.derive_state(material.effective_weight_per_meter)
        write_lot(lot)
        created = False
    else:
        length = standard_bar_length()
        lot = StockLot(
            material=material,
            kind=StockLot.Kind.FULL_BAR,
            count=_pieces_for(material, qty, length),
            length_mm=length,
            notes="Restored stock",
        )
        lot.save()
        created = True

    logger.info(
        "Stock restored",
        extra={
            "material": material.code,
            "quantity": str(qty),
            "lot": str(lot.pk),
            "new_lot": created,
        },
    )
    return lot
