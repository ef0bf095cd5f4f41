# inventory/services/lookups.py

"""
Instance-or-id resolvers shared by the inventory services.

Callers may pass a model instance or its primary key; not-found and
malformed ids both surface as the domain not-found error.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError

from inventory.models import MaterialSpec, StockLot
from inventory.services.exceptions import LotNotFoundError, MaterialNotFoundError


def get_material(material, *, lock: bool = False) -> MaterialSpec:
    if material is None:
        raise MaterialNotFoundError("material is required")

    material_id = getattr(material, "pk", material)
    qs = MaterialSpec.objects.all()
    if lock:
        qs = qs.select_for_update()

    try:
        return qs.get(pk=material_id)
    except (MaterialSpec.DoesNotExist, ValidationError, ValueError) as exc:
        raise MaterialNotFoundError(f"Material not found: {material_id}") from exc


def get_lot(lot, *, lock: bool = False) -> StockLot:
    if lot is None:
        raise LotNotFoundError("lot is required")

    lot_id = getattr(lot, "pk", lot)
    qs = StockLot.objects.select_related("material")
    if lock:
        qs = qs.select_for_update(of=("self",))

    try:
        return qs.get(pk=lot_id)
    except (StockLot.DoesNotExist, ValidationError, ValueError) as exc:
        raise LotNotFoundError(f"Stock lot not found: {lot_id}") from exc
