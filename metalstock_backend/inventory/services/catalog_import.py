# inventory/services/catalog_import.py

"""
CATALOG IMPORT (ROW LEVEL)

Purpose:
- Turn one already-parsed spreadsheet row into a MaterialSpec (create or update).
- Fill what the row leaves out: material type and shape from code/description,
  diameter from the code suffix, density from material type, and weight per
  meter from geometry when dimensions are known.
- Top up stock with a FULL_BAR lot (+ IN movement) when the row's stock
  count exceeds what is on hand.

File parsing (xlsx/csv) is the caller's job; rows arrive as dicts.
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.core.exceptions import ValidationError
from django.db import transaction

from inventory.models import MaterialSpec
from inventory.services.exceptions import CatalogImportError, InventoryServiceError
from inventory.services.metal_math import density_for, weight_per_meter
from inventory.services.stock_allocation import total_available_stock
from inventory.services.stock_operations import intake_lot


logger = logging.getLogger(__name__)

# Header keywords per field, checked in this order
COLUMN_PATTERNS: list[tuple[str, tuple[str, ...]]] = [
    ("code", ("codigo", "código", "code", "ref", "referencia", "referência", "sku")),
    ("description", ("descricao", "descrição", "description", "nome", "name", "material")),
    ("weight_per_meter", ("peso", "weight", "kg/m", "kgm", "peso/m")),
    ("min_stock", ("min", "minimo", "mínimo")),
    ("stock", ("stock", "quantidade", "qty", "qtd", "quant")),
    ("price", ("preco", "preço", "price", "custo", "cost", "valor")),
    ("unit", ("unidade", "unit", "un", "uom")),
]

UNIT_ALIASES = {
    "kg": MaterialSpec.Unit.KG,
    "kgs": MaterialSpec.Unit.KG,
    "kilo": MaterialSpec.Unit.KG,
    "m": MaterialSpec.Unit.M,
    "mt": MaterialSpec.Unit.M,
    "mts": MaterialSpec.Unit.M,
    "metro": MaterialSpec.Unit.M,
    "metros": MaterialSpec.Unit.M,
    "un": MaterialSpec.Unit.UN,
    "und": MaterialSpec.Unit.UN,
    "unid": MaterialSpec.Unit.UN,
    "pc": MaterialSpec.Unit.UN,
    "pcs": MaterialSpec.Unit.UN,
}

FOURPLACES = Decimal("0.0001")

_DIAMETER_SUFFIX = re.compile(r"(\d{2,3})$")

DIAMETER_SHAPES = {
    MaterialSpec.Shape.ROUND,
    MaterialSpec.Shape.HEX,
    MaterialSpec.Shape.TUBE,
}


# ============================================================
# DETECTION HELPERS
# ============================================================

def detect_material_type(description: str) -> str:
    desc = (description or "").lower()

    if "inox" in desc or "304" in desc or "316" in desc:
        return MaterialSpec.MaterialType.STAINLESS
    if "alumin" in desc or "alumín" in desc or "alu " in desc:
        return MaterialSpec.MaterialType.ALUMINUM
    if "latão" in desc or "latao" in desc or "brass" in desc:
        return MaterialSpec.MaterialType.BRASS
    if "bronze" in desc:
        return MaterialSpec.MaterialType.BRONZE
    if any(word in desc for word in ("nylon", "pvc", "teflon", "delrin")):
        return MaterialSpec.MaterialType.PLASTIC
    return MaterialSpec.MaterialType.STEEL


def detect_shape(code: str, description: str) -> str:
    desc = (description or "").lower()
    cd = (code or "").upper()

    if "tubo" in desc or "tube" in desc or "TUB" in cd:
        return MaterialSpec.Shape.TUBE
    if "hex" in desc or "HEX" in cd:
        return MaterialSpec.Shape.HEX
    if "chapa" in desc or "plate" in desc or "CHP" in cd:
        return MaterialSpec.Shape.PLATE
    if "quadrado" in desc or "caixa" in desc or "QUA" in cd:
        return MaterialSpec.Shape.BOX
    return MaterialSpec.Shape.ROUND


def extract_diameter(code: str) -> Decimal | None:
    """Trailing 2-3 digits of the code, e.g. AC4R050 -> 50."""
    match = _DIAMETER_SUFFIX.search((code or "").strip())
    if not match:
        return None
    value = int(match.group(1))
    return Decimal(value) if value > 0 else None


def suggest_column_mapping(headers) -> dict:
    """
    Guess which spreadsheet header feeds which field.
    A header is assigned to at most one field.
    """
    headers = list(headers or [])
    lowered = [str(h).strip().lower() for h in headers]
    mapping = {}
    used = set()

    for field, patterns in COLUMN_PATTERNS:
        for idx, header in enumerate(lowered):
            if idx in used:
                continue
            if any(p in header for p in patterns):
                mapping[field] = headers[idx]
                used.add(idx)
                break

    return mapping


# ============================================================
# VALUE PARSERS
# ============================================================

def _number(fields: dict, key: str) -> Decimal | None:
    raw = fields.get(key)
    if raw is None or isinstance(raw, bool):
        return None
    text = str(raw).strip().replace(",", ".")
    if not text:
        return None
    try:
        value = Decimal(text)
    except InvalidOperation as exc:
        raise CatalogImportError(f"{key}: '{raw}' is not a number") from exc
    if not value.is_finite():
        raise CatalogImportError(f"{key}: '{raw}' is not a finite number")
    if value < 0:
        raise CatalogImportError(f"{key} cannot be negative")
    return value


def _quantized(value: Decimal | None) -> Decimal | None:
    if value is None:
        return None
    return value.quantize(FOURPLACES, rounding=ROUND_HALF_UP)


def _text(fields: dict, key: str) -> str:
    raw = fields.get(key)
    return "" if raw is None else str(raw).strip()


def _unit(fields: dict) -> str | None:
    raw = _text(fields, "unit").lower().rstrip(".")
    if not raw:
        return None
    unit = UNIT_ALIASES.get(raw)
    if unit is None:
        raise CatalogImportError(f"Unknown unit '{fields.get('unit')}'")
    return unit


def _choice(fields: dict, key: str, choices) -> str | None:
    raw = _text(fields, key).lower()
    if not raw:
        return None
    if raw not in choices.values:
        raise CatalogImportError(f"{key}: '{raw}' is not one of {sorted(choices.values)}")
    return raw


def _derived_weight_per_meter(material: MaterialSpec) -> Decimal:
    dims = material.dimensions
    if not dims or any(v is None or v <= 0 for v in dims.values()):
        return Decimal("0")
    return weight_per_meter(material.shape, dims, material.density)


# ============================================================
# IMPORT
# ============================================================

@transaction.atomic
def import_catalog_row(fields: dict, user=None) -> tuple[MaterialSpec, bool]:
    """
    Create or update one material from a row of named fields.

    Recognised keys: code, description, category, material_type, shape,
    diameter_mm, width_mm, height_mm, wall_mm, density, weight_per_meter,
    unit, min_stock, safety_stock, price, stock, notes.
    Returns (material, created).
    """
    fields = fields or {}
    code = _text(fields, "code").upper()
    if not code:
        raise CatalogImportError("code is required")

    description = _text(fields, "description")
    unit = _unit(fields)
    wpm = _quantized(_number(fields, "weight_per_meter"))
    min_stock = _number(fields, "min_stock")
    safety_stock = _number(fields, "safety_stock")
    price = _quantized(_number(fields, "price"))
    stock = _number(fields, "stock")
    density = _number(fields, "density")
    dims = {
        f: _number(fields, f) for f in ("diameter_mm", "width_mm", "height_mm", "wall_mm")
    }
    material_type = _choice(fields, "material_type", MaterialSpec.MaterialType)
    shape = _choice(fields, "shape", MaterialSpec.Shape)
    category = _choice(fields, "category", MaterialSpec.Category)

    material = MaterialSpec.objects.select_for_update().filter(code=code).first()
    created = material is None

    if created:
        material_type = material_type or detect_material_type(description)
        shape = shape or detect_shape(code, description)
        if dims["diameter_mm"] is None and shape in DIAMETER_SHAPES:
            dims["diameter_mm"] = extract_diameter(code)

        material = MaterialSpec(
            code=code,
            description=description or code,
            category=category or MaterialSpec.Category.RAW_MATERIAL,
            material_type=material_type,
            shape=shape,
            density=density or density_for(material_type),
            unit=unit or MaterialSpec.Unit.KG,
            min_stock=min_stock or Decimal("0"),
            safety_stock=safety_stock,
            last_price=price or Decimal("0"),
            average_price=price or Decimal("0"),
            notes=_text(fields, "notes"),
            **dims,
        )
    else:
        if description:
            material.description = description
        if category:
            material.category = category
        if material_type:
            material.material_type = material_type
            if density is None:
                material.density = density_for(material_type)
        if shape:
            material.shape = shape
        for f, value in dims.items():
            if value is not None:
                setattr(material, f, value)
        if density:
            material.density = density
        if unit:
            material.unit = unit
        if min_stock:
            material.min_stock = min_stock
        if safety_stock:
            material.safety_stock = safety_stock
        if price:
            material.last_price = price

    if wpm:
        material.weight_per_meter = wpm
    elif not material.weight_per_meter:
        material.weight_per_meter = _derived_weight_per_meter(material)

    try:
        material.save()
    except ValidationError as exc:
        raise CatalogImportError(f"{code}: {exc}") from exc

    if stock:
        on_hand = total_available_stock(material)["quantity"]
        if stock > on_hand:
            intake_lot(
                material=material,
                count=stock - on_hand,
                notes="Imported from catalog",
                user=user,
            )

    logger.info(
        "Catalog row imported",
        extra={"material": material.code, "new_material": created},
    )
    return material, created


def import_catalog_rows(rows, mapping: dict | None = None, user=None) -> dict:
    """
    Import many rows. `mapping` is field -> header; when omitted it is
    suggested from the first row's headers. Each row commits on its own,
    so one bad row does not undo the others.
    """
    rows = list(rows or [])
    result = {"created": 0, "updated": 0, "skipped": 0, "errors": []}
    if not rows:
        return result

    if mapping is None:
        mapping = suggest_column_mapping(rows[0].keys())

    for index, row in enumerate(rows):
        row_number = index + 2  # header occupies row 1
        fields = {field: row.get(header) for field, header in mapping.items()}

        if not _text(fields, "code"):
            result["skipped"] += 1
            continue

        try:
            _material, created = import_catalog_row(fields, user=user)
        except (InventoryServiceError, ValidationError) as exc:
            logger.warning(
                "Catalog row rejected",
                extra={"row": row_number, "code": _text(fields, "code"), "error": str(exc)},
            )
            result["errors"].append(
                {"row": row_number, "code": _text(fields, "code"), "message": str(exc)}
            )
            continue

        result["created" if created else "updated"] += 1

    return result
