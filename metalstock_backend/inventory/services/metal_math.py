# inventory/services/metal_math.py

"""
GEOMETRY / MASS CALCULATOR

Pure functions: (shape, dimensions, length, density) -> volume -> mass,
and the inverse mass -> length for round bar. No I/O.

Rules:
- All dimensional inputs are millimetres; volumes are taken in cm (mm / 10).
- mass (kg) = volume (cm³) × density (g/cm³) / 1000
- Rounding happens at the result boundary only (mass: 2 dp half-up,
  length: whole mm); intermediate volumes are never rounded.
- Unknown shape -> UnsupportedShapeError. Negative, missing or non-finite
  inputs -> InvalidQuantityError. Nothing non-finite is ever returned.

Volume formulas (L = length):
- round: π·(d/2)²·L
- hex:   (√3/2)·F²·L        (F = across-flats, stored in diameter_mm)
- tube:  π·[(D/2)² − (D/2 − wall)²]·L
- plate / box: w·h·L
"""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.conf import settings

from inventory.services.exceptions import (
    InvalidQuantityError,
    UnitConversionError,
    UnsupportedShapeError,
)


TWOPLACES = Decimal("0.01")
FOURPLACES = Decimal("0.0001")

SHAPE_ROUND = "round"
SHAPE_HEX = "hex"
SHAPE_TUBE = "tube"
SHAPE_PLATE = "plate"
SHAPE_BOX = "box"

SHAPES = {SHAPE_ROUND, SHAPE_HEX, SHAPE_TUBE, SHAPE_PLATE, SHAPE_BOX}

# g/cm³ by material type
DENSITIES: dict[str, Decimal] = {
    "steel": Decimal("7.85"),
    "stainless": Decimal("7.90"),
    "aluminum": Decimal("2.70"),
    "brass": Decimal("8.50"),
    "bronze": Decimal("8.80"),
    "plastic": Decimal("1.20"),
}
DEFAULT_DENSITY = DENSITIES["steel"]

# Short keys accepted alongside the model field names
_DIMENSION_ALIASES = {
    "diameter_mm": ("diameter_mm", "diameter", "d"),
    "width_mm": ("width_mm", "width", "w"),
    "height_mm": ("height_mm", "height", "h"),
    "wall_mm": ("wall_mm", "wall"),
}


# ============================================================
# INPUT NORMALIZERS
# ============================================================

def _to_float(value, name: str, *, allow_zero: bool = True) -> float:
    if value is None or value == "":
        raise InvalidQuantityError(f"{name} is required")
    if isinstance(value, bool):
        raise InvalidQuantityError(f"{name} must be a number")

    try:
        number = float(value)
    except (TypeError, ValueError, InvalidOperation) as exc:
        raise InvalidQuantityError(f"{name} must be a number") from exc

    if not math.isfinite(number):
        raise InvalidQuantityError(f"{name} must be finite")
    if number < 0:
        raise InvalidQuantityError(f"{name} cannot be negative")
    if not allow_zero and number == 0:
        raise InvalidQuantityError(f"{name} must be greater than zero")

    return number


def _to_decimal(value, name: str) -> Decimal:
    _to_float(value, name)
    return Decimal(str(value).strip())


def _dimension(dimensions, field: str) -> float:
    dimensions = dimensions or {}
    for key in _DIMENSION_ALIASES[field]:
        if dimensions.get(key) not in (None, ""):
            return _to_float(dimensions[key], field)
    raise InvalidQuantityError(f"{field} is required for this shape")


def _normalize_shape(shape) -> str:
    key = str(shape or "").strip().lower()
    if key not in SHAPES:
        raise UnsupportedShapeError(shape)
    return key


def _finite_result(value: float, name: str) -> Decimal:
    if not math.isfinite(value):
        raise InvalidQuantityError(f"{name} is not a finite number")
    return Decimal(repr(value))


def density_for(material_type) -> Decimal:
    """Reference density for a material type; DEFAULT_MATERIAL_DENSITY for anything unknown."""
    known = DENSITIES.get(str(material_type or "").strip().lower())
    if known is not None:
        return known
    return Decimal(str(getattr(settings, "DEFAULT_MATERIAL_DENSITY", DEFAULT_DENSITY)))


# ============================================================
# VOLUMES (cm³, unrounded)
# ============================================================

def volume_round_bar(diameter_mm, length_mm) -> float:
    radius_cm = _to_float(diameter_mm, "diameter_mm") / 10 / 2
    return math.pi * radius_cm ** 2 * (_to_float(length_mm, "length_mm") / 10)


def volume_hex(across_flats_mm, length_mm) -> float:
    flats_cm = _to_float(across_flats_mm, "diameter_mm") / 10
    return (math.sqrt(3) / 2) * flats_cm ** 2 * (_to_float(length_mm, "length_mm") / 10)


def volume_tube(outer_diameter_mm, wall_mm, length_mm) -> float:
    outer_radius_cm = _to_float(outer_diameter_mm, "diameter_mm") / 10 / 2
    wall_cm = _to_float(wall_mm, "wall_mm") / 10
    if wall_cm > outer_radius_cm:
        raise InvalidQuantityError("wall_mm cannot exceed half the outer diameter")

    inner_radius_cm = outer_radius_cm - wall_cm
    area = math.pi * (outer_radius_cm ** 2 - inner_radius_cm ** 2)
    return area * (_to_float(length_mm, "length_mm") / 10)


def volume_rectangular(width_mm, height_mm, length_mm) -> float:
    return (
        (_to_float(width_mm, "width_mm") / 10)
        * (_to_float(height_mm, "height_mm") / 10)
        * (_to_float(length_mm, "length_mm") / 10)
    )


def volume_cm3(shape, dimensions, length_mm) -> float:
    key = _normalize_shape(shape)

    if key == SHAPE_ROUND:
        return volume_round_bar(_dimension(dimensions, "diameter_mm"), length_mm)
    if key == SHAPE_HEX:
        return volume_hex(_dimension(dimensions, "diameter_mm"), length_mm)
    if key == SHAPE_TUBE:
        return volume_tube(
            _dimension(dimensions, "diameter_mm"),
            _dimension(dimensions, "wall_mm"),
            length_mm,
        )
    # plate / box
    return volume_rectangular(
        _dimension(dimensions, "width_mm"),
        _dimension(dimensions, "height_mm"),
        length_mm,
    )


# ============================================================
# MASS
# ============================================================

def _mass_kg(shape, dimensions, length_mm, density) -> float:
    key = _normalize_shape(shape)
    rho = _to_float(density, "density", allow_zero=False)
    return volume_cm3(key, dimensions, length_mm) * rho / 1000


def calculate_weight(shape, dimensions, length_mm, density) -> Decimal:
    """Mass in kg, rounded half-up to 2 decimals."""
    mass = _finite_result(_mass_kg(shape, dimensions, length_mm, density), "weight")
    return mass.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def weight_per_meter(shape, dimensions, density) -> Decimal:
    """kg per 1000 mm, kept at 4 decimals so per-lot weights don't drift."""
    mass = _finite_result(_mass_kg(shape, dimensions, 1000, density), "weight_per_meter")
    return mass.quantize(FOURPLACES, rounding=ROUND_HALF_UP)


def length_for_weight(mass_kg, diameter_mm, density, shape=SHAPE_ROUND) -> int:
    """
    Inverse of calculate_weight for round bar: whole millimetres.

    Only defined for a round cross-section; any other shape is rejected.
    """
    key = _normalize_shape(shape)
    if key != SHAPE_ROUND:
        raise UnsupportedShapeError(shape, "length_for_weight only supports round bar")

    mass = _to_float(mass_kg, "mass_kg")
    diameter = _to_float(diameter_mm, "diameter_mm", allow_zero=False)
    rho = _to_float(density, "density", allow_zero=False)

    volume = mass * 1000 / rho
    area = math.pi * (diameter / 10 / 2) ** 2
    length_mm = _finite_result(volume / area * 10, "length")
    return int(length_mm.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def weight_to_meters(mass_kg, diameter_mm, density) -> Decimal:
    """How many metres of round bar a mass represents (2 decimals)."""
    mass = _to_float(mass_kg, "mass_kg")
    per_meter = _mass_kg(SHAPE_ROUND, {"diameter_mm": diameter_mm}, 1000, density)
    if per_meter <= 0:
        raise InvalidQuantityError("diameter_mm must be greater than zero")
    meters = _finite_result(mass / per_meter, "meters")
    return meters.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


# ============================================================
# MATERIAL-AWARE HELPERS
# ============================================================

def material_weight_per_meter(material) -> Decimal:
    """
    Stored kg/m when known, else derived from the material's geometry.
    Returns 0 when neither is available (count-only material).
    """
    stored = Decimal(getattr(material, "weight_per_meter", 0) or 0)
    if stored > 0:
        return stored

    dims = getattr(material, "dimensions", None) or {}
    if not dims or any(v in (None, "") for v in dims.values()):
        return Decimal("0")

    return weight_per_meter(material.shape, dims, material.density)


def convert_quantity(material, quantity, from_unit, to_unit) -> Decimal:
    """
    Express `quantity` (in from_unit) in to_unit, 4 decimals.

    Supported: identity, mm <-> m, kg <-> m / mm via the material's kg/m.
    """
    qty = _to_decimal(quantity, "quantity")
    src = str(from_unit or "").strip().lower()
    dst = str(to_unit or "").strip().lower()

    if not src or not dst:
        raise UnitConversionError("Both units are required")

    if src == dst:
        return qty.quantize(FOURPLACES, rounding=ROUND_HALF_UP)

    # Normalize length to metres first
    if src == "mm":
        qty, src = qty / Decimal("1000"), "m"
        if dst == "m":
            return qty.quantize(FOURPLACES, rounding=ROUND_HALF_UP)

    if src == "m" and dst == "mm":
        return (qty * Decimal("1000")).quantize(FOURPLACES, rounding=ROUND_HALF_UP)

    if {src, dst} <= {"kg", "m", "mm"}:
        per_meter = material_weight_per_meter(material)
        if per_meter <= 0:
            raise UnitConversionError(
                f"Cannot convert {from_unit} to {to_unit}: material has no weight per meter"
            )

        if src == "m" and dst == "kg":
            result = qty * per_meter
        elif src == "kg" and dst == "m":
            result = qty / per_meter
        elif src == "kg" and dst == "mm":
            result = qty / per_meter * Decimal("1000")
        else:
            raise UnitConversionError(f"Cannot convert {from_unit} to {to_unit}")

        return result.quantize(FOURPLACES, rounding=ROUND_HALF_UP)

    raise UnitConversionError(f"Cannot convert {from_unit} to {to_unit}")
