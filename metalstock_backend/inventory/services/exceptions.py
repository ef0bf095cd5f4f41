# inventory/services/exceptions.py

"""
INVENTORY DOMAIN ERRORS

Every error here is raised BEFORE the first write of the operation that
detects it, so a caller that catches one can assume nothing changed.
"""

from __future__ import annotations


class InventoryServiceError(Exception):
    pass


class UnsupportedShapeError(InventoryServiceError):
    """Unknown geometry, or a shape an operation cannot handle. Fatal to the caller."""

    def __init__(self, shape, message: str | None = None):
        self.shape = shape
        super().__init__(message or f"Unsupported shape: {shape!r}")


class InvalidQuantityError(InventoryServiceError):
    """Negative, missing, zero-where-forbidden or non-finite numeric input."""


class UnitConversionError(InventoryServiceError):
    pass


class InsufficientStockError(InventoryServiceError):
    """
    Requested quantity exceeds available stock (plus tolerance).
    No lot has been touched.
    """

    def __init__(self, *, available, requested=None, material=None):
        self.available = available
        self.requested = requested
        self.material = material
        code = getattr(material, "code", None) or "material"
        super().__init__(
            f"Insufficient stock for {code}. "
            f"Requested: {requested}, Available: {available}"
        )


class MaterialNotFoundError(InventoryServiceError):
    pass


class LotNotFoundError(InventoryServiceError):
    pass


class StaleLotError(InventoryServiceError):
    """A lot changed between read and write (lost compare-and-swap)."""


class CatalogImportError(InventoryServiceError):
    pass
