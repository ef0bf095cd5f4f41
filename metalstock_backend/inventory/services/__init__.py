from .exceptions import (
    CatalogImportError,
    InsufficientStockError,
    InvalidQuantityError,
    InventoryServiceError,
    LotNotFoundError,
    MaterialNotFoundError,
    StaleLotError,
    UnitConversionError,
    UnsupportedShapeError,
)
from .metal_math import calculate_weight, convert_quantity, length_for_weight
from .movements import project_material_cost, record_movement
from .stock_allocation import (
    AllocationResult,
    available_amount,
    decrement_stock,
    restore_stock,
    total_available_stock,
)

__all__ = [
    "CatalogImportError",
    "InsufficientStockError",
    "InvalidQuantityError",
    "InventoryServiceError",
    "LotNotFoundError",
    "MaterialNotFoundError",
    "StaleLotError",
    "UnitConversionError",
    "UnsupportedShapeError",
    "calculate_weight",
    "convert_quantity",
    "length_for_weight",
    "project_material_cost",
    "record_movement",
    "AllocationResult",
    "available_amount",
    "decrement_stock",
    "restore_stock",
    "total_available_stock",
]
