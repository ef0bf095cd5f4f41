"""
PATH: inventory/models/__init__.py

Inventory models export surface.
"""

from .material_spec import MaterialSpec
from .stock_alert import StockAlert
from .stock_lot import StockLot
from .stock_movement import StockMovement

__all__ = [
    "MaterialSpec",
    "StockLot",
    "StockMovement",
    "StockAlert",
]
