# inventory/views/__init__.py

"""
Inventory views package exports (router imports).
"""

from .material import MaterialSpecViewSet
from .stock import StockLotViewSet, StockMovementViewSet

__all__ = [
    "MaterialSpecViewSet",
    "StockLotViewSet",
    "StockMovementViewSet",
]
