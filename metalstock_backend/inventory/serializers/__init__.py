from .material import CatalogImportSerializer, MaterialSpecSerializer, WeightCalculationSerializer
from .stock import (
    StockAdjustSerializer,
    StockCutSerializer,
    StockIntakeSerializer,
    StockLotSerializer,
    StockMovementSerializer,
)

__all__ = [
    "CatalogImportSerializer",
    "MaterialSpecSerializer",
    "WeightCalculationSerializer",
    "StockAdjustSerializer",
    "StockCutSerializer",
    "StockIntakeSerializer",
    "StockLotSerializer",
    "StockMovementSerializer",
]
