# inventory/urls.py

"""
INVENTORY URLS

Registered under /api/inventory/:
- materials/   (+ stock/, low-stock/, import/, weight/)
- lots/        (+ adjust/, cut/)
- movements/   (+ cost-summary/)
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from inventory.views import MaterialSpecViewSet, StockLotViewSet, StockMovementViewSet

router = DefaultRouter()

router.register(r"materials", MaterialSpecViewSet, basename="materials")
router.register(r"lots", StockLotViewSet, basename="lots")
router.register(r"movements", StockMovementViewSet, basename="movements")

urlpatterns = [
    path("", include(router.urls)),
]
