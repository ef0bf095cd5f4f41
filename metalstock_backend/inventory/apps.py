# inventory/apps.py

"""
INVENTORY APP CONFIG

Metal stock module:
- Material catalog (shape, dimensions, density, unit)
- Physical stock lots (full bars, offcuts, boxes)
- Immutable stock movement ledger
- Low-stock alerts
"""

from django.apps import AppConfig


class InventoryConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "inventory"
    verbose_name = "Metal Inventory"
