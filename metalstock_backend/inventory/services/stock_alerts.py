# inventory/services/stock_alerts.py

"""
STOCK LEVEL CHECKER

Reads the allocation engine's aggregation primitive and compares each
material's available stock (in its own unit) to its thresholds.

Rules:
- Only active materials with min_stock > 0 are checked.
- safety stock defaults to min_stock × 1.5.
- amount <= min_stock    -> critical
- amount <= safety stock -> warning
- check_stock_levels() writes at most one StockAlert per material and level
  inside the STOCK_ALERT_DEDUP_HOURS window.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from inventory.models import MaterialSpec, StockAlert
from inventory.services.stock_allocation import available_amount


logger = logging.getLogger(__name__)

LEVEL_CRITICAL = StockAlert.Level.CRITICAL
LEVEL_WARNING = StockAlert.Level.WARNING
LEVEL_OK = "ok"


def stock_level(material: MaterialSpec, amount: Decimal | None = None) -> str:
    min_stock = Decimal(material.min_stock or 0)
    if min_stock <= 0:
        return LEVEL_OK

    if amount is None:
        amount = available_amount(material)

    if amount <= min_stock:
        return LEVEL_CRITICAL
    if amount <= material.effective_safety_stock:
        return LEVEL_WARNING
    return LEVEL_OK


def _checked_materials():
    return MaterialSpec.objects.filter(is_active=True, min_stock__gt=0).order_by("code")


def get_low_stock_materials() -> list[dict]:
    """Materials at or below safety stock, most urgent first."""
    rows = []
    for material in _checked_materials():
        amount = available_amount(material)
        level = stock_level(material, amount)
        if level == LEVEL_OK:
            continue
        rows.append(
            {
                "material": material,
                "current_stock": amount,
                "min_stock": Decimal(material.min_stock),
                "safety_stock": material.effective_safety_stock,
                "status": level,
                "unit": material.unit,
            }
        )

    rows.sort(key=lambda r: (r["status"] != LEVEL_CRITICAL, r["material"].code))
    return rows


@transaction.atomic
def check_stock_levels(now=None) -> list[StockAlert]:
    """Create StockAlert rows for materials that crossed a threshold."""
    now = now or timezone.now()
    window = timedelta(hours=int(getattr(settings, "STOCK_ALERT_DEDUP_HOURS", 24)))
    created = []

    for row in get_low_stock_materials():
        material = row["material"]
        recent = StockAlert.objects.filter(
            material=material,
            level=row["status"],
            created_at__gte=now - window,
        ).exists()
        if recent:
            continue

        alert = StockAlert.objects.create(
            material=material,
            level=row["status"],
            stock_amount=row["current_stock"].quantize(Decimal("0.0001")),
            min_stock=row["min_stock"],
            safety_stock=row["safety_stock"].quantize(Decimal("0.0001")),
        )
        created.append(alert)

        logger.info(
            "Stock alert raised",
            extra={
                "material": material.code,
                "level": alert.level,
                "stock_amount": str(alert.stock_amount),
            },
        )

    return created
