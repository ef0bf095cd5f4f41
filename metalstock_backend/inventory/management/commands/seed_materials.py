from decimal import Decimal

from django.core.management.base import BaseCommand

from inventory.models import MaterialSpec, StockLot
from inventory.services.catalog_import import import_catalog_row
from inventory.services.stock_allocation import total_available_stock
from inventory.services.stock_operations import intake_lot


# code, description, unit, min_stock, price (per unit), full bars
SEED_CATALOG = [
    ("AC4R020", "Varão aço redondo Ø20", "kg", "50", "1.45", 6),
    ("AC4R050", "Varão aço redondo Ø50", "kg", "200", "1.40", 4),
    ("INOX304R030", "Varão inox 304 Ø30", "kg", "40", "5.90", 3),
    ("ALUR040", "Varão alumínio Ø40", "m", "12", "9.80", 5),
    ("TUB060", "Tubo aço Ø60", "m", "18", "7.25", 4),
    ("PAR-M10", "Parafuso M10x40", "un", "100", "0.18", 0),
]


class Command(BaseCommand):
    help = "Seed a small metal catalog with full bars and one offcut per round bar"

    def handle(self, *args, **options):
        self.stdout.write(self.style.WARNING("Seeding materials and stock..."))

        for code, description, unit, min_stock, price, bars in SEED_CATALOG:
            fields = {
                "code": code,
                "description": description,
                "unit": unit,
                "min_stock": min_stock,
                "price": price,
            }
            if code == "TUB060":
                fields["wall_mm"] = "4"

            material, created = import_catalog_row(fields)

            if bars and total_available_stock(material)["quantity"] == 0:
                intake_lot(
                    material=material,
                    count=bars,
                    unit_cost=Decimal(price),
                    batch_ref="SEED",
                    notes="Seed stock",
                )
                if material.shape == MaterialSpec.Shape.ROUND:
                    intake_lot(
                        material=material,
                        count=1,
                        length_mm=Decimal("850"),
                        kind=StockLot.Kind.OFFCUT,
                        unit_cost=Decimal(price),
                        batch_ref="SEED",
                        notes="Seed offcut",
                    )
            elif code == "PAR-M10" and total_available_stock(material)["quantity"] == 0:
                intake_lot(
                    material=material,
                    count=500,
                    kind=StockLot.Kind.BOX,
                    unit_cost=Decimal(price),
                    batch_ref="SEED",
                )

            state = "created" if created else "exists"
            self.stdout.write(f"{state}: {material.code} ({material.unit})")

        self.stdout.write(self.style.SUCCESS("Materials seeded successfully"))
