from django.core.management.base import BaseCommand

from inventory.services.stock_alerts import check_stock_levels, get_low_stock_materials


class Command(BaseCommand):
    help = "Compare available stock with min/safety stock and record StockAlert rows"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List low-stock materials without writing alerts",
        )

    def handle(self, *args, **options):
        if options["dry_run"]:
            rows = get_low_stock_materials()
            for row in rows:
                self.stdout.write(
                    f"{row['status'].upper():8} {row['material'].code}: "
                    f"{row['current_stock']} {row['unit']} (min {row['min_stock']})"
                )
            self.stdout.write(self.style.SUCCESS(f"{len(rows)} material(s) below safety stock"))
            return

        alerts = check_stock_levels()
        for alert in alerts:
            self.stdout.write(
                f"{alert.level.upper():8} {alert.material.code}: {alert.stock_amount}"
            )
        self.stdout.write(self.style.SUCCESS(f"{len(alerts)} new alert(s) recorded"))
