from catalog.models import Product
from django.core.management.base import BaseCommand, CommandError
from inventory.models import StockMovement


class Command(BaseCommand):
    help = (
        "Verify the stock ledger: every completed movement must satisfy "
        "new_stock == max(0, previous_stock + delta), and each product's quantity must "
        "match the new_stock of its latest applied movement."
    )

    def add_arguments(self, parser):
        parser.add_argument("--product", type=int, help="Only check this product id")
        parser.add_argument(
            "--fail-on-drift",
            action="store_true",
            help="Exit with an error when any discrepancy is found",
        )

    def handle(self, *args, **options):
        applied = StockMovement.objects.filter(
            status__in=[StockMovement.STATUS_COMPLETED, StockMovement.STATUS_CANCELLED],
            previous_stock__isnull=False,
        )
        products = Product.objects.all()
        if options.get("product"):
            applied = applied.filter(product_id=options["product"])
            products = products.filter(id=options["product"])

        broken_bridges = 0
        for movement in applied.iterator():
            expected = max(0, int(movement.previous_stock) + movement.signed_delta)
            if movement.new_stock != expected:
                broken_bridges += 1
                self.stdout.write(
                    self.style.WARNING(
                        f"Movement {movement.id} ({movement.reference}): previous_stock={movement.previous_stock} "
                        f"delta={movement.signed_delta} new_stock={movement.new_stock} expected={expected}"
                    )
                )

        drifted = 0
        for product in products.iterator():
            latest = (
                applied.filter(product_id=product.id).order_by("-processed_at", "-id").only("id", "new_stock").first()
            )
            if latest is not None and latest.new_stock != product.quantity:
                drifted += 1
                self.stdout.write(
                    self.style.WARNING(
                        f"Product {product.id} ({product.reference}): quantity={product.quantity} "
                        f"but latest movement {latest.id} left new_stock={latest.new_stock}"
                    )
                )

        summary = f"Ledger check: {broken_bridges} broken audit bridges, {drifted} drifted products"
        if broken_bridges or drifted:
            if options.get("fail_on_drift"):
                raise CommandError(summary)
            self.stdout.write(self.style.WARNING(summary))
        else:
            self.stdout.write(self.style.SUCCESS(summary))
