"""Seed initial catalog data for development sanity-check.

Creates a handful of products and records their opening stock as
``initial_stock`` entries, so the ledger and the product quantities agree.
Re-running is idempotent; existing products are reused by reference.
"""

from decimal import Decimal

from catalog.models import Product
from common.choices import MovementReason, MovementType
from django.core.management.base import BaseCommand
from django.db import transaction
from inventory.services import record_movement

PRODUCTS = [
    {
        "reference": "CAB-HDMI-2M",
        "name": "HDMI 2.1 Cable 2m",
        "category": "Accessories",
        "price": Decimal("19.99"),
        "min_stock": 10,
        "opening": 40,
    },
    {
        "reference": "SPK-MON-5",
        "name": "Studio Monitor Speakers",
        "category": "Audio",
        "price": Decimal("299.99"),
        "min_stock": 2,
        "opening": 6,
    },
    {
        "reference": "CAM-4K-01",
        "name": "4K Camcorder",
        "category": "Video",
        "price": Decimal("799.00"),
        "min_stock": 1,
        "opening": 3,
    },
    {
        "reference": "RICE-5KG",
        "name": "Rice 5kg bag",
        "category": "Groceries",
        "price": Decimal("12.50"),
        "min_stock": 20,
        "unit": "kg",
        "opening": 0,
    },
]


class Command(BaseCommand):
    help = "Seed initial catalog data (products with opening stock movements)"

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding catalog data...")

        created = 0
        for row in PRODUCTS:
            row = dict(row)
            opening = row.pop("opening")
            product, was_created = Product.objects.get_or_create(
                reference=row["reference"],
                defaults={**row, "quantity": 0},
            )
            if not was_created:
                continue
            created += 1
            if opening:
                record_movement(
                    product_id=product.id,
                    movement_type=MovementType.ENTRY,
                    quantity=opening,
                    reason=MovementReason.INITIAL_STOCK,
                    description="Opening stock",
                    created_by="seed",
                    metadata={"source": "seed"},
                )

        self.stdout.write(self.style.SUCCESS(f"Catalog seeding complete. Products created: {created}"))
