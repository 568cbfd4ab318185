"""Catalog app models.

The product record is the registry the stock ledger reads and mutates:
``quantity`` is the single source of truth for on-hand stock.
"""

from common.choices import ProductStatus, ProductUnit
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Product(TimeStampedModel):
    """Core product entity with its current on-hand quantity."""

    STATUS_ACTIVE = ProductStatus.ACTIVE
    STATUS_INACTIVE = ProductStatus.INACTIVE
    STATUS_DISCONTINUED = ProductStatus.DISCONTINUED
    STATUS_CHOICES = ProductStatus.choices

    name = models.CharField(max_length=100)
    reference = models.CharField(max_length=64, unique=True)
    description = models.CharField(max_length=500, blank=True)
    category = models.CharField(max_length=120, db_index=True)
    quantity = models.IntegerField(default=0)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    min_stock = models.IntegerField(default=5)
    unit = models.CharField(max_length=16, choices=ProductUnit.choices, default=ProductUnit.PIECE)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(name="product_quantity_non_negative", condition=models.Q(quantity__gte=0)),
            models.CheckConstraint(name="product_price_non_negative", condition=models.Q(price__gte=0)),
            models.CheckConstraint(name="product_min_stock_non_negative", condition=models.Q(min_stock__gte=0)),
        ]
        indexes = [
            models.Index(fields=["category", "status"], name="catalog_pro_categor_5d7b3e_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.reference} {self.name}"

    def save(self, *args, **kwargs):
        if self.reference:
            self.reference = self.reference.strip().upper()
        super().save(*args, **kwargs)

    @property
    def is_low_stock(self) -> bool:
        return int(self.quantity) <= int(self.min_stock)


# EOF
