"""Inventory models (single-location stock ledger).

Every change to a product's on-hand quantity is recorded as a
``StockMovement``. Completed movements carry the product quantity before and
after they were applied.
"""

import secrets
import time

from common.choices import MovementReason, MovementStatus, MovementType
from django.db import models

from .policy import signed_delta


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


def generate_movement_reference() -> str:
    """Return a unique-enough reference like ``MOV-1718000000000-3F9A1C2B7``."""

    return f"MOV-{int(time.time() * 1000)}-{secrets.token_hex(5).upper()[:9]}"


def default_location() -> dict:
    return {"warehouse": "main"}


class StockMovement(TimeStampedModel):
    TYPE_ENTRY = MovementType.ENTRY
    TYPE_EXIT = MovementType.EXIT
    TYPE_ADJUSTMENT = MovementType.ADJUSTMENT
    TYPE_TRANSFER = MovementType.TRANSFER
    TYPE_CHOICES = MovementType.choices

    STATUS_PENDING = MovementStatus.PENDING
    STATUS_APPROVED = MovementStatus.APPROVED
    STATUS_COMPLETED = MovementStatus.COMPLETED
    STATUS_CANCELLED = MovementStatus.CANCELLED
    STATUS_CHOICES = MovementStatus.choices

    type = models.CharField(max_length=16, choices=TYPE_CHOICES, db_index=True)
    product = models.ForeignKey("catalog.Product", on_delete=models.PROTECT, related_name="movements")
    quantity = models.IntegerField()  # signed: +entry, -exit, as given for adjustment/transfer
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_value = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    reason = models.CharField(max_length=32, choices=MovementReason.choices, db_index=True)
    description = models.CharField(max_length=500, blank=True)
    reference = models.CharField(max_length=64, unique=True, default=generate_movement_reference)
    batch_number = models.CharField(max_length=64, blank=True)
    supplier = models.JSONField(default=dict, blank=True)
    customer = models.JSONField(default=dict, blank=True)
    location = models.JSONField(default=default_location, blank=True)
    created_by = models.CharField(max_length=150, default="system")
    approved_by = models.CharField(max_length=150, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_COMPLETED)
    movement_date = models.DateTimeField(db_index=True)
    processed_at = models.DateTimeField(null=True, blank=True)
    previous_stock = models.IntegerField(null=True, blank=True)
    new_stock = models.IntegerField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["-movement_date", "-id"]
        constraints = [
            models.CheckConstraint(name="stock_movement_non_zero", condition=~models.Q(quantity=0)),
            models.CheckConstraint(
                name="stock_movement_unit_price_non_negative",
                condition=models.Q(unit_price__gte=0),
            ),
            models.CheckConstraint(
                name="stock_movement_previous_stock_non_negative",
                condition=models.Q(previous_stock__gte=0) | models.Q(previous_stock__isnull=True),
            ),
            models.CheckConstraint(
                name="stock_movement_new_stock_non_negative",
                condition=models.Q(new_stock__gte=0) | models.Q(new_stock__isnull=True),
            ),
        ]
        indexes = [
            models.Index(fields=["product", "-movement_date"], name="inventory_s_product_8c2f1a_idx"),
            models.Index(fields=["type", "status"], name="inventory_s_type_4b9e7d_idx"),
            models.Index(fields=["-created_at"], name="inventory_s_created_1f6a2c_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.type} {self.quantity} for {self.product_id} ({self.status})"

    @property
    def absolute_quantity(self) -> int:
        return abs(int(self.quantity))

    @property
    def is_entry(self) -> bool:
        return self.type == self.TYPE_ENTRY or (self.type != self.TYPE_EXIT and self.quantity > 0)

    @property
    def is_exit(self) -> bool:
        return self.type == self.TYPE_EXIT or (self.type != self.TYPE_ENTRY and self.quantity < 0)

    @property
    def signed_delta(self) -> int:
        return signed_delta(self.type, self.quantity)


# EOF
