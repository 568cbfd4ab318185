"""Admin registrations for inventory app."""

from django.contrib import admin

from .models import StockMovement


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "reference",
        "product",
        "type",
        "quantity",
        "reason",
        "status",
        "previous_stock",
        "new_stock",
        "movement_date",
    )
    list_filter = ("type", "status", "reason")
    search_fields = ("product__reference", "product__name", "reference", "batch_number")
    # The audit bridge is written by the ledger only
    readonly_fields = ("previous_stock", "new_stock", "total_value", "processed_at")
