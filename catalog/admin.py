"""Admin registration for catalog models."""

from django.contrib import admin

from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("reference", "name", "category", "quantity", "min_stock", "price", "status")
    search_fields = ("reference", "name")
    list_filter = ("status", "category", "unit")
    # Stock is changed through movements only
    readonly_fields = ("quantity",)
