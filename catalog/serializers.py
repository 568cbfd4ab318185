"""Serializers for the catalog app."""

from rest_framework import serializers

from .models import Product


class ProductSerializer(serializers.ModelSerializer):
    """Read/write representation of a product.

    ``quantity`` may be set when a product is created; afterwards stock only
    changes through recorded movements.
    """

    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "reference",
            "description",
            "category",
            "quantity",
            "price",
            "min_stock",
            "unit",
            "status",
            "is_low_stock",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "is_low_stock", "created_at", "updated_at"]

    def validate_reference(self, value: str) -> str:
        value = (value or "").strip().upper()
        qs = Product.objects.filter(reference=value)
        if self.instance is not None:
            qs = qs.exclude(id=self.instance.id)
        if qs.exists():
            raise serializers.ValidationError("A product with this reference already exists.")
        return value

    def validate_quantity(self, value: int) -> int:
        if value < 0:
            raise serializers.ValidationError("Quantity cannot be negative.")
        if self.instance is not None and value != self.instance.quantity:
            raise serializers.ValidationError("Stock changes must be recorded as stock movements.")
        return value

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Price cannot be negative.")
        return value

    def validate_min_stock(self, value: int) -> int:
        if value < 0:
            raise serializers.ValidationError("Minimum stock cannot be negative.")
        return value


class ProductSummarySerializer(serializers.ModelSerializer):
    """Compact product identity embedded in movement payloads."""

    class Meta:
        model = Product
        fields = ["id", "name", "reference", "category"]
        read_only_fields = fields


# EOF
