"""Serializers for the inventory domain.

Read serializers expose movements with their product identity; input
serializers only check shapes and types. Business rules (stock, reason per
type, state transitions) live in ``inventory.services``.
"""

from catalog.serializers import ProductSummarySerializer
from common.choices import MovementReason, MovementStatus, MovementType
from rest_framework import serializers

from .models import StockMovement


class StockMovementSerializer(serializers.ModelSerializer):
    """Read-only representation of a stock movement and its audit bridge."""

    product = ProductSummarySerializer(read_only=True)
    absolute_quantity = serializers.IntegerField(read_only=True)
    signed_delta = serializers.IntegerField(read_only=True)

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "type",
            "product",
            "quantity",
            "absolute_quantity",
            "signed_delta",
            "unit_price",
            "total_value",
            "reason",
            "description",
            "reference",
            "batch_number",
            "supplier",
            "customer",
            "location",
            "created_by",
            "approved_by",
            "status",
            "movement_date",
            "processed_at",
            "previous_stock",
            "new_stock",
            "metadata",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class PartySerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    reference = serializers.CharField(max_length=120, required=False, allow_blank=True)
    contact = serializers.CharField(max_length=200, required=False, allow_blank=True)


class LocationSerializer(serializers.Serializer):
    warehouse = serializers.CharField(max_length=120, required=False, default="main")
    zone = serializers.CharField(max_length=64, required=False, allow_blank=True)
    shelf = serializers.CharField(max_length=64, required=False, allow_blank=True)
    bin = serializers.CharField(max_length=64, required=False, allow_blank=True)


class MovementCreateSerializer(serializers.Serializer):
    """Input for recording a movement.

    ``quantity`` is the magnitude for entries and exits and a signed delta
    for adjustments and transfers.
    """

    product_id = serializers.IntegerField()
    type = serializers.ChoiceField(choices=MovementType.choices)
    quantity = serializers.IntegerField()
    reason = serializers.ChoiceField(choices=MovementReason.choices)
    unit_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    status = serializers.ChoiceField(
        choices=[
            (MovementStatus.PENDING, "Pending"),
            (MovementStatus.APPROVED, "Approved"),
            (MovementStatus.COMPLETED, "Completed"),
        ],
        required=False,
        default=MovementStatus.COMPLETED,
    )
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    reference = serializers.CharField(max_length=64, required=False, allow_blank=True)
    batch_number = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    supplier = PartySerializer(required=False)
    customer = PartySerializer(required=False)
    location = LocationSerializer(required=False)
    movement_date = serializers.DateTimeField(required=False)

    def to_service_kwargs(self) -> dict:
        data = dict(self.validated_data)
        data["movement_type"] = data.pop("type")
        for key in ("supplier", "customer", "location"):
            if key in data:
                data[key] = dict(data[key])
        return data


class MovementUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=MovementStatus.choices, required=False)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)


class MovementRemoveSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=200, required=False, default="Deleted by user")


class MovementApproveSerializer(serializers.Serializer):
    approved_by = serializers.CharField(max_length=150, required=False)


class BulkMovementSerializer(serializers.Serializer):
    """Envelope for bulk imports; items are validated one by one by the service."""

    movements = serializers.ListField(child=serializers.JSONField(), allow_empty=True)


# EOF
