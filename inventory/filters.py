"""Query-parameter filters for stock movement listings."""

from common.choices import MovementReason, MovementStatus, MovementType
from django_filters import rest_framework as filters

from .models import StockMovement


class MovementFilterSet(filters.FilterSet):
    type = filters.ChoiceFilter(choices=MovementType.choices)
    reason = filters.ChoiceFilter(choices=MovementReason.choices)
    status = filters.ChoiceFilter(choices=MovementStatus.choices)
    product = filters.NumberFilter(field_name="product_id")
    product_id = filters.NumberFilter(field_name="product_id")
    start_date = filters.IsoDateTimeFilter(field_name="movement_date", lookup_expr="gte")
    end_date = filters.IsoDateTimeFilter(field_name="movement_date", lookup_expr="lte")

    class Meta:
        model = StockMovement
        fields = ["type", "reason", "status", "product", "product_id", "start_date", "end_date"]


# EOF
