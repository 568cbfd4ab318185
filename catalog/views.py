"""Product registry endpoints.

Plain CRUD over products plus a low-stock listing. Stock levels are
read-only here after creation; they move through the inventory ledger.
"""

from common.throttling import SettingsScopedRateThrottle
from django.db.models import F, ProtectedError
from django_filters import rest_framework as filters
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import filters as drf_filters
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from . import selectors
from .models import Product
from .serializers import ProductSerializer


class ProductFilterSet(filters.FilterSet):
    category = filters.CharFilter(field_name="category", lookup_expr="iexact")
    low_stock = filters.BooleanFilter(method="filter_low_stock")

    class Meta:
        model = Product
        fields = ["category", "status", "unit"]

    def filter_low_stock(self, queryset, name, value):
        if value:
            return queryset.filter(quantity__lte=F("min_stock"))
        return queryset.filter(quantity__gt=F("min_stock"))


@extend_schema_view(
    list=extend_schema(
        summary="List products",
        description=(
            "Returns products. Supports filtering by `category`, `status`, `unit` and `low_stock`, "
            "ordering by `name`, `reference`, `quantity`, `price` or `created_at`, and search via `search`."
        ),
        tags=["Catalog Endpoints"],
        parameters=[
            OpenApiParameter("category", OpenApiTypes.STR, location="query", description="Filter by category"),
            OpenApiParameter("low_stock", OpenApiTypes.BOOL, location="query", description="Only low stock"),
            OpenApiParameter("search", OpenApiTypes.STR, location="query", description="Search name/reference"),
        ],
    ),
    retrieve=extend_schema(summary="Get product", tags=["Catalog Endpoints"]),
    create=extend_schema(summary="Create product", tags=["Catalog Endpoints"]),
    update=extend_schema(summary="Update product", tags=["Catalog Endpoints"]),
    partial_update=extend_schema(summary="Partial update product", tags=["Catalog Endpoints"]),
    destroy=extend_schema(summary="Delete product", tags=["Catalog Endpoints"]),
)
class ProductViewSet(viewsets.ModelViewSet):
    serializer_class = ProductSerializer
    filterset_class = ProductFilterSet
    throttle_classes = [SettingsScopedRateThrottle]
    filter_backends = [
        filters.DjangoFilterBackend,
        drf_filters.OrderingFilter,
        drf_filters.SearchFilter,
    ]
    ordering_fields = ["name", "reference", "quantity", "price", "created_at"]
    search_fields = ["name", "reference", "description"]

    def get_queryset(self):
        return selectors.list_products()

    def get_throttles(self):
        self.throttle_scope = "catalog" if self.request.method in ("GET", "HEAD", "OPTIONS") else "catalog_write"
        return super().get_throttles()

    def destroy(self, request, *args, **kwargs):
        product = self.get_object()
        try:
            product.delete()
        except ProtectedError:
            return Response(
                {"detail": "Product has recorded stock movements.", "code": "conflicting_state"},
                status=status.HTTP_409_CONFLICT,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        tags=["Catalog Endpoints"],
        summary="List low stock products",
        description="Products whose quantity is at or below their minimum stock threshold.",
        examples=[
            OpenApiExample(
                "Low stock",
                value=[{"id": 1, "name": "Widget", "reference": "WID-001", "quantity": 2, "min_stock": 5}],
                response_only=True,
            )
        ],
    )
    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request):
        qs = selectors.list_low_stock()
        return Response(ProductSerializer(qs, many=True).data)


# EOF
