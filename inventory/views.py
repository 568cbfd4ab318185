"""Stock movement API: ledger mutations, listings and analytics."""

from common.errors import LedgerError
from common.throttling import SettingsScopedRateThrottle
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, inline_serializer
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from . import selectors, services
from .serializers import (
    BulkMovementSerializer,
    MovementApproveSerializer,
    MovementCreateSerializer,
    MovementRemoveSerializer,
    MovementUpdateSerializer,
    StockMovementSerializer,
)

ErrorSerializer = inline_serializer(
    name="LedgerError",
    fields={"detail": rf_serializers.CharField(), "code": rf_serializers.CharField()},
)


def error_response(exc: LedgerError) -> Response:
    return Response(exc.as_payload(), status=exc.status_code)


def actor_for(request, default: str = "system") -> str:
    user = getattr(request, "user", None)
    if user is not None and getattr(user, "is_authenticated", False):
        return user.get_username()
    return default


def request_metadata(request, source: str = "api") -> dict:
    meta = {
        "source": source,
        "ip_address": request.META.get("REMOTE_ADDR"),
        "user_agent": request.META.get("HTTP_USER_AGENT", ""),
    }
    correlation_id = request.headers.get("X-Correlation-ID")
    if correlation_id:
        meta["correlation_id"] = correlation_id
    return meta


class InventoryBaseView(APIView):
    throttle_classes = [SettingsScopedRateThrottle]

    def get_throttles(self):
        self.throttle_scope = "inventory" if self.request.method in ("GET", "HEAD", "OPTIONS") else "inventory_write"
        return super().get_throttles()


class InventoryHealthView(APIView):
    throttle_classes = []

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Inventory health",
        description="Simple healthcheck endpoint for the inventory app",
        examples=[OpenApiExample("Health OK", value={"status": "ok", "app": "inventory"})],
    )
    def get(self, request):
        return Response({"status": "ok", "app": "inventory"})


class MovementListCreateView(InventoryBaseView):
    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="List stock movements",
        description=(
            "Filters: type, product, reason, status, start_date, end_date (ISO). "
            "Pagination: page, limit (max 100). Sorting: sort_by, sort_order (asc/desc)."
        ),
        parameters=[
            OpenApiParameter("type", OpenApiTypes.STR, location="query"),
            OpenApiParameter("product", OpenApiTypes.INT, location="query"),
            OpenApiParameter("reason", OpenApiTypes.STR, location="query"),
            OpenApiParameter("status", OpenApiTypes.STR, location="query"),
            OpenApiParameter("start_date", OpenApiTypes.DATETIME, location="query"),
            OpenApiParameter("end_date", OpenApiTypes.DATETIME, location="query"),
            OpenApiParameter("page", OpenApiTypes.INT, location="query"),
            OpenApiParameter("limit", OpenApiTypes.INT, location="query"),
            OpenApiParameter("sort_by", OpenApiTypes.STR, location="query"),
            OpenApiParameter("sort_order", OpenApiTypes.STR, location="query"),
        ],
        examples=[
            OpenApiExample(
                "Page",
                value={
                    "movements": [],
                    "pagination": {
                        "current_page": 1,
                        "total_pages": 0,
                        "total_items": 0,
                        "items_per_page": 20,
                        "has_next_page": False,
                        "has_prev_page": False,
                    },
                },
                response_only=True,
            )
        ],
    )
    def get(self, request):
        try:
            page = selectors.list_movements(request.query_params)
        except LedgerError as exc:
            return error_response(exc)
        return Response(
            {
                "movements": StockMovementSerializer(page["movements"], many=True).data,
                "pagination": page["pagination"],
            }
        )

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Record a stock movement",
        description=(
            "Validates the movement against the product's current stock, stores it and, unless it is created "
            "as pending/approved, applies it to the product quantity."
        ),
        request=MovementCreateSerializer,
        responses={201: StockMovementSerializer, 400: ErrorSerializer, 404: ErrorSerializer},
        examples=[
            OpenApiExample(
                "Exit",
                value={"product_id": 1, "type": "exit", "quantity": 3, "reason": "sale"},
                request_only=True,
            ),
            OpenApiExample(
                "Insufficient stock",
                value={
                    "detail": "Insufficient stock available",
                    "code": "insufficient_stock",
                    "current_stock": 2,
                    "requested_quantity": 3,
                },
                response_only=True,
                status_codes=["400"],
            ),
        ],
    )
    def post(self, request):
        serializer = MovementCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            movement = services.record_movement(
                **serializer.to_service_kwargs(),
                created_by=actor_for(request),
                metadata=request_metadata(request),
            )
        except LedgerError as exc:
            return error_response(exc)
        return Response(StockMovementSerializer(movement).data, status=status.HTTP_201_CREATED)


class MovementBulkCreateView(InventoryBaseView):
    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Bulk record stock movements",
        description="Each movement is processed on its own; failures are reported without undoing successes.",
        request=BulkMovementSerializer,
        responses={
            200: inline_serializer(
                name="BulkMovementResult",
                fields={
                    "detail": rf_serializers.CharField(),
                    "successful": StockMovementSerializer(many=True),
                    "failed": rf_serializers.ListField(child=rf_serializers.DictField()),
                },
            ),
            400: ErrorSerializer,
        },
    )
    def post(self, request):
        serializer = BulkMovementSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            results = services.bulk_record_movements(
                serializer.validated_data["movements"],
                created_by=actor_for(request, default="bulk_import"),
                metadata={"ip_address": request.META.get("REMOTE_ADDR")},
            )
        except LedgerError as exc:
            return error_response(exc)
        ok, failed = results["successful"], results["failed"]
        return Response(
            {
                "detail": f"Bulk import completed. {len(ok)} successful, {len(failed)} failed.",
                "successful": StockMovementSerializer(ok, many=True).data,
                "failed": failed,
            }
        )


class MovementAnalyticsView(InventoryBaseView):
    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Movement analytics",
        description="Summary by type, top products, daily trends and recent movements over a trailing window.",
        parameters=[
            OpenApiParameter("timeframe", OpenApiTypes.STR, location="query", description="Window such as `30d`"),
        ],
    )
    def get(self, request):
        try:
            days = selectors.parse_timeframe(request.query_params.get("timeframe"))
            data = selectors.movement_analytics(days)
        except LedgerError as exc:
            return error_response(exc)
        data["recent_movements"] = StockMovementSerializer(data["recent_movements"], many=True).data
        return Response(data)


class ProductMovementsView(InventoryBaseView):
    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Movements of one product",
        description="Most recent movements of a product, newest first.",
        parameters=[OpenApiParameter("limit", OpenApiTypes.INT, location="query", description="Default 50")],
        responses={200: StockMovementSerializer(many=True), 404: ErrorSerializer},
    )
    def get(self, request, product_id: int):
        try:
            movements = selectors.movements_for_product(product_id, request.query_params.get("limit"))
        except LedgerError as exc:
            return error_response(exc)
        return Response(StockMovementSerializer(movements, many=True).data)


class MovementDetailView(InventoryBaseView):
    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Get stock movement",
        responses={200: StockMovementSerializer, 404: ErrorSerializer},
    )
    def get(self, request, movement_id: int):
        try:
            movement = selectors.get_movement(movement_id)
        except LedgerError as exc:
            return error_response(exc)
        return Response(StockMovementSerializer(movement).data)

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Update stock movement",
        description=(
            "Updates the description and/or status. Status follows the workflow "
            "pending -> approved -> completed -> cancelled."
        ),
        request=MovementUpdateSerializer,
        responses={200: StockMovementSerializer, 404: ErrorSerializer, 409: ErrorSerializer},
    )
    def put(self, request, movement_id: int):
        serializer = MovementUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            movement = services.update_movement(
                movement_id=movement_id,
                status=serializer.validated_data.get("status"),
                description=serializer.validated_data.get("description"),
                actor=actor_for(request),
            )
        except LedgerError as exc:
            return error_response(exc)
        movement = selectors.get_movement(movement.id)
        return Response(StockMovementSerializer(movement).data)

    def patch(self, request, movement_id: int):
        return self.put(request, movement_id)

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Cancel or delete stock movement",
        description="Completed movements are cancelled (stock is not reversed); other movements are deleted.",
        request=MovementRemoveSerializer,
        responses={
            200: inline_serializer(
                name="MovementRemoved",
                fields={"detail": rf_serializers.CharField(), "action": rf_serializers.CharField()},
            ),
            404: ErrorSerializer,
            409: ErrorSerializer,
        },
    )
    def delete(self, request, movement_id: int):
        data = request.data if hasattr(request.data, "get") and request.data else request.query_params
        serializer = MovementRemoveSerializer(data=data)
        serializer.is_valid(raise_exception=True)
        try:
            action = services.remove_movement(movement_id=movement_id, reason=serializer.validated_data["reason"])
        except LedgerError as exc:
            return error_response(exc)
        return Response({"detail": f"Stock movement {action} successfully", "action": action})


class MovementApproveView(InventoryBaseView):
    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Approve a pending movement",
        request=MovementApproveSerializer,
        responses={200: StockMovementSerializer, 404: ErrorSerializer, 409: ErrorSerializer},
    )
    def post(self, request, movement_id: int):
        serializer = MovementApproveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            movement = services.approve_movement(
                movement_id=movement_id,
                approved_by=serializer.validated_data.get("approved_by") or actor_for(request),
            )
        except LedgerError as exc:
            return error_response(exc)
        return Response(StockMovementSerializer(selectors.get_movement(movement.id)).data)


class MovementCompleteView(InventoryBaseView):
    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Complete a pending or approved movement",
        description="Applies the movement to the product quantity after re-checking available stock.",
        request=None,
        responses={200: StockMovementSerializer, 400: ErrorSerializer, 404: ErrorSerializer, 409: ErrorSerializer},
    )
    def post(self, request, movement_id: int):
        try:
            movement = services.complete_movement(movement_id=movement_id)
        except LedgerError as exc:
            return error_response(exc)
        return Response(StockMovementSerializer(selectors.get_movement(movement.id)).data)


# EOF
