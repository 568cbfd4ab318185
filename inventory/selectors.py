"""Selectors for the stock ledger: listings, per-product history and analytics.

All functions are read-only. Analytics only count ``completed`` movements;
cancelled ones keep their record but drop out of the totals.
"""

import math
import re
from datetime import timedelta
from decimal import Decimal
from typing import Mapping, Optional

from catalog.models import Product
from common.errors import InvalidArgument, NotFound
from django.conf import settings
from django.db.models import Avg, Count, QuerySet, Sum
from django.db.models.functions import Abs, TruncDate
from django.utils import timezone

from .filters import MovementFilterSet
from .models import StockMovement

SORT_FIELDS = ("movement_date", "created_at", "quantity", "total_value", "type", "status", "reason")
MAX_PAGE_SIZE = 100
_TIMEFRAME_RE = re.compile(r"^\s*(\d+)\s*d?\s*$", re.IGNORECASE)


def _positive_int(value, name: str, default: int, maximum: Optional[int] = None) -> int:
    if value in (None, ""):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidArgument(f"{name} must be a positive integer")
    if number < 1:
        raise InvalidArgument(f"{name} must be a positive integer")
    if maximum is not None and number > maximum:
        raise InvalidArgument(f"{name} cannot exceed {maximum}")
    return number


def base_queryset() -> QuerySet[StockMovement]:
    return StockMovement.objects.select_related("product")


def filter_movements(params: Mapping) -> QuerySet[StockMovement]:
    """Apply type/product/reason/status/date-range filters from query params."""

    fs = MovementFilterSet(data=params, queryset=base_queryset())
    if not fs.is_valid():
        raise InvalidArgument("Invalid filter parameters", errors=fs.errors.get_json_data())
    return fs.qs


def list_movements(params: Mapping) -> dict:
    """Return one page of movements and its pagination metadata.

    Query params: filters (see ``MovementFilterSet``), ``page``, ``limit``,
    ``sort_by`` and ``sort_order`` (``asc``/``desc``, default ``desc``).
    """

    page = _positive_int(params.get("page"), "page", 1)
    limit = _positive_int(params.get("limit"), "limit", 20, MAX_PAGE_SIZE)
    sort_by = params.get("sort_by") or "movement_date"
    sort_order = (params.get("sort_order") or "desc").lower()
    if sort_by not in SORT_FIELDS:
        raise InvalidArgument(f"sort_by must be one of: {', '.join(SORT_FIELDS)}")
    if sort_order not in ("asc", "desc"):
        raise InvalidArgument("sort_order must be 'asc' or 'desc'")

    prefix = "" if sort_order == "asc" else "-"
    # id as tie-breaker keeps pages stable between identical requests
    qs = filter_movements(params).order_by(f"{prefix}{sort_by}", f"{prefix}id")

    total = qs.count()
    offset = (page - 1) * limit
    movements = list(qs[offset : offset + limit])
    return {
        "movements": movements,
        "pagination": {
            "current_page": page,
            "total_pages": math.ceil(total / limit),
            "total_items": total,
            "items_per_page": limit,
            "has_next_page": offset + len(movements) < total,
            "has_prev_page": page > 1,
        },
    }


def get_movement(movement_id) -> StockMovement:
    try:
        return base_queryset().get(id=int(movement_id))
    except (StockMovement.DoesNotExist, TypeError, ValueError):
        raise NotFound("Stock movement not found", movement_id=str(movement_id))


def movements_for_product(product_id, limit=50) -> list[StockMovement]:
    """Most recent movements of one product, newest first."""

    limit = _positive_int(limit, "limit", 50, 500)
    if not Product.objects.filter(id=product_id).exists():
        raise NotFound("Product not found", product_id=str(product_id))
    return list(base_queryset().filter(product_id=product_id).order_by("-movement_date", "-id")[:limit])


def movements_in_range(start, end) -> QuerySet[StockMovement]:
    return base_queryset().filter(movement_date__gte=start, movement_date__lte=end).order_by("-movement_date", "-id")


def parse_timeframe(value: Optional[str]) -> int:
    """Turn ``"30d"`` or ``"30"`` into a number of days."""

    if value in (None, ""):
        return int(getattr(settings, "STOCK_MOVEMENT_DEFAULT_TIMEFRAME_DAYS", 30))
    match = _TIMEFRAME_RE.match(str(value))
    if not match or int(match.group(1)) < 1:
        raise InvalidArgument("timeframe must look like '30d'")
    return int(match.group(1))


def _window(days: int):
    end = timezone.now()
    return end - timedelta(days=int(days)), end


def completed_in_window(days: int) -> QuerySet[StockMovement]:
    start, _ = _window(days)
    return StockMovement.objects.filter(movement_date__gte=start, status=StockMovement.STATUS_COMPLETED)


def summarize(days: int = 30) -> dict:
    """Totals of completed movements in the trailing window, grouped by type."""

    rows = (
        completed_in_window(days)
        .values("type")
        .annotate(
            count=Count("id"),
            total_quantity=Sum(Abs("quantity")),
            total_value=Sum("total_value"),
            avg_quantity=Avg(Abs("quantity")),
        )
        .order_by("type")
    )
    by_type = {}
    total_movements = 0
    total_value = Decimal("0")
    for row in rows:
        value = row["total_value"] or Decimal("0")
        by_type[row["type"]] = {
            "count": row["count"],
            "total_quantity": int(row["total_quantity"] or 0),
            "total_value": value,
            "avg_quantity": float(row["avg_quantity"] or 0),
        }
        total_movements += row["count"]
        total_value += value
    return {"total_movements": total_movements, "total_value": total_value, "by_type": by_type}


def top_products(days: int = 30, limit: int = 10, by: str = "count") -> list[dict]:
    """Products with the most completed movements (or value) in the window."""

    if by not in ("count", "value"):
        raise InvalidArgument("by must be 'count' or 'value'")
    ordering = ("-total_movements", "-total_value") if by == "count" else ("-total_value", "-total_movements")
    rows = (
        completed_in_window(days)
        .values("product_id", "product__name", "product__reference")
        .annotate(
            total_movements=Count("id"),
            total_quantity=Sum(Abs("quantity")),
            total_value=Sum("total_value"),
        )
        .order_by(*ordering, "product_id")[:limit]
    )
    return [
        {
            "product": {"id": r["product_id"], "name": r["product__name"], "reference": r["product__reference"]},
            "total_movements": r["total_movements"],
            "total_quantity": int(r["total_quantity"] or 0),
            "total_value": r["total_value"] or Decimal("0"),
        }
        for r in rows
    ]


def daily_trends(days: int = 30) -> list[dict]:
    """Per-day, per-type counts for trend charts, oldest day first."""

    rows = (
        completed_in_window(days)
        .annotate(day=TruncDate("movement_date"))
        .values("day", "type")
        .annotate(count=Count("id"), total_quantity=Sum(Abs("quantity")), total_value=Sum("total_value"))
        .order_by("day", "type")
    )
    return [
        {
            "date": r["day"].isoformat(),
            "type": r["type"],
            "count": r["count"],
            "total_quantity": int(r["total_quantity"] or 0),
            "total_value": r["total_value"] or Decimal("0"),
        }
        for r in rows
    ]


def recent_movements(days: int = 30, limit: int = 10) -> list[StockMovement]:
    return list(completed_in_window(days).select_related("product").order_by("-movement_date", "-id")[:limit])


def movement_analytics(days: int = 30) -> dict:
    start, end = _window(days)
    return {
        "summary": summarize(days),
        "recent_movements": recent_movements(days),
        "top_products": top_products(days),
        "daily_trends": daily_trends(days),
        "timeframe": {"days": days, "start_date": start, "end_date": end},
    }


# EOF
