"""Selectors for the catalog domain.

Expose read-only query helpers to keep views thin and allow reuse across
APIs and services. Selectors should return querysets or lightweight data
structures and avoid side effects.
"""

from typing import Iterable, Optional

from django.db.models import F, Q, QuerySet

from .models import Product


def list_products(
    *,
    category: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    ordering: Optional[Iterable[str]] = None,
) -> QuerySet[Product]:
    """Return products with common filters applied.

    Defaults to sorting by ``name``.
    """

    qs = Product.objects.all()
    if category:
        qs = qs.filter(category__iexact=category)
    if status:
        qs = qs.filter(status=status)
    if search:
        qs = qs.filter(
            Q(name__icontains=search) | Q(reference__icontains=search) | Q(description__icontains=search)
        )
    ordering = list(ordering or ("name",))
    return qs.order_by(*ordering)


def list_low_stock() -> QuerySet[Product]:
    """Products at or below their alert threshold, emptiest first."""

    return Product.objects.filter(quantity__lte=F("min_stock")).order_by("quantity", "name")


def get_product_by_reference(reference: str) -> Optional[Product]:
    try:
        return Product.objects.get(reference=(reference or "").strip().upper())
    except Product.DoesNotExist:
        return None


# EOF
