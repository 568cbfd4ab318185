"""Inventory services (single-location): the stock movement ledger.

A movement is validated against the live product, persisted, and, when it
is ``completed``, applied to the product quantity. The product row is locked
for the whole validate-and-apply step and both writes share one transaction,
so concurrent movements on the same product are serialized and a failed
write leaves neither record behind.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from catalog.models import Product
from catalog.services import get_product, set_quantity
from common.errors import (
    ConflictingState,
    InsufficientStock,
    InvalidArgument,
    LedgerError,
    LedgerInternalError,
    NotFound,
)
from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from .models import StockMovement
from .policy import check_reason, get_policy

logger = logging.getLogger("stockman.inventory")

CREATABLE_STATUSES = (
    StockMovement.STATUS_PENDING,
    StockMovement.STATUS_APPROVED,
    StockMovement.STATUS_COMPLETED,
)


# Column ranges of quantity, unit_price and total_value
MAX_QUANTITY = 2**31 - 1
MAX_PRICE = Decimal("9999999999.99")
MAX_TOTAL_VALUE = Decimal("999999999999.99")

# Types whose outgoing quantity must be covered by stock; transfers are only floored at zero
STOCK_CHECKED_TYPES = (StockMovement.TYPE_EXIT, StockMovement.TYPE_ADJUSTMENT)


def _log_event(event: str, level: int = logging.INFO, **fields) -> None:
    try:
        logger.log(level, event, extra={"event": event, **fields})
    except Exception:
        # Logging should never break mutations
        pass


def _to_int(value, field: str) -> int:
    if isinstance(value, bool):
        raise InvalidArgument(f"{field} must be an integer")
    try:
        as_decimal = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidArgument(f"{field} must be an integer")
    if not as_decimal.is_finite() or as_decimal != as_decimal.to_integral_value():
        raise InvalidArgument(f"{field} must be an integer")
    if abs(as_decimal) > MAX_QUANTITY:
        raise InvalidArgument(f"{field} cannot exceed {MAX_QUANTITY}", max_value=MAX_QUANTITY)
    return int(as_decimal)


def _to_price(value) -> Decimal:
    try:
        price = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidArgument("unit_price must be a number")
    if not price.is_finite() or price < 0:
        raise InvalidArgument("Unit price cannot be negative")
    if price > MAX_PRICE:
        raise InvalidArgument(f"Unit price cannot exceed {MAX_PRICE}", max_value=str(MAX_PRICE))
    return price.quantize(Decimal("0.01"))


def _check_available(product: Product, movement_type: str, delta: int) -> None:
    if movement_type in STOCK_CHECKED_TYPES and delta < 0 and abs(delta) > int(product.quantity):
        raise InsufficientStock(current_stock=product.quantity, requested_quantity=abs(delta))


def _apply_to_product(movement: StockMovement, product: Product) -> None:
    """Record the audit bridge on ``movement``, save it, then write the product quantity."""

    previous = int(product.quantity)
    # Floor at zero; exits and adjustments are pre-checked, transfers are clamped here
    new = max(0, previous + movement.signed_delta)
    if new > MAX_QUANTITY:
        raise InvalidArgument(f"Resulting stock cannot exceed {MAX_QUANTITY}", current_stock=previous)
    movement.previous_stock = previous
    movement.new_stock = new
    movement.status = StockMovement.STATUS_COMPLETED
    movement.processed_at = timezone.now()
    movement.save()
    set_quantity(product, new)


def _get_movement_for_update(movement_id) -> StockMovement:
    try:
        return StockMovement.objects.select_for_update().get(id=int(movement_id))
    except (StockMovement.DoesNotExist, TypeError, ValueError):
        raise NotFound("Stock movement not found", movement_id=str(movement_id))


def record_movement(
    *,
    product_id,
    movement_type: str,
    quantity,
    reason: str,
    unit_price=None,
    status: str = StockMovement.STATUS_COMPLETED,
    description: str = "",
    reference: Optional[str] = None,
    batch_number: str = "",
    supplier: Optional[dict] = None,
    customer: Optional[dict] = None,
    location: Optional[dict] = None,
    movement_date=None,
    created_by: str = "system",
    metadata: Optional[dict] = None,
) -> StockMovement:
    """Validate and record a movement, applying it to stock when completed.

    Checks run in this order before anything is written: the product
    exists, exits and negative adjustments do not exceed stock, quantity is
    non-zero, the reason is allowed for the movement type, and every value
    fits its column.
    """

    try:
        with transaction.atomic():
            product = get_product(product_id, for_update=True)
            policy = get_policy(movement_type)
            raw_quantity = _to_int(quantity, "quantity")
            delta = policy.normalize(raw_quantity)
            _check_available(product, movement_type, delta)
            if raw_quantity == 0:
                raise InvalidArgument("Quantity cannot be zero")
            check_reason(movement_type, reason)
            if status not in CREATABLE_STATUSES:
                raise InvalidArgument(f"Movements cannot be created with status '{status}'")

            price = product.price if unit_price in (None, "") else _to_price(unit_price)
            if reference and StockMovement.objects.filter(reference=reference).exists():
                raise ConflictingState("A movement with this reference already exists", reference=reference)
            total_value = Decimal(abs(delta)) * Decimal(price)
            if total_value > MAX_TOTAL_VALUE:
                raise InvalidArgument(
                    f"Total value cannot exceed {MAX_TOTAL_VALUE}", max_value=str(MAX_TOTAL_VALUE)
                )

            movement = StockMovement(
                product=product,
                type=movement_type,
                quantity=delta,
                unit_price=price,
                total_value=total_value,
                reason=reason,
                description=description or "",
                batch_number=batch_number or "",
                supplier=supplier or {},
                customer=customer or {},
                location={"warehouse": "main", **(location or {})},
                created_by=created_by or "system",
                status=status,
                movement_date=movement_date or timezone.now(),
                metadata=metadata or {},
            )
            if reference:
                movement.reference = reference

            if status == StockMovement.STATUS_COMPLETED:
                _apply_to_product(movement, product)
            else:
                movement.save()
    except LedgerError as exc:
        _log_event(
            "stock_movement.rejected",
            level=logging.WARNING,
            product_id=str(product_id),
            movement_type=movement_type,
            code=exc.code,
            error=exc.message,
        )
        raise
    except DatabaseError as exc:
        logger.exception("stock_movement.persist_failed", extra={"product_id": str(product_id)})
        raise LedgerInternalError() from exc

    movement.product = product
    _log_event(
        "stock_movement.recorded",
        movement_id=movement.id,
        product_id=product.id,
        movement_type=movement.type,
        quantity=movement.quantity,
        status=movement.status,
        previous_stock=movement.previous_stock,
        new_stock=movement.new_stock,
    )
    return movement


def approve_movement(*, movement_id, approved_by: str = "system") -> StockMovement:
    """Mark a pending movement as approved. Stock is untouched until completion."""

    with transaction.atomic():
        movement = _get_movement_for_update(movement_id)
        if movement.status != StockMovement.STATUS_PENDING:
            raise ConflictingState(f"Only pending movements can be approved (status: {movement.status})")
        prev = movement.status
        movement.status = StockMovement.STATUS_APPROVED
        movement.approved_by = approved_by or "system"
        movement.save(update_fields=["status", "approved_by", "updated_at"])
    _log_event(
        "stock_movement.status_changed",
        movement_id=movement.id,
        status_from=prev,
        status_to=movement.status,
    )
    return movement


def complete_movement(*, movement_id) -> StockMovement:
    """Apply a pending or approved movement to stock.

    Stock is re-checked against the product's current quantity, since it may
    have changed since the movement was recorded.
    """

    try:
        with transaction.atomic():
            movement = _get_movement_for_update(movement_id)
            if movement.status not in (StockMovement.STATUS_PENDING, StockMovement.STATUS_APPROVED):
                raise ConflictingState(f"Movement cannot be completed from status '{movement.status}'")
            prev = movement.status
            product = get_product(movement.product_id, for_update=True)
            _check_available(product, movement.type, movement.signed_delta)
            _apply_to_product(movement, product)
    except LedgerError as exc:
        _log_event(
            "stock_movement.rejected",
            level=logging.WARNING,
            movement_id=str(movement_id),
            code=exc.code,
            error=exc.message,
        )
        raise
    except DatabaseError as exc:
        logger.exception("stock_movement.persist_failed", extra={"movement_id": str(movement_id)})
        raise LedgerInternalError() from exc

    _log_event(
        "stock_movement.status_changed",
        movement_id=movement.id,
        status_from=prev,
        status_to=movement.status,
        previous_stock=movement.previous_stock,
        new_stock=movement.new_stock,
    )
    return movement


def cancel_movement(*, movement_id, reason: str = "Cancelled by user") -> StockMovement:
    """Cancel a completed movement without reversing its stock effect.

    The record stays for the audit trail and drops out of completed-only
    aggregations.
    """

    with transaction.atomic():
        movement = _get_movement_for_update(movement_id)
        if movement.status != StockMovement.STATUS_COMPLETED:
            raise ConflictingState(f"Only completed movements can be cancelled (status: {movement.status})")
        note = f"Cancelled: {reason or 'no reason given'}"
        movement.description = " | ".join(p for p in (movement.description, note) if p)[:500]
        movement.status = StockMovement.STATUS_CANCELLED
        movement.save(update_fields=["status", "description", "updated_at"])
    _log_event(
        "stock_movement.cancelled",
        movement_id=movement.id,
        product_id=movement.product_id,
        quantity=movement.quantity,
        reason=reason,
    )
    return movement


def delete_movement(*, movement_id) -> None:
    """Hard-delete a movement that never affected stock (pending or approved)."""

    with transaction.atomic():
        movement = _get_movement_for_update(movement_id)
        if movement.status in (StockMovement.STATUS_COMPLETED, StockMovement.STATUS_CANCELLED):
            raise ConflictingState(
                f"{movement.status.capitalize()} movements are kept for audit; cancel completed movements instead"
            )
        product_id = movement.product_id
        movement.delete()
    _log_event("stock_movement.deleted", movement_id=int(movement_id), product_id=product_id)


def remove_movement(*, movement_id, reason: str = "Deleted by user") -> str:
    """Cancel a completed movement, delete any other one. Returns the action taken."""

    with transaction.atomic():
        movement = _get_movement_for_update(movement_id)
        if movement.status == StockMovement.STATUS_COMPLETED:
            cancel_movement(movement_id=movement.id, reason=reason)
            return "cancelled"
        delete_movement(movement_id=movement.id)
        return "deleted"


def update_movement(
    *, movement_id, status: Optional[str] = None, description: Optional[str] = None, actor: str = "system"
) -> StockMovement:
    """Update description and/or move the movement along its status workflow.

    Allowed transitions: pending -> approved, pending/approved -> completed,
    completed -> cancelled. Setting the current status again is a no-op.
    """

    with transaction.atomic():
        movement = _get_movement_for_update(movement_id)
        if status and status != movement.status and status == StockMovement.STATUS_CANCELLED:
            # The description becomes the cancellation note
            return cancel_movement(movement_id=movement.id, reason=description or f"by {actor}")

        if description is not None:
            movement.description = description[:500]
            movement.save(update_fields=["description", "updated_at"])

        if status and status != movement.status:
            if status == StockMovement.STATUS_APPROVED:
                movement = approve_movement(movement_id=movement.id, approved_by=actor)
            elif status == StockMovement.STATUS_COMPLETED:
                movement = complete_movement(movement_id=movement.id)
            else:
                raise ConflictingState(f"Cannot move a {movement.status} movement to '{status}'")
    return movement


_BULK_REQUIRED = ("product_id", "type", "quantity", "reason")
_BULK_OPTIONAL = (
    "unit_price",
    "status",
    "description",
    "reference",
    "batch_number",
    "supplier",
    "customer",
    "location",
)


def _bulk_item_kwargs(item: Any) -> dict:
    if not isinstance(item, dict):
        raise InvalidArgument("Each movement must be an object")
    missing = [key for key in _BULK_REQUIRED if item.get(key) in (None, "")]
    if missing:
        raise InvalidArgument(f"Missing required fields: {', '.join(missing)}")
    kwargs = {
        "product_id": item["product_id"],
        "movement_type": item["type"],
        "quantity": item["quantity"],
        "reason": item["reason"],
    }
    for key in _BULK_OPTIONAL:
        if item.get(key) is not None:
            kwargs[key] = item[key]
    for key in ("supplier", "customer", "location"):
        if key in kwargs and not isinstance(kwargs[key], dict):
            raise InvalidArgument(f"{key} must be an object")
    if item.get("movement_date"):
        parsed = parse_datetime(str(item["movement_date"]))
        if parsed is None:
            raise InvalidArgument("movement_date must be an ISO 8601 datetime")
        if timezone.is_naive(parsed):
            parsed = timezone.make_aware(parsed)
        kwargs["movement_date"] = parsed
    return kwargs


def bulk_record_movements(
    items, *, created_by: str = "bulk_import", metadata: Optional[dict] = None
) -> dict[str, list]:
    """Record each movement independently; failures do not stop the batch.

    Returns ``{"successful": [movements], "failed": [{"movement", "error", "code"}]}``.
    """

    if not isinstance(items, list) or not items:
        raise InvalidArgument("Movements array is required")
    limit = int(getattr(settings, "STOCK_MOVEMENT_BULK_LIMIT", 100))
    if len(items) > limit:
        raise InvalidArgument(f"At most {limit} movements can be imported at once", limit=limit)

    results: dict[str, list] = {"successful": [], "failed": []}
    for item in items:
        try:
            kwargs = _bulk_item_kwargs(item)
            movement = record_movement(
                **kwargs,
                created_by=created_by,
                metadata={"source": "bulk_import", **(metadata or {})},
            )
            results["successful"].append(movement)
        except LedgerError as exc:
            results["failed"].append({"movement": item, "error": exc.message, "code": exc.code})

    _log_event(
        "stock_movement.bulk_processed",
        successful=len(results["successful"]),
        failed=len(results["failed"]),
        created_by=created_by,
    )
    return results


# EOF
