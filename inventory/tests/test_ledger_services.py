from decimal import Decimal

import pytest
from catalog.tests.factories import ProductFactory
from common.errors import ConflictingState, InsufficientStock, InvalidArgument, LedgerInternalError, NotFound
from django.db import DatabaseError
from inventory.models import StockMovement
from inventory.services import (
    approve_movement,
    bulk_record_movements,
    cancel_movement,
    complete_movement,
    delete_movement,
    record_movement,
    remove_movement,
    update_movement,
)


@pytest.mark.django_db
def test_entry_sets_audit_bridge_and_total_value():
    p = ProductFactory(quantity=0, price=Decimal("10.00"))

    m = record_movement(product_id=p.id, movement_type="entry", quantity=25, reason="purchase")

    p.refresh_from_db()
    assert p.quantity == 25
    assert m.status == StockMovement.STATUS_COMPLETED
    assert (m.previous_stock, m.new_stock) == (0, 25)
    assert m.quantity == 25
    assert m.total_value == Decimal("250.00")
    assert m.unit_price == Decimal("10.00")
    assert m.processed_at is not None
    assert m.reference.startswith("MOV-")


@pytest.mark.django_db
def test_exit_stores_negative_quantity_and_decrements():
    p = ProductFactory(quantity=10)

    # Magnitude is taken as given; the sign comes from the type
    m = record_movement(product_id=p.id, movement_type="exit", quantity=4, reason="sale")

    p.refresh_from_db()
    assert m.quantity == -4
    assert m.absolute_quantity == 4
    assert (m.previous_stock, m.new_stock) == (10, 6)
    assert p.quantity == 6


@pytest.mark.django_db
def test_exit_beyond_stock_is_rejected_without_writes():
    p = ProductFactory(quantity=5)

    with pytest.raises(InsufficientStock) as excinfo:
        record_movement(product_id=p.id, movement_type="exit", quantity=6, reason="sale")

    assert excinfo.value.current_stock == 5
    assert excinfo.value.requested_quantity == 6
    p.refresh_from_db()
    assert p.quantity == 5
    assert StockMovement.objects.count() == 0


@pytest.mark.django_db
def test_exit_of_exactly_available_stock_reaches_zero():
    p = ProductFactory(quantity=5)
    m = record_movement(product_id=p.id, movement_type="exit", quantity=5, reason="damage")
    p.refresh_from_db()
    assert p.quantity == 0
    assert m.new_stock == 0


@pytest.mark.django_db
def test_negative_adjustment_on_ten_leaves_seven():
    p = ProductFactory(quantity=10)
    m = record_movement(product_id=p.id, movement_type="adjustment", quantity=-3, reason="correction")
    p.refresh_from_db()
    assert p.quantity == 7
    assert m.quantity == -3
    assert (m.previous_stock, m.new_stock) == (10, 7)


@pytest.mark.django_db
def test_negative_adjustment_beyond_stock_is_rejected():
    p = ProductFactory(quantity=2)
    with pytest.raises(InsufficientStock):
        record_movement(product_id=p.id, movement_type="adjustment", quantity=-3, reason="loss")


@pytest.mark.django_db
def test_transfer_is_a_signed_delta():
    p = ProductFactory(quantity=4)
    record_movement(product_id=p.id, movement_type="transfer", quantity=6, reason="transfer_in")
    record_movement(product_id=p.id, movement_type="transfer", quantity=-8, reason="transfer_out")
    p.refresh_from_db()
    assert p.quantity == 2


@pytest.mark.django_db
def test_explicit_unit_price_overrides_product_price():
    p = ProductFactory(quantity=0, price=Decimal("10.00"))
    m = record_movement(product_id=p.id, movement_type="entry", quantity=3, reason="purchase", unit_price="2.50")
    assert m.unit_price == Decimal("2.50")
    assert m.total_value == Decimal("7.50")


@pytest.mark.django_db
def test_missing_product_is_not_found():
    with pytest.raises(NotFound):
        record_movement(product_id=999999, movement_type="entry", quantity=1, reason="purchase")


@pytest.mark.django_db
def test_zero_quantity_is_invalid():
    p = ProductFactory(quantity=3)
    with pytest.raises(InvalidArgument):
        record_movement(product_id=p.id, movement_type="adjustment", quantity=0, reason="correction")
    assert StockMovement.objects.count() == 0


@pytest.mark.django_db
def test_reason_must_match_type():
    p = ProductFactory(quantity=3)
    with pytest.raises(InvalidArgument) as excinfo:
        record_movement(product_id=p.id, movement_type="exit", quantity=1, reason="purchase")
    assert "sale" in excinfo.value.extra["valid_reasons"]
    assert "purchase" not in excinfo.value.extra["valid_reasons"]


@pytest.mark.django_db
def test_unknown_type_is_invalid():
    p = ProductFactory(quantity=3)
    with pytest.raises(InvalidArgument):
        record_movement(product_id=p.id, movement_type="teleport", quantity=1, reason="other")


@pytest.mark.django_db
def test_stock_is_checked_before_zero_and_reason():
    p = ProductFactory(quantity=1)
    # Both the stock and the reason are wrong; stock is reported first
    with pytest.raises(InsufficientStock):
        record_movement(product_id=p.id, movement_type="exit", quantity=5, reason="purchase")


@pytest.mark.django_db
def test_product_lookup_precedes_other_checks():
    with pytest.raises(NotFound):
        record_movement(product_id=424242, movement_type="exit", quantity=0, reason="purchase")


@pytest.mark.django_db
def test_duplicate_reference_conflicts():
    p = ProductFactory(quantity=0)
    record_movement(product_id=p.id, movement_type="entry", quantity=1, reason="purchase", reference="PO-1")
    with pytest.raises(ConflictingState):
        record_movement(product_id=p.id, movement_type="entry", quantity=1, reason="purchase", reference="PO-1")
    p.refresh_from_db()
    assert p.quantity == 1


@pytest.mark.django_db
def test_pending_movement_does_not_touch_stock_until_completed():
    p = ProductFactory(quantity=10)
    m = record_movement(product_id=p.id, movement_type="exit", quantity=4, reason="sale", status="pending")

    p.refresh_from_db()
    assert p.quantity == 10
    assert m.previous_stock is None and m.new_stock is None

    approve_movement(movement_id=m.id, approved_by="alice")
    m.refresh_from_db()
    assert m.status == StockMovement.STATUS_APPROVED
    assert m.approved_by == "alice"

    complete_movement(movement_id=m.id)
    m.refresh_from_db()
    p.refresh_from_db()
    assert m.status == StockMovement.STATUS_COMPLETED
    assert (m.previous_stock, m.new_stock) == (10, 6)
    assert p.quantity == 6


@pytest.mark.django_db
def test_completion_rechecks_current_stock():
    p = ProductFactory(quantity=5)
    pending = record_movement(product_id=p.id, movement_type="exit", quantity=4, reason="sale", status="pending")
    record_movement(product_id=p.id, movement_type="exit", quantity=3, reason="sale")

    with pytest.raises(InsufficientStock):
        complete_movement(movement_id=pending.id)
    pending.refresh_from_db()
    assert pending.status == StockMovement.STATUS_PENDING


@pytest.mark.django_db
def test_cannot_create_cancelled_movement():
    p = ProductFactory(quantity=5)
    with pytest.raises(InvalidArgument):
        record_movement(product_id=p.id, movement_type="entry", quantity=1, reason="purchase", status="cancelled")


@pytest.mark.django_db
def test_approve_only_from_pending():
    p = ProductFactory(quantity=5)
    m = record_movement(product_id=p.id, movement_type="entry", quantity=1, reason="purchase")
    with pytest.raises(ConflictingState):
        approve_movement(movement_id=m.id)


@pytest.mark.django_db
def test_complete_rejects_completed_and_missing():
    p = ProductFactory(quantity=5)
    m = record_movement(product_id=p.id, movement_type="entry", quantity=1, reason="purchase")
    with pytest.raises(ConflictingState):
        complete_movement(movement_id=m.id)
    with pytest.raises(NotFound):
        complete_movement(movement_id=987654)


@pytest.mark.django_db
def test_cancel_keeps_stock_and_appends_reason():
    p = ProductFactory(quantity=0)
    m = record_movement(product_id=p.id, movement_type="entry", quantity=8, reason="purchase", description="PO 7")

    cancelled = cancel_movement(movement_id=m.id, reason="wrong supplier")

    p.refresh_from_db()
    assert p.quantity == 8
    assert cancelled.status == StockMovement.STATUS_CANCELLED
    assert cancelled.description == "PO 7 | Cancelled: wrong supplier"
    assert (cancelled.previous_stock, cancelled.new_stock) == (0, 8)


@pytest.mark.django_db
def test_cancel_description_is_truncated():
    p = ProductFactory(quantity=0)
    m = record_movement(product_id=p.id, movement_type="entry", quantity=1, reason="purchase", description="x" * 495)
    cancelled = cancel_movement(movement_id=m.id, reason="too long")
    assert len(cancelled.description) == 500


@pytest.mark.django_db
def test_cancel_twice_conflicts():
    p = ProductFactory(quantity=0)
    m = record_movement(product_id=p.id, movement_type="entry", quantity=1, reason="purchase")
    cancel_movement(movement_id=m.id, reason="dup")
    with pytest.raises(ConflictingState):
        cancel_movement(movement_id=m.id, reason="again")


@pytest.mark.django_db
def test_pending_movement_cannot_be_cancelled_but_can_be_deleted():
    p = ProductFactory(quantity=5)
    m = record_movement(product_id=p.id, movement_type="exit", quantity=1, reason="sale", status="pending")
    with pytest.raises(ConflictingState):
        cancel_movement(movement_id=m.id, reason="nope")

    delete_movement(movement_id=m.id)
    assert not StockMovement.objects.filter(id=m.id).exists()


@pytest.mark.django_db
def test_completed_and_cancelled_movements_are_not_deleted():
    p = ProductFactory(quantity=0)
    m = record_movement(product_id=p.id, movement_type="entry", quantity=2, reason="purchase")
    with pytest.raises(ConflictingState):
        delete_movement(movement_id=m.id)
    cancel_movement(movement_id=m.id, reason="audit")
    with pytest.raises(ConflictingState):
        delete_movement(movement_id=m.id)
    with pytest.raises(ConflictingState):
        remove_movement(movement_id=m.id)
    assert StockMovement.objects.filter(id=m.id).exists()


@pytest.mark.django_db
def test_remove_cancels_completed_and_deletes_pending():
    p = ProductFactory(quantity=0)
    done = record_movement(product_id=p.id, movement_type="entry", quantity=2, reason="purchase")
    pending = record_movement(product_id=p.id, movement_type="entry", quantity=2, reason="purchase", status="pending")

    assert remove_movement(movement_id=done.id, reason="typo") == "cancelled"
    assert remove_movement(movement_id=pending.id) == "deleted"

    done.refresh_from_db()
    assert done.status == StockMovement.STATUS_CANCELLED
    assert not StockMovement.objects.filter(id=pending.id).exists()


@pytest.mark.django_db
def test_update_description_and_workflow():
    p = ProductFactory(quantity=3)
    m = record_movement(product_id=p.id, movement_type="entry", quantity=2, reason="purchase", status="pending")

    m = update_movement(movement_id=m.id, description="checked", status="approved", actor="bob")
    assert m.status == StockMovement.STATUS_APPROVED
    assert m.description == "checked"
    assert m.approved_by == "bob"

    m = update_movement(movement_id=m.id, status="completed")
    p.refresh_from_db()
    assert m.status == StockMovement.STATUS_COMPLETED
    assert p.quantity == 5

    m = update_movement(movement_id=m.id, status="cancelled", description="counted twice")
    assert m.status == StockMovement.STATUS_CANCELLED
    assert m.description.endswith("Cancelled: counted twice")


@pytest.mark.django_db
def test_update_rejects_backwards_transition():
    p = ProductFactory(quantity=3)
    m = record_movement(product_id=p.id, movement_type="entry", quantity=2, reason="purchase")
    with pytest.raises(ConflictingState):
        update_movement(movement_id=m.id, status="pending")


@pytest.mark.django_db
def test_bulk_reports_failures_without_undoing_successes():
    p = ProductFactory(quantity=0)
    items = [
        {"product_id": p.id, "type": "entry", "quantity": 5, "reason": "purchase"},
        {"product_id": 999999, "type": "entry", "quantity": 5, "reason": "purchase"},
        {"product_id": p.id, "type": "exit", "quantity": 2, "reason": "sale"},
    ]

    results = bulk_record_movements(items, created_by="importer")

    assert len(results["successful"]) == 2
    assert len(results["failed"]) == 1
    failure = results["failed"][0]
    assert failure["movement"] == items[1]
    assert failure["code"] == "not_found"
    assert failure["error"] == "Product not found"
    p.refresh_from_db()
    assert p.quantity == 3
    assert all(m.created_by == "importer" for m in results["successful"])
    assert results["successful"][0].metadata["source"] == "bulk_import"


@pytest.mark.django_db
def test_bulk_item_missing_fields_fails_individually():
    p = ProductFactory(quantity=0)
    results = bulk_record_movements(
        [
            {"product_id": p.id, "type": "entry", "quantity": 1},
            {"product_id": p.id, "type": "entry", "quantity": 1, "reason": "purchase"},
        ]
    )
    assert len(results["successful"]) == 1
    assert "reason" in results["failed"][0]["error"]


@pytest.mark.django_db
def test_bulk_rejects_empty_and_oversized(settings):
    with pytest.raises(InvalidArgument):
        bulk_record_movements([])
    settings.STOCK_MOVEMENT_BULK_LIMIT = 2
    p = ProductFactory(quantity=0)
    item = {"product_id": p.id, "type": "entry", "quantity": 1, "reason": "purchase"}
    with pytest.raises(InvalidArgument):
        bulk_record_movements([item, item, item])
    assert StockMovement.objects.count() == 0


@pytest.mark.django_db
def test_sequential_movements_chain_their_audit_bridges():
    p = ProductFactory(quantity=0)
    steps = [
        ("entry", 10, "purchase"),
        ("exit", 3, "sale"),
        ("adjustment", -2, "damage"),
        ("entry", 4, "return"),
    ]
    movements = [
        record_movement(product_id=p.id, movement_type=t, quantity=q, reason=r) for t, q, r in steps
    ]
    for before, after in zip(movements, movements[1:]):
        assert after.previous_stock == before.new_stock
    p.refresh_from_db()
    assert p.quantity == movements[-1].new_stock == 9


@pytest.mark.django_db
def test_negative_transfer_is_floored_at_zero():
    p = ProductFactory(quantity=10)
    m = record_movement(product_id=p.id, movement_type="transfer", quantity=-15, reason="transfer_out")
    p.refresh_from_db()
    assert m.quantity == -15
    assert (m.previous_stock, m.new_stock) == (10, 0)
    assert p.quantity == 0


@pytest.mark.django_db
def test_oversized_quantity_is_invalid():
    p = ProductFactory(quantity=0)
    with pytest.raises(InvalidArgument):
        record_movement(product_id=p.id, movement_type="entry", quantity=10**20, reason="purchase")
    assert StockMovement.objects.count() == 0


@pytest.mark.django_db
def test_oversized_unit_price_and_total_are_invalid():
    p = ProductFactory(quantity=0)
    with pytest.raises(InvalidArgument):
        record_movement(product_id=p.id, movement_type="entry", quantity=1, reason="purchase", unit_price="1e15")
    with pytest.raises(InvalidArgument):
        record_movement(
            product_id=p.id, movement_type="entry", quantity=2_000_000_000, reason="purchase", unit_price="1000"
        )
    assert StockMovement.objects.count() == 0


@pytest.mark.django_db
def test_stock_beyond_column_range_is_invalid():
    p = ProductFactory(quantity=2_000_000_000)
    with pytest.raises(InvalidArgument):
        record_movement(
            product_id=p.id, movement_type="entry", quantity=2_000_000_000, reason="purchase", unit_price="0"
        )
    p.refresh_from_db()
    assert p.quantity == 2_000_000_000


@pytest.mark.django_db
def test_bulk_oversized_item_fails_alone():
    p = ProductFactory(quantity=0)
    ok = {"product_id": p.id, "type": "entry", "quantity": 2, "reason": "purchase"}
    huge = {**ok, "quantity": 10**20}

    results = bulk_record_movements([ok, huge, ok])

    assert len(results["successful"]) == 2
    assert len(results["failed"]) == 1
    assert results["failed"][0]["movement"] == huge
    assert results["failed"][0]["code"] == "invalid_argument"
    p.refresh_from_db()
    assert p.quantity == 4


@pytest.mark.django_db
def test_persistence_failure_leaves_neither_write(monkeypatch):
    p = ProductFactory(quantity=5)

    def fail(product, quantity):
        raise DatabaseError("disk full")

    monkeypatch.setattr("inventory.services.set_quantity", fail)

    with pytest.raises(LedgerInternalError) as excinfo:
        record_movement(product_id=p.id, movement_type="entry", quantity=3, reason="purchase")

    assert excinfo.value.code == "internal"
    assert StockMovement.objects.count() == 0
    p.refresh_from_db()
    assert p.quantity == 5


@pytest.mark.django_db
def test_completion_persistence_failure_keeps_movement_pending(monkeypatch):
    p = ProductFactory(quantity=5)
    m = record_movement(product_id=p.id, movement_type="entry", quantity=3, reason="purchase", status="pending")

    def fail(product, quantity):
        raise DatabaseError("disk full")

    monkeypatch.setattr("inventory.services.set_quantity", fail)

    with pytest.raises(LedgerInternalError):
        complete_movement(movement_id=m.id)

    m.refresh_from_db()
    p.refresh_from_db()
    assert m.status == StockMovement.STATUS_PENDING
    assert m.new_stock is None
    assert p.quantity == 5
