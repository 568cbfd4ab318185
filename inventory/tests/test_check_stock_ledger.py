from io import StringIO

import pytest
from catalog.models import Product
from catalog.tests.factories import ProductFactory
from django.core.management import call_command
from django.core.management.base import CommandError
from inventory.services import cancel_movement, record_movement


@pytest.mark.django_db
def test_consistent_ledger_passes():
    p = ProductFactory(quantity=0)
    record_movement(product_id=p.id, movement_type="entry", quantity=5, reason="purchase")
    m = record_movement(product_id=p.id, movement_type="exit", quantity=2, reason="sale")
    cancel_movement(movement_id=m.id, reason="kept for audit")

    out = StringIO()
    call_command("check_stock_ledger", "--fail-on-drift", stdout=out)
    assert "0 broken audit bridges, 0 drifted products" in out.getvalue()


@pytest.mark.django_db
def test_drifted_product_is_reported():
    p = ProductFactory(quantity=0)
    record_movement(product_id=p.id, movement_type="entry", quantity=5, reason="purchase")
    Product.objects.filter(id=p.id).update(quantity=9)

    out = StringIO()
    call_command("check_stock_ledger", stdout=out)
    assert "1 drifted products" in out.getvalue()

    with pytest.raises(CommandError):
        call_command("check_stock_ledger", "--product", str(p.id), "--fail-on-drift", stdout=StringIO())
