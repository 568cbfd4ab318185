from decimal import Decimal

import pytest
from catalog import selectors
from catalog.models import Product
from catalog.services import get_product, set_quantity
from catalog.tests.factories import ProductFactory
from common.errors import InvalidArgument, NotFound
from django.db import IntegrityError, transaction


@pytest.mark.django_db
def test_quantity_cannot_go_negative_at_db_level():
    p = ProductFactory(quantity=1)
    with pytest.raises(IntegrityError):
        with transaction.atomic():
            Product.objects.filter(id=p.id).update(quantity=-1)


@pytest.mark.django_db
def test_price_cannot_be_negative_at_db_level():
    with pytest.raises(IntegrityError):
        with transaction.atomic():
            ProductFactory(price=Decimal("-1.00"))


@pytest.mark.django_db
def test_set_quantity_and_lookup():
    p = ProductFactory(quantity=3)
    set_quantity(p, 8)
    assert get_product(p.id).quantity == 8
    with pytest.raises(InvalidArgument):
        set_quantity(p, -1)
    with pytest.raises(NotFound):
        get_product(123456789)
    with pytest.raises(NotFound):
        get_product("abc")


@pytest.mark.django_db
def test_selectors_lookup_and_filters():
    ProductFactory(reference="AUD-1", category="Audio", name="Speaker")
    ProductFactory(reference="VID-1", category="Video", name="Camera")

    assert selectors.get_product_by_reference(" aud-1 ").name == "Speaker"
    assert selectors.get_product_by_reference("NOPE") is None
    assert [p.reference for p in selectors.list_products(category="video")] == ["VID-1"]
    assert [p.reference for p in selectors.list_products(search="speak")] == ["AUD-1"]
