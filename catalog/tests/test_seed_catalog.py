import pytest
from catalog.models import Product
from django.core.management import call_command
from inventory.models import StockMovement


@pytest.mark.django_db
def test_seed_catalog_records_opening_stock_once():
    call_command("seed_catalog")

    cable = Product.objects.get(reference="CAB-HDMI-2M")
    assert cable.quantity == 40
    opening = StockMovement.objects.get(product=cable)
    assert opening.reason == "initial_stock"
    assert (opening.previous_stock, opening.new_stock) == (0, 40)
    # Zero opening stock records nothing
    assert not StockMovement.objects.filter(product__reference="RICE-5KG").exists()

    count = StockMovement.objects.count()
    call_command("seed_catalog")
    assert StockMovement.objects.count() == count
    assert Product.objects.count() == 4
