"""Product registry services: lookups and quantity writes used by the ledger."""

import logging

from common.errors import InvalidArgument, NotFound

from .models import Product

logger = logging.getLogger("stockman.catalog")


def get_product(product_id, *, for_update: bool = False) -> Product:
    """Return the product with ``product_id`` or raise ``NotFound``.

    With ``for_update`` the row is locked until the surrounding transaction
    ends; callers must already be inside ``transaction.atomic``.
    """

    qs = Product.objects.all()
    if for_update:
        qs = qs.select_for_update()
    try:
        return qs.get(id=int(product_id))
    except (Product.DoesNotExist, TypeError, ValueError):
        raise NotFound("Product not found", product_id=str(product_id))


def set_quantity(product: Product, quantity: int) -> Product:
    """Overwrite the on-hand quantity. The caller computes a valid value."""

    quantity = int(quantity)
    if quantity < 0:
        raise InvalidArgument("Quantity cannot be negative")
    prev = product.quantity
    product.quantity = quantity
    product.save(update_fields=["quantity", "updated_at"])
    logger.debug(
        "product.quantity_set",
        extra={"product_id": product.id, "quantity_from": prev, "quantity_to": quantity},
    )
    return product


# EOF
