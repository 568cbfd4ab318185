"""Movement policies: how each movement type moves stock and which reasons it accepts."""

from dataclasses import dataclass

from common.choices import MovementReason, MovementType
from common.errors import InvalidArgument

R = MovementReason


@dataclass(frozen=True)
class MovementPolicy:
    # "in" stores +|q|, "out" stores -|q|, "signed" keeps the caller's sign
    sign: str
    reasons: frozenset

    def normalize(self, quantity: int) -> int:
        quantity = int(quantity)
        if self.sign == "in":
            return abs(quantity)
        if self.sign == "out":
            return -abs(quantity)
        return quantity


POLICIES = {
    MovementType.ENTRY: MovementPolicy(
        sign="in",
        reasons=frozenset({R.PURCHASE, R.RETURN, R.INITIAL_STOCK, R.TRANSFER_IN, R.CORRECTION, R.OTHER}),
    ),
    MovementType.EXIT: MovementPolicy(
        sign="out",
        reasons=frozenset(
            {
                R.SALE,
                R.DAMAGE,
                R.LOSS,
                R.THEFT,
                R.EXPIRED,
                R.PROMOTION,
                R.TRANSFER_OUT,
                R.QUALITY_CONTROL,
                R.OTHER,
            }
        ),
    ),
    MovementType.ADJUSTMENT: MovementPolicy(
        sign="signed",
        reasons=frozenset(
            {R.CORRECTION, R.QUALITY_CONTROL, R.DAMAGE, R.LOSS, R.THEFT, R.EXPIRED, R.INITIAL_STOCK, R.OTHER}
        ),
    ),
    # Single location: a transfer is a signed delta on the one product
    MovementType.TRANSFER: MovementPolicy(
        sign="signed",
        reasons=frozenset({R.TRANSFER_IN, R.TRANSFER_OUT, R.OTHER}),
    ),
}


def get_policy(movement_type: str) -> MovementPolicy:
    try:
        return POLICIES[MovementType(movement_type)]
    except ValueError:
        raise InvalidArgument(f"Unknown movement type: {movement_type}")


def signed_delta(movement_type: str, quantity: int) -> int:
    """Stock delta a movement of ``movement_type`` applies for ``quantity``."""

    return get_policy(movement_type).normalize(quantity)


def valid_reasons(movement_type: str) -> list[str]:
    return sorted(str(r) for r in get_policy(movement_type).reasons)


def check_reason(movement_type: str, reason: str) -> None:
    if reason not in get_policy(movement_type).reasons:
        raise InvalidArgument(
            f"Reason '{reason}' is not valid for {movement_type} movements",
            valid_reasons=valid_reasons(movement_type),
        )


# EOF
