"""Error taxonomy shared by the product registry and the stock ledger.

Each error carries a machine-readable ``code`` and the HTTP status views
answer with. ``extra`` holds additional fields merged into the response body.
"""

from rest_framework import status


class LedgerError(Exception):
    code = "error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Unable to process stock operation."

    def __init__(self, message: str | None = None, **extra):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def as_payload(self) -> dict:
        return {"detail": self.message, "code": self.code, **self.extra}


class NotFound(LedgerError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found."


class InvalidArgument(LedgerError):
    code = "invalid_argument"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid argument."


class InsufficientStock(LedgerError):
    """Raised when an outgoing movement exceeds the product's on-hand quantity."""

    code = "insufficient_stock"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Insufficient stock available"

    def __init__(self, *, current_stock: int, requested_quantity: int, message: str | None = None):
        self.current_stock = int(current_stock)
        self.requested_quantity = int(requested_quantity)
        super().__init__(
            message,
            current_stock=self.current_stock,
            requested_quantity=self.requested_quantity,
        )


class ConflictingState(LedgerError):
    code = "conflicting_state"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Operation not allowed in the current state."


class LedgerInternalError(LedgerError):
    """Persistence failure while writing a movement or its stock update.

    Both writes share one transaction, so raising this means neither landed.
    """

    code = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Failed to persist stock movement."


# EOF
