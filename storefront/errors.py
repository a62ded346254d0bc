"""Error kinds raised by the store services.

Every failure a caller can react to is a subclass of StoreError. The API
layer renders them as ``{"kind": ..., "message": ...}`` with the status code
carried by the class, so clients can branch on ``kind`` instead of parsing
messages.
"""


class StoreError(Exception):
    kind = "StoreError"
    status_code = 500

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message, **self.details}


class InvalidArgument(StoreError):
    """Bad input shape or values. Raised before anything is mutated."""

    kind = "InvalidArgument"
    status_code = 400


class NotFound(StoreError):
    kind = "NotFound"
    status_code = 404


class InsufficientStock(StoreError):
    """Requested quantity exceeds what the ledger holds."""

    kind = "InsufficientStock"
    status_code = 409

    def __init__(self, product_id: str, product_name: str, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for {product_name}. Available: {available}, requested: {requested}",
            product_id=product_id,
            product_name=product_name,
            available=available,
            requested=requested,
        )


class Conflict(StoreError):
    """A concurrent writer invalidated what we read."""

    kind = "Conflict"
    status_code = 409


class StorageError(StoreError):
    """Persistence failed. Safe to retry."""

    kind = "StorageError"
    status_code = 503


class DeliveryError(StoreError):
    """The delivery partner rejected the order or could not be reached."""

    kind = "DeliveryFailed"
    status_code = 502


class Unauthorized(StoreError):
    kind = "Unauthorized"
    status_code = 401
