from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class InvalidArgumentError(AppError):
    """A public operation received a malformed argument. No I/O was done."""


class ConcurrencyConflictError(AppError):
    """The stored row changed or vanished since it was read."""


class DeliveryFailureError(AppError):
    """A delivery channel rejected a send."""


class SerializationError(AppError):
    pass
