from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class ValidationError(AppError):
    pass


class NotFoundError(AppError):
    pass


class ForbiddenError(AppError):
    pass


class PersistenceError(AppError):
    """The durable store rejected or failed an operation."""


class DeliveryWarning(AppError):
    """A frame could not be delivered to one connection.

    Raised and caught inside the connection registry only; it never reaches
    the sender of the message.
    """
