"""Domain errors shared by the service layer and both transports."""

from __future__ import annotations

from fastapi import status


class AppError(Exception):
    """Base class for failures that carry an HTTP status and a client message."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not allowed"


class InvalidStateError(AppError):
    """The target exists but is not in a state that permits the operation."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Invalid state for this operation"


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class SelfFollowError(ValidationError):
    default_message = "You cannot follow yourself"


class ExpiredWindowError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Time window for this operation has expired"


__all__ = [
    "AppError",
    "NotFoundError",
    "ForbiddenError",
    "InvalidStateError",
    "ValidationError",
    "SelfFollowError",
    "ExpiredWindowError",
]
