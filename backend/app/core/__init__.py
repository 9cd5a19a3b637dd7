"""Core utilities for the Orbit backend."""

from .encryption import EncryptedPayload, MessageCipher, get_cipher
from .errors import (
    AppError,
    ExpiredWindowError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    SelfFollowError,
    ValidationError,
)

__all__ = [
    "AppError",
    "ExpiredWindowError",
    "ForbiddenError",
    "InvalidStateError",
    "NotFoundError",
    "SelfFollowError",
    "ValidationError",
    "EncryptedPayload",
    "MessageCipher",
    "get_cipher",
]
