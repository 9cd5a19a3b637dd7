"""Pydantic schemas for API payloads."""

from .auth import LoginRequest, Token, UserCreate, UserRead
from .common import ApiResponse, ok
from .messages import MessageCreate, MessagePreview, MessageRead, MessageUpdate
from .notifications import NotificationRead
from .users import (
    CloseFriendToggleResult,
    FollowRequestRead,
    FollowToggleResult,
    PrivacyState,
    ProfileRead,
    ProfileUpdate,
    UserSearchPage,
    UserSummary,
)

__all__ = [
    "ApiResponse",
    "ok",
    "LoginRequest",
    "Token",
    "UserCreate",
    "UserRead",
    "UserSummary",
    "ProfileRead",
    "ProfileUpdate",
    "FollowRequestRead",
    "FollowToggleResult",
    "PrivacyState",
    "CloseFriendToggleResult",
    "UserSearchPage",
    "MessageCreate",
    "MessagePreview",
    "MessageRead",
    "MessageUpdate",
    "NotificationRead",
]
