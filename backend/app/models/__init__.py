"""Database models package."""

from .base import Base
from .chat import Message, MessageDeletion
from .enums import FollowStatus, NotificationType
from .social import CloseFriend, Follow, Notification, User

__all__ = [
    "Base",
    "User",
    "Follow",
    "CloseFriend",
    "Notification",
    "Message",
    "MessageDeletion",
    "FollowStatus",
    "NotificationType",
]
