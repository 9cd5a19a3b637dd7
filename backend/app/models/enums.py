from __future__ import annotations

from enum import Enum


class FollowStatus(str, Enum):
    """Lifecycle states for a follow edge."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class NotificationType(str, Enum):
    """Kinds of notifications raised by the follow graph."""

    FOLLOW = "follow"
    FOLLOW_REQUEST = "follow_request"
    REQUEST_ACCEPTED = "request_accepted"
    REQUEST_REJECTED = "request_rejected"
