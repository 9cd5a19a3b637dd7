"""Schemas related to user profiles and the follow graph."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, constr

from app.models.enums import FollowStatus


class UserSummary(BaseModel):
    """Minimal public-facing user information."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    display_name: str | None = None
    avatar_url: str | None = None


class ProfileRead(UserSummary):
    """Profile as seen by a particular viewer.

    When ``is_restricted`` is true the viewer may not see the account's
    details and only the summary fields plus the counters are filled.
    """

    bio: str | None = None
    is_private: bool = False
    is_restricted: bool = False
    followers_count: int = 0
    following_count: int = 0
    follow_status: FollowStatus | None = Field(
        default=None, description="State of the viewer's edge to this user, if any"
    )
    notice: str | None = None
    created_at: datetime | None = None


class ProfileUpdate(BaseModel):
    """Payload for updating profile details."""

    display_name: constr(strip_whitespace=True, min_length=1, max_length=128) | None = None
    bio: constr(strip_whitespace=True, max_length=500) | None = None
    avatar_url: constr(strip_whitespace=True, max_length=512) | None = Field(
        default=None, description="Reference to an avatar stored by the media service"
    )


class FollowRequestRead(UserSummary):
    """Pending follow request projected to the requesting user."""

    requested_at: datetime | None = None


class FollowToggleResult(BaseModel):
    """Outcome of toggling a follow edge."""

    following: bool = Field(..., description="Whether an edge exists after the toggle")
    status: FollowStatus | None = None


class PrivacyState(BaseModel):
    is_private: bool


class CloseFriendToggleResult(BaseModel):
    user_id: int
    is_close_friend: bool


class UserSearchPage(BaseModel):
    users: list[UserSummary]
    page: int
