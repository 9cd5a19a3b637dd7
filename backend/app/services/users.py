"""User directory: profiles, privacy, follower listings and close friends."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.errors import ForbiddenError, InvalidStateError, NotFoundError, ValidationError
from app.database import unit_of_work
from app.models import CloseFriend, FollowStatus, User
from app.monitoring.metrics import follow_transitions_total
from app.schemas.users import ProfileRead, ProfileUpdate
from app.services import relationships
from app.services.follow import can_view, ensure_can_view, get_user

logger = logging.getLogger(__name__)

PRIVATE_PROFILE_NOTICE = "This profile is private"


def get_profile(db: Session, viewer_id: int, target_user_id: int) -> ProfileRead:
    """Full profile, or a redacted summary when the viewer may not see a private account."""

    target = get_user(db, target_user_id)
    edge = relationships.get_edge(db, viewer_id, target.id) if viewer_id != target.id else None
    follow_status = edge.status if edge is not None else None

    if not can_view(db, viewer_id, target):
        return ProfileRead(
            id=target.id,
            username=target.username,
            display_name=target.display_name,
            avatar_url=target.avatar_url,
            is_private=True,
            is_restricted=True,
            followers_count=target.followers_count,
            following_count=target.following_count,
            follow_status=follow_status,
            notice=PRIVATE_PROFILE_NOTICE,
        )

    return ProfileRead(
        id=target.id,
        username=target.username,
        display_name=target.display_name,
        avatar_url=target.avatar_url,
        bio=target.bio,
        is_private=target.is_private,
        is_restricted=False,
        followers_count=target.followers_count,
        following_count=target.following_count,
        follow_status=follow_status,
        created_at=target.created_at,
    )


def update_profile(db: Session, user_id: int, payload: ProfileUpdate) -> User:
    with unit_of_work(db):
        user = get_user(db, user_id)
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(user, field, value)
    db.refresh(user)
    return user


def toggle_private(db: Session, user_id: int) -> bool:
    """Flip the account's privacy flag; pending requests are left as they are."""

    with unit_of_work(db):
        user = get_user(db, user_id)
        user.is_private = not user.is_private
        is_private = user.is_private
    logger.info("User %s is now %s", user_id, "private" if is_private else "public")
    return is_private


def list_followers(db: Session, viewer_id: int, target_user_id: int) -> list[User]:
    target = get_user(db, target_user_id)
    ensure_can_view(db, viewer_id, target)
    return relationships.list_followers(db, target.id)


def list_following(db: Session, viewer_id: int, target_user_id: int) -> list[User]:
    target = get_user(db, target_user_id)
    ensure_can_view(db, viewer_id, target)
    return relationships.list_following(db, target.id)


def toggle_close_friend(db: Session, user_id: int, friend_id: int) -> bool:
    """Add ``friend_id`` to or remove it from the user's close friends.

    Adding requires an accepted follow edge to the friend; removing does not.
    """

    if user_id == friend_id:
        raise ValidationError("You cannot add yourself as a close friend")

    with unit_of_work(db):
        get_user(db, user_id)
        get_user(db, friend_id, label="Target user")
        stmt = select(CloseFriend).where(
            CloseFriend.user_id == user_id,
            CloseFriend.friend_id == friend_id,
        )
        existing = db.execute(stmt).scalar_one_or_none()
        if existing is not None:
            db.delete(existing)
            added = False
        else:
            if not relationships.has_accepted_edge(db, user_id, friend_id):
                raise ForbiddenError("You can only add accounts you follow")
            db.add(CloseFriend(user_id=user_id, friend_id=friend_id))
            added = True
    return added


def list_close_friends(db: Session, user_id: int) -> list[User]:
    get_user(db, user_id)
    stmt = (
        select(User)
        .join(CloseFriend, CloseFriend.friend_id == User.id)
        .where(CloseFriend.user_id == user_id)
        .order_by(CloseFriend.created_at.desc(), User.id.asc())
    )
    return list(db.execute(stmt).scalars().all())


def remove_follower(db: Session, user_id: int, follower_id: int) -> None:
    """Drop the accepted edge ``follower_id -> user_id`` and both counters."""

    with unit_of_work(db):
        get_user(db, user_id)
        get_user(db, follower_id, label="Follower")
        edge = relationships.get_edge(db, follower_id, user_id)
        if edge is None:
            raise NotFoundError("This user does not follow you")
        if edge.status != FollowStatus.ACCEPTED:
            raise InvalidStateError("This user does not follow you")
        relationships.remove_edge(db, edge)
    follow_transitions_total.labels("removed").inc()


def search_users(db: Session, user_id: int, query: str, *, page: int = 1, limit: int = 10) -> list[User]:
    """Case-insensitive username substring search, excluding the requester.

    A blank query matches nothing. Results are ordered by username and paged
    with 1-based ``page``.
    """

    get_user(db, user_id)
    if not query.strip():
        return []

    page = max(page, 1)
    limit = max(limit, 1)
    stmt = (
        select(User)
        .where(func.lower(User.username).contains(query.lower(), autoescape=True), User.id != user_id)
        .order_by(User.username, User.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(db.execute(stmt).scalars())
