"""Durable follow edges and the denormalized follower/following counters."""

from __future__ import annotations

from sqlalchemy import case, select, update
from sqlalchemy.orm import Session

from app.models import Follow, FollowStatus, User


def get_edge(db: Session, follower_id: int, following_id: int) -> Follow | None:
    stmt = select(Follow).where(
        Follow.follower_id == follower_id,
        Follow.following_id == following_id,
    )
    return db.execute(stmt).scalar_one_or_none()


def has_accepted_edge(db: Session, follower_id: int, following_id: int) -> bool:
    edge = get_edge(db, follower_id, following_id)
    return edge is not None and edge.status == FollowStatus.ACCEPTED


def add_edge(db: Session, follower_id: int, following_id: int, status: FollowStatus) -> Follow:
    """Insert a new edge, bumping counters when it is created already accepted."""

    edge = Follow(follower_id=follower_id, following_id=following_id, status=status)
    db.add(edge)
    db.flush()
    if status == FollowStatus.ACCEPTED:
        adjust_counters(db, follower_id, following_id, 1)
    return edge


def remove_edge(db: Session, edge: Follow) -> bool:
    """Delete ``edge``; returns whether it had been accepted.

    Only accepted edges contribute to the counters, so only those decrement.
    """

    was_accepted = edge.status == FollowStatus.ACCEPTED
    follower_id, following_id = edge.follower_id, edge.following_id
    db.delete(edge)
    db.flush()
    if was_accepted:
        adjust_counters(db, follower_id, following_id, -1)
    return was_accepted


def set_status(db: Session, edge: Follow, status: FollowStatus) -> Follow:
    """Move ``edge`` into ``status`` and keep the counters in step."""

    previous = edge.status
    edge.status = status
    db.flush()
    if previous != FollowStatus.ACCEPTED and status == FollowStatus.ACCEPTED:
        adjust_counters(db, edge.follower_id, edge.following_id, 1)
    elif previous == FollowStatus.ACCEPTED and status != FollowStatus.ACCEPTED:
        adjust_counters(db, edge.follower_id, edge.following_id, -1)
    return edge


def _bounded(column, delta: int):
    if delta >= 0:
        return column + delta
    return case((column + delta < 0, 0), else_=column + delta)


def adjust_counters(db: Session, follower_id: int, following_id: int, delta: int) -> None:
    """Shift both sides of an edge's counters by ``delta``, never below zero."""

    db.execute(
        update(User)
        .where(User.id == follower_id)
        .values(following_count=_bounded(User.following_count, delta))
        .execution_options(synchronize_session="fetch")
    )
    db.execute(
        update(User)
        .where(User.id == following_id)
        .values(followers_count=_bounded(User.followers_count, delta))
        .execution_options(synchronize_session="fetch")
    )


def accepted_following_ids(user_id: int):
    """Subquery of ids ``user_id`` follows with an accepted edge."""

    return select(Follow.following_id).where(
        Follow.follower_id == user_id,
        Follow.status == FollowStatus.ACCEPTED,
    )


def accepted_follower_ids(user_id: int):
    """Subquery of ids following ``user_id`` with an accepted edge."""

    return select(Follow.follower_id).where(
        Follow.following_id == user_id,
        Follow.status == FollowStatus.ACCEPTED,
    )


def list_followers(db: Session, user_id: int) -> list[User]:
    stmt = (
        select(User)
        .join(Follow, Follow.follower_id == User.id)
        .where(Follow.following_id == user_id, Follow.status == FollowStatus.ACCEPTED)
        .order_by(Follow.created_at.desc(), User.id.asc())
    )
    return list(db.execute(stmt).scalars().all())


def list_following(db: Session, user_id: int) -> list[User]:
    stmt = (
        select(User)
        .join(Follow, Follow.following_id == User.id)
        .where(Follow.follower_id == user_id, Follow.status == FollowStatus.ACCEPTED)
        .order_by(Follow.created_at.desc(), User.id.asc())
    )
    return list(db.execute(stmt).scalars().all())
