"""Follow state machine: toggle, request, accept and reject, plus graph reads."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.config import get_settings
from app.core.errors import ForbiddenError, InvalidStateError, NotFoundError, SelfFollowError
from app.database import unit_of_work
from app.models import Follow, FollowStatus, Notification, NotificationType, User
from app.monitoring.metrics import follow_transitions_total
from app.services import relationships
from app.services.notifications import create_notification

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ToggleResult:
    """Outcome of :func:`toggle_follow`.

    ``notification`` is set when the toggle created an edge; it has already been
    committed and is ready to be pushed to the target.
    """

    following: bool
    status: FollowStatus | None
    notification: Notification | None = None


def get_user(db: Session, user_id: int, *, label: str = "User") -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(f"{label} not found")
    return user


def can_view(db: Session, viewer_id: int, target: User) -> bool:
    """Public accounts are visible to everyone; private ones to self and accepted followers."""

    if not target.is_private or viewer_id == target.id:
        return True
    return relationships.has_accepted_edge(db, viewer_id, target.id)


def ensure_can_view(db: Session, viewer_id: int, target: User) -> None:
    if not can_view(db, viewer_id, target):
        raise ForbiddenError("This account is private")


def toggle_follow(db: Session, user_id: int, target_user_id: int) -> ToggleResult:
    """Create or remove the edge ``user_id -> target_user_id``.

    Any existing edge, whatever its status, is removed. Otherwise a private
    target gets a pending request and a public one an accepted follow.
    """

    if user_id == target_user_id:
        raise SelfFollowError()

    with unit_of_work(db):
        user = get_user(db, user_id)
        target = get_user(db, target_user_id, label="Target user")

        edge = relationships.get_edge(db, user.id, target.id)
        if edge is not None:
            previous = edge.status
            relationships.remove_edge(db, edge)
            result = ToggleResult(following=False, status=None)
            transition = "cancelled" if previous == FollowStatus.PENDING else "unfollowed"
        elif target.is_private:
            relationships.add_edge(db, user.id, target.id, FollowStatus.PENDING)
            notification = create_notification(
                db, user_id=target.id, sender=user, notification_type=NotificationType.FOLLOW_REQUEST
            )
            result = ToggleResult(following=True, status=FollowStatus.PENDING, notification=notification)
            transition = "requested"
        else:
            relationships.add_edge(db, user.id, target.id, FollowStatus.ACCEPTED)
            notification = create_notification(
                db, user_id=target.id, sender=user, notification_type=NotificationType.FOLLOW
            )
            result = ToggleResult(following=True, status=FollowStatus.ACCEPTED, notification=notification)
            transition = "followed"

    follow_transitions_total.labels(transition).inc()
    logger.info("Follow %s: %s -> %s", transition, user_id, target_user_id)
    return result


def _respond(db: Session, user_id: int, follower_id: int, accept: bool) -> Notification:
    with unit_of_work(db):
        user = get_user(db, user_id)
        get_user(db, follower_id, label="Follower")
        edge = relationships.get_edge(db, follower_id, user.id)
        if edge is None:
            raise NotFoundError("Follow request not found")
        if edge.status != FollowStatus.PENDING:
            raise InvalidStateError("Follow request is not pending")

        new_status = FollowStatus.ACCEPTED if accept else FollowStatus.REJECTED
        relationships.set_status(db, edge, new_status)
        edge.responded_at = datetime.now(timezone.utc)
        notification = create_notification(
            db,
            user_id=follower_id,
            sender=user,
            notification_type=(
                NotificationType.REQUEST_ACCEPTED if accept else NotificationType.REQUEST_REJECTED
            ),
        )

    follow_transitions_total.labels(new_status.value).inc()
    return notification


def accept_request(db: Session, user_id: int, follower_id: int) -> Notification:
    """Accept the pending request ``follower_id -> user_id``."""

    return _respond(db, user_id, follower_id, accept=True)


def reject_request(db: Session, user_id: int, follower_id: int) -> Notification:
    """Reject the pending request ``follower_id -> user_id``; counters are untouched."""

    return _respond(db, user_id, follower_id, accept=False)


def list_requests(db: Session, user_id: int) -> list[tuple[User, datetime]]:
    """Pending requests targeting ``user_id`` as ``(follower, requested_at)`` pairs."""

    get_user(db, user_id)
    stmt = (
        select(User, Follow.created_at)
        .join(Follow, Follow.follower_id == User.id)
        .where(Follow.following_id == user_id, Follow.status == FollowStatus.PENDING)
        .order_by(Follow.created_at.desc(), Follow.id.desc())
    )
    return [(row[0], row[1]) for row in db.execute(stmt).all()]


def get_mutual_followers(db: Session, user_id: int, target_user_id: int) -> list[User]:
    """Users that ``user_id`` follows who also follow ``target_user_id``."""

    get_user(db, user_id)
    target = get_user(db, target_user_id, label="Target user")
    ensure_can_view(db, user_id, target)

    stmt = (
        select(User)
        .where(
            User.id.in_(relationships.accepted_following_ids(user_id)),
            User.id.in_(relationships.accepted_follower_ids(target_user_id)),
        )
        .order_by(User.username.asc())
    )
    return list(db.execute(stmt).scalars().all())


def suggested_users(db: Session, user_id: int, limit: int | None = None) -> list[User]:
    """Friends-of-friends first, then the newest accounts, up to ``limit``."""

    settings = get_settings()
    limit = settings.suggestions_default_limit if limit is None else limit
    limit = max(1, min(limit, settings.suggestions_max_limit))

    get_user(db, user_id)
    # Any existing edge, pending or rejected included, disqualifies a candidate.
    excluded = select(Follow.following_id).where(Follow.follower_id == user_id)
    followed = relationships.accepted_following_ids(user_id)

    connections = func.count(Follow.id).label("connections")
    fof_stmt = (
        select(User, connections)
        .join(Follow, Follow.following_id == User.id)
        .where(
            Follow.follower_id.in_(followed),
            Follow.status == FollowStatus.ACCEPTED,
            User.id != user_id,
            User.id.not_in(excluded),
        )
        .group_by(User.id)
        .order_by(connections.desc(), User.id.asc())
        .limit(limit)
    )
    suggestions: list[User] = [row[0] for row in db.execute(fof_stmt).all()]
    if len(suggestions) >= limit:
        return suggestions

    seen = {user.id for user in suggestions}
    recent_stmt = (
        select(User)
        .where(User.id != user_id, User.id.not_in(excluded))
        .order_by(User.created_at.desc(), User.id.desc())
        .limit(limit + len(seen))
    )
    for candidate in db.execute(recent_stmt).scalars():
        if candidate.id in seen:
            continue
        suggestions.append(candidate)
        seen.add(candidate.id)
        if len(suggestions) >= limit:
            break
    return suggestions
