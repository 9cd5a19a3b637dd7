"""Follow graph endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from orbit.realtime import SessionRegistry

from app.api.deps import get_current_user, get_session_registry
from app.database import get_db
from app.models import FollowStatus, User
from app.schemas import ApiResponse, FollowRequestRead, FollowToggleResult, UserSummary, ok
from app.services import follow as follow_service
from app.services.notifications import push_notification

router = APIRouter(prefix="/follow", tags=["follow"])


def _summaries(users: list[User]) -> list[UserSummary]:
    return [UserSummary.model_validate(user) for user in users]


@router.get("/requests", response_model=ApiResponse[list[FollowRequestRead]])
def list_follow_requests(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[list[FollowRequestRead]]:
    """Pending follow requests addressed to the current user."""

    requests = [
        FollowRequestRead(
            id=user.id,
            username=user.username,
            display_name=user.display_name,
            avatar_url=user.avatar_url,
            requested_at=requested_at,
        )
        for user, requested_at in follow_service.list_requests(db, current_user.id)
    ]
    return ok("Follow requests fetched", requests)


@router.get("/suggestions", response_model=ApiResponse[list[UserSummary]])
def list_suggestions(
    limit: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[list[UserSummary]]:
    users = follow_service.suggested_users(db, current_user.id, limit)
    return ok("Suggestions fetched", _summaries(users))


@router.post("/{target_user_id}/toggle", response_model=ApiResponse[FollowToggleResult])
async def toggle_follow(
    target_user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    registry: SessionRegistry = Depends(get_session_registry),
) -> ApiResponse[FollowToggleResult]:
    """Follow, request to follow, unfollow or cancel a pending request."""

    result = follow_service.toggle_follow(db, current_user.id, target_user_id)
    if result.notification is not None:
        await push_notification(registry, result.notification)

    if not result.following:
        message = "Unfollowed successfully"
    elif result.status == FollowStatus.PENDING:
        message = "Follow request sent"
    else:
        message = "Followed successfully"
    return ok(message, FollowToggleResult(following=result.following, status=result.status))


@router.post("/{follower_id}/accept", response_model=ApiResponse[None])
async def accept_follow_request(
    follower_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    registry: SessionRegistry = Depends(get_session_registry),
) -> ApiResponse[None]:
    notification = follow_service.accept_request(db, current_user.id, follower_id)
    await push_notification(registry, notification)
    return ok("Follow request accepted")


@router.post("/{follower_id}/reject", response_model=ApiResponse[None])
async def reject_follow_request(
    follower_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    registry: SessionRegistry = Depends(get_session_registry),
) -> ApiResponse[None]:
    notification = follow_service.reject_request(db, current_user.id, follower_id)
    await push_notification(registry, notification)
    return ok("Follow request rejected")


@router.get("/{target_user_id}/mutual-followers", response_model=ApiResponse[list[UserSummary]])
def list_mutual_followers(
    target_user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[list[UserSummary]]:
    users = follow_service.get_mutual_followers(db, current_user.id, target_user_id)
    return ok("Mutual followers fetched", _summaries(users))
