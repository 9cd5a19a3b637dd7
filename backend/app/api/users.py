"""User profile, privacy and close-friends endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.database import get_db
from app.models import User
from app.schemas import (
    ApiResponse,
    CloseFriendToggleResult,
    PrivacyState,
    ProfileRead,
    ProfileUpdate,
    UserRead,
    UserSearchPage,
    UserSummary,
    ok,
)
from app.services import users as user_service

router = APIRouter(prefix="/users", tags=["users"])


def _summaries(users: list[User]) -> list[UserSummary]:
    return [UserSummary.model_validate(user) for user in users]


@router.patch("/me", response_model=ApiResponse[UserRead])
def update_my_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[UserRead]:
    user = user_service.update_profile(db, current_user.id, payload)
    return ok("Profile updated", UserRead.model_validate(user))


@router.post("/me/privacy", response_model=ApiResponse[PrivacyState])
def toggle_privacy(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[PrivacyState]:
    """Switch the current account between public and private."""

    is_private = user_service.toggle_private(db, current_user.id)
    message = "Account is now private" if is_private else "Account is now public"
    return ok(message, PrivacyState(is_private=is_private))


@router.get("/me/close-friends", response_model=ApiResponse[list[UserSummary]])
def list_close_friends(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[list[UserSummary]]:
    return ok("Close friends fetched", _summaries(user_service.list_close_friends(db, current_user.id)))


@router.post("/me/close-friends/{friend_id}", response_model=ApiResponse[CloseFriendToggleResult])
def toggle_close_friend(
    friend_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[CloseFriendToggleResult]:
    added = user_service.toggle_close_friend(db, current_user.id, friend_id)
    message = "Added to close friends" if added else "Removed from close friends"
    return ok(message, CloseFriendToggleResult(user_id=friend_id, is_close_friend=added))


@router.delete("/me/followers/{follower_id}", response_model=ApiResponse[None], status_code=status.HTTP_200_OK)
def remove_follower(
    follower_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[None]:
    user_service.remove_follower(db, current_user.id, follower_id)
    return ok("Follower removed")


@router.get("/search", response_model=ApiResponse[UserSearchPage])
def search_users(
    q: str = Query(default="", max_length=64, description="Username fragment"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[UserSearchPage]:
    """Find other users whose username contains ``q``, ignoring case."""

    users = user_service.search_users(db, current_user.id, q, page=page, limit=limit)
    return ok("Users fetched", UserSearchPage(users=_summaries(users), page=page))


@router.get("/{user_id}", response_model=ApiResponse[ProfileRead])
def get_profile(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[ProfileRead]:
    profile = user_service.get_profile(db, current_user.id, user_id)
    message = "Profile fetched" if not profile.is_restricted else user_service.PRIVATE_PROFILE_NOTICE
    return ok(message, profile)


@router.get("/{user_id}/followers", response_model=ApiResponse[list[UserSummary]])
def list_followers(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[list[UserSummary]]:
    return ok("Followers fetched", _summaries(user_service.list_followers(db, current_user.id, user_id)))


@router.get("/{user_id}/following", response_model=ApiResponse[list[UserSummary]])
def list_following(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[list[UserSummary]]:
    return ok("Following fetched", _summaries(user_service.list_following(db, current_user.id, user_id)))
