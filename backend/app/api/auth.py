"""Authentication API endpoints."""

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.config import get_settings
from app.core.security import create_access_token, get_password_hash, verify_password
from app.database import get_db
from app.models import User
from app.schemas import ApiResponse, LoginRequest, Token, UserCreate, UserRead, ok

router = APIRouter()
settings = get_settings()


@router.post("/register", response_model=ApiResponse[UserRead], status_code=status.HTTP_201_CREATED)
def register_user(user_in: UserCreate, db: Session = Depends(get_db)) -> ApiResponse[UserRead]:
    """Register a new user in the system."""

    stmt = select(User).where(or_(User.username == user_in.username, User.email == user_in.email))
    if db.execute(stmt).scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username or email is already taken",
        )

    user = User(
        username=user_in.username,
        email=user_in.email,
        display_name=user_in.display_name,
        hashed_password=get_password_hash(user_in.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return ok("User registered", UserRead.model_validate(user))


@router.post("/login", response_model=ApiResponse[Token])
def login_user(credentials: LoginRequest, db: Session = Depends(get_db)) -> ApiResponse[Token]:
    """Authenticate a user and return a JWT access token."""

    db_user = db.execute(select(User).where(User.username == credentials.username)).scalar_one_or_none()
    if db_user is None or not verify_password(credentials.password, db_user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
        )

    access_token_expires = timedelta(minutes=settings.access_token_expire_minutes)
    access_token = create_access_token({"sub": str(db_user.id)}, expires_delta=access_token_expires)
    token = Token(
        access_token=access_token,
        token_type="bearer",
        expires_in=int(access_token_expires.total_seconds()),
    )
    return ok("Logged in", token)


@router.get("/me", response_model=ApiResponse[UserRead])
def read_current_user(current_user: User = Depends(get_current_user)) -> ApiResponse[UserRead]:
    return ok("Current user", UserRead.model_validate(current_user))
