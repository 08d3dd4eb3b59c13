from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlmodel import Session

from ..config import Settings
from ..database import get_db
from ..errors import Conflict, Unauthorized
from ..mailer import Mailer
from ..models import User
from ..schemas.user import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    UserSummary,
)
from ..security import decode_access_token
from ..services import auth as auth_service

router = APIRouter()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def _get_token_from_request(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return None


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    """Resolve the bearer token to a user, or fail with 401."""
    token = _get_token_from_request(request)
    if not token:
        raise Unauthorized("Access token required", headers={"WWW-Authenticate": "Bearer"})

    user_id = decode_access_token(token, settings)
    if user_id is None:
        raise Unauthorized("Invalid or expired token", headers={"WWW-Authenticate": "Bearer"})

    user = db.get(User, user_id)
    if user is None:
        raise Unauthorized("User not found", headers={"WWW-Authenticate": "Bearer"})
    return user


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    mailer: Mailer = Depends(get_mailer),
):
    """Create a new user account."""
    try:
        user, token = auth_service.register(
            db, settings, mailer, payload.username, payload.email, payload.password
        )
    except Conflict as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)

    return {"message": "User created successfully", "user": user, "token": token}


@router.post("/login", response_model=AuthResponse)
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Sign in and get JWT token."""
    user, token = auth_service.login(db, settings, payload.email, payload.password)
    return {"message": "Login successful", "user": user, "token": token}


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    payload: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    mailer: Mailer = Depends(get_mailer),
):
    message = auth_service.request_password_reset(db, settings, mailer, payload.email)
    return {"message": message}


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(payload: ResetPasswordRequest, db: Session = Depends(get_db)):
    auth_service.reset_password(db, payload.token, payload.password)
    return {"message": "Password has been reset successfully"}


@router.get("/me", response_model=UserSummary)
def read_users_me(current_user: User = Depends(get_current_user)):
    """Get current user information."""
    return current_user
