import logging
import secrets
from datetime import timedelta
from typing import Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..config import Settings
from ..errors import Conflict, Unauthorized, ValidationError
from ..mailer import Mailer, password_reset_email, welcome_email
from ..models import PasswordResetToken, User
from ..security import create_access_token, get_password_hash, verify_password
from ..utils import as_utc, utcnow

logger = logging.getLogger(__name__)

RESET_TOKEN_TTL = timedelta(hours=1)
RESET_REQUESTED_MESSAGE = "If an account with that email exists, a password reset link has been sent."
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.exec(select(User).where(User.email == email)).first()


def register(
    db: Session,
    settings: Settings,
    mailer: Mailer,
    username: str,
    email: str,
    password: str,
) -> Tuple[User, str]:
    """Create an account and return it with a fresh access token.

    The welcome email is best-effort; a delivery failure does not undo the
    registration.
    """
    existing = db.exec(
        select(User).where(or_(User.email == email, User.username == username))
    ).first()
    if existing:
        raise Conflict("User already exists with this email or username")

    user = User(username=username, email=email, password_hash=get_password_hash(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("User already exists with this email or username")
    db.refresh(user)

    token = create_access_token(user, settings)
    mailer.notify(user.email, "Welcome to TaskFlow!", welcome_email(user.username))

    logger.info("User registered: id=%s", user.id)
    return user, token


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """Authenticate a user."""
    user = get_user_by_email(db, email)
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def login(db: Session, settings: Settings, email: str, password: str) -> Tuple[User, str]:
    user = authenticate_user(db, email, password)
    if not user:
        raise Unauthorized(INVALID_CREDENTIALS_MESSAGE)

    logger.info("User logged in: id=%s", user.id)
    return user, create_access_token(user, settings)


def request_password_reset(db: Session, settings: Settings, mailer: Mailer, email: Optional[str]) -> str:
    """Issue a reset token when the email matches an account.

    The returned message is the same whether or not the account exists.
    """
    if not email or not email.strip():
        raise ValidationError("Email is required")

    user = get_user_by_email(db, email.strip().lower())
    if not user:
        return RESET_REQUESTED_MESSAGE

    token = secrets.token_hex(32)
    expires_at = utcnow() + RESET_TOKEN_TTL

    reset = db.exec(select(PasswordResetToken).where(PasswordResetToken.user_id == user.id)).first()
    if reset is None:
        reset = PasswordResetToken(user_id=user.id, token=token, expires_at=expires_at)
    else:
        reset.token = token
        reset.expires_at = expires_at
        reset.created_at = utcnow()
    db.add(reset)
    db.commit()

    reset_url = f"{settings.frontend_url.rstrip('/')}/reset-password?token={token}"
    mailer.notify(
        user.email,
        "Password Reset Request - TaskFlow",
        password_reset_email(user.username, reset_url),
    )

    logger.info("Password reset requested for user id=%s", user.id)
    return RESET_REQUESTED_MESSAGE


def reset_password(db: Session, token: str, new_password: str) -> None:
    """Consume a live reset token and replace the account password."""
    reset = db.exec(select(PasswordResetToken).where(PasswordResetToken.token == token)).first()
    if reset is None or as_utc(reset.expires_at) < utcnow():
        raise ValidationError("Invalid or expired reset token")

    user = db.get(User, reset.user_id)
    if user is None:
        raise ValidationError("Invalid or expired reset token")

    user.password_hash = get_password_hash(new_password)
    user.updated_at = utcnow()
    db.add(user)
    db.delete(reset)
    db.commit()

    logger.info("Password reset completed for user id=%s", user.id)
