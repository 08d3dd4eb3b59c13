from sqlmodel import SQLModel, Field
from datetime import datetime
from typing import Optional

from ..utils import utcnow


class User(SQLModel, table=True):
    """Registered account; identity is fixed after registration."""
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(unique=True, index=True, max_length=30)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class PasswordResetToken(SQLModel, table=True):
    """One live reset token per user; a new request overwrites the old one."""
    __tablename__ = "password_reset_tokens"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True)
    token: str = Field(index=True, max_length=64)
    expires_at: datetime
    created_at: datetime = Field(default_factory=utcnow)
