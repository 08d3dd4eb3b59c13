from sqlmodel import SQLModel, Field
from datetime import date, datetime
from typing import Optional

from ..utils import utcnow
from .task import STATUS_PENDING


class Family(SQLModel, table=True):
    """A group of users sharing tasks; created_by is the family leader."""
    __tablename__ = "families"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    created_by: int = Field(foreign_key="users.id")
    invitation_code: str = Field(unique=True, index=True, max_length=16)
    created_at: datetime = Field(default_factory=utcnow)


class FamilyMember(SQLModel, table=True):
    __tablename__ = "family_members"

    id: Optional[int] = Field(default=None, primary_key=True)
    family_id: int = Field(foreign_key="families.id", index=True)
    # unique: a user belongs to at most one family
    user_id: int = Field(foreign_key="users.id", unique=True)
    joined_at: datetime = Field(default_factory=utcnow)


class FamilyTask(SQLModel, table=True):
    __tablename__ = "family_tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    family_id: int = Field(foreign_key="families.id", index=True)
    created_by: int = Field(foreign_key="users.id")
    assigned_to: int = Field(foreign_key="users.id")
    title: str = Field(max_length=200)
    description: Optional[str] = None
    priority: int = Field(default=1)
    status: str = Field(default=STATUS_PENDING, max_length=20)
    week_start: date
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
