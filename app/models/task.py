from sqlmodel import SQLModel, Field
from datetime import date, datetime
from typing import Optional

from ..utils import utcnow

STATUS_PENDING = "pending"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"


class Task(SQLModel, table=True):
    """Personal task, bucketed by the week it was created in."""
    __tablename__ = "tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    # Personal tasks are always assigned to their owner
    assigned_to: int = Field(foreign_key="users.id")
    title: str = Field(max_length=200)
    description: Optional[str] = None
    priority: int = Field(default=1)
    status: str = Field(default=STATUS_PENDING, max_length=20)
    week_start: date = Field(index=True)
    archived: bool = Field(default=False)
    archived_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
