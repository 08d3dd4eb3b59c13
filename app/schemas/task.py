from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Literal, Optional

TaskStatus = Literal["pending", "in_progress", "completed"]


class TaskCreate(BaseModel):
    """Schema for creating new personal tasks."""
    title: str = Field(..., max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    priority: Optional[int] = Field(None, ge=1, le=5)
    status: Optional[TaskStatus] = None


class TaskUpdate(BaseModel):
    """Schema for updating existing tasks; only sent fields change."""
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    priority: Optional[int] = Field(None, ge=1, le=5)
    status: Optional[TaskStatus] = None


class TaskResponse(BaseModel):
    id: int
    user_id: int
    assigned_to: int
    title: str
    description: Optional[str] = None
    priority: int
    status: str
    week_start: date
    archived: bool
    archived_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ArchiveResponse(BaseModel):
    message: str
    archived_count: int
