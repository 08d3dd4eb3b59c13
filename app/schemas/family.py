from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional

from .task import TaskStatus


class FamilyCreate(BaseModel):
    name: str = Field(..., max_length=100)


class FamilyJoin(BaseModel):
    invitation_code: Optional[str] = Field(None, alias="invitationCode")

    class Config:
        populate_by_name = True


class FamilyInfo(BaseModel):
    id: int
    name: str
    created_by: int
    invitation_code: str
    created_at: datetime

    class Config:
        from_attributes = True


class FamilyCreated(BaseModel):
    message: str
    family_id: int
    name: str
    invitation_code: str


class FamilyJoined(BaseModel):
    message: str
    family_id: int
    name: str


class FamilyMemberInfo(BaseModel):
    id: int
    username: str
    email: str

    class Config:
        from_attributes = True


class FamilyTaskCreate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    priority: Optional[int] = Field(None, ge=1, le=5)
    assigned_to: Optional[int] = None


class FamilyTaskUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    priority: Optional[int] = Field(None, ge=1, le=5)
    status: Optional[TaskStatus] = None
    assigned_to: Optional[int] = None


class FamilyTaskResponse(BaseModel):
    id: int
    family_id: int
    created_by: int
    assigned_to: int
    assigned_username: str
    title: str
    description: Optional[str] = None
    priority: int
    status: str
    week_start: date
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
