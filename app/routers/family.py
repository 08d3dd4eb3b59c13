from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from ..database import get_db
from ..errors import Conflict
from ..models import User
from ..schemas.family import (
    FamilyCreate,
    FamilyCreated,
    FamilyInfo,
    FamilyJoin,
    FamilyJoined,
    FamilyMemberInfo,
    FamilyTaskCreate,
    FamilyTaskResponse,
    FamilyTaskUpdate,
)
from ..schemas.user import MessageResponse
from ..services import family as family_service
from .auth import get_current_user

router = APIRouter()


@router.get("/info", response_model=FamilyInfo)
def get_family_info(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return family_service.get_family_info(db, current_user)


@router.post("/create", response_model=FamilyCreated, status_code=status.HTTP_201_CREATED)
def create_family(
    payload: FamilyCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a family led by the current user."""
    try:
        family = family_service.create_family(db, current_user, payload.name)
    except Conflict as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)

    return {
        "message": "Family created successfully",
        "family_id": family.id,
        "name": family.name,
        "invitation_code": family.invitation_code,
    }


@router.post("/join", response_model=FamilyJoined)
def join_family(
    payload: FamilyJoin,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    family = family_service.join_family(db, current_user, payload.invitation_code)
    return {"message": "Successfully joined family", "family_id": family.id, "name": family.name}


@router.get("/members", response_model=List[FamilyMemberInfo])
def get_family_members(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return family_service.list_members(db, current_user)


@router.get("/tasks", response_model=List[FamilyTaskResponse])
def get_family_tasks(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return family_service.list_family_tasks(db, current_user)


@router.post("/tasks", response_model=FamilyTaskResponse, status_code=status.HTTP_201_CREATED)
def create_family_task(
    task: FamilyTaskCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Only the family leader may create family tasks."""
    return family_service.create_family_task(
        db,
        current_user,
        title=task.title,
        assigned_to=task.assigned_to,
        description=task.description,
        priority=task.priority,
    )


@router.put("/tasks/{task_id}", response_model=FamilyTaskResponse)
def update_family_task(
    task_id: int,
    task_update: FamilyTaskUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return family_service.update_family_task(
        db, current_user, task_id, task_update.model_dump(exclude_unset=True)
    )


@router.delete("/tasks/{task_id}", response_model=MessageResponse)
def delete_family_task(
    task_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    family_service.delete_family_task(db, current_user, task_id)
    return {"message": "Task deleted successfully"}
