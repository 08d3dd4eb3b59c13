from typing import List

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from ..database import get_db
from ..models import User
from ..schemas.task import ArchiveResponse, TaskCreate, TaskResponse, TaskUpdate
from ..schemas.user import MessageResponse
from ..services import tasks as task_service
from .auth import get_current_user

router = APIRouter()


def _get_update_data(task_update: TaskUpdate) -> dict:
    return task_update.model_dump(exclude_unset=True)


@router.get("", response_model=List[TaskResponse])
def get_tasks(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Active personal tasks, pending first."""
    return task_service.list_tasks(db, current_user)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    task: TaskCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return task_service.create_task(
        db,
        current_user,
        title=task.title,
        description=task.description,
        priority=task.priority,
        status=task.status,
    )


@router.post("/archive", response_model=ArchiveResponse)
def archive_tasks(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Archive tasks whose week ended before last week."""
    archived = task_service.archive_tasks(db, current_user)
    return {"message": "Tasks archived successfully", "archived_count": archived}


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: int,
    task_update: TaskUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return task_service.update_task(db, current_user, task_id, _get_update_data(task_update))


@router.delete("/{task_id}", response_model=MessageResponse)
def delete_task(
    task_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    task_service.delete_task(db, current_user, task_id)
    return {"message": "Task deleted successfully"}
