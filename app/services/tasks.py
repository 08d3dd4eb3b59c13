from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import case, update
from sqlmodel import Session, select

from ..errors import NotFound, ValidationError
from ..models import STATUS_COMPLETED, STATUS_PENDING, FamilyTask, Task, User
from ..utils import current_week_start, utcnow


def active_first_ordering(model):
    """Pending first, then most urgent, then newest."""
    return (
        case((model.status == STATUS_PENDING, 0), else_=1),
        model.priority.desc(),
        model.created_at.desc(),
        model.id.desc(),
    )


def apply_status(task: Union[Task, FamilyTask], status: str) -> None:
    """Set status and keep completed_at non-null exactly when completed."""
    if status == STATUS_COMPLETED:
        if task.status != STATUS_COMPLETED or task.completed_at is None:
            task.completed_at = utcnow()
    else:
        task.completed_at = None
    task.status = status


def clean_title(title: Optional[str]) -> str:
    title = (title or "").strip()
    if not title:
        raise ValidationError("Task title is required")
    return title


def clean_description(description: Optional[str]) -> Optional[str]:
    if description is None:
        return None
    return description.strip() or None


def list_tasks(db: Session, user: User) -> List[Task]:
    statement = (
        select(Task)
        .where(Task.user_id == user.id, Task.archived.is_(False))
        .order_by(*active_first_ordering(Task))
    )
    return list(db.exec(statement).all())


def create_task(
    db: Session,
    user: User,
    title: Optional[str],
    description: Optional[str] = None,
    priority: Optional[int] = None,
    status: Optional[str] = None,
) -> Task:
    task = Task(
        user_id=user.id,
        assigned_to=user.id,
        title=clean_title(title),
        description=clean_description(description),
        priority=priority or 1,
        week_start=current_week_start(),
    )
    apply_status(task, status or STATUS_PENDING)

    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def get_owned_task(db: Session, user: User, task_id: int) -> Task:
    task = db.exec(select(Task).where(Task.id == task_id, Task.user_id == user.id)).first()
    if not task:
        raise NotFound("Task not found")
    return task


def update_task(db: Session, user: User, task_id: int, fields: Dict[str, Any]) -> Task:
    task = get_owned_task(db, user, task_id)

    if "title" in fields:
        task.title = clean_title(fields["title"])
    if "description" in fields:
        task.description = clean_description(fields["description"])
    if fields.get("priority") is not None:
        task.priority = fields["priority"]
    if fields.get("status") is not None:
        apply_status(task, fields["status"])

    task.updated_at = utcnow()

    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def delete_task(db: Session, user: User, task_id: int) -> None:
    task = get_owned_task(db, user, task_id)
    db.delete(task)
    db.commit()


def archive_tasks(db: Session, user: User, today: Optional[date] = None) -> int:
    """Archive tasks from before last week; returns how many were archived."""
    cutoff = current_week_start(today) - timedelta(days=7)

    result = db.execute(
        update(Task)
        .where(
            Task.user_id == user.id,
            Task.week_start < cutoff,
            Task.archived.is_(False),
        )
        .values(archived=True, archived_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount
