"""Family registry and the family task ledger.

A user belongs to at most one family. Creating or joining a family runs the
membership check and the inserts in one transaction, and the unique
constraint on ``family_members.user_id`` rejects whichever of two racing
requests commits second.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import aliased
from sqlmodel import Session, select

from ..database import transaction
from ..errors import Conflict, Forbidden, NotFound, ValidationError
from ..models import STATUS_PENDING, Family, FamilyMember, FamilyTask, User
from ..utils import current_week_start, generate_invitation_code, normalize_invitation_code, utcnow
from .tasks import active_first_ordering, apply_status, clean_description, clean_title

logger = logging.getLogger(__name__)

ALREADY_MEMBER_MESSAGE = "You are already a member of a family"
NO_FAMILY_MESSAGE = "You are not part of any family"
INVITATION_CODE_ATTEMPTS = 10
# Extra tries when a concurrent create claims the same code between check and insert
INVITATION_CODE_RACE_RETRIES = 1


def _find_membership(db: Session, user_id: int) -> Optional[FamilyMember]:
    return db.exec(select(FamilyMember).where(FamilyMember.user_id == user_id)).first()


def _unique_invitation_code(db: Session) -> str:
    for _ in range(INVITATION_CODE_ATTEMPTS):
        code = generate_invitation_code()
        taken = db.exec(select(Family.id).where(Family.invitation_code == code)).first()
        if taken is None:
            return code
    raise RuntimeError("Could not generate a unique invitation code")


def _is_member(db: Session, family_id: int, user_id: int) -> bool:
    membership = db.exec(
        select(FamilyMember).where(
            FamilyMember.family_id == family_id,
            FamilyMember.user_id == user_id,
        )
    ).first()
    return membership is not None


def _raise_if_now_member(db: Session, user_id: int, exc: IntegrityError) -> None:
    """Turn a lost membership race into a conflict; re-raise anything else."""
    if _find_membership(db, user_id) is not None:
        raise Conflict(ALREADY_MEMBER_MESSAGE) from exc
    raise exc


def get_family(db: Session, user: User) -> Optional[Family]:
    statement = (
        select(Family)
        .join(FamilyMember, FamilyMember.family_id == Family.id)
        .where(FamilyMember.user_id == user.id)
    )
    return db.exec(statement).first()


def get_family_info(db: Session, user: User) -> Family:
    family = get_family(db, user)
    if family is None:
        raise NotFound(NO_FAMILY_MESSAGE)
    return family


def create_family(db: Session, user: User, name: Optional[str]) -> Family:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Family name is required")

    for attempt in range(INVITATION_CODE_RACE_RETRIES + 1):
        try:
            with transaction(db):
                if _find_membership(db, user.id) is not None:
                    raise Conflict(ALREADY_MEMBER_MESSAGE)

                family = Family(
                    name=name,
                    created_by=user.id,
                    invitation_code=_unique_invitation_code(db),
                )
                db.add(family)
                db.flush()
                db.add(FamilyMember(family_id=family.id, user_id=user.id))
            break
        except IntegrityError as exc:
            if _find_membership(db, user.id) is not None:
                raise Conflict(ALREADY_MEMBER_MESSAGE) from exc
            if attempt == INVITATION_CODE_RACE_RETRIES:
                raise
            logger.warning("Invitation code taken during family create; retrying with a new code")

    db.refresh(family)
    logger.info("Family created: id=%s leader=%s", family.id, user.id)
    return family


def join_family(db: Session, user: User, invitation_code: Optional[str]) -> Family:
    if not invitation_code or not invitation_code.strip():
        raise ValidationError("Invitation code is required")
    code = normalize_invitation_code(invitation_code)

    try:
        with transaction(db):
            if _find_membership(db, user.id) is not None:
                raise Conflict(ALREADY_MEMBER_MESSAGE)

            family = db.exec(select(Family).where(Family.invitation_code == code)).first()
            if family is None:
                raise NotFound("Invalid invitation code")

            db.add(FamilyMember(family_id=family.id, user_id=user.id))
    except IntegrityError as exc:
        _raise_if_now_member(db, user.id, exc)

    db.refresh(family)
    logger.info("User %s joined a family", user.id)
    return family


def list_members(db: Session, user: User) -> List[User]:
    """Everyone sharing a family with the user, the user included."""
    member = aliased(FamilyMember)
    requester = aliased(FamilyMember)
    statement = (
        select(User)
        .join(member, member.user_id == User.id)
        .join(requester, requester.family_id == member.family_id)
        .where(requester.user_id == user.id)
        .order_by(User.id)
    )
    return list(db.exec(statement).all())


def _family_task_payload(task: FamilyTask, assigned_username: str) -> Dict[str, Any]:
    payload = task.model_dump()
    payload["assigned_username"] = assigned_username
    return payload


def _load_family_task(db: Session, task_id: int) -> Dict[str, Any]:
    task, username = db.exec(
        select(FamilyTask, User.username)
        .join(User, User.id == FamilyTask.assigned_to)
        .where(FamilyTask.id == task_id)
    ).one()
    return _family_task_payload(task, username)


def list_family_tasks(db: Session, user: User) -> List[Dict[str, Any]]:
    statement = (
        select(FamilyTask, User.username)
        .join(User, User.id == FamilyTask.assigned_to)
        .join(FamilyMember, FamilyMember.family_id == FamilyTask.family_id)
        .where(FamilyMember.user_id == user.id)
        .order_by(*active_first_ordering(FamilyTask))
    )
    return [_family_task_payload(task, username) for task, username in db.exec(statement).all()]


def create_family_task(
    db: Session,
    user: User,
    title: Optional[str],
    assigned_to: Optional[int],
    description: Optional[str] = None,
    priority: Optional[int] = None,
) -> Dict[str, Any]:
    title = clean_title(title)
    if not assigned_to:
        raise ValidationError("Assigned user is required")

    family = get_family(db, user)
    if family is None:
        raise NotFound(NO_FAMILY_MESSAGE)
    if family.created_by != user.id:
        raise Forbidden("Only the family leader can create tasks")
    if not _is_member(db, family.id, assigned_to):
        raise ValidationError("Assigned user is not a member of this family")

    task = FamilyTask(
        family_id=family.id,
        created_by=user.id,
        assigned_to=assigned_to,
        title=title,
        description=clean_description(description),
        priority=priority or 1,
        status=STATUS_PENDING,
        week_start=current_week_start(),
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return _load_family_task(db, task.id)


def update_family_task(db: Session, user: User, task_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
    row = db.exec(
        select(FamilyTask, Family.created_by)
        .join(Family, Family.id == FamilyTask.family_id)
        .join(FamilyMember, FamilyMember.family_id == Family.id)
        .where(FamilyTask.id == task_id, FamilyMember.user_id == user.id)
    ).first()
    if row is None:
        raise NotFound("Task not found")

    task, leader_id = row
    if user.id not in (leader_id, task.assigned_to):
        raise Forbidden("You don't have permission to update this task")

    if "title" in fields:
        task.title = clean_title(fields["title"])
    if "description" in fields:
        task.description = clean_description(fields["description"])
    if fields.get("priority") is not None:
        task.priority = fields["priority"]
    if fields.get("assigned_to") is not None and fields["assigned_to"] != task.assigned_to:
        if not _is_member(db, task.family_id, fields["assigned_to"]):
            raise ValidationError("Assigned user is not a member of this family")
        task.assigned_to = fields["assigned_to"]
    if fields.get("status") is not None:
        apply_status(task, fields["status"])

    task.updated_at = utcnow()

    db.add(task)
    db.commit()
    return _load_family_task(db, task_id)


def delete_family_task(db: Session, user: User, task_id: int) -> None:
    task = db.exec(
        select(FamilyTask)
        .join(Family, Family.id == FamilyTask.family_id)
        .where(FamilyTask.id == task_id, Family.created_by == user.id)
    ).first()
    if task is None:
        raise NotFound("Task not found or you don't have permission to delete it")

    db.delete(task)
    db.commit()
