from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Optional

from sqlalchemy import case, func, select
from sqlmodel import Session

from ..models import STATUS_COMPLETED, STATUS_PENDING, Task, User
from ..utils import current_week_start, utcnow

DEFAULT_TIMEFRAME = "month"
LOOKBACK_DAYS = {"week": 7, "month": 30, "year": 365}
WEEKS_SHOWN = 4


def _completed_count():
    return func.count(case((Task.status == STATUS_COMPLETED, 1)))


def _pending_count():
    return func.count(case((Task.status == STATUS_PENDING, 1)))


def _active(user: User):
    return (Task.user_id == user.id, Task.archived.is_(False))


def lookback_days(timeframe: str) -> int:
    return LOOKBACK_DAYS.get(timeframe, LOOKBACK_DAYS[DEFAULT_TIMEFRAME])


def stats(db: Session, user: User, today: Optional[date] = None) -> Dict[str, Any]:
    """Counts for the current week plus the most recent weeks that had tasks."""
    week_start = current_week_start(today)

    total, completed, pending = db.execute(
        select(func.count(Task.id), _completed_count(), _pending_count())
        .where(*_active(user), Task.week_start == week_start)
    ).one()

    weekly_rows = db.execute(
        select(Task.week_start, func.count(Task.id), _completed_count(), _pending_count())
        .where(*_active(user))
        .group_by(Task.week_start)
        .order_by(Task.week_start.desc())
        .limit(WEEKS_SHOWN)
    ).all()

    return {
        "currentWeek": {
            "total_tasks": total,
            "completed_tasks": completed,
            "pending_tasks": pending,
        },
        "weeklyData": [
            {
                "week_start": row_week,
                "total_tasks": row_total,
                "completed_tasks": row_completed,
                "pending_tasks": row_pending,
            }
            for row_week, row_total, row_completed, row_pending in weekly_rows
        ],
    }


def analytics(db: Session, user: User, timeframe: str = DEFAULT_TIMEFRAME, today: Optional[date] = None) -> Dict[str, Any]:
    """Daily completion trend and priority spread over a lookback window."""
    today = today or utcnow().date()
    since = datetime.combine(today - timedelta(days=lookback_days(timeframe)), time.min, tzinfo=timezone.utc)
    in_window = (*_active(user), Task.created_at >= since)

    day = func.date(Task.created_at)
    trend_rows = db.execute(
        select(day, func.count(Task.id), _completed_count())
        .where(*in_window)
        .group_by(day)
        .order_by(day.desc())
    ).all()

    priority_rows = db.execute(
        select(Task.priority, func.count(Task.id), _completed_count())
        .where(*in_window)
        .group_by(Task.priority)
        .order_by(Task.priority.desc())
    ).all()

    return {
        "trends": [
            {"date": str(row_day), "total_tasks": row_total, "completed_tasks": row_completed}
            for row_day, row_total, row_completed in trend_rows
        ],
        "priorityDistribution": [
            {"priority": row_priority, "count": row_count, "completed": row_completed}
            for row_priority, row_count, row_completed in priority_rows
        ],
        "timeframe": timeframe,
    }
