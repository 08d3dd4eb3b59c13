from fastapi import APIRouter, Depends
from sqlmodel import Session

from ..database import get_db
from ..models import User
from ..schemas.dashboard import Analytics, DashboardStats
from ..services import dashboard as dashboard_service
from .auth import get_current_user

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
def get_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return dashboard_service.stats(db, current_user)


@router.get("/analytics", response_model=Analytics)
def get_analytics(
    timeframe: str = dashboard_service.DEFAULT_TIMEFRAME,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Completion trend and priority distribution for week, month or year."""
    return dashboard_service.analytics(db, current_user, timeframe)
