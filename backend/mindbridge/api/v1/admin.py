from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mindbridge.db.session import get_db
from mindbridge.core.dependencies import require_admin
from mindbridge.models.user import User
from mindbridge.schemas.admin import AnalyticsOut, DashboardStats
from mindbridge.schemas.user import UserOut
from mindbridge.services.analytics_service import dashboard_stats, expert_session_analytics

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/stats", response_model=DashboardStats)
def stats(
    db: Session = Depends(get_db),
    admin=Depends(require_admin),
):
    return dashboard_stats(db)


@router.get("/analytics", response_model=AnalyticsOut)
def analytics(
    db: Session = Depends(get_db),
    admin=Depends(require_admin),
):
    return expert_session_analytics(db)


@router.get("/users", response_model=list[UserOut])
def list_users(
    db: Session = Depends(get_db),
    admin=Depends(require_admin),
):
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()
