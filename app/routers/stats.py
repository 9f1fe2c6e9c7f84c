# app/routers/stats.py
"""Dashboard tiles: active count, today's check-ins / check-outs, revenue."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.vehicle_record import DashboardStatsOut
from app.services.lifecycle_service import VehicleLifecycleManager, get_lifecycle_manager
from app.utils.time_utils import local_date

router = APIRouter()


@router.get("/stats/dashboard", response_model=DashboardStatsOut, summary="Front-desk dashboard summary")
def get_dashboard_stats(db: Session = Depends(get_db),
                        manager: VehicleLifecycleManager = Depends(get_lifecycle_manager)):
    """'Today' is the local calendar day in settings.TIMEZONE."""
    since, until = manager.today_window()
    return DashboardStatsOut(
        date=str(local_date(manager.clock(), manager.tz_name)),
        active_count=len(manager.list_active(db)),
        checked_in_today=len(manager.list_checked_in(db, since, until)),
        checked_out_today=len(manager.list_completed(db, since, until)),
        today_revenue=manager.total_revenue(db, since, until),
        total_revenue=manager.total_revenue(db),
    )
