# app/routers/health.py
"""
System health check endpoint.
Returns status of backend + database.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from app.database import get_db
from app.utils.time_utils import utc_now

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    """
    Returns:
    - Backend status
    - Database connectivity
    """
    result = {
        "status": "ok",
        "timestamp": utc_now().isoformat(),
        "backend": "ok",
        "database": "unknown",
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
    except Exception as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    return result
