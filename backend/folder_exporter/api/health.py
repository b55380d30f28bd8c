"""Health check endpoints for monitoring and load balancers."""
from pathlib import Path
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
import redis

from folder_exporter.database import get_db
from folder_exporter.config import settings
from folder_exporter import __version__


router = APIRouter(tags=["health"])


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    """
    Health check endpoint for load balancers and monitoring.

    Returns status of the database, the task broker and the export directory.
    """
    status = {
        "status": "healthy",
        "version": __version__,
        "checks": {}
    }

    # Database check
    try:
        db.execute(text("SELECT 1"))
        status["checks"]["database"] = "ok"
    except Exception as e:
        status["checks"]["database"] = f"error: {str(e)}"
        status["status"] = "unhealthy"

    # Broker check
    try:
        r = redis.from_url(settings.redis_url)
        r.ping()
        status["checks"]["redis"] = "ok"
    except Exception as e:
        status["checks"]["redis"] = f"error: {str(e)}"
        status["status"] = "unhealthy"

    # Export directory is created on first export, so missing is only degraded
    export_path = Path(settings.export_dir)
    if export_path.exists() and export_path.is_dir():
        status["checks"]["export_dir"] = "ok"
    else:
        status["checks"]["export_dir"] = "not created"
        if status["status"] == "healthy":
            status["status"] = "degraded"

    return status


@router.get("/live")
def liveness_check():
    """
    Liveness check - is the process alive?
    """
    return {"alive": True, "version": __version__}
