"""Maintenance tasks for Celery."""
import logging
from celery import shared_task

from folder_exporter.config import settings
from folder_exporter.database import SessionLocal
from folder_exporter.services import build_retention_manager

logger = logging.getLogger(__name__)


@shared_task(name="folder_exporter.tasks.maintenance.cleanup_expired_exports")
def cleanup_expired_exports():
    """Remove finished exports older than the retention window."""
    db = SessionLocal()

    try:
        manager = build_retention_manager(db, settings)
        deleted = manager.cleanup_expired()

        logger.info(f"Cleaned up {deleted} expired export(s)")
        return {"deleted": deleted}

    except Exception as e:
        logger.error(f"Cleanup failed: {e}")
        db.rollback()
        return {"error": str(e)}

    finally:
        db.close()
