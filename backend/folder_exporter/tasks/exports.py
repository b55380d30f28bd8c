"""Export Celery tasks."""
import logging

from folder_exporter.worker import celery_app
from folder_exporter.config import settings
from folder_exporter.database import SessionLocal
from folder_exporter.schemas.export import ExportOptions
from folder_exporter.services import build_export_pipeline

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, queue='exports')
def run_export_task(self, job_id: str, folder_id: int, options: dict):
    """Run export job in background.

    Args:
        job_id: Export job ID
        folder_id: Folder to export
        options: Serialized ExportOptions
    """
    db = SessionLocal()
    try:
        pipeline = build_export_pipeline(db, settings)
        export = pipeline.run(job_id, folder_id, ExportOptions.model_validate(options))

        if export is None:
            return {"status": "missing", "export_id": job_id}
        return {"status": export.status, "export_id": job_id}

    finally:
        db.close()
