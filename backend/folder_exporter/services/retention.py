"""Expiry and cleanup of export archives and their job records."""
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from folder_exporter.models.export_job import ExportJob
from folder_exporter.utils.paths import remove_export_directory
from folder_exporter.utils.timestamps import as_utc, utcnow

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = timedelta(hours=24)


class RetentionManager:
    """Removes old exports.

    Only finished (complete/failed) jobs are touched by the expiry sweep,
    so it is safe to run while other exports are in flight. Records that
    cannot be read are logged and skipped.
    """

    def __init__(self, db: Session, export_dir: Path, retention: timedelta = DEFAULT_RETENTION):
        self.db = db
        self.export_dir = Path(export_dir)
        self.retention = retention

    def cleanup_expired(self, now: Optional[datetime] = None) -> int:
        """Delete finished exports older than the retention window.

        Returns the number of exports removed.
        """
        now = as_utc(now) if now else utcnow()
        cleaned = 0

        for job_id in self._job_ids():
            try:
                export = self.db.get(ExportJob, job_id)
                if export is None or not export.is_terminal:
                    continue

                created = as_utc(export.created_at)
                if created is None:
                    logger.warning(f"Export {job_id} has no creation time, skipping")
                    continue

                if now - created < self.retention:
                    continue

                self._remove(export)
                cleaned += 1
            except (OSError, ValueError, SQLAlchemyError) as e:
                logger.warning(f"Skipping export {job_id} during cleanup: {e}")
                self.db.rollback()

        if cleaned:
            logger.info(f"Cleaned up {cleaned} expired export(s)")
        return cleaned

    def delete_all(self, force: bool = False) -> int:
        """Delete every export and then the export directory if it is empty.

        Exports still pending or processing are kept unless force is set:
        a live record belongs to the worker running it. force=True gives
        the unconditional sweep, e.g. for jobs left in processing by a
        crashed worker.
        """
        deleted = 0

        for job_id in self._job_ids():
            try:
                export = self.db.get(ExportJob, job_id)
                if export is None:
                    continue
                if export.is_in_flight and not force:
                    logger.info(f"Export {job_id} is {export.status}, keeping it")
                    continue

                self._remove(export)
                deleted += 1
            except (OSError, ValueError, SQLAlchemyError) as e:
                logger.warning(f"Skipping export {job_id} during delete: {e}")
                self.db.rollback()

        remove_export_directory(self.export_dir)

        logger.info(f"Deleted {deleted} export(s)")
        return deleted

    def _job_ids(self) -> List[str]:
        return [row[0] for row in self.db.query(ExportJob.id).all()]

    def _remove(self, export: ExportJob):
        if export.artifact_path:
            # Already-missing archives count as cleaned
            Path(export.artifact_path).unlink(missing_ok=True)
        self.db.delete(export)
        self.db.commit()
