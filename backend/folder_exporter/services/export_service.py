"""Export job submission and lookup."""
import logging
from pathlib import Path
from typing import List, Optional

from sqlalchemy.orm import Session

from folder_exporter.models.export_job import ExportJob, ExportStatus
from folder_exporter.schemas.export import ExportOptions
from folder_exporter.services.folder_tree import FolderTree
from folder_exporter.services.work_queue import WorkQueue

logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 100


class ExportError(Exception):
    """Export operation failed."""
    code = "export_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidFolderError(ExportError):
    code = "invalid_folder"


class NoItemsFoundError(ExportError):
    code = "no_items_found"


class ExportNotFoundError(ExportError):
    code = "not_found"


class ExportNotReadyError(ExportError):
    code = "not_ready"


class ExportGoneError(ExportError):
    code = "file_missing"


class ExportInProgressError(ExportError):
    code = "in_progress"


class ExportService:
    """Creates export jobs and answers questions about existing ones."""

    def __init__(
        self,
        db: Session,
        tree: FolderTree,
        queue: WorkQueue,
        recent_limit: int = 20,
    ):
        self.db = db
        self.tree = tree
        self.queue = queue
        self.recent_limit = recent_limit

    def create_export(
        self,
        folder_id: int,
        options: Optional[ExportOptions] = None,
        user_id: int = 0,
    ) -> ExportJob:
        """Create a pending export job and hand it to the work queue."""
        options = options or ExportOptions()

        if self.tree.get_folder(folder_id) is None:
            raise InvalidFolderError("The specified folder does not exist.")

        export = ExportJob(
            folder_id=folder_id,
            user_id=user_id,
            include_children=options.include_children,
            include_manifest=options.include_manifest,
        )
        self.db.add(export)
        self.db.commit()
        self.db.refresh(export)

        job_id = export.id
        logger.info(f"Export {job_id} submitted for folder {folder_id} by user {user_id}")

        try:
            task_id = self.queue.enqueue(job_id, folder_id, options)
        except Exception:
            logger.exception(f"Could not enqueue export {job_id}")
            self.db.rollback()
            export = self.db.get(ExportJob, job_id)
            if export is not None and not export.is_terminal:
                export.mark_failed("enqueue_failed", "Could not schedule the export.")
                self.db.commit()
            return export

        export = self.db.get(ExportJob, job_id)
        if task_id and export is not None:
            export.celery_task_id = task_id
            self.db.commit()
        self.db.refresh(export)

        return export

    def get_export(self, job_id: str) -> ExportJob:
        export = self.db.get(ExportJob, job_id)
        if export is None:
            raise ExportNotFoundError("Export not found.")
        return export

    def list_exports(self, limit: Optional[int] = None, user_id: Optional[int] = None) -> List[ExportJob]:
        """Most recent exports, newest first."""
        limit = min(max(limit or self.recent_limit, 1), MAX_LIST_LIMIT)

        query = self.db.query(ExportJob)
        if user_id is not None:
            query = query.filter(ExportJob.user_id == user_id)

        return query.order_by(ExportJob.created_at.desc()).limit(limit).all()

    def delete_export(self, job_id: str) -> bool:
        """Delete a finished export and its archive.

        Returns False if there was nothing to delete.
        """
        export = self.db.get(ExportJob, job_id)
        if export is None:
            return False

        if export.is_in_flight:
            raise ExportInProgressError("Export is still running.")

        if export.artifact_path:
            Path(export.artifact_path).unlink(missing_ok=True)

        self.db.delete(export)
        self.db.commit()
        logger.info(f"Export {job_id} deleted")

        return True

    def get_download(self, job_id: str) -> ExportJob:
        """The export if its archive can be served right now."""
        export = self.get_export(job_id)

        if export.status != ExportStatus.COMPLETE.value:
            raise ExportNotReadyError("Export is not yet complete.")

        if not export.artifact_path or not Path(export.artifact_path).is_file():
            raise ExportGoneError("Export file no longer exists. It may have expired.")

        return export
