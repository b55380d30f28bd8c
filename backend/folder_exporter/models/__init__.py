"""SQLAlchemy models for Folder Exporter."""
from folder_exporter.models.folder import Folder
from folder_exporter.models.media_item import MediaItem
from folder_exporter.models.export_job import ExportJob, ExportStatus, JobStateError

__all__ = [
    "Folder",
    "MediaItem",
    "ExportJob",
    "ExportStatus",
    "JobStateError",
]
