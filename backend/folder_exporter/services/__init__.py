"""Business logic services.

Entry points (API dependencies, Celery tasks, CLI commands) build the
services they need with the factories below; nothing here reads the
global settings on its own.
"""
from datetime import timedelta
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import Session

from folder_exporter.config import Settings
from folder_exporter.services.archive import ArchiveWriter
from folder_exporter.services.export_pipeline import ExportPipeline, ExportResult
from folder_exporter.services.export_service import ExportService
from folder_exporter.services.folder_paths import FolderPathResolver
from folder_exporter.services.folder_tree import FolderTree, SqlFolderTree
from folder_exporter.services.manifest import ManifestBuilder
from folder_exporter.services.retention import RetentionManager
from folder_exporter.services.work_queue import CeleryWorkQueue, InlineWorkQueue, WorkQueue


def build_export_pipeline(db: Session, settings: Settings, tree: Optional[FolderTree] = None) -> ExportPipeline:
    return ExportPipeline(
        db,
        tree or SqlFolderTree(db),
        ManifestBuilder(settings.manifest_columns),
        Path(settings.export_dir),
        progress_interval=settings.progress_flush_interval,
    )


def build_export_service(
    db: Session,
    settings: Settings,
    queue: Optional[WorkQueue] = None,
    tree: Optional[FolderTree] = None,
) -> ExportService:
    return ExportService(
        db,
        tree or SqlFolderTree(db),
        queue or CeleryWorkQueue(),
        recent_limit=settings.recent_exports_limit,
    )


def build_retention_manager(db: Session, settings: Settings) -> RetentionManager:
    return RetentionManager(
        db,
        Path(settings.export_dir),
        retention=timedelta(hours=settings.export_retention_hours),
    )


__all__ = [
    "ArchiveWriter",
    "ExportPipeline",
    "ExportResult",
    "ExportService",
    "FolderPathResolver",
    "FolderTree",
    "SqlFolderTree",
    "ManifestBuilder",
    "RetentionManager",
    "WorkQueue",
    "CeleryWorkQueue",
    "InlineWorkQueue",
    "build_export_pipeline",
    "build_export_service",
    "build_retention_manager",
]
