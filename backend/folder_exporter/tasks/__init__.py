"""Celery background tasks."""
from folder_exporter.tasks.exports import run_export_task
from folder_exporter.tasks.maintenance import cleanup_expired_exports

__all__ = [
    "run_export_task",
    "cleanup_expired_exports",
]
