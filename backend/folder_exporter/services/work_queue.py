"""Ways of handing an export job to a worker."""
from abc import ABC, abstractmethod
from typing import Optional, TYPE_CHECKING

from folder_exporter.schemas.export import ExportOptions

if TYPE_CHECKING:
    from folder_exporter.services.export_pipeline import ExportPipeline


class WorkQueue(ABC):
    """Hands an export job to whatever executes it."""

    @abstractmethod
    def enqueue(self, job_id: str, folder_id: int, options: ExportOptions) -> Optional[str]:
        """Schedule the job. Returns the backend's task id, if it has one."""


class CeleryWorkQueue(WorkQueue):
    """Queues the job on the Celery 'exports' queue."""

    def enqueue(self, job_id: str, folder_id: int, options: ExportOptions) -> Optional[str]:
        from folder_exporter.tasks.exports import run_export_task

        task = run_export_task.delay(job_id, folder_id, options.model_dump())
        return task.id


class InlineWorkQueue(WorkQueue):
    """Runs the job in the calling process before returning.

    Used by tests and by deployments without a broker.
    """

    def __init__(self, pipeline: "ExportPipeline"):
        self.pipeline = pipeline

    def enqueue(self, job_id: str, folder_id: int, options: ExportOptions) -> Optional[str]:
        self.pipeline.run(job_id, folder_id, options)
        return None
