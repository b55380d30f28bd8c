"""Export job model and its state machine."""
import enum
import uuid

from sqlalchemy import Column, Integer, String, Boolean, BigInteger, DateTime

from folder_exporter.database import Base
from folder_exporter.schemas.export import ExportOptions
from folder_exporter.utils.timestamps import utcnow


class ExportStatus(str, enum.Enum):
    """Export job status."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"


TERMINAL_STATUSES = (ExportStatus.COMPLETE, ExportStatus.FAILED)

# Allowed moves; terminal states have none.
_TRANSITIONS = {
    ExportStatus.PENDING: {ExportStatus.PROCESSING, ExportStatus.FAILED},
    ExportStatus.PROCESSING: {ExportStatus.COMPLETE, ExportStatus.FAILED},
    ExportStatus.COMPLETE: set(),
    ExportStatus.FAILED: set(),
}

GENERIC_FAILURE = "Export failed due to an internal error."


class JobStateError(Exception):
    """Illegal status transition or progress update."""
    pass


class ExportJob(Base):
    """One folder export request and its lifecycle record."""

    __tablename__ = "export_jobs"

    id = Column(String(36), primary_key=True)
    folder_id = Column(Integer, nullable=False, index=True)
    user_id = Column(Integer, default=0, index=True)

    # Options, frozen at creation
    include_children = Column(Boolean, default=True, nullable=False)
    include_manifest = Column(Boolean, default=True, nullable=False)

    # Progress tracking
    status = Column(String(20), default=ExportStatus.PENDING.value, nullable=False, index=True)
    progress = Column(Integer, default=0, nullable=False)  # items processed
    total = Column(Integer, default=0, nullable=False)     # items discovered

    # Result
    artifact_path = Column(String(1000), default="")
    artifact_name = Column(String(255), default="")
    artifact_size = Column(BigInteger, default=0)  # bytes

    # Celery task
    celery_task_id = Column(String(100))

    # Error handling
    error_code = Column(String(50), default="")
    error = Column(String(1000), default="")

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    started_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))

    def __init__(self, **kwargs):
        kwargs.setdefault("id", str(uuid.uuid4()))
        kwargs.setdefault("status", ExportStatus.PENDING.value)
        kwargs.setdefault("progress", 0)
        kwargs.setdefault("total", 0)
        kwargs.setdefault("artifact_path", "")
        kwargs.setdefault("artifact_name", "")
        kwargs.setdefault("artifact_size", 0)
        kwargs.setdefault("error_code", "")
        kwargs.setdefault("error", "")
        kwargs.setdefault("created_at", utcnow())
        super().__init__(**kwargs)

    @property
    def options(self) -> ExportOptions:
        return ExportOptions(
            include_children=bool(self.include_children),
            include_manifest=bool(self.include_manifest),
        )

    @property
    def current_status(self) -> ExportStatus:
        """Status as enum. Raises ValueError for unknown stored values."""
        return ExportStatus(self.status)

    @property
    def is_terminal(self) -> bool:
        return self.status in (s.value for s in TERMINAL_STATUSES)

    @property
    def is_in_flight(self) -> bool:
        return self.status in (ExportStatus.PENDING.value, ExportStatus.PROCESSING.value)

    def _transition(self, new_status: ExportStatus):
        current = self.current_status
        if new_status not in _TRANSITIONS[current]:
            raise JobStateError(
                f"Export {self.id}: cannot move from {current.value} to {new_status.value}"
            )
        self.status = new_status.value

    def mark_processing(self):
        self._transition(ExportStatus.PROCESSING)
        self.started_at = utcnow()

    def set_total(self, total: int):
        if self.status != ExportStatus.PROCESSING.value:
            raise JobStateError(f"Export {self.id}: total can only be set while processing")
        if total < 0 or total < self.progress:
            raise JobStateError(f"Export {self.id}: invalid total {total}")
        self.total = total

    def record_progress(self, processed: int):
        """Advance the processed counter. Never moves backwards or past total."""
        if self.status != ExportStatus.PROCESSING.value:
            raise JobStateError(f"Export {self.id}: progress on a {self.status} job")
        if processed < self.progress:
            raise JobStateError(
                f"Export {self.id}: progress may not decrease ({self.progress} -> {processed})"
            )
        if processed > self.total:
            raise JobStateError(
                f"Export {self.id}: progress {processed} exceeds total {self.total}"
            )
        self.progress = processed

    def mark_complete(self, artifact_path: str, artifact_name: str, artifact_size: int):
        """Record the finished artifact. Call only after the archive is closed."""
        if not artifact_path:
            raise JobStateError(f"Export {self.id}: completion requires an artifact path")
        self._transition(ExportStatus.COMPLETE)
        self.artifact_path = str(artifact_path)
        self.artifact_name = artifact_name
        self.artifact_size = artifact_size
        self.progress = self.total
        self.error_code = ""
        self.error = ""
        self.completed_at = utcnow()

    def mark_failed(self, error_code: str, error: str = GENERIC_FAILURE):
        self._transition(ExportStatus.FAILED)
        self.error_code = error_code or "internal_error"
        self.error = error or GENERIC_FAILURE
        self.artifact_path = ""
        self.artifact_size = 0
        self.completed_at = utcnow()

    def __repr__(self):
        return f"<ExportJob {self.id} ({self.status})>"
