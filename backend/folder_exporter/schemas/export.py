"""Export schemas."""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class ExportOptions(BaseModel):
    """Options for one export, immutable once the job exists.

    Serialized with model_dump() when crossing the task queue.
    """
    model_config = ConfigDict(frozen=True)

    include_children: bool = True
    include_manifest: bool = True


class ExportCreate(BaseModel):
    """Export creation request."""
    folder_id: int = Field(gt=0)
    include_children: bool = True
    include_manifest: bool = True

    def to_options(self) -> ExportOptions:
        return ExportOptions(
            include_children=self.include_children,
            include_manifest=self.include_manifest,
        )


class ExportResponse(BaseModel):
    """Export job snapshot. The server-side artifact path is never exposed."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    folder_id: int
    user_id: int
    include_children: bool
    include_manifest: bool
    status: str
    progress: int
    total: int
    artifact_name: str = ""
    artifact_size: int = 0
    error_code: str = ""
    error: str = ""
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class ExportDeleteResponse(BaseModel):
    """Result of a delete request."""
    deleted: bool


class FolderResponse(BaseModel):
    """Folder as shown in pickers and the CLI."""
    id: int
    name: str
    parent_id: Optional[int] = None
    path: str
    item_count: int
