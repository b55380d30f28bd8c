"""Pydantic schemas for API request/response validation."""
from folder_exporter.schemas.export import (
    ExportOptions,
    ExportCreate,
    ExportResponse,
    ExportDeleteResponse,
    FolderResponse,
)

__all__ = [
    "ExportOptions",
    "ExportCreate",
    "ExportResponse",
    "ExportDeleteResponse",
    "FolderResponse",
]
