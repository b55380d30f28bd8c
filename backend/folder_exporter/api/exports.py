"""Export API endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse

from folder_exporter.dependencies import get_current_user_id, get_export_service
from folder_exporter.schemas.export import ExportCreate, ExportDeleteResponse, ExportResponse
from folder_exporter.services.export_service import (
    ExportGoneError,
    ExportInProgressError,
    ExportNotFoundError,
    ExportNotReadyError,
    ExportService,
    InvalidFolderError,
    MAX_LIST_LIMIT,
)


router = APIRouter(prefix="/exports", tags=["exports"])


@router.post("", response_model=ExportResponse, status_code=201)
async def create_export(
    data: ExportCreate,
    service: ExportService = Depends(get_export_service),
    user_id: int = Depends(get_current_user_id),
):
    """Start a new export job for a folder."""
    try:
        return service.create_export(data.folder_id, data.to_options(), user_id=user_id)
    except InvalidFolderError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.get("", response_model=list[ExportResponse])
async def list_exports(
    limit: Optional[int] = Query(None, ge=1, le=MAX_LIST_LIMIT),
    user_id: Optional[int] = Query(None),
    service: ExportService = Depends(get_export_service),
):
    """List recent exports, newest first."""
    return service.list_exports(limit=limit, user_id=user_id)


@router.get("/{export_id}", response_model=ExportResponse)
async def get_export(
    export_id: str,
    service: ExportService = Depends(get_export_service),
):
    """Get export status and progress."""
    try:
        return service.get_export(export_id)
    except ExportNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.delete("/{export_id}", response_model=ExportDeleteResponse)
async def delete_export(
    export_id: str,
    service: ExportService = Depends(get_export_service),
):
    """Delete an export and its archive. Deleting twice is harmless."""
    try:
        deleted = service.delete_export(export_id)
    except ExportInProgressError as e:
        raise HTTPException(status_code=409, detail=e.message)

    return {"deleted": deleted}


@router.get("/{export_id}/download")
async def download_export(
    export_id: str,
    service: ExportService = Depends(get_export_service),
):
    """Download the finished zip archive."""
    try:
        export = service.get_download(export_id)
    except ExportNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except ExportNotReadyError as e:
        raise HTTPException(status_code=409, detail=e.message)
    except ExportGoneError as e:
        raise HTTPException(status_code=410, detail=e.message)

    return FileResponse(
        export.artifact_path,
        media_type="application/zip",
        filename=export.artifact_name or "export.zip",
    )
