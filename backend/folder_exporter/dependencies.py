"""FastAPI dependencies."""
from fastapi import Depends, Header
from sqlalchemy.orm import Session

from folder_exporter.config import settings
from folder_exporter.database import get_db
from folder_exporter.services import build_export_service
from folder_exporter.services.export_service import ExportService
from folder_exporter.services.folder_tree import FolderTree, SqlFolderTree


def get_export_service(db: Session = Depends(get_db)) -> ExportService:
    """Export service wired to the Celery work queue."""
    return build_export_service(db, settings)


def get_folder_tree(db: Session = Depends(get_db)) -> FolderTree:
    return SqlFolderTree(db)


async def get_current_user_id(x_user_id: int = Header(default=0)) -> int:
    """Requesting user as forwarded by the authenticating proxy.

    Authentication itself happens in front of this service.
    """
    return x_user_id
