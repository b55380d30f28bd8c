"""Folder listing for export pickers."""
from fastapi import APIRouter, Depends

from folder_exporter.dependencies import get_folder_tree
from folder_exporter.schemas.export import FolderResponse
from folder_exporter.services.folder_paths import FolderPathResolver
from folder_exporter.services.folder_tree import FolderTree


router = APIRouter(prefix="/folders", tags=["folders"])


@router.get("", response_model=list[FolderResponse])
def list_folders(tree: FolderTree = Depends(get_folder_tree)):
    """All folders with their full path and item count."""
    resolver = FolderPathResolver(tree)
    return [
        FolderResponse(
            id=folder.id,
            name=folder.name,
            parent_id=folder.parent_id or None,
            path=resolver.display_path(folder.id),
            item_count=folder.item_count,
        )
        for folder in tree.list_folders()
    ]
