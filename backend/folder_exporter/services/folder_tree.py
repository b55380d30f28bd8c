"""Read access to the folder hierarchy and its item membership."""
import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from folder_exporter.models.folder import Folder
from folder_exporter.models.media_item import MediaItem

logger = logging.getLogger(__name__)

# Upper bound on ancestor walks; real trees are nowhere near this deep.
MAX_DEPTH = 64


class FolderTree(ABC):
    """Folder taxonomy as seen by the exporter.

    Implementations supply node lookup, child edges and item membership;
    the walks built on top of them are bounded and cycle-safe.
    """

    @abstractmethod
    def get_folder(self, folder_id: int) -> Optional[Folder]:
        """Folder node by id, or None if it does not exist."""

    @abstractmethod
    def get_child_ids(self, folder_id: int) -> List[int]:
        """Ids of the direct children of a folder."""

    @abstractmethod
    def get_items(self, folder_ids: Iterable[int]) -> List[MediaItem]:
        """Items filed in any of the folders, ordered by ascending id."""

    @abstractmethod
    def list_folders(self) -> List[Folder]:
        """Every folder, ordered by name."""

    def get_ancestors(self, folder_id: int) -> List[int]:
        """Ancestor ids nearest-first (parent, grandparent, ... root)."""
        ancestors: List[int] = []
        seen = {folder_id}

        folder = self.get_folder(folder_id)
        parent_id = folder.parent_id if folder else None

        while parent_id and len(ancestors) < MAX_DEPTH:
            if parent_id in seen:
                logger.warning(f"Folder cycle at {parent_id} above folder {folder_id}, path truncated")
                break
            parent = self.get_folder(parent_id)
            if parent is None:
                break
            seen.add(parent_id)
            ancestors.append(parent_id)
            parent_id = parent.parent_id

        return ancestors

    def get_descendant_ids(self, folder_id: int) -> List[int]:
        """All folders below folder_id, breadth-first, excluding folder_id."""
        descendants: List[int] = []
        seen = {folder_id}
        queue = [folder_id]

        while queue:
            current = queue.pop(0)
            for child_id in self.get_child_ids(current):
                if child_id in seen:
                    continue
                seen.add(child_id)
                descendants.append(child_id)
                queue.append(child_id)

        return descendants

    def collect_folder_ids(self, folder_id: int, include_children: bool) -> List[int]:
        """The requested folder followed by its descendants if asked for."""
        folder_ids = [folder_id]
        if include_children:
            folder_ids.extend(self.get_descendant_ids(folder_id))
        return folder_ids


class SqlFolderTree(FolderTree):
    """FolderTree backed by the folders/media_items tables."""

    def __init__(self, db: Session):
        self.db = db

    def get_folder(self, folder_id: int) -> Optional[Folder]:
        if not folder_id:
            return None
        return self.db.get(Folder, folder_id)

    def get_child_ids(self, folder_id: int) -> List[int]:
        rows = (
            self.db.query(Folder.id)
            .filter(Folder.parent_id == folder_id)
            .order_by(Folder.id)
            .all()
        )
        return [row[0] for row in rows]

    def get_items(self, folder_ids: Iterable[int]) -> List[MediaItem]:
        folder_ids = list(folder_ids)
        if not folder_ids:
            return []
        return (
            self.db.query(MediaItem)
            .filter(MediaItem.folder_id.in_(folder_ids))
            .order_by(MediaItem.id)
            .all()
        )

    def list_folders(self) -> List[Folder]:
        return self.db.query(Folder).order_by(Folder.name, Folder.id).all()
