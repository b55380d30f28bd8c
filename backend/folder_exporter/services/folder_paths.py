"""Folder id -> archive directory mapping."""
from typing import Callable, Dict, Iterable, List

from folder_exporter.services.folder_tree import FolderTree
from folder_exporter.utils.normalize import sanitize_file_name


class FolderPathResolver:
    """Builds archive-relative directory paths from the ancestor chain.

    A folder's path is its parent's path joined with its own sanitized
    name; root folders map to a single segment. Folders that no longer
    exist are left out of the map, so their items land at the archive root.
    """

    def __init__(self, tree: FolderTree):
        self.tree = tree

    def resolve_paths(self, folder_ids: Iterable[int]) -> Dict[int, str]:
        paths: Dict[int, str] = {}
        for folder_id in folder_ids:
            if folder_id in paths:
                continue
            segments = self._segments(folder_id, sanitize_file_name)
            if segments:
                paths[folder_id] = "/".join(segments)
        return paths

    def display_path(self, folder_id: int) -> str:
        """Human readable path using the raw folder names."""
        return "/".join(self._segments(folder_id, lambda name: name or ""))

    def _segments(self, folder_id: int, transform: Callable[[str], str]) -> List[str]:
        folder = self.tree.get_folder(folder_id)
        if folder is None:
            return []

        segments = []
        # Ancestors come nearest-first; paths read root-first.
        for ancestor_id in reversed(self.tree.get_ancestors(folder_id)):
            ancestor = self.tree.get_folder(ancestor_id)
            if ancestor is not None:
                segments.append(transform(ancestor.name))
        segments.append(transform(folder.name))
        return segments
