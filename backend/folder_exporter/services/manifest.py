"""CSV manifest of exported media items."""
import csv
import io
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from folder_exporter.models.media_item import MediaItem

MANIFEST_NAME = "manifest.csv"

COLUMNS = (
    "ID",
    "filename",
    "url",
    "alt_text",
    "caption",
    "description",
    "mime_type",
    "file_size_bytes",
    "width",
    "height",
    "date_uploaded",
    "folder_path",
)


class ManifestBuilder:
    """Builds the manifest.csv bytes placed at the archive root.

    Output is UTF-8 with a byte order mark so spreadsheet applications
    detect the encoding.
    """

    def __init__(self, columns: Optional[Sequence[str]] = None):
        columns = tuple(columns) if columns else COLUMNS
        unknown = [c for c in columns if c not in COLUMNS]
        if unknown:
            raise ValueError(f"Unknown manifest column(s): {', '.join(unknown)}")
        self.columns = columns

    def build(self, items: Iterable[MediaItem], folder_paths: Dict[int, str]) -> bytes:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(self.columns)
        for item in items:
            writer.writerow(self.build_row(item, folder_paths))
        return buffer.getvalue().encode("utf-8-sig")

    def build_row(self, item: MediaItem, folder_paths: Dict[int, str]) -> List:
        values = self._values(item, folder_paths)
        return [values[column] for column in self.columns]

    def _values(self, item: MediaItem, folder_paths: Dict[int, str]) -> Dict:
        source = Path(item.source_path) if item.source_path else None

        size = item.size_bytes
        if size is None:
            size = source.stat().st_size if source and source.is_file() else 0

        uploaded = item.created_at.strftime("%Y-%m-%d %H:%M:%S") if item.created_at else ""

        return {
            "ID": item.id,
            "filename": source.name if source else "",
            "url": item.public_url or "",
            "alt_text": item.alt_text or "",
            "caption": item.caption or "",
            "description": item.description or "",
            "mime_type": item.mime_type or "",
            "file_size_bytes": size,
            "width": item.width or 0,
            "height": item.height or 0,
            "date_uploaded": uploaded,
            "folder_path": folder_paths.get(item.folder_id, "") if item.folder_id else "",
        }
