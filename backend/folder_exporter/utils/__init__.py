"""Utility functions."""
from folder_exporter.utils.normalize import sanitize_file_name, format_size
from folder_exporter.utils.paths import ensure_export_directory, remove_export_directory
from folder_exporter.utils.timestamps import utcnow, as_utc

__all__ = [
    "sanitize_file_name",
    "format_size",
    "ensure_export_directory",
    "remove_export_directory",
    "utcnow",
    "as_utc",
]
