"""Folder Exporter - zip archives of media library folders."""
__version__ = "1.0.0"
