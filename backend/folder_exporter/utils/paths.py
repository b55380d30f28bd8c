"""Path manipulation utilities."""
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# Placeholder files that keep the export directory from being browsed when
# it sits under a web root.
PROTECTION_FILES = {
    ".htaccess": "Deny from all\n",
    "index.html": "",
}


def resolve_path(path: str) -> Path:
    """Resolve a path, expanding user and making absolute."""
    return Path(path).expanduser().resolve()


def ensure_directory(path: Path) -> Path:
    """Ensure a directory exists, creating if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def ensure_export_directory(path: Path) -> Path:
    """Create the shared export directory with its protection files."""
    path = ensure_directory(Path(path))
    for name, content in PROTECTION_FILES.items():
        marker = path / name
        if not marker.exists():
            marker.write_text(content)
    return path


def remove_export_directory(path: Path) -> bool:
    """Remove the export directory if nothing but protection files remain.

    Returns True if the directory is gone afterwards.
    """
    path = Path(path)
    if not path.is_dir():
        return True

    leftovers = [p for p in path.iterdir() if p.name not in PROTECTION_FILES]
    if leftovers:
        logger.info(f"Keeping export directory {path}: {len(leftovers)} file(s) remain")
        return False

    for name in PROTECTION_FILES:
        (path / name).unlink(missing_ok=True)
    try:
        path.rmdir()
    except OSError as e:
        logger.warning(f"Could not remove export directory {path}: {e}")
        return False
    return True
