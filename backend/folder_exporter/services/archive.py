"""Zip archive writer used to assemble exports.

Entries are written to a `<name>.part` sibling and the file is moved into
place only after the central directory has been flushed, so a reader never
sees a truncated archive under the final name.
"""
import logging
import os
import zipfile
from pathlib import Path
from typing import Optional, Set, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ArchiveError(Exception):
    """Archive operation failed."""
    code = "archive_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class CreateFailedError(ArchiveError):
    code = "create_failed"


class ArchiveExistsError(CreateFailedError):
    """Exclusive open found the destination already taken."""
    code = "archive_exists"


class SourceMissingError(ArchiveError):
    code = "source_missing"


class FinalizeFailedError(ArchiveError):
    code = "finalize_failed"


class EntryExistsError(ArchiveError):
    """An entry name was reused; callers must check exists() first."""
    code = "entry_exists"


class ArchiveWriter:
    """Open -> add entries -> close, never overwriting an entry."""

    def __init__(self, destination: PathLike, compression: int = zipfile.ZIP_DEFLATED):
        self.destination = Path(destination)
        self.temp_path = self.destination.with_name(self.destination.name + ".part")
        self.compression = compression
        self._zip: Optional[zipfile.ZipFile] = None
        self._names: Set[str] = set()
        self._reserved: Set[str] = set()
        self._exclusive = False

    def open(self, exclusive: bool = False) -> "ArchiveWriter":
        """Create the container.

        With exclusive=True an existing destination (or an in-progress
        .part file from another writer) raises ArchiveExistsError, and
        close() will never replace a file under the final name.
        """
        try:
            self.destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Could not create archive directory {self.destination.parent}: {e}")
            raise CreateFailedError("Could not create ZIP file.") from e

        try:
            self._zip = zipfile.ZipFile(
                self.temp_path, "x" if exclusive else "w", self.compression
            )
        except FileExistsError:
            raise ArchiveExistsError(f"{self.destination.name} is being written")
        except OSError as e:
            logger.error(f"Could not create archive {self.temp_path}: {e}")
            raise CreateFailedError("Could not create ZIP file.") from e

        self._exclusive = exclusive

        # Checked once the .part is ours, so a writer that finished in the
        # meantime is always seen here.
        if exclusive and self.destination.exists():
            self.abort()
            raise ArchiveExistsError(f"{self.destination.name} already exists")

        return self

    @property
    def is_open(self) -> bool:
        return self._zip is not None

    def exists(self, archive_path: str) -> bool:
        return archive_path in self._names or archive_path in self._reserved

    def reserve(self, archive_path: str):
        """Claim a name up front for an entry that will be added later."""
        if self.exists(archive_path):
            raise EntryExistsError(f"Entry already exists: {archive_path}")
        self._reserved.add(archive_path)

    def add_file(self, source_path: PathLike, archive_path: str):
        self._claim(archive_path)
        source = Path(source_path)
        if not source.is_file():
            raise SourceMissingError(f"Source file missing: {source.name}")
        try:
            self._zip.write(source, archive_path)
        except FileNotFoundError:
            raise SourceMissingError(f"Source file missing: {source.name}")
        self._commit_name(archive_path)

    def add_bytes(self, archive_path: str, content: bytes):
        self._claim(archive_path)
        self._zip.writestr(archive_path, content)
        self._commit_name(archive_path)

    def close(self) -> Path:
        """Flush the container and move it to its final name."""
        if self._zip is None:
            raise FinalizeFailedError("Archive is not open.")

        zf, self._zip = self._zip, None
        try:
            zf.close()
            if self._exclusive:
                # link() fails instead of replacing an existing file
                os.link(self.temp_path, self.destination)
            else:
                os.replace(self.temp_path, self.destination)
        except FileExistsError:
            logger.error(f"Could not finalize archive {self.destination}: name already taken")
            self.temp_path.unlink(missing_ok=True)
            raise ArchiveExistsError(f"{self.destination.name} already exists")
        except OSError as e:
            logger.error(f"Could not finalize archive {self.destination}: {e}")
            self.temp_path.unlink(missing_ok=True)
            raise FinalizeFailedError("Could not finalize ZIP file.") from e

        if self._exclusive:
            try:
                self.temp_path.unlink()
            except OSError as e:
                logger.warning(f"Could not remove {self.temp_path}: {e}")

        return self.destination

    def abort(self):
        """Discard a partially written container."""
        if self._zip is not None:
            zf, self._zip = self._zip, None
            try:
                zf.close()
            except OSError as e:
                logger.warning(f"Error closing aborted archive {self.temp_path}: {e}")
        self.temp_path.unlink(missing_ok=True)

    def _claim(self, archive_path: str):
        if self._zip is None:
            raise ArchiveError("Archive is not open.")
        if archive_path in self._names:
            raise EntryExistsError(f"Entry already exists: {archive_path}")

    def _commit_name(self, archive_path: str):
        self._reserved.discard(archive_path)
        self._names.add(archive_path)

    def __enter__(self):
        if self._zip is None:
            self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.abort()
            return False
        if self._zip is not None:
            self.close()
        return False
