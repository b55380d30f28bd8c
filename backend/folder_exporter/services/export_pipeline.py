"""Export pipeline - turns a folder into a zip archive."""
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from folder_exporter.models.export_job import ExportJob, ExportStatus, GENERIC_FAILURE
from folder_exporter.models.folder import Folder
from folder_exporter.models.media_item import MediaItem
from folder_exporter.schemas.export import ExportOptions
from folder_exporter.services.archive import (
    ArchiveError,
    ArchiveExistsError,
    ArchiveWriter,
    CreateFailedError,
    SourceMissingError,
)
from folder_exporter.services.export_service import (
    ExportError,
    InvalidFolderError,
    NoItemsFoundError,
)
from folder_exporter.services.folder_paths import FolderPathResolver
from folder_exporter.services.folder_tree import FolderTree
from folder_exporter.services.manifest import MANIFEST_NAME, ManifestBuilder
from folder_exporter.utils.normalize import sanitize_file_name
from folder_exporter.utils.paths import ensure_export_directory
from folder_exporter.utils.timestamps import utcnow

logger = logging.getLogger(__name__)

# Receives (processed, total) after every item.
ProgressCallback = Callable[[int, int], None]

MAX_NAME_ATTEMPTS = 1000


@dataclass
class ExportResult:
    """Outcome of a synchronous export."""
    path: Path
    total: int
    archived: int
    size: int

    @property
    def skipped(self) -> int:
        return self.total - self.archived


def artifact_base_name(folder_name: str, when: Optional[datetime] = None) -> str:
    """'<sanitized folder name>-<YYYY-mm-dd-HHMMSS>' without extension."""
    when = when or utcnow()
    return f"{sanitize_file_name(folder_name, fallback='export')}-{when:%Y-%m-%d-%H%M%S}"


def unique_entry_name(writer: ArchiveWriter, directory: Optional[str], filename: str) -> str:
    """First free archive path for filename inside directory.

    photo.jpg, photo-1.jpg, photo-2.jpg, ... in insertion order.
    """
    prefix = f"{directory}/" if directory else ""
    candidate = prefix + filename
    if not writer.exists(candidate):
        return candidate

    name = PurePosixPath(filename)
    stem, suffix = name.stem, name.suffix
    counter = 1
    while True:
        candidate = f"{prefix}{stem}-{counter}{suffix}"
        if not writer.exists(candidate):
            return candidate
        counter += 1


class ExportPipeline:
    """Discovers the items of a folder and streams them into an archive.

    run() drives a persisted ExportJob to a terminal state;
    export_folder_sync() does the same work for callers that want the
    archive directly.
    """

    def __init__(
        self,
        db: Session,
        tree: FolderTree,
        manifest_builder: ManifestBuilder,
        export_dir: Path,
        progress_interval: int = 10,
    ):
        self.db = db
        self.tree = tree
        self.manifest_builder = manifest_builder
        self.export_dir = Path(export_dir)
        self.progress_interval = max(progress_interval, 1)
        self.resolver = FolderPathResolver(tree)

    def run(
        self,
        job_id: str,
        folder_id: Optional[int] = None,
        options: Optional[ExportOptions] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Optional[ExportJob]:
        """Execute a pending export job. Never raises for job-level failures.

        The folder and options stored on the job are authoritative; the
        values carried by the queue message are only checked against them.
        """
        export = self.db.get(ExportJob, job_id)
        if export is None:
            logger.warning(f"Export {job_id} not found, nothing to run")
            return None

        if export.status != ExportStatus.PENDING.value:
            logger.warning(f"Export {job_id} is {export.status}, not running it again")
            return export

        if folder_id is not None and folder_id != export.folder_id:
            logger.warning(
                f"Export {job_id}: queued for folder {folder_id}, record says {export.folder_id}"
            )
        if options is not None and options != export.options:
            logger.warning(f"Export {job_id}: queued options differ from the record, using the record")

        folder_id = export.folder_id
        options = export.options
        artifact: Optional[Path] = None

        try:
            export.mark_processing()
            self.db.commit()
            logger.info(f"Export {job_id} processing folder {folder_id}")

            folder, folder_ids, items = self.discover(folder_id, options.include_children)
            base_name = artifact_base_name(folder.name)
            total = len(items)

            export.set_total(total)
            self.db.commit()
            logger.info(f"Export {job_id}: {total} item(s) in {len(folder_ids)} folder(s)")

            if total == 0:
                raise NoItemsFoundError("No media files found in this folder.")

            writer = self._open_unique_archive(base_name)

            def on_item(processed: int):
                export.record_progress(processed)
                if processed % self.progress_interval == 0:
                    self.db.commit()
                if progress_callback:
                    progress_callback(processed, total)

            archived = self.assemble(writer, items, folder_ids, options.include_manifest, on_item)
            # Ours only once closed; a failed close may have found another file there
            artifact = writer.destination

            size = artifact.stat().st_size
            export.mark_complete(str(artifact), artifact.name, size)
            self.db.commit()
            logger.info(
                f"Export {job_id} complete: {archived}/{total} file(s) archived, {size} bytes"
            )

        except (ExportError, ArchiveError) as e:
            logger.warning(f"Export {job_id} failed: {e.message}")
            self._fail(job_id, e.code, e.message, artifact)

        except Exception:
            logger.exception(f"Export {job_id} failed unexpectedly")
            self._fail(job_id, "internal_error", GENERIC_FAILURE, artifact)

        return self.db.get(ExportJob, job_id)

    def export_folder_sync(
        self,
        folder_id: int,
        output_path: Path,
        include_children: bool = True,
        include_manifest: bool = True,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ExportResult:
        """Build an archive at output_path without creating a job record.

        Raises InvalidFolderError, NoItemsFoundError or ArchiveError.
        """
        _, folder_ids, items = self.discover(folder_id, include_children)
        total = len(items)
        if total == 0:
            raise NoItemsFoundError("No media files found in this folder.")

        writer = ArchiveWriter(output_path).open()

        def on_item(processed: int):
            if on_progress:
                on_progress(processed, total)

        archived = self.assemble(writer, items, folder_ids, include_manifest, on_item)
        output_path = Path(output_path)

        return ExportResult(
            path=output_path,
            total=total,
            archived=archived,
            size=output_path.stat().st_size,
        )

    def discover(self, folder_id: int, include_children: bool) -> Tuple[Folder, List[int], List[MediaItem]]:
        """The folder, the folder ids in scope and their items by ascending id.

        Items are detached from the session: progress commits must not
        expire them, and rows deleted by the host mid-run stay exportable.
        """
        folder = self.tree.get_folder(folder_id)
        if folder is None:
            raise InvalidFolderError("Folder not found.")

        folder_ids = self.tree.collect_folder_ids(folder_id, include_children)
        items = sorted(self.tree.get_items(folder_ids), key=lambda item: item.id)
        for item in items:
            self.db.expunge(item)
        return folder, folder_ids, items

    def assemble(
        self,
        writer: ArchiveWriter,
        items: List[MediaItem],
        folder_ids: Iterable[int],
        include_manifest: bool,
        on_item: Callable[[int], None],
    ) -> int:
        """Place every item in the open writer and close it.

        Returns the number of files actually archived. The writer is
        aborted (partial file removed) if anything goes wrong.
        """
        with writer:
            folder_paths = self.resolver.resolve_paths(folder_ids)
            if include_manifest:
                writer.reserve(MANIFEST_NAME)

            archived = 0
            for processed, item in enumerate(items, start=1):
                if self._place_item(writer, item, folder_paths):
                    archived += 1
                on_item(processed)

            if include_manifest:
                writer.add_bytes(MANIFEST_NAME, self.manifest_builder.build(items, folder_paths))

        return archived

    def _place_item(self, writer: ArchiveWriter, item: MediaItem, folder_paths: Dict[int, str]) -> bool:
        source = Path(item.source_path) if item.source_path else None
        if source is None or not source.is_file():
            logger.info(f"Skipping item {item.id}: source file missing")
            return False

        directory = folder_paths.get(item.folder_id) if item.folder_id else None
        archive_path = unique_entry_name(writer, directory, source.name)

        try:
            writer.add_file(source, archive_path)
        except SourceMissingError:
            logger.info(f"Skipping item {item.id}: source file vanished")
            return False

        return True

    def _open_unique_archive(self, base_name: str) -> ArchiveWriter:
        try:
            export_dir = ensure_export_directory(self.export_dir)
        except OSError as e:
            logger.error(f"Could not create export directory {self.export_dir}: {e}")
            raise CreateFailedError("Could not create export directory.") from e

        for attempt in range(MAX_NAME_ATTEMPTS):
            name = f"{base_name}.zip" if attempt == 0 else f"{base_name}-{attempt}.zip"
            try:
                return ArchiveWriter(export_dir / name).open(exclusive=True)
            except ArchiveExistsError:
                continue

        raise CreateFailedError("Could not create ZIP file.")

    def _fail(self, job_id: str, code: str, message: str, artifact: Optional[Path]):
        """Record a terminal failure, discarding uncommitted job changes."""
        try:
            self.db.rollback()
            export = self.db.get(ExportJob, job_id)
            if export is None or export.is_terminal:
                return
            export.mark_failed(code, message)
            self.db.commit()
            if artifact is not None:
                artifact.unlink(missing_ok=True)
        except Exception:
            logger.exception(f"Could not record failure for export {job_id}")
            self.db.rollback()
