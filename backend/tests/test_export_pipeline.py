"""Tests for the export pipeline."""
import re
import zipfile
from unittest.mock import patch

import pytest
from sqlalchemy import text

from folder_exporter.models.export_job import ExportJob, GENERIC_FAILURE
from folder_exporter.models.media_item import MediaItem
from folder_exporter.schemas.export import ExportOptions
from folder_exporter.services.export_pipeline import ExportPipeline, artifact_base_name
from folder_exporter.services.export_service import InvalidFolderError, NoItemsFoundError
from folder_exporter.services.manifest import ManifestBuilder


@pytest.fixture
def submit(db):
    """Persist a pending job the way the export service does."""
    def _submit(folder_id, include_children=True, include_manifest=True):
        job = ExportJob(
            folder_id=folder_id,
            include_children=include_children,
            include_manifest=include_manifest,
        )
        db.add(job)
        db.commit()
        return job.id
    return _submit


def entries(path):
    with zipfile.ZipFile(path) as zf:
        return zf.namelist()


class TestRunExport:
    """Driving a persisted job to a terminal state."""

    def test_flat_folder(self, pipeline, submit, vacation, export_dir):
        """Three photos, no subfolders: files under the folder name plus a manifest."""
        job_id = submit(vacation.id, include_children=False)

        job = pipeline.run(job_id)

        assert job.status == "complete"
        assert job.progress == job.total == 3
        assert job.error == ""
        assert job.artifact_size > 0
        names = entries(job.artifact_path)
        assert sorted(names) == ["Vacation/a.jpg", "Vacation/b.jpg", "Vacation/c.jpg", "manifest.csv"]
        assert job.artifact_path.startswith(str(export_dir))

    def test_manifest_lists_every_item(self, pipeline, submit, vacation):
        job = pipeline.run(submit(vacation.id))

        with zipfile.ZipFile(job.artifact_path) as zf:
            manifest = zf.read("manifest.csv").decode("utf-8-sig").splitlines()
        assert len(manifest) == 4
        assert manifest[0].startswith("ID,filename,url")

    def test_missing_sources_are_skipped(self, pipeline, submit, make_folder, make_item):
        """Items whose files are gone still complete the job."""
        folder = make_folder("Vacation")
        make_item(folder, "a.jpg", create_file=False)
        make_item(folder, "b.jpg", create_file=False)

        job = pipeline.run(submit(folder.id))

        assert job.status == "complete"
        assert job.progress == job.total == 2
        assert entries(job.artifact_path) == ["manifest.csv"]

    def test_missing_sources_without_manifest(self, pipeline, submit, make_folder, make_item):
        folder = make_folder("Vacation")
        make_item(folder, "a.jpg", create_file=False)

        job = pipeline.run(submit(folder.id, include_manifest=False))

        assert job.status == "complete"
        assert entries(job.artifact_path) == []

    def test_empty_folder_fails(self, pipeline, submit, make_folder, export_dir):
        folder = make_folder("Empty")

        job = pipeline.run(submit(folder.id))

        assert job.status == "failed"
        assert job.error_code == "no_items_found"
        assert job.error == "No media files found in this folder."
        assert job.artifact_path == ""
        assert not list(export_dir.glob("*.zip"))

    def test_duplicate_names_get_suffix(self, pipeline, submit, make_folder, make_item):
        folder = make_folder("Vacation")
        make_item(folder, "photo.jpg", content=b"first")
        make_item(folder, "photo.jpg", content=b"second")

        job = pipeline.run(submit(folder.id, include_manifest=False))

        with zipfile.ZipFile(job.artifact_path) as zf:
            assert sorted(zf.namelist()) == ["Vacation/photo-1.jpg", "Vacation/photo.jpg"]
            # Lower item id keeps the bare name
            assert zf.read("Vacation/photo.jpg") == b"first"
            assert zf.read("Vacation/photo-1.jpg") == b"second"

    def test_manifest_name_is_never_taken_by_an_item(self, pipeline, submit, make_folder, make_item):
        folder = make_folder("Vacation")
        make_item(folder, "manifest.csv", content=b"not the manifest")

        job = pipeline.run(submit(folder.id))

        assert "manifest.csv" in entries(job.artifact_path)
        assert "Vacation/manifest.csv" in entries(job.artifact_path)

    @pytest.mark.parametrize("include_children,expected", [
        (True, ["Photos/2025/Summer-Trip/c.jpg", "Photos/2025/b.jpg", "Photos/a.jpg"]),
        (False, ["Photos/a.jpg"]),
    ])
    def test_nested_layout(self, pipeline, submit, make_folder, make_item, include_children, expected):
        photos = make_folder("Photos")
        year = make_folder("2025", parent=photos)
        trip = make_folder("Summer Trip", parent=year)
        make_item(photos, "a.jpg")
        make_item(year, "b.jpg")
        make_item(trip, "c.jpg")

        job = pipeline.run(submit(photos.id, include_children=include_children, include_manifest=False))

        assert sorted(entries(job.artifact_path)) == expected
        assert job.total == len(expected)

    def test_progress_callback(self, pipeline, submit, vacation):
        calls = []

        pipeline.run(submit(vacation.id), progress_callback=lambda done, total: calls.append((done, total)))

        assert calls == [(1, 3), (2, 3), (3, 3)]

    def test_progress_is_flushed_in_batches(self, db, pipeline, submit, make_folder, make_item):
        folder = make_folder("Big")
        for n in range(25):
            make_item(folder, f"img{n}.jpg")
        job_id = submit(folder.id)

        with patch.object(db, "commit", wraps=db.commit) as commit:
            job = pipeline.run(job_id)

        assert job.status == "complete"
        # processing, total, items 10 and 20, completion
        assert commit.call_count == 5

    def test_only_pending_jobs_run(self, pipeline, submit, vacation):
        job_id = submit(vacation.id)
        first = pipeline.run(job_id)
        artifact = first.artifact_path
        completed_at = first.completed_at

        again = pipeline.run(job_id)

        assert again.status == "complete"
        assert again.artifact_path == artifact
        assert again.completed_at == completed_at

    def test_unknown_job(self, pipeline):
        assert pipeline.run("does-not-exist") is None

    def test_unknown_folder(self, pipeline, submit):
        job = pipeline.run(submit(9999))

        assert job.status == "failed"
        assert job.error_code == "invalid_folder"

    def test_finalize_failure(self, pipeline, submit, vacation, export_dir):
        job_id = submit(vacation.id)

        with patch("folder_exporter.services.archive.os.link", side_effect=OSError("disk full")):
            job = pipeline.run(job_id)

        assert job.status == "failed"
        assert job.error_code == "finalize_failed"
        assert job.artifact_path == ""
        assert not list(export_dir.glob("*.zip"))
        assert not list(export_dir.glob("*.part"))

    def test_unexpected_error_uses_generic_message(self, pipeline, submit, vacation, export_dir):
        job_id = submit(vacation.id)

        with patch.object(pipeline.manifest_builder, "build", side_effect=RuntimeError("secret detail")):
            job = pipeline.run(job_id)

        assert job.status == "failed"
        assert job.error_code == "internal_error"
        assert job.error == GENERIC_FAILURE
        assert "secret" not in job.error
        assert not list(export_dir.glob("*.zip"))

    def test_stored_options_are_authoritative(self, pipeline, submit, vacation):
        """Options arriving with the queue message never override the record."""
        job = pipeline.run(submit(vacation.id), options=ExportOptions(include_manifest=False))

        assert job.include_manifest is True
        assert "manifest.csv" in entries(job.artifact_path)

    def test_stored_folder_is_authoritative(self, pipeline, submit, vacation, make_folder):
        other = make_folder("Empty")

        job = pipeline.run(submit(vacation.id), folder_id=other.id)

        assert job.status == "complete"
        assert job.total == 3

    def test_item_deleted_during_run(self, db, tree, export_dir, submit, vacation):
        """A row removed by the host after discovery does not fail the job."""
        pipeline = ExportPipeline(db, tree, ManifestBuilder(), export_dir, progress_interval=1)
        last_id = max(row[0] for row in db.query(MediaItem.id).all())
        job_id = submit(vacation.id)

        def delete_last(done, total):
            if done == 1:
                db.execute(text("DELETE FROM media_items WHERE id = :id"), {"id": last_id})

        job = pipeline.run(job_id, progress_callback=delete_last)

        assert job.status == "complete"
        assert job.progress == job.total == 3
        assert db.get(MediaItem, last_id) is None
        with zipfile.ZipFile(job.artifact_path) as zf:
            assert "Vacation/c.jpg" in zf.namelist()
            assert len(zf.read("manifest.csv").decode("utf-8-sig").splitlines()) == 4

    def test_final_name_taken_while_writing(self, pipeline, submit, vacation, export_dir):
        """A file appearing under the artifact name is never replaced."""
        job_id = submit(vacation.id)
        taken = []

        def claim_final_name(done, total):
            if done == 1:
                part = next(export_dir.glob("*.zip.part"))
                final = part.with_suffix("")
                final.write_bytes(b"someone else's archive")
                taken.append(final)

        job = pipeline.run(job_id, progress_callback=claim_final_name)

        assert job.status == "failed"
        assert job.error_code == "archive_exists"
        assert taken[0].read_bytes() == b"someone else's archive"
        assert not list(export_dir.glob("*.part"))


class TestArtifactNaming:

    def test_name_from_folder_and_time(self, pipeline, submit, vacation):
        job = pipeline.run(submit(vacation.id))

        assert re.match(r"^Vacation-\d{4}-\d{2}-\d{2}-\d{6}\.zip$", job.artifact_name)

    def test_unusable_folder_name_falls_back(self):
        assert artifact_base_name("???").startswith("export-")

    def test_concurrent_names_do_not_clash(self, pipeline):
        first = pipeline._open_unique_archive("Vacation-2025-01-01-000000")
        second = pipeline._open_unique_archive("Vacation-2025-01-01-000000")

        assert first.destination.name == "Vacation-2025-01-01-000000.zip"
        assert second.destination.name == "Vacation-2025-01-01-000000-1.zip"
        first.abort()
        second.abort()

    def test_export_directory_is_protected(self, pipeline, submit, vacation, export_dir):
        pipeline.run(submit(vacation.id))

        assert (export_dir / ".htaccess").read_text() == "Deny from all\n"
        assert (export_dir / "index.html").exists()


class TestExportFolderSync:
    """Synchronous export used by the CLI."""

    def test_writes_archive(self, db, pipeline, vacation, tmp_path):
        output = tmp_path / "out" / "vacation.zip"
        calls = []

        result = pipeline.export_folder_sync(
            vacation.id, output, on_progress=lambda done, total: calls.append(done)
        )

        assert result.path == output
        assert result.total == 3
        assert result.archived == 3
        assert result.skipped == 0
        assert result.size == output.stat().st_size
        assert calls == [1, 2, 3]
        assert "manifest.csv" in entries(output)
        assert db.query(ExportJob).count() == 0

    def test_reports_skipped(self, pipeline, make_folder, make_item, tmp_path):
        folder = make_folder("Vacation")
        make_item(folder, "a.jpg")
        make_item(folder, "b.jpg", create_file=False)

        result = pipeline.export_folder_sync(folder.id, tmp_path / "v.zip", include_manifest=False)

        assert result.archived == 1
        assert result.skipped == 1

    def test_invalid_folder(self, pipeline, tmp_path):
        with pytest.raises(InvalidFolderError):
            pipeline.export_folder_sync(9999, tmp_path / "out.zip")

    def test_no_items(self, pipeline, make_folder, tmp_path):
        folder = make_folder("Empty")

        with pytest.raises(NoItemsFoundError):
            pipeline.export_folder_sync(folder.id, tmp_path / "out.zip")
        assert not (tmp_path / "out.zip").exists()

    def test_custom_manifest_columns(self, db, tree, vacation, tmp_path):
        pipeline = ExportPipeline(db, tree, ManifestBuilder(["filename"]), tmp_path / "exports")

        result = pipeline.export_folder_sync(vacation.id, tmp_path / "v.zip")

        with zipfile.ZipFile(result.path) as zf:
            lines = zf.read("manifest.csv").decode("utf-8-sig").splitlines()
        assert lines == ["filename", "a.jpg", "b.jpg", "c.jpg"]
