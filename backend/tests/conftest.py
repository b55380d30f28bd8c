"""Pytest fixtures for Folder Exporter tests."""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from folder_exporter.main import app
from folder_exporter.database import Base, get_db
from folder_exporter.dependencies import get_export_service
from folder_exporter.models import Folder, MediaItem
from folder_exporter.services import (
    ExportPipeline,
    ExportService,
    InlineWorkQueue,
    ManifestBuilder,
    RetentionManager,
    SqlFolderTree,
)

# In-memory SQLite for tests
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def export_dir(tmp_path):
    """Shared export directory (not created until the first export)."""
    return tmp_path / "exports"


@pytest.fixture
def media_dir(tmp_path):
    """Where source files for media items live."""
    path = tmp_path / "media"
    path.mkdir()
    return path


@pytest.fixture
def tree(db):
    return SqlFolderTree(db)


@pytest.fixture
def pipeline(db, tree, export_dir):
    return ExportPipeline(db, tree, ManifestBuilder(), export_dir, progress_interval=10)


@pytest.fixture
def export_service(db, tree, pipeline):
    """Export service that runs jobs inline, so submit() returns a finished job."""
    return ExportService(db, tree, InlineWorkQueue(pipeline))


@pytest.fixture
def retention(db, export_dir):
    return RetentionManager(db, export_dir)


@pytest.fixture(scope="function")
def client(db, export_service):
    """Create a test client with the test database and inline exports."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_export_service] = lambda: export_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_folder(db):
    """Factory for folders: make_folder("Photos", parent=other)."""
    def _make(name, parent=None):
        folder = Folder(name=name, parent_id=parent.id if parent else None)
        db.add(folder)
        db.commit()
        db.refresh(folder)
        return folder
    return _make


@pytest.fixture
def make_item(db, media_dir):
    """Factory for media items backed by a real file.

    Every item gets its own source directory so several items can share
    a basename.
    """
    counter = {"n": 0}

    def _make(folder, filename, content=b"image-bytes", create_file=True, **fields):
        counter["n"] += 1
        source_dir = media_dir / f"upload-{counter['n']}"
        source_dir.mkdir()
        source = source_dir / filename
        if create_file:
            source.write_bytes(content)

        fields.setdefault("mime_type", "image/jpeg")
        item = MediaItem(
            folder_id=folder.id if folder else None,
            source_path=str(source),
            display_name=filename,
            **fields,
        )
        db.add(item)
        db.commit()
        db.refresh(item)
        return item
    return _make


@pytest.fixture
def vacation(make_folder, make_item):
    """Folder 'Vacation' holding three photos."""
    folder = make_folder("Vacation")
    for name in ("a.jpg", "b.jpg", "c.jpg"):
        make_item(folder, name)
    return folder
