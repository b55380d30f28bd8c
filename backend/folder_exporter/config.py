"""Application configuration from environment variables."""
from typing import List, Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Database (job records + folder taxonomy)
    database_url: str = "sqlite:///./folder_exporter.db"

    # Redis (Celery broker and result backend)
    redis_url: str = "redis://localhost:6379/0"

    # Exports
    export_dir: str = "./exports"               # Shared artifact directory
    export_retention_hours: int = 24            # Artifacts older than this are removed
    progress_flush_interval: int = 10           # Items between persisted progress updates
    recent_exports_limit: int = 20
    cleanup_interval_minutes: int = 60

    # Manifest (None = all columns)
    manifest_columns: Optional[List[str]] = None

    # Logging
    log_level: str = "info"
    log_path: str = ""

    class Config:
        env_file = (".env", "../.env")  # Check both backend/ and parent dir
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
