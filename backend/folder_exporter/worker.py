"""Celery worker configuration.

Run worker: celery -A folder_exporter.worker worker -l info -Q exports,maintenance
Run beat: celery -A folder_exporter.worker beat -l info
"""
from datetime import timedelta

from celery import Celery
from celery.signals import worker_init

from folder_exporter.config import settings

celery_app = Celery(
    "folder_exporter",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "folder_exporter.tasks.exports",
        "folder_exporter.tasks.maintenance",
    ]
)

# Celery configuration
celery_app.conf.update(
    # Serialization - options cross the queue as plain JSON
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Task routing
    task_routes={
        "folder_exporter.tasks.exports.*": {"queue": "exports"},
        "folder_exporter.tasks.maintenance.*": {"queue": "maintenance"},
    },

    # Task execution settings
    task_acks_late=True,  # Acknowledge after task completes
    task_reject_on_worker_lost=True,

    # Worker settings
    worker_prefetch_multiplier=1,  # One export at a time per worker process
    worker_concurrency=4,

    # Result settings
    result_expires=3600,

    # Beat schedule - periodic tasks
    beat_schedule={
        "cleanup-expired-exports": {
            "task": "folder_exporter.tasks.maintenance.cleanup_expired_exports",
            "schedule": timedelta(minutes=settings.cleanup_interval_minutes),
            "options": {"queue": "maintenance"}
        },
    }
)


@worker_init.connect
def prepare_worker(**kwargs):
    """Create missing tables before the first task runs."""
    from folder_exporter.database import init_db

    init_db()
