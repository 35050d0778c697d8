"""
Celery application instance and configuration.
"""

from celery import Celery
from celery.schedules import crontab
from reelsense.core.config import settings
from reelsense.core.logging import setup_logging

setup_logging()

# Create Celery application
celery_app = Celery(
    "reelsense",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

# Configure Celery
celery_app.conf.update(
    task_serializer=settings.CELERY_TASK_SERIALIZER,
    result_serializer=settings.CELERY_RESULT_SERIALIZER,
    accept_content=settings.celery_accept_content_list,
    timezone=settings.CELERY_TIMEZONE,
    enable_utc=settings.CELERY_ENABLE_UTC,
    task_track_started=True,
    task_time_limit=30 * 60,  # 30 minutes
    task_soft_time_limit=25 * 60,  # 25 minutes
    result_expires=3600,  # 1 hour
    worker_hijack_root_logger=False,
)

# Celery Beat Schedule (Periodic Tasks)
celery_app.conf.beat_schedule = {
    'migrate-missing-embeddings': {
        'task': 'embedding.migrate_missing_embeddings',
        'schedule': crontab(minute=f'*/{settings.EMBEDDING_SWEEP_INTERVAL_MINUTES}'),
        'options': {'queue': 'embedding'},
    },
}

# Task routing
celery_app.conf.task_routes = {
    'embedding.*': {'queue': 'embedding'},
}

# Auto-discover tasks from reelsense.tasks
celery_app.autodiscover_tasks(['reelsense.tasks'])
