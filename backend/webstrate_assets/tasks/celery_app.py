"""Celery application for asset maintenance jobs."""
from celery import Celery

from webstrate_assets.config import get_settings

settings = get_settings()

celery_app = Celery(
    "webstrate_assets",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["webstrate_assets.tasks.maintenance"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Pruning only deletes rows, so a retried run is harmless
    task_acks_late=True,
    task_time_limit=120,
    task_soft_time_limit=60,

    result_expires=600,
)
