"""Celery application for background backfill jobs."""

from celery import Celery
from celery.signals import setup_logging

from tokenoracle.config import settings
from tokenoracle.log import configure_logging

celery_app = Celery(
    "tokenoracle",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["tokenoracle.workers.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    worker_concurrency=settings.backfill_max_concurrent_jobs,
    result_expires=settings.job_retention_hours * 3600,
    broker_transport_options={"queue_order_strategy": "priority"},
    beat_schedule={
        "purge-expired-backfill-jobs": {
            "task": "purge_expired_jobs",
            "schedule": 3600.0,
        },
    },
)


@setup_logging.connect
def _configure_worker_logging(**kwargs) -> None:
    configure_logging(settings.log_level)
