"""Celery application configuration."""

from celery import Celery

from scrape_engine.config import get_settings

settings = get_settings()

celery_app = Celery(
    "scrape_engine",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["scrape_engine.tasks.scrape_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    task_track_started=True,
    task_time_limit=int(settings.job_wait_timeout) + 60,
    task_soft_time_limit=int(settings.job_wait_timeout) + 30,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)
