"""Celery application configuration and beat schedule."""

from celery import Celery
from celery.schedules import crontab

from split.config import get_settings

settings = get_settings()

celery_app = Celery(
    "split",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "split.tasks.snapshot_tasks",
        "split.tasks.maintenance_tasks",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    task_track_started=True,
    # A full drain is up to 10 jobs of ~40 probes each
    task_time_limit=3600,
    task_soft_time_limit=3300,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)

celery_app.conf.beat_schedule = {
    "reclaim-stale-snapshots": {
        "task": "split.tasks.maintenance_tasks.reclaim_stale_snapshots",
        "schedule": crontab(minute="*/5"),
    },
    "reset-usage-periods": {
        "task": "split.tasks.maintenance_tasks.reset_usage_periods",
        "schedule": crontab(minute=0, hour=0),
    },
    "cleanup-auth-tokens": {
        "task": "split.tasks.maintenance_tasks.cleanup_auth_tokens",
        "schedule": crontab(minute=30, hour=3),
    },
    "cleanup-crawler-visits": {
        "task": "split.tasks.maintenance_tasks.cleanup_crawler_visits",
        "schedule": crontab(minute=0, hour=4),
    },
}
