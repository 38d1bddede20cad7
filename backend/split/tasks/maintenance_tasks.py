"""Maintenance tasks: stuck-job reclaim, billing periods, token and visit cleanup."""

import logging
from datetime import timedelta

from split.config import get_settings
from split.tasks.celery_app import celery_app
from split.models.base import SyncSessionLocal
from split.services.auth_service import purge_expired_tokens
from split.services.crawler_tracking import purge_expired_visits
from split.services.snapshot_queue import reset_stale_snapshots
from split.services.usage_service import reset_expired_periods

logger = logging.getLogger(__name__)


@celery_app.task(name="split.tasks.maintenance_tasks.reclaim_stale_snapshots")
def reclaim_stale_snapshots():
    """Return snapshots stuck in processing past the lock timeout to pending."""
    db = SyncSessionLocal()
    try:
        timeout = timedelta(minutes=get_settings().snapshot_lock_timeout_minutes)
        reclaimed = reset_stale_snapshots(db, timeout)
        logger.info(f"Reclaimed {reclaimed} stale snapshots")
        return {"reclaimed": reclaimed}
    finally:
        db.close()


@celery_app.task(name="split.tasks.maintenance_tasks.reset_usage_periods")
def reset_usage_periods():
    """Start a new billing period for every usage row whose period has ended."""
    db = SyncSessionLocal()
    try:
        reset = reset_expired_periods(db)
        db.commit()
        return {"reset": reset}
    finally:
        db.close()


@celery_app.task(name="split.tasks.maintenance_tasks.cleanup_auth_tokens")
def cleanup_auth_tokens():
    """Remove expired or used password-reset and verification tokens."""
    db = SyncSessionLocal()
    try:
        deleted = purge_expired_tokens(db)
        db.commit()
        logger.info(f"Deleted {deleted} expired auth tokens")
        return {"deleted": deleted}
    finally:
        db.close()


@celery_app.task(name="split.tasks.maintenance_tasks.cleanup_crawler_visits")
def cleanup_crawler_visits():
    """Apply per-plan retention to the crawler visit log."""
    db = SyncSessionLocal()
    try:
        deleted = purge_expired_visits(db)
        db.commit()
        logger.info(f"Deleted {deleted} crawler visits past retention")
        return {"deleted": deleted}
    finally:
        db.close()
