"""Scheduled maintenance endpoints for external cron callers.

Each endpoint runs the same service function as the matching Celery beat
task and requires ``Authorization: Bearer <CRON_SECRET>``.
"""

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from split.config import get_settings
from split.dependencies.auth import require_cron_secret
from split.models.base import get_db
from split.schemas.usage import CronResult
from split.services.auth_service import purge_expired_tokens
from split.services.crawler_tracking import purge_expired_visits
from split.services.snapshot_queue import reset_stale_snapshots
from split.services.usage_service import reset_expired_periods

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["cron"], dependencies=[Depends(require_cron_secret)])


@router.post("/reset-usage", response_model=CronResult)
async def cron_reset_usage(db: AsyncSession = Depends(get_db)):
    affected = await db.run_sync(reset_expired_periods)
    return CronResult(task="reset-usage", affected=affected)


@router.post("/cleanup-tokens", response_model=CronResult)
async def cron_cleanup_tokens(db: AsyncSession = Depends(get_db)):
    affected = await db.run_sync(purge_expired_tokens)
    logger.info(f"[cron] Deleted {affected} expired auth tokens")
    return CronResult(task="cleanup-tokens", affected=affected)


@router.post("/reclaim-snapshots", response_model=CronResult)
async def cron_reclaim_snapshots(db: AsyncSession = Depends(get_db)):
    timeout = timedelta(minutes=get_settings().snapshot_lock_timeout_minutes)
    affected = await db.run_sync(lambda session: reset_stale_snapshots(session, timeout))
    return CronResult(task="reclaim-snapshots", affected=affected)


@router.post("/cleanup-crawler-visits", response_model=CronResult)
async def cron_cleanup_crawler_visits(db: AsyncSession = Depends(get_db)):
    affected = await db.run_sync(purge_expired_visits)
    logger.info(f"[cron] Deleted {affected} crawler visits past retention")
    return CronResult(task="cleanup-crawler-visits", affected=affected)
