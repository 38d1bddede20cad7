"""Admin queue inspection and manual recovery."""

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from split.config import get_settings
from split.dependencies.auth import require_admin
from split.models.base import get_db
from split.models.user import User
from split.schemas.snapshot import QueueStats, SnapshotStatus
from split.schemas.usage import CronResult
from split.services.snapshot_queue import queue_stats, reset_stale_snapshots, retry_snapshot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/snapshots", tags=["admin"])


@router.get("/queue", response_model=QueueStats)
async def get_queue_stats(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    stats = await db.run_sync(queue_stats)
    oldest = stats["oldest_pending_at"]
    if oldest is not None:
        if oldest.tzinfo is None:
            oldest = oldest.replace(tzinfo=timezone.utc)
        stats["oldest_pending_age_seconds"] = (datetime.now(timezone.utc) - oldest).total_seconds()
    return stats


@router.post("/reclaim", response_model=CronResult)
async def reclaim_snapshots(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    timeout = timedelta(minutes=get_settings().snapshot_lock_timeout_minutes)
    affected = await db.run_sync(lambda session: reset_stale_snapshots(session, timeout))
    logger.info(f"[admin {admin.email}] Reclaimed {affected} stale snapshot(s)")
    return CronResult(task="reclaim-snapshots", affected=affected)


@router.post("/{snapshot_id}/retry", response_model=SnapshotStatus)
async def retry_failed_snapshot(
    snapshot_id: UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Put a failed snapshot back on the queue and schedule a worker for it."""
    if not await db.run_sync(lambda session: retry_snapshot(session, snapshot_id)):
        raise HTTPException(status_code=404, detail="No failed snapshot with that id")

    logger.info(f"[admin {admin.email}] Resubmitted snapshot {snapshot_id}")

    from split.tasks.snapshot_tasks import drain_snapshot_queue

    drain_snapshot_queue.delay(request_id=str(snapshot_id))

    return SnapshotStatus(id=snapshot_id, status="pending")
