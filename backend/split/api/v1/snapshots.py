"""Snapshot submission and retrieval endpoints."""

import logging
from urllib.parse import urlparse
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from split.dependencies.auth import require_user_api
from split.models.base import get_db
from split.models.snapshot_request import SnapshotRequest
from split.models.user import User
from split.schemas.snapshot import (
    PageAuditRead,
    SnapshotCreate,
    SnapshotPending,
    SnapshotRead,
    SnapshotStatus,
    SnapshotSummaryItem,
    UrlSummaryRead,
    VisibilityResultRead,
)
from split.services.usage_service import UsageLimitExceeded, ensure_snapshot_allowed

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/snapshots", tags=["snapshots"])

MAX_URLS_PER_SNAPSHOT = 10


def _valid_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.hostname)


async def _get_visible_snapshot(db: AsyncSession, snapshot_id: UUID, user: User, *options) -> SnapshotRequest:
    query = select(SnapshotRequest).where(SnapshotRequest.id == snapshot_id)
    if options:
        query = query.options(*options)
    result = await db.execute(query)
    snapshot = result.scalar_one_or_none()
    # Other users' snapshots are indistinguishable from missing ones
    if not snapshot or (snapshot.user_id != user.id and not user.is_admin):
        raise HTTPException(status_code=404, detail="Snapshot not found")
    return snapshot


@router.post("", response_model=SnapshotStatus, status_code=201)
async def create_snapshot(
    body: SnapshotCreate,
    user: User = Depends(require_user_api),
    db: AsyncSession = Depends(get_db),
):
    """Queue a visibility snapshot and kick off a worker for the caller's jobs."""
    urls = [u.strip() for u in body.urls if u and u.strip()]
    topic = body.topic.strip()
    if not urls:
        raise HTTPException(status_code=400, detail="At least one URL is required")
    if not topic:
        raise HTTPException(status_code=400, detail="Topic is required")
    if len(urls) > MAX_URLS_PER_SNAPSHOT:
        raise HTTPException(status_code=400, detail=f"At most {MAX_URLS_PER_SNAPSHOT} URLs per snapshot")
    invalid = [u for u in urls if not _valid_url(u)]
    if invalid:
        raise HTTPException(status_code=400, detail=f"Invalid URL: {invalid[0]}")

    try:
        await db.run_sync(lambda session: ensure_snapshot_allowed(session, user))
    except UsageLimitExceeded as e:
        raise HTTPException(status_code=402, detail=str(e))

    snapshot = SnapshotRequest(user_id=user.id, urls=urls, topic=topic, status="pending")
    db.add(snapshot)
    # Commit before scheduling so the worker can see the row
    await db.commit()
    logger.info(f"Queued snapshot {snapshot.id} for user {user.id}: {len(urls)} URL(s)")

    from split.tasks.snapshot_tasks import drain_snapshot_queue

    drain_snapshot_queue.delay(user_id=str(user.id))

    return SnapshotStatus(id=snapshot.id, status=snapshot.status)


@router.get("", response_model=list[SnapshotSummaryItem])
async def list_snapshots(
    user: User = Depends(require_user_api),
    db: AsyncSession = Depends(get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    user_id: UUID | None = Query(None, description="Owner to list (admins only for other users)"),
):
    """Snapshot history, newest first."""
    owner_id = user_id or user.id
    if owner_id != user.id and not user.is_admin:
        raise HTTPException(status_code=403, detail="Cannot list another user's snapshots")

    query = (
        select(SnapshotRequest)
        .where(SnapshotRequest.user_id == owner_id)
        .order_by(SnapshotRequest.created_at.desc(), SnapshotRequest.id.desc())
        .offset(skip)
        .limit(limit)
    )
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/{snapshot_id}/status", response_model=SnapshotStatus)
async def get_snapshot_status(
    snapshot_id: UUID,
    user: User = Depends(require_user_api),
    db: AsyncSession = Depends(get_db),
):
    snapshot = await _get_visible_snapshot(db, snapshot_id, user)
    return SnapshotStatus(id=snapshot.id, status=snapshot.status)


@router.get("/{snapshot_id}", response_model=SnapshotRead | SnapshotPending)
async def get_snapshot(
    snapshot_id: UUID,
    user: User = Depends(require_user_api),
    db: AsyncSession = Depends(get_db),
):
    """Full results once completed; status and error otherwise."""
    snapshot = await _get_visible_snapshot(
        db,
        snapshot_id,
        user,
        selectinload(SnapshotRequest.summaries),
        selectinload(SnapshotRequest.results),
        selectinload(SnapshotRequest.page_contents),
    )
    if snapshot.status != "completed":
        return SnapshotPending(id=snapshot.id, status=snapshot.status, error_message=snapshot.error_message)

    return SnapshotRead(
        **SnapshotSummaryItem.model_validate(snapshot).model_dump(),
        summaries=[UrlSummaryRead.model_validate(s) for s in snapshot.summaries],
        results=[VisibilityResultRead.model_validate(r) for r in snapshot.results],
        page_audits=[PageAuditRead.model_validate(p) for p in snapshot.page_contents],
    )
