"""Snapshot queue operations on the snapshot_requests table.

Every state change is a single conditional UPDATE committed on its own, so
concurrent workers coordinate purely through row atomicity:

    pending -> processing            claim_next_snapshot
    processing -> completed | failed complete_snapshot / fail_snapshot
    processing -> pending            reset_stale_snapshots (reclaim)
    failed -> pending                retry_snapshot (manual resubmission)
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from split.models.snapshot_request import SnapshotRequest

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT = timedelta(minutes=10)
MAX_ERROR_LENGTH = 2000


def new_worker_id(prefix: str = "worker") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def claim_next_snapshot(
    db: Session,
    worker_id: str,
    user_id: uuid.UUID | None = None,
    request_id: uuid.UUID | None = None,
) -> SnapshotRequest | None:
    """Atomically move the oldest eligible pending row to processing.

    Returns the claimed row, or None when nothing is eligible (an empty queue
    is a normal outcome). Selection and update happen in one statement; on
    Postgres the candidate subquery takes FOR UPDATE SKIP LOCKED so racing
    workers skip each other's row instead of blocking on it.
    """
    candidate = select(SnapshotRequest.id).where(SnapshotRequest.status == "pending")
    if user_id is not None:
        candidate = candidate.where(SnapshotRequest.user_id == user_id)
    if request_id is not None:
        candidate = candidate.where(SnapshotRequest.id == request_id)
    candidate = (
        candidate
        .order_by(SnapshotRequest.created_at.asc(), SnapshotRequest.id.asc())
        .limit(1)
        .with_for_update(skip_locked=True)
        .scalar_subquery()
    )

    stmt = (
        update(SnapshotRequest)
        .where(
            SnapshotRequest.id == candidate,
            SnapshotRequest.status == "pending",
        )
        .values(
            status="processing",
            locked_at=datetime.now(timezone.utc),
            locked_by=worker_id,
        )
        .returning(SnapshotRequest.id)
        .execution_options(synchronize_session=False)
    )
    claimed_id = db.execute(stmt).scalar_one_or_none()
    db.commit()

    if claimed_id is None:
        return None

    logger.info(f"[{worker_id}] Claimed snapshot {claimed_id}")
    return db.get(SnapshotRequest, claimed_id)


def complete_snapshot(db: Session, request_id: uuid.UUID, worker_id: str) -> bool:
    """Mark a row completed. Returns False unless worker_id still holds its claim."""
    now = datetime.now(timezone.utc)
    result = db.execute(
        update(SnapshotRequest)
        .where(
            SnapshotRequest.id == request_id,
            SnapshotRequest.status == "processing",
            SnapshotRequest.locked_by == worker_id,
        )
        .values(status="completed", completed_at=now, updated_at=now, error_message=None)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1


def fail_snapshot(db: Session, request_id: uuid.UUID, worker_id: str, error: str) -> bool:
    """Mark a row failed with a stored error message, if worker_id still holds its claim."""
    now = datetime.now(timezone.utc)
    result = db.execute(
        update(SnapshotRequest)
        .where(
            SnapshotRequest.id == request_id,
            SnapshotRequest.status == "processing",
            SnapshotRequest.locked_by == worker_id,
        )
        .values(
            status="failed",
            completed_at=now,
            updated_at=now,
            error_message=(error or "Unknown error")[:MAX_ERROR_LENGTH],
        )
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1


def reset_stale_snapshots(db: Session, lock_timeout: timedelta = DEFAULT_LOCK_TIMEOUT) -> int:
    """Return processing rows locked longer than lock_timeout to pending.

    Rows younger than the threshold are untouched, so a second run with no
    newly stale rows is a no-op.
    """
    cutoff = datetime.now(timezone.utc) - lock_timeout
    result = db.execute(
        update(SnapshotRequest)
        .where(
            SnapshotRequest.status == "processing",
            SnapshotRequest.locked_at < cutoff,
        )
        .values(status="pending", locked_at=None, locked_by=None)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    if result.rowcount:
        logger.warning(f"Reclaimed {result.rowcount} stale snapshot(s) locked before {cutoff.isoformat()}")
    return result.rowcount


def retry_snapshot(db: Session, request_id: uuid.UUID) -> bool:
    """Manually resubmit a failed row. Returns False unless the row was failed."""
    result = db.execute(
        update(SnapshotRequest)
        .where(SnapshotRequest.id == request_id, SnapshotRequest.status == "failed")
        .values(
            status="pending",
            locked_at=None,
            locked_by=None,
            completed_at=None,
            error_message=None,
        )
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1


def queue_stats(db: Session) -> dict:
    """Row counts per status plus the age of the oldest pending row."""
    counts = dict(
        db.execute(
            select(SnapshotRequest.status, func.count()).group_by(SnapshotRequest.status)
        ).all()
    )
    oldest_pending = db.execute(
        select(func.min(SnapshotRequest.created_at)).where(SnapshotRequest.status == "pending")
    ).scalar()
    return {
        "pending": counts.get("pending", 0),
        "processing": counts.get("processing", 0),
        "completed": counts.get("completed", 0),
        "failed": counts.get("failed", 0),
        "oldest_pending_at": oldest_pending,
    }
