"""Reclaim stuck snapshots and drain the queue from the command line.

Resets every snapshot stuck in processing past the lock timeout back to
pending, prints the queue state, then runs the worker in-process until the
queue is empty or the per-invocation cap is reached.

Usage:
    docker compose exec backend python -m scripts.force_process_snapshots
    # Only one user's jobs:
    docker compose exec backend python -m scripts.force_process_snapshots <user_id>
"""

import sys
import uuid
from datetime import timedelta

from split.config import get_settings
from split.models.base import SyncSessionLocal
from split.services.snapshot_processor import SnapshotProcessor
from split.services.snapshot_queue import new_worker_id, queue_stats, reset_stale_snapshots

settings = get_settings()


def print_queue(db, label: str) -> None:
    stats = queue_stats(db)
    print(
        f"{label}: {stats['pending']} pending, {stats['processing']} processing, "
        f"{stats['completed']} completed, {stats['failed']} failed"
    )
    if stats["oldest_pending_at"]:
        print(f"  oldest pending since {stats['oldest_pending_at'].isoformat()}")


def force_process(user_id: uuid.UUID | None = None) -> None:
    db = SyncSessionLocal()
    try:
        print_queue(db, "Before")
        timeout = timedelta(minutes=settings.snapshot_lock_timeout_minutes)
        reclaimed = reset_stale_snapshots(db, timeout)
        print(f"Reclaimed {reclaimed} stuck snapshot(s)")
    finally:
        db.close()

    processor = SnapshotProcessor.from_settings(SyncSessionLocal)
    result = processor.drain(user_id=user_id, worker_id=new_worker_id("script"))
    print(
        f"\nProcessed {result.processed_count}: "
        f"{len(result.completed)} completed, {len(result.failed)} failed"
    )
    for job_id in result.failed:
        print(f"  failed: {job_id}")

    db = SyncSessionLocal()
    try:
        print_queue(db, "After")
    finally:
        db.close()


if __name__ == "__main__":
    force_process(uuid.UUID(sys.argv[1]) if len(sys.argv) > 1 else None)
