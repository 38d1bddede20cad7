"""Snapshot queue worker task."""

import logging
import uuid

from split.tasks.celery_app import celery_app
from split.models.base import SyncSessionLocal
from split.services.snapshot_processor import SnapshotProcessor

logger = logging.getLogger(__name__)


@celery_app.task(name="split.tasks.snapshot_tasks.drain_snapshot_queue")
def drain_snapshot_queue(user_id: str | None = None, request_id: str | None = None):
    """Drain pending snapshots, optionally narrowed to one user or one request."""
    processor = SnapshotProcessor.from_settings(SyncSessionLocal)
    result = processor.drain(
        user_id=uuid.UUID(user_id) if user_id else None,
        request_id=uuid.UUID(request_id) if request_id else None,
        worker_id=f"celery-{drain_snapshot_queue.request.id or uuid.uuid4().hex[:12]}",
    )
    logger.info(
        f"Drained {result.processed_count} snapshot(s): "
        f"{len(result.completed)} completed, {len(result.failed)} failed"
    )
    return {
        "processed": result.processed_count,
        "completed": [str(i) for i in result.completed],
        "failed": [str(i) for i in result.failed],
        "last_request_id": str(result.last_request_id) if result.last_request_id else None,
    }
