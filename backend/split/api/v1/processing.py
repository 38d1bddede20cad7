"""Synchronous snapshot worker trigger."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from split.dependencies.auth import require_cron_secret
from split.dependencies.services import get_snapshot_processor
from split.schemas.snapshot import ProcessSnapshotRequest, ProcessSnapshotResponse
from split.services.snapshot_processor import SnapshotProcessor
from split.services.snapshot_queue import new_worker_id

logger = logging.getLogger(__name__)

router = APIRouter(tags=["processing"])


@router.post(
    "/process-snapshot",
    response_model=ProcessSnapshotResponse,
    dependencies=[Depends(require_cron_secret)],
)
async def process_snapshot(
    body: ProcessSnapshotRequest | None = None,
    processor: SnapshotProcessor = Depends(get_snapshot_processor),
):
    """Drain the queue in-request and report how many jobs were handled.

    Accepts the same narrowing as the Celery task: ``user_id`` limits the drain
    to that user's jobs and ``request_id`` claims exactly one row.
    """
    body = body or ProcessSnapshotRequest()
    worker_id = new_worker_id("http")
    try:
        result = await run_in_threadpool(
            processor.drain,
            user_id=body.user_id,
            request_id=body.request_id,
            worker_id=worker_id,
        )
    except SQLAlchemyError as e:
        logger.exception(f"[{worker_id}] Claim failed")
        raise HTTPException(status_code=500, detail=f"Queue claim failed: {e}")

    return ProcessSnapshotResponse(
        success=True,
        processedCount=result.processed_count,
        lastRequestId=result.last_request_id,
    )
