"""Crawler event ingestion for server-side integrations."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from split.dependencies.auth import require_workspace_api_key
from split.models.base import get_db
from split.models.workspace import Workspace
from split.schemas.crawler import CrawlerEvent, CrawlerEventBatch, CrawlerEventResult
from split.services.crawler_detector import CrawlerInfo, detect_crawler
from split.services.crawler_tracking import domain_allowed, record_visit
from split.services.usage_service import increment_crawler_visits

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tracking"])


def _event_crawler(event: CrawlerEvent) -> CrawlerInfo | None:
    """Crawler named by the integration, else whatever the user agent says."""
    match = detect_crawler(event.user_agent)
    if event.crawler_name:
        return CrawlerInfo(
            name=event.crawler_name,
            company=event.crawler_company or (match.crawler.company if match.crawler else "Unknown"),
            category=event.crawler_category or (match.crawler.category if match.crawler else "ai-unknown"),
        )
    return match.crawler


@router.post("/crawler-events", response_model=CrawlerEventResult)
async def ingest_crawler_events(
    body: CrawlerEventBatch,
    workspace: Workspace = Depends(require_workspace_api_key),
    db: AsyncSession = Depends(get_db),
):
    """Store a batch of crawler hits for the key's workspace.

    Events for another domain, or with no identifiable crawler, are skipped.
    """
    processed = 0
    skipped = 0
    for event in body.events:
        crawler = _event_crawler(event)
        if crawler is None or not domain_allowed(event.domain, workspace.domain):
            skipped += 1
            continue
        record_visit(
            db,
            workspace,
            crawler,
            domain=event.domain,
            path=event.path,
            user_agent=event.user_agent,
            timestamp=event.timestamp,
            status_code=event.status_code,
            response_time_ms=event.response_time_ms,
            country=event.country,
            metadata=event.metadata,
        )
        processed += 1

    if processed:
        await db.run_sync(lambda session: increment_crawler_visits(session, workspace.user_id, processed))

    logger.info(f"[{workspace.id}] Ingested {processed} crawler event(s), skipped {skipped}")
    return CrawlerEventResult(success=True, processed=processed, skipped=skipped)
