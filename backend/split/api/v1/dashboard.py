"""Crawler analytics for the dashboard."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from split.config import get_settings
from split.dependencies.auth import get_owned_workspace
from split.dependencies.services import get_cache
from split.models.base import get_db
from split.models.workspace import Workspace
from split.schemas.crawler import CrawlerStats, CrawlerVisitSeries
from split.services.cache import KeyValueCache
from split.services.crawler_tracking import (
    DEFAULT_TIMEFRAME,
    crawler_stats,
    crawler_visit_series,
    normalize_timeframe,
)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/crawler-stats", response_model=CrawlerStats)
async def get_crawler_stats(
    workspace_id: UUID,
    timeframe: str = Query(DEFAULT_TIMEFRAME),
    workspace: Workspace = Depends(get_owned_workspace),
    db: AsyncSession = Depends(get_db),
    cache: KeyValueCache = Depends(get_cache),
):
    """Visits per crawler and per company. Cached briefly per workspace and timeframe."""
    cache_key = f"crawler-stats:{workspace.id}:{normalize_timeframe(timeframe)}"
    cached = cache.get(cache_key)
    if cached is not None:
        return cached

    stats = await crawler_stats(db, workspace.id, timeframe)
    cache.set(cache_key, stats, get_settings().crawler_stats_cache_ttl)
    return stats


@router.get("/crawler-visits", response_model=CrawlerVisitSeries)
async def get_crawler_visits(
    workspace_id: UUID,
    timeframe: str = Query(DEFAULT_TIMEFRAME),
    crawler: str | None = Query(None, description="Crawler name, or 'all'"),
    workspace: Workspace = Depends(get_owned_workspace),
    db: AsyncSession = Depends(get_db),
):
    return await crawler_visit_series(db, workspace.id, timeframe, crawler_name=crawler)
