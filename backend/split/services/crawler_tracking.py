"""Crawler visit recording and dashboard aggregation."""

import logging
import uuid
from collections import Counter
from datetime import datetime, timedelta, timezone
from urllib.parse import urlparse

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from split.models.crawler_visit import CrawlerVisit
from split.models.user import User
from split.models.workspace import Workspace
from split.services.crawler_detector import CrawlerInfo
from split.services.usage_service import PLAN_LIMITS, UNLIMITED

logger = logging.getLogger(__name__)

# timeframe -> (window, chart bucket)
TIMEFRAMES: dict[str, tuple[timedelta, str]] = {
    "last24h": (timedelta(hours=24), "hour"),
    "last7d": (timedelta(days=7), "day"),
    "last30d": (timedelta(days=30), "day"),
    "last90d": (timedelta(days=90), "day"),
    "last365d": (timedelta(days=365), "day"),
}
DEFAULT_TIMEFRAME = "last24h"


def normalize_timeframe(timeframe: str | None) -> str:
    """Case-insensitive timeframe key. Unknown timeframes mean last24h."""
    key = (timeframe or "").strip().lower()
    return key if key in TIMEFRAMES else DEFAULT_TIMEFRAME


def timeframe_window(timeframe: str | None, now: datetime | None = None) -> tuple[datetime, str]:
    """Start of the window and its bucket size."""
    now = now or datetime.now(timezone.utc)
    window, bucket = TIMEFRAMES[normalize_timeframe(timeframe)]
    return now - window, bucket


def normalize_host(value: str) -> str:
    return value.lower().removeprefix("www.")


def resolve_location(url: str | None, referer: str | None, fallback_domain: str) -> tuple[str, str]:
    """Domain and path of the page that loaded the pixel.

    Prefers the explicit ``url`` parameter, then the Referer header, then the
    workspace's own domain at ``/``.
    """
    for candidate in (url, referer):
        if not candidate:
            continue
        parsed = urlparse(candidate if "://" in candidate else f"https://{candidate}")
        if parsed.hostname:
            return parsed.hostname, parsed.path or "/"
    return fallback_domain, "/"


def domain_allowed(event_domain: str, workspace_domain: str) -> bool:
    return normalize_host(event_domain) == normalize_host(workspace_domain)


def record_visit(
    db: AsyncSession,
    workspace: Workspace,
    crawler: CrawlerInfo,
    domain: str,
    path: str,
    user_agent: str,
    timestamp: datetime | None = None,
    status_code: int | None = None,
    response_time_ms: int | None = None,
    country: str | None = None,
    metadata: dict | None = None,
) -> CrawlerVisit:
    visit = CrawlerVisit(
        workspace_id=workspace.id,
        user_id=workspace.user_id,
        domain=domain,
        path=path or "/",
        crawler_name=crawler.name,
        crawler_company=crawler.company,
        crawler_category=crawler.category,
        user_agent=user_agent or "",
        status_code=status_code,
        response_time_ms=response_time_ms,
        country=(country or None) and country[:2].upper(),
        extra_data=metadata or {},
        timestamp=timestamp or datetime.now(timezone.utc),
    )
    db.add(visit)
    return visit


async def _visits_since(db: AsyncSession, workspace_id: uuid.UUID, start: datetime) -> list[tuple]:
    result = await db.execute(
        select(CrawlerVisit.crawler_name, CrawlerVisit.crawler_company, CrawlerVisit.timestamp)
        .where(CrawlerVisit.workspace_id == workspace_id, CrawlerVisit.timestamp >= start)
        .order_by(CrawlerVisit.timestamp.asc())
    )
    return result.all()


async def crawler_stats(db: AsyncSession, workspace_id: uuid.UUID, timeframe: str | None) -> dict:
    """Visit totals per crawler and per company over a timeframe."""
    start, _ = timeframe_window(timeframe)
    visits = await _visits_since(db, workspace_id, start)

    by_crawler: Counter = Counter()
    companies: dict[str, str] = {}
    by_company: Counter = Counter()
    for name, company, _ts in visits:
        by_crawler[name] += 1
        companies[name] = company or "Unknown"
        by_company[company or "Unknown"] += 1

    return {
        "workspace_id": str(workspace_id),
        "timeframe": normalize_timeframe(timeframe),
        "total_visits": len(visits),
        "unique_crawlers": len(by_crawler),
        "crawlers": [
            {"name": name, "company": companies[name], "visits": count}
            for name, count in by_crawler.most_common()
        ],
        "companies": [
            {"company": company, "visits": count}
            for company, count in by_company.most_common()
        ],
    }


def _bucket_key(moment: datetime, bucket: str) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    if bucket == "hour":
        return moment.strftime("%Y-%m-%dT%H:00")
    return moment.strftime("%Y-%m-%d")


def _bucket_range(start: datetime, end: datetime, bucket: str) -> list[str]:
    step = timedelta(hours=1) if bucket == "hour" else timedelta(days=1)
    keys = []
    cursor = start
    while cursor <= end:
        key = _bucket_key(cursor, bucket)
        if not keys or keys[-1] != key:
            keys.append(key)
        cursor += step
    end_key = _bucket_key(end, bucket)
    if keys[-1] != end_key:
        keys.append(end_key)
    return keys


async def crawler_visit_series(
    db: AsyncSession,
    workspace_id: uuid.UUID,
    timeframe: str | None,
    crawler_name: str | None = None,
) -> dict:
    """Visit counts bucketed by hour (last24h) or day, zero-filled for charting."""
    now = datetime.now(timezone.utc)
    start, bucket = timeframe_window(timeframe, now)
    visits = await _visits_since(db, workspace_id, start)
    if crawler_name and crawler_name != "all":
        visits = [v for v in visits if v[0] == crawler_name]

    counts = Counter(_bucket_key(ts, bucket) for _name, _company, ts in visits)
    available = Counter(name for name, _company, _ts in visits)

    return {
        "timeframe": normalize_timeframe(timeframe),
        "bucket": bucket,
        "total_crawls": len(visits),
        "chart_data": [
            {"period": key, "crawls": counts.get(key, 0)}
            for key in _bucket_range(start, now, bucket)
        ],
        "available_crawlers": [
            {"name": name, "visits": count} for name, count in available.most_common()
        ],
    }


def purge_expired_visits(db: Session, now: datetime | None = None) -> int:
    """Delete visits older than the owning user's plan retention window."""
    now = now or datetime.now(timezone.utc)
    deleted = 0
    for plan, limits in PLAN_LIMITS.items():
        if limits.retention_days == UNLIMITED:
            continue
        cutoff = now - timedelta(days=limits.retention_days)
        result = db.execute(
            delete(CrawlerVisit)
            .where(
                CrawlerVisit.user_id.in_(select(User.id).where(User.subscription_plan == plan)),
                CrawlerVisit.timestamp < cutoff,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            logger.info(f"Purged {result.rowcount} {plan}-plan crawler visits older than {limits.retention_days}d")
        deleted += result.rowcount
    return deleted
