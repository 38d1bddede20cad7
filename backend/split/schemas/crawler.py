"""Pydantic schemas for crawler event ingestion and dashboard stats."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CrawlerEvent(BaseModel):
    """One crawler hit reported by a site integration (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: datetime | None = None
    domain: str
    path: str = "/"
    crawler_name: str | None = Field(None, alias="crawlerName")
    crawler_company: str | None = Field(None, alias="crawlerCompany")
    crawler_category: str | None = Field(None, alias="crawlerCategory")
    user_agent: str = Field("", alias="userAgent")
    status_code: int | None = Field(None, alias="statusCode")
    response_time_ms: int | None = Field(None, alias="responseTimeMs")
    country: str | None = None
    metadata: dict[str, Any] | None = None


class CrawlerEventBatch(BaseModel):
    events: list[CrawlerEvent]


class CrawlerEventResult(BaseModel):
    success: bool
    processed: int
    skipped: int = 0


class CrawlerCount(BaseModel):
    name: str
    company: str
    visits: int


class CompanyCount(BaseModel):
    company: str
    visits: int


class CrawlerStats(BaseModel):
    workspace_id: str
    timeframe: str
    total_visits: int
    unique_crawlers: int
    crawlers: list[CrawlerCount]
    companies: list[CompanyCount]


class ChartPoint(BaseModel):
    period: str
    crawls: int


class CrawlerNameCount(BaseModel):
    name: str
    visits: int


class CrawlerVisitSeries(BaseModel):
    timeframe: str
    bucket: str
    total_crawls: int
    chart_data: list[ChartPoint]
    available_crawlers: list[CrawlerNameCount]
