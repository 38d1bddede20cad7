"""Pydantic schemas for snapshot requests and their results."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class SnapshotCreate(BaseModel):
    """Submission body. Emptiness is checked by the endpoint (400, not 422)."""

    urls: list[str] = []
    topic: str = ""


class SnapshotStatus(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    status: str


class SnapshotPending(SnapshotStatus):
    """Returned for snapshots that have not completed yet."""

    error_message: str | None = None


class SnapshotSummaryItem(BaseModel):
    """Minimal snapshot info for history lists."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    status: str
    urls: list[str]
    topic: str
    created_at: datetime
    completed_at: datetime | None = None
    error_message: str | None = None


class VisibilityResultRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    url: str
    question_number: int
    question_text: str
    question_type: str
    question_weight: int
    target_found: bool
    position: int | None = None
    cited_domains: list[str] | None = None
    competitor_domains: list[str] | None = None
    competitor_names: list[str] | None = None
    citation_snippet: str | None = None
    reasoning_summary: str | None = None
    tested_at: datetime


class UrlSummaryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    url: str
    visibility_score: int
    mentions_count: int
    total_questions: int
    top_competitors: list[str] | None = None
    insights: list[str] | None = None
    insights_summary: str | None = None


class PageAuditRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    url: str
    domain: str
    title: str | None = None
    meta_description: str | None = None
    word_count: int | None = None
    scrape_success: bool
    scrape_error: str | None = None
    aeo_score: int | None = None
    rendering_mode: str | None = None
    category_scores: dict[str, Any] | None = None
    issues: list[dict[str, Any]] | None = None
    recommendations: list[dict[str, Any]] | None = None


class SnapshotRead(SnapshotSummaryItem):
    """Full payload of a completed snapshot."""

    summaries: list[UrlSummaryRead] = []
    results: list[VisibilityResultRead] = []
    page_audits: list[PageAuditRead] = []


class ProcessSnapshotRequest(BaseModel):
    user_id: UUID | None = None
    request_id: UUID | None = None


class ProcessSnapshotResponse(BaseModel):
    success: bool
    processedCount: int
    lastRequestId: UUID | None = None


class QueueStats(BaseModel):
    pending: int
    processing: int
    completed: int
    failed: int
    oldest_pending_at: datetime | None = None
    oldest_pending_age_seconds: float | None = None
