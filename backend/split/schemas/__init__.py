"""Pydantic schemas package."""

from split.schemas.snapshot import (
    SnapshotCreate,
    SnapshotStatus,
    SnapshotPending,
    SnapshotSummaryItem,
    SnapshotRead,
    VisibilityResultRead,
    UrlSummaryRead,
    PageAuditRead,
    ProcessSnapshotRequest,
    ProcessSnapshotResponse,
    QueueStats,
)
from split.schemas.crawler import (
    CrawlerEvent,
    CrawlerEventBatch,
    CrawlerEventResult,
    CrawlerStats,
    CrawlerVisitSeries,
)
from split.schemas.workspace import (
    WorkspaceCreate,
    WorkspaceRead,
    ApiKeyCreate,
    ApiKeyRead,
    ApiKeyCreated,
)
from split.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    PasswordResetRequest,
    PasswordResetConfirm,
    UserRead,
)
from split.schemas.usage import UsageRead, CronResult

__all__ = [
    # Snapshot
    "SnapshotCreate",
    "SnapshotStatus",
    "SnapshotPending",
    "SnapshotSummaryItem",
    "SnapshotRead",
    "VisibilityResultRead",
    "UrlSummaryRead",
    "PageAuditRead",
    "ProcessSnapshotRequest",
    "ProcessSnapshotResponse",
    "QueueStats",
    # Crawler
    "CrawlerEvent",
    "CrawlerEventBatch",
    "CrawlerEventResult",
    "CrawlerStats",
    "CrawlerVisitSeries",
    # Workspace
    "WorkspaceCreate",
    "WorkspaceRead",
    "ApiKeyCreate",
    "ApiKeyRead",
    "ApiKeyCreated",
    # Auth
    "RegisterRequest",
    "LoginRequest",
    "PasswordResetRequest",
    "PasswordResetConfirm",
    "UserRead",
    # Usage
    "UsageRead",
    "CronResult",
]
