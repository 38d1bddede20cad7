"""Pydantic schemas for plan usage."""

from datetime import datetime

from pydantic import BaseModel


class UsageRead(BaseModel):
    plan: str
    plan_status: str
    billing_period_start: datetime
    billing_period_end: datetime
    snapshots_used: int
    snapshots_limit: int  # -1 means unlimited
    crawler_visits_tracked: int
    retention_days: int  # -1 means unlimited


class CronResult(BaseModel):
    success: bool = True
    task: str
    affected: int
