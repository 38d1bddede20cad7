"""Plan limits and per-user usage counters.

All functions take a sync Session and leave committing to the caller. The
async API reaches them through ``AsyncSession.run_sync``.
"""

import calendar
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from split.models.subscription_usage import SubscriptionUsage
from split.models.user import User

logger = logging.getLogger(__name__)

UNLIMITED = -1
FREE_TRIAL_SNAPSHOTS = 3


@dataclass(frozen=True)
class PlanLimits:
    snapshots_per_month: int
    retention_days: int


PLAN_LIMITS: dict[str, PlanLimits] = {
    "free": PlanLimits(snapshots_per_month=0, retention_days=30),
    "plus": PlanLimits(snapshots_per_month=10, retention_days=30),
    "pro": PlanLimits(snapshots_per_month=50, retention_days=90),
    "enterprise": PlanLimits(snapshots_per_month=UNLIMITED, retention_days=UNLIMITED),
}


class UsageLimitExceeded(Exception):
    def __init__(self, used: int, limit: int):
        self.used = used
        self.limit = limit
        super().__init__(f"Snapshot allowance used up ({used}/{limit})")


def plan_limits(plan: str | None) -> PlanLimits:
    return PLAN_LIMITS.get(plan or "free", PLAN_LIMITS["free"])


def snapshot_allowance(plan: str | None) -> int:
    """Snapshots allowed per billing period; UNLIMITED (-1) means no cap.

    The free plan has no monthly allowance but gets a one-off trial.
    """
    allowance = plan_limits(plan).snapshots_per_month
    if allowance == 0:
        return FREE_TRIAL_SNAPSHOTS
    return allowance


def add_month(moment: datetime) -> datetime:
    year = moment.year + moment.month // 12
    month = moment.month % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def get_or_create_usage(db: Session, user: User) -> SubscriptionUsage:
    usage = db.execute(
        select(SubscriptionUsage).where(SubscriptionUsage.user_id == user.id)
    ).scalar_one_or_none()
    if usage is None:
        now = datetime.now(timezone.utc)
        usage = SubscriptionUsage(
            user_id=user.id,
            plan=user.subscription_plan or "free",
            billing_period_start=now,
            billing_period_end=add_month(now),
            snapshots_used=0,
            crawler_visits_tracked=0,
        )
        db.add(usage)
        db.flush()
    return usage


def ensure_snapshot_allowed(db: Session, user: User) -> SubscriptionUsage:
    """Raise UsageLimitExceeded when the user has no snapshots left this period."""
    usage = get_or_create_usage(db, user)
    limit = snapshot_allowance(usage.plan)
    if limit != UNLIMITED and usage.snapshots_used >= limit:
        raise UsageLimitExceeded(usage.snapshots_used, limit)
    return usage


def increment_snapshots(db: Session, user_id: uuid.UUID) -> None:
    db.execute(
        update(SubscriptionUsage)
        .where(SubscriptionUsage.user_id == user_id)
        .values(snapshots_used=SubscriptionUsage.snapshots_used + 1)
        .execution_options(synchronize_session=False)
    )


def increment_crawler_visits(db: Session, user_id: uuid.UUID, count: int) -> None:
    if count <= 0:
        return
    db.execute(
        update(SubscriptionUsage)
        .where(SubscriptionUsage.user_id == user_id)
        .values(crawler_visits_tracked=SubscriptionUsage.crawler_visits_tracked + count)
        .execution_options(synchronize_session=False)
    )


def reset_expired_periods(db: Session, now: datetime | None = None) -> int:
    """Roll every active usage row whose period has ended into a new month.

    Counters go back to zero, except free-plan snapshot usage: the trial
    is not replenished.
    """
    now = now or datetime.now(timezone.utc)
    expired = db.execute(
        select(SubscriptionUsage).where(
            SubscriptionUsage.billing_period_end < now,
            SubscriptionUsage.plan_status == "active",
        )
    ).scalars().all()

    for usage in expired:
        start = usage.billing_period_end
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        end = add_month(start)
        while end < now:
            start, end = end, add_month(end)
        usage.billing_period_start = start
        usage.billing_period_end = end
        usage.crawler_visits_tracked = 0
        if usage.plan != "free":
            usage.snapshots_used = 0

    db.flush()
    logger.info(f"Reset {len(expired)} billing period(s)")
    return len(expired)


def usage_report(usage: SubscriptionUsage) -> dict:
    limits = plan_limits(usage.plan)
    return {
        "plan": usage.plan,
        "plan_status": usage.plan_status,
        "billing_period_start": usage.billing_period_start,
        "billing_period_end": usage.billing_period_end,
        "snapshots_used": usage.snapshots_used,
        "snapshots_limit": snapshot_allowance(usage.plan),
        "crawler_visits_tracked": usage.crawler_visits_tracked,
        "retention_days": limits.retention_days,
    }
