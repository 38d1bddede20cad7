"""Tests for plan limits, usage counters and billing-period resets."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from conftest import make_usage, make_user
from split.models.subscription_usage import SubscriptionUsage
from split.services.usage_service import (
    FREE_TRIAL_SNAPSHOTS,
    UNLIMITED,
    UsageLimitExceeded,
    add_month,
    ensure_snapshot_allowed,
    get_or_create_usage,
    increment_crawler_visits,
    increment_snapshots,
    reset_expired_periods,
    snapshot_allowance,
)


@pytest.mark.parametrize(
    "plan, allowance",
    [("free", FREE_TRIAL_SNAPSHOTS), (None, FREE_TRIAL_SNAPSHOTS), ("plus", 10), ("pro", 50),
     ("enterprise", UNLIMITED), ("legacy", FREE_TRIAL_SNAPSHOTS)],
)
def test_snapshot_allowance(plan, allowance):
    assert snapshot_allowance(plan) == allowance


def test_add_month_clamps_day():
    assert add_month(datetime(2026, 1, 31, tzinfo=timezone.utc)) == datetime(2026, 2, 28, tzinfo=timezone.utc)
    assert add_month(datetime(2026, 12, 15, tzinfo=timezone.utc)) == datetime(2027, 1, 15, tzinfo=timezone.utc)


def test_get_or_create_usage_creates_once(db):
    user = make_user(db, plan="pro")

    first = get_or_create_usage(db, user)
    db.commit()
    second = get_or_create_usage(db, user)

    assert first.id == second.id
    assert first.plan == "pro"
    assert first.snapshots_used == 0


def test_free_trial_runs_out(db):
    user = make_user(db)
    make_usage(db, user, snapshots_used=FREE_TRIAL_SNAPSHOTS - 1)

    ensure_snapshot_allowed(db, user)
    increment_snapshots(db, user.id)
    db.commit()

    with pytest.raises(UsageLimitExceeded) as exc:
        ensure_snapshot_allowed(db, user)
    assert exc.value.limit == FREE_TRIAL_SNAPSHOTS


def test_enterprise_is_unlimited(db):
    user = make_user(db, plan="enterprise")
    make_usage(db, user, plan="enterprise", snapshots_used=10_000)
    ensure_snapshot_allowed(db, user)


def test_increment_crawler_visits(db):
    user = make_user(db)
    usage = make_usage(db, user)

    increment_crawler_visits(db, user.id, 5)
    increment_crawler_visits(db, user.id, 0)
    db.commit()

    db.refresh(usage)
    assert usage.crawler_visits_tracked == 5


def test_reset_expired_periods(db):
    now = datetime.now(timezone.utc)
    paid_user = make_user(db, "paid@example.com", plan="plus")
    free_user = make_user(db, "free@example.com")
    current_user = make_user(db, "current@example.com", plan="plus")

    paid = make_usage(db, paid_user, plan="plus", snapshots_used=7, period_end=now - timedelta(days=1))
    free = make_usage(db, free_user, snapshots_used=3, period_end=now - timedelta(days=75))
    current = make_usage(db, current_user, plan="plus", snapshots_used=4, period_end=now + timedelta(days=3))
    for usage in (paid, free):
        usage.crawler_visits_tracked = 99
    db.commit()

    assert reset_expired_periods(db, now) == 2
    db.commit()
    assert reset_expired_periods(db, now) == 0

    rows = {u.user_id: u for u in db.execute(select(SubscriptionUsage)).scalars()}
    assert rows[paid_user.id].snapshots_used == 0
    assert rows[paid_user.id].crawler_visits_tracked == 0
    # the free trial is not replenished
    assert rows[free_user.id].snapshots_used == 3
    assert rows[free_user.id].crawler_visits_tracked == 0
    assert rows[current_user.id].snapshots_used == 4

    for user_id in (paid_user.id, free_user.id):
        end = rows[user_id].billing_period_end
        if end.tzinfo is None:
            end = end.replace(tzinfo=timezone.utc)
        assert end > now
