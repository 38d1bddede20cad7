"""API tests for the cron maintenance endpoints."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from conftest import CRON_HEADERS, make_snapshot, make_usage, make_user, make_workspace
from split.models.auth_token import AuthToken
from split.models.crawler_visit import CrawlerVisit
from split.models.snapshot_request import SnapshotRequest
from split.services.auth_service import generate_token

ENDPOINTS = ["reset-usage", "cleanup-tokens", "reclaim-snapshots", "cleanup-crawler-visits"]


@pytest.mark.parametrize("task", ENDPOINTS)
def test_cron_requires_secret(client, task):
    assert client.post(f"/api/v1/cron/{task}").status_code == 401
    assert client.post(f"/api/v1/cron/{task}", headers={"Authorization": "Bearer wrong"}).status_code == 401
    assert client.post(f"/api/v1/cron/{task}", headers={"Authorization": "test-cron-secret"}).status_code == 401


def test_reclaim_snapshots(client, db):
    stale = make_snapshot(db, status="processing", locked_at=datetime.now(timezone.utc) - timedelta(minutes=30),
                          locked_by="worker-dead")
    fresh = make_snapshot(db, status="processing", locked_at=datetime.now(timezone.utc), locked_by="worker-live")

    resp = client.post("/api/v1/cron/reclaim-snapshots", headers=CRON_HEADERS)

    assert resp.json() == {"success": True, "task": "reclaim-snapshots", "affected": 1}
    db.expire_all()
    assert db.get(SnapshotRequest, stale.id).status == "pending"
    assert db.get(SnapshotRequest, stale.id).locked_by is None
    assert db.get(SnapshotRequest, fresh.id).status == "processing"


def test_reset_usage(client, db):
    user = make_user(db, plan="plus")
    make_usage(db, user, plan="plus", snapshots_used=8, period_end=datetime.now(timezone.utc) - timedelta(hours=1))

    resp = client.post("/api/v1/cron/reset-usage", headers=CRON_HEADERS)

    assert resp.json()["affected"] == 1
    assert client.post("/api/v1/cron/reset-usage", headers=CRON_HEADERS).json()["affected"] == 0


def test_cleanup_tokens(client, db):
    user = make_user(db)
    now = datetime.now(timezone.utc)
    for expires_at, used_at in ((now - timedelta(hours=1), None), (now + timedelta(hours=1), now),
                                (now + timedelta(hours=1), None)):
        _, token_hash = generate_token()
        db.add(AuthToken(user_id=user.id, purpose="password_reset", token_hash=token_hash,
                         expires_at=expires_at, used_at=used_at))
    db.commit()

    resp = client.post("/api/v1/cron/cleanup-tokens", headers=CRON_HEADERS)

    assert resp.json()["affected"] == 2
    db.expire_all()
    assert len(db.execute(select(AuthToken)).scalars().all()) == 1


def test_cleanup_crawler_visits_honours_plan_retention(client, db):
    free_user = make_user(db, "free@example.com")
    pro_user = make_user(db, "pro@example.com", plan="pro")
    free_ws, _ = make_workspace(db, free_user, domain="free.com")
    pro_ws, _ = make_workspace(db, pro_user, domain="pro.com")

    old = datetime.now(timezone.utc) - timedelta(days=45)
    for workspace, user in ((free_ws, free_user), (pro_ws, pro_user)):
        db.add(CrawlerVisit(workspace_id=workspace.id, user_id=user.id, domain=workspace.domain, path="/",
                            crawler_name="GPTBot", crawler_company="OpenAI", crawler_category="ai-training",
                            user_agent="GPTBot/1.1", timestamp=old))
    db.commit()

    resp = client.post("/api/v1/cron/cleanup-crawler-visits", headers=CRON_HEADERS)

    assert resp.json()["affected"] == 1
    db.expire_all()
    [remaining] = db.execute(select(CrawlerVisit)).scalars().all()
    assert remaining.domain == "pro.com"
