"""Shared fixtures: a throwaway SQLite database, an app client and fake upstream APIs."""

import os
import tempfile
import uuid
from datetime import datetime, timezone

_TMP_DIR = tempfile.mkdtemp(prefix="split-tests-")

# Settings and engines are built at import time, so the environment goes first
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/test.db"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["CACHE_URL"] = ""
os.environ["SNAPSHOT_INTER_JOB_DELAY_SECONDS"] = "0"
os.environ["VISIBILITY_BATCH_DELAY_SECONDS"] = "0"
os.environ["SESSION_COOKIE_SECURE"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from split.models import Base  # noqa: E402
from split.models.base import SyncSessionLocal, sync_engine  # noqa: E402
from split.models.snapshot_request import SnapshotRequest  # noqa: E402
from split.models.subscription_usage import SubscriptionUsage  # noqa: E402
from split.models.user import User  # noqa: E402
from split.models.workspace import Workspace  # noqa: E402
from split.services.auth_service import generate_api_key, hash_password  # noqa: E402
from split.services.question_generator import Question  # noqa: E402
from split.services.snapshot_processor import SnapshotProcessor, UrlAnalysis  # noqa: E402
from split.services.usage_service import add_month  # noqa: E402
from split.services.visibility_checker import VisibilityCheck  # noqa: E402

CRON_HEADERS = {"Authorization": "Bearer test-cron-secret"}
TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.drop_all(sync_engine)
    Base.metadata.create_all(sync_engine)
    yield


@pytest.fixture
def db():
    session = SyncSessionLocal()
    try:
        yield session
    finally:
        session.close()


def make_user(db, email="owner@example.com", plan="free", is_admin=False) -> User:
    user = User(
        email=email,
        display_name=email.split("@")[0],
        hashed_password=hash_password(TEST_PASSWORD),
        subscription_plan=plan,
        is_admin=is_admin,
    )
    db.add(user)
    db.commit()
    return user


def make_usage(db, user, plan="free", snapshots_used=0, period_end=None) -> SubscriptionUsage:
    start = datetime.now(timezone.utc)
    usage = SubscriptionUsage(
        user_id=user.id,
        plan=plan,
        billing_period_start=start,
        billing_period_end=period_end or add_month(start),
        snapshots_used=snapshots_used,
    )
    db.add(usage)
    db.commit()
    return usage


def make_snapshot(db, user_id=None, urls=None, topic="project management", status="pending",
                  created_at=None, **fields) -> SnapshotRequest:
    snapshot = SnapshotRequest(
        user_id=user_id,
        urls=urls or ["https://acme.com"],
        topic=topic,
        status=status,
        **fields,
    )
    if created_at is not None:
        snapshot.created_at = created_at
    db.add(snapshot)
    db.commit()
    return snapshot


def make_workspace(db, user, domain="acme.com") -> tuple[Workspace, str]:
    """Workspace plus a plaintext live API key for it."""
    from split.models.workspace_api_key import WorkspaceApiKey

    workspace = Workspace(user_id=user.id, workspace_name="Acme", domain=domain)
    db.add(workspace)
    db.flush()
    plaintext, prefix, key_hash = generate_api_key("live")
    db.add(WorkspaceApiKey(
        workspace_id=workspace.id,
        name="server",
        key_type="live",
        key_prefix=prefix,
        key_hash=key_hash,
    ))
    db.commit()
    return workspace, plaintext


class FakeAnalyzer:
    """Stands in for the network pipeline: three questions, first one found."""

    def __init__(self, fail_urls=()):
        self.fail_urls = set(fail_urls)
        self.calls: list[tuple[str, str]] = []

    def analyze(self, url: str, topic: str) -> UrlAnalysis:
        self.calls.append((url, topic))
        if url in self.fail_urls:
            raise RuntimeError(f"boom for {url}")
        checks = [
            VisibilityCheck(
                question=Question("What is acme?", "direct", 1),
                target_found=True,
                position=1,
                cited_domains=["acme.com"],
                competitor_names=["Globex"],
                citation_snippet="Acme is a tool.",
                reasoning="Target found at position 1.",
            ),
            VisibilityCheck(
                question=Question(f"Best {topic} tools for businesses", "indirect", 2),
                competitor_names=["Globex", "Initech"],
                reasoning="Target not found in search results.",
            ),
            VisibilityCheck(
                question=Question("acme alternatives", "comparison", 3),
                reasoning="Search failed: timeout",
                error="timeout",
            ),
        ]
        return UrlAnalysis(url=url, domain="acme.com", checks=checks, page_error="Firecrawl API error: offline")


@pytest.fixture
def fake_analyzer():
    return FakeAnalyzer()


@pytest.fixture
def processor(fake_analyzer):
    return SnapshotProcessor(SyncSessionLocal, fake_analyzer, max_per_invocation=10, inter_job_delay=0)


class FakeTask:
    def __init__(self):
        self.calls: list[dict] = []

    def delay(self, **kwargs):
        self.calls.append(kwargs)
        return type("AsyncResult", (), {"id": str(uuid.uuid4())})()


@pytest.fixture
def drain_task(monkeypatch):
    """Records drain_snapshot_queue.delay() calls instead of hitting the broker."""
    import split.tasks.snapshot_tasks as snapshot_tasks

    fake = FakeTask()
    monkeypatch.setattr(snapshot_tasks, "drain_snapshot_queue", fake)
    return fake


@pytest.fixture
def client(processor, drain_task):
    from split.dependencies.services import get_snapshot_processor
    from split.main import app

    app.dependency_overrides[get_snapshot_processor] = lambda: processor
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def login(client, email="owner@example.com", password=TEST_PASSWORD):
    resp = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp
