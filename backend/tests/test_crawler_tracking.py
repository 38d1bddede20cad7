"""Tests for crawler visit recording helpers and timeframe handling."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from split.models.crawler_visit import CrawlerVisit
from split.models.workspace import Workspace
from split.services.crawler_detector import CrawlerInfo
from split.services.crawler_tracking import (
    DEFAULT_TIMEFRAME,
    domain_allowed,
    normalize_timeframe,
    record_visit,
    resolve_location,
    timeframe_window,
)


class RecordingSession:
    def __init__(self):
        self.added = []

    def add(self, obj):
        self.added.append(obj)


@pytest.mark.parametrize(
    "timeframe, expected",
    [("last7d", "last7d"), ("LAST7D", "last7d"), (" Last30d ", "last30d"),
     (None, DEFAULT_TIMEFRAME), ("", DEFAULT_TIMEFRAME), ("forever", DEFAULT_TIMEFRAME)],
)
def test_normalize_timeframe(timeframe, expected):
    assert normalize_timeframe(timeframe) == expected


def test_timeframe_window_matches_normalized_key():
    now = datetime(2026, 3, 10, 12, tzinfo=timezone.utc)
    assert timeframe_window("LAST7D", now) == (now - timedelta(days=7), "day")
    assert timeframe_window("bogus", now) == (now - timedelta(hours=24), "hour")


def test_resolve_location_precedence():
    assert resolve_location("https://acme.com/a", "https://blog.acme.com/b", "acme.com") == ("acme.com", "/a")
    assert resolve_location(None, "https://blog.acme.com/b", "acme.com") == ("blog.acme.com", "/b")
    assert resolve_location("acme.com", None, "fallback.com") == ("acme.com", "/")
    assert resolve_location(None, None, "acme.com") == ("acme.com", "/")


def test_domain_allowed_ignores_www_and_case():
    assert domain_allowed("WWW.Acme.com", "acme.com")
    assert not domain_allowed("globex.com", "acme.com")


def test_record_visit_adds_row_synchronously():
    session = RecordingSession()
    workspace = Workspace(id=uuid.uuid4(), user_id=uuid.uuid4(), workspace_name="Acme", domain="acme.com")

    visit = record_visit(
        session,
        workspace,
        CrawlerInfo("GPTBot", "OpenAI", "ai-training"),
        domain="acme.com",
        path="",
        user_agent="GPTBot/1.1",
        country="gb",
    )

    assert isinstance(visit, CrawlerVisit)
    assert session.added == [visit]
    assert visit.workspace_id == workspace.id
    assert visit.user_id == workspace.user_id
    assert visit.path == "/"
    assert visit.country == "GB"
    assert visit.timestamp is not None
