"""API tests for the tracking pixel, crawler event ingestion and dashboard stats."""

import uuid

from sqlalchemy import select

from conftest import login, make_usage, make_user, make_workspace
from split.models.crawler_visit import CrawlerVisit
from split.models.subscription_usage import SubscriptionUsage

GPTBOT_UA = "Mozilla/5.0 AppleWebKit/537.36 (KHTML, like Gecko; compatible; GPTBot/1.1; +https://openai.com/gptbot)"
CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def visits(db):
    db.expire_all()
    return db.execute(select(CrawlerVisit).order_by(CrawlerVisit.timestamp)).scalars().all()


def assert_pixel(resp):
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "image/gif"
    assert resp.headers["cache-control"] == "no-cache, no-store, must-revalidate"
    assert len(resp.content) == 43


def test_pixel_for_unknown_workspace_still_returns_gif(client, db):
    assert_pixel(client.get(f"/track/{uuid.uuid4()}/pixel.gif", headers={"User-Agent": GPTBOT_UA}))
    assert_pixel(client.get("/track/not-a-uuid/pixel.gif", headers={"User-Agent": GPTBOT_UA}))
    assert visits(db) == []


def test_pixel_logs_known_crawler(client, db):
    user = make_user(db)
    make_usage(db, user)
    workspace, _ = make_workspace(db, user)

    resp = client.get(
        f"/track/{workspace.id}/pixel.gif",
        params={"url": "https://acme.com/pricing"},
        headers={"User-Agent": GPTBOT_UA},
    )

    assert_pixel(resp)
    [visit] = visits(db)
    assert visit.crawler_name == "GPTBot"
    assert visit.crawler_company == "OpenAI"
    assert visit.domain == "acme.com"
    assert visit.path == "/pricing"
    assert visit.user_id == user.id

    usage = db.execute(select(SubscriptionUsage)).scalar_one()
    assert usage.crawler_visits_tracked == 1


def test_pixel_falls_back_to_referer_then_workspace_domain(client, db):
    user = make_user(db)
    workspace, _ = make_workspace(db, user)

    client.get(f"/track/{workspace.id}/pixel.gif",
               headers={"User-Agent": "ClaudeBot/1.0", "Referer": "https://blog.acme.com/post/1"})
    client.get(f"/track/{workspace.id}/pixel.gif", headers={"User-Agent": "PerplexityBot/1.0"})

    first, second = visits(db)
    assert (first.domain, first.path) == ("blog.acme.com", "/post/1")
    assert (second.domain, second.path) == ("acme.com", "/")


def test_pixel_ignores_humans_and_unknown_bots(client, db):
    user = make_user(db)
    workspace, _ = make_workspace(db, user)

    assert_pixel(client.get(f"/track/{workspace.id}/pixel.gif", headers={"User-Agent": CHROME_UA}))
    assert_pixel(client.get(f"/track/{workspace.id}/pixel.gif", headers={"User-Agent": "WidgetBot/2.1"}))
    assert visits(db) == []


def test_crawler_events_require_api_key(client, db):
    body = {"events": [{"domain": "acme.com", "userAgent": GPTBOT_UA}]}
    assert client.post("/api/v1/crawler-events", json=body).status_code == 401
    assert client.post(
        "/api/v1/crawler-events", json=body, headers={"Authorization": "Bearer split_live_nope"},
    ).status_code == 401


def test_crawler_events_ingest(client, db):
    user = make_user(db)
    make_usage(db, user)
    workspace, api_key = make_workspace(db, user)

    resp = client.post(
        "/api/v1/crawler-events",
        headers={"Authorization": f"Bearer {api_key}"},
        json={"events": [
            {"domain": "www.acme.com", "path": "/docs", "userAgent": GPTBOT_UA, "statusCode": 200,
             "responseTimeMs": 35, "country": "us"},
            {"domain": "acme.com", "crawlerName": "CustomAgent", "crawlerCompany": "Custom Co"},
            {"domain": "globex.com", "userAgent": GPTBOT_UA},
            {"domain": "acme.com", "userAgent": CHROME_UA},
        ]},
    )

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "processed": 2, "skipped": 2}

    first, second = sorted(visits(db), key=lambda v: v.crawler_name)
    assert (first.crawler_name, first.crawler_company) == ("CustomAgent", "Custom Co")
    assert (second.crawler_name, second.path, second.status_code, second.country) == ("GPTBot", "/docs", 200, "US")

    usage = db.execute(select(SubscriptionUsage)).scalar_one()
    assert usage.crawler_visits_tracked == 2


def test_dashboard_stats_and_series(client, db):
    owner = make_user(db)
    workspace, _ = make_workspace(db, owner)
    for ua in (GPTBOT_UA, GPTBOT_UA, "ClaudeBot/1.0"):
        client.get(f"/track/{workspace.id}/pixel.gif", headers={"User-Agent": ua})

    login(client)
    stats = client.get("/api/v1/dashboard/crawler-stats", params={"workspace_id": str(workspace.id)}).json()

    assert stats["total_visits"] == 3
    assert stats["unique_crawlers"] == 2
    assert stats["crawlers"][0] == {"name": "GPTBot", "company": "OpenAI", "visits": 2}
    assert {c["company"]: c["visits"] for c in stats["companies"]} == {"OpenAI": 2, "Anthropic": 1}

    # served from the cache until the TTL runs out
    client.get(f"/track/{workspace.id}/pixel.gif", headers={"User-Agent": "ClaudeBot/1.0"})
    cached = client.get("/api/v1/dashboard/crawler-stats", params={"workspace_id": str(workspace.id)}).json()
    assert cached["total_visits"] == 3

    series = client.get(
        "/api/v1/dashboard/crawler-visits",
        params={"workspace_id": str(workspace.id), "timeframe": "last7d"},
    ).json()
    assert series["bucket"] == "day"
    assert series["total_crawls"] == 4
    assert sum(p["crawls"] for p in series["chart_data"]) == 4
    assert {c["name"] for c in series["available_crawlers"]} == {"GPTBot", "ClaudeBot"}

    only_claude = client.get(
        "/api/v1/dashboard/crawler-visits",
        params={"workspace_id": str(workspace.id), "crawler": "ClaudeBot"},
    ).json()
    assert only_claude["bucket"] == "hour"
    assert only_claude["total_crawls"] == 2


def test_dashboard_requires_workspace_owner(client, db):
    owner = make_user(db)
    make_user(db, "other@example.com")
    workspace, _ = make_workspace(db, owner)

    assert client.get("/api/v1/dashboard/crawler-stats", params={"workspace_id": str(workspace.id)}).status_code == 401

    login(client, "other@example.com")
    assert client.get("/api/v1/dashboard/crawler-stats", params={"workspace_id": str(workspace.id)}).status_code == 403
    assert client.get(
        "/api/v1/dashboard/crawler-stats", params={"workspace_id": str(uuid.uuid4())},
    ).status_code == 404


def test_dashboard_timeframe_is_case_insensitive(client, db):
    owner = make_user(db)
    workspace, _ = make_workspace(db, owner)
    client.get(f"/track/{workspace.id}/pixel.gif", headers={"User-Agent": GPTBOT_UA})
    login(client)

    stats = client.get(
        "/api/v1/dashboard/crawler-stats", params={"workspace_id": str(workspace.id), "timeframe": "LAST7D"},
    ).json()
    assert stats["timeframe"] == "last7d"
    assert stats["total_visits"] == 1

    series = client.get(
        "/api/v1/dashboard/crawler-visits", params={"workspace_id": str(workspace.id), "timeframe": "LAST7D"},
    ).json()
    assert series["timeframe"] == "last7d"
    assert series["bucket"] == "day"
