"""Tests for rendering detection and the technical page audit."""

import httpx
import pytest

from split.services.llm_client import VisibilityServiceError
from split.services.page_scraper import MAX_HTML_LENGTH, PageScraper, ScrapedPage, truncate_html
from split.services.technical_analyzer import (
    DEFAULT_AI_OPTIMIZATION_SCORE,
    analyze_page,
    analyze_schema_markup,
    detect_rendering_mode,
    _soup,
)

ARTICLE_TEXT = " ".join(
    f"Invoicing software helps growing companies manage billing workflows efficiently number{i}."
    for i in range(40)
)

SSR_HTML = f"""<html><head>
<title>Acme Invoicing - Simple billing for growing teams</title>
<meta name="description" content="Acme makes invoicing simple.">
<link rel="canonical" href="https://acme.com/">
</head><body>
<header><nav>Home</nav></header>
<main><article><h1>Invoicing that scales</h1><p>{ARTICLE_TEXT}</p>
<img src="a.png" alt="Dashboard"><img src="b.png" alt="Invoice list"></article></main>
<script type="application/ld+json">{{"@type": "Organization"}}</script>
<script src="/app.js"></script>
</body></html>"""

CSR_HTML = """<html><head><title>App</title></head><body>
<div id="root"></div>
<noscript>You need to enable JavaScript to run this app.</noscript>
<script src="/static/js/main.js"></script>
</body></html>"""


def make_page(html: str, url: str = "https://acme.com/", **kwargs) -> ScrapedPage:
    defaults = dict(
        url=url,
        domain="acme.com",
        title="",
        content=ARTICLE_TEXT,
        markdown="# Invoicing that scales\n\n" + ARTICLE_TEXT,
        html=html,
        word_count=len(ARTICLE_TEXT.split()),
        metadata={"statusCode": 200, "canonicalUrl": "https://acme.com/"},
    )
    defaults.update(kwargs)
    return ScrapedPage(**defaults)


def test_server_rendered_page_detected():
    rendering = detect_rendering_mode(SSR_HTML)
    assert rendering.mode == "ssr"
    assert rendering.ssr_content


def test_empty_react_root_detected_as_csr():
    rendering = detect_rendering_mode(CSR_HTML)
    assert rendering.mode == "csr"
    assert "Empty React root div detected" in rendering.indicators
    assert not rendering.ssr_content


def test_missing_html_is_hybrid():
    rendering = detect_rendering_mode("")
    assert rendering.mode == "hybrid"
    assert rendering.confidence == 0


def test_healthy_page_scores_well():
    audit = analyze_page(make_page(SSR_HTML))

    assert audit.rendering_mode == "ssr"
    assert audit.category_scores["technical_health"] == 100
    assert audit.category_scores["media_accessibility"] == 100
    assert audit.category_scores["schema_markup"] == 80
    assert audit.category_scores["ai_optimization"] == DEFAULT_AI_OPTIMIZATION_SCORE
    assert audit.metadata["ssr_score_penalty"] == 0
    assert 0 <= audit.weighted_score <= 100
    assert not any(i["title"] == "Client-side rendering detected" for i in audit.issues)


def test_csr_page_is_penalised_and_flagged():
    page = make_page(CSR_HTML, url="http://acme.com/", content="", markdown="", word_count=0, metadata={})
    audit = analyze_page(page)

    assert audit.rendering_mode == "csr"
    assert audit.metadata["ssr_score_penalty"] == 15
    titles = [i["title"] for i in audit.issues]
    assert "Client-side rendering detected" in titles
    assert "Very thin content" in titles
    assert "Non-secure HTTP connection" in titles
    assert "Missing canonical URL" in titles
    # highest priority first
    priorities = [i["fix_priority"] for i in audit.issues]
    assert priorities == sorted(priorities, reverse=True)


def test_error_status_and_missing_alt_text():
    html = SSR_HTML.replace('alt="Dashboard"', "").replace('alt="Invoice list"', 'alt=""')
    audit = analyze_page(make_page(html, metadata={"statusCode": 404}))

    assert audit.category_scores["technical_health"] == 60
    assert audit.category_scores["media_accessibility"] == 80
    assert any(i["title"] == "HTTP 404 status" for i in audit.issues)


def test_schema_markup_missing():
    result = analyze_schema_markup(make_page("<html></html>"), _soup("<html></html>"))
    assert result.score == 60
    assert result.recommendations[0]["title"] == "Add structured data"


def test_truncate_html():
    assert truncate_html("short") == "short"
    long_html = "x" * (MAX_HTML_LENGTH + 10)
    assert truncate_html(long_html).endswith("...[truncated]")
    assert len(truncate_html(long_html)) == MAX_HTML_LENGTH + len("...[truncated]")


def test_scraper_maps_firecrawl_response():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": {
            "content": "one two three",
            "markdown": "# one two three",
            "html": "<h1>one two three</h1>",
            "metadata": {"title": "Acme", "description": "Billing", "statusCode": 200},
        }})

    scraper = PageScraper("https://firecrawl.test/v0/scrape", "fc-key",
                          http_client=httpx.Client(transport=httpx.MockTransport(handler)))
    page = scraper.scrape("https://www.acme.com/pricing")

    assert page.domain == "www.acme.com"
    assert page.title == "Acme"
    assert page.meta_description == "Billing"
    assert page.word_count == 3
    assert page.metadata["statusCode"] == 200


def test_scraper_raises_on_api_failure():
    scraper = PageScraper("https://firecrawl.test/v0/scrape", "fc-key",
                          http_client=httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(402))))
    with pytest.raises(VisibilityServiceError):
        scraper.scrape("https://acme.com")
