"""Firecrawl page scraper used for the per-URL content audit."""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlparse

import httpx

from split.config import get_settings
from split.services.llm_client import VisibilityServiceError

logger = logging.getLogger(__name__)

MAX_HTML_LENGTH = 100_000


@dataclass
class ScrapedPage:
    url: str
    domain: str
    title: str = ""
    meta_description: str = ""
    content: str = ""
    markdown: str = ""
    html: str = ""
    word_count: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)
    duration_ms: int = 0


def truncate_html(html: str) -> str:
    if len(html) > MAX_HTML_LENGTH:
        return html[:MAX_HTML_LENGTH] + "...[truncated]"
    return html


class PageScraper:

    def __init__(self, api_url: str, api_key: str, timeout: float = 90,
                 http_client: httpx.Client | None = None):
        self.api_url = api_url
        self.api_key = api_key
        self.timeout = timeout
        self._http = http_client

    @classmethod
    def from_settings(cls, http_client: httpx.Client | None = None) -> "PageScraper":
        settings = get_settings()
        return cls(settings.firecrawl_url, settings.firecrawl_api_key, http_client=http_client)

    def scrape(self, url: str) -> ScrapedPage:
        """Fetch markdown, HTML and metadata for one page.

        Raises VisibilityServiceError on any transport or API failure; callers
        record the failure and move on.
        """
        domain = urlparse(url).hostname or ""
        logger.info(f"Scraping content for: {url}")
        started = time.monotonic()

        payload = {
            "url": url,
            "formats": ["markdown", "html"],
            "includeTags": ["title", "meta"],
            "excludeTags": ["script", "style", "nav", "footer"],
            "waitFor": 3000,
            "timeout": 60000,
        }
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        try:
            if self._http is not None:
                resp = self._http.post(self.api_url, json=payload, headers=headers, timeout=self.timeout)
            else:
                resp = httpx.post(self.api_url, json=payload, headers=headers, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json().get("data") or {}
        except (httpx.HTTPError, ValueError) as e:
            raise VisibilityServiceError(f"Firecrawl API error: {e}") from e

        duration_ms = int((time.monotonic() - started) * 1000)
        content = data.get("content") or ""
        metadata = data.get("metadata") or {}
        logger.info(f"Scraped {url} in {duration_ms}ms")

        return ScrapedPage(
            url=url,
            domain=domain,
            title=metadata.get("title") or "",
            meta_description=metadata.get("description") or "",
            content=content,
            markdown=data.get("markdown") or "",
            html=truncate_html(data.get("html") or ""),
            word_count=len(content.split()),
            metadata={
                "statusCode": metadata.get("statusCode"),
                "error": metadata.get("error"),
                "sourceURL": metadata.get("sourceURL"),
                "canonicalUrl": metadata.get("canonicalUrl"),
                "ogTitle": metadata.get("ogTitle"),
                "ogDescription": metadata.get("ogDescription"),
                "scrapedAt": datetime.now(timezone.utc).isoformat(),
            },
            duration_ms=duration_ms,
        )
