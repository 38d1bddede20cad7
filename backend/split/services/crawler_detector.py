"""AI crawler detection from user-agent strings.

Pure and stateless: the same user agent always yields the same CrawlerMatch.
Vendor tokens are tried in order and the first substring hit wins, so more
specific tokens (``Googlebot-Image``) are listed before their prefixes
(``Googlebot``).
"""

import re
from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True)
class CrawlerInfo:
    name: str
    company: str
    category: str


@dataclass(frozen=True)
class CrawlerMatch:
    """Classification of a single user agent.

    kind is one of ``known`` (vendor table hit), ``unknown`` (generic bot
    heuristic) or ``human``.
    """

    kind: str
    crawler: CrawlerInfo | None = None

    @property
    def is_crawler(self) -> bool:
        return self.kind != "human"


UNKNOWN_CRAWLER: Final = CrawlerInfo(name="Unknown AI Bot", company="Unknown", category="ai-unknown")

# (token, info); first match wins
AI_CRAWLERS: Final[list[tuple[str, CrawlerInfo]]] = [
    # OpenAI
    ("GPTBot", CrawlerInfo("GPTBot", "OpenAI", "ai-training")),
    ("ChatGPT-User", CrawlerInfo("ChatGPT-User", "OpenAI", "ai-assistant")),
    ("OAI-SearchBot", CrawlerInfo("OAI-SearchBot", "OpenAI", "ai-search")),

    # Anthropic
    ("Claude-Web", CrawlerInfo("Claude-Web", "Anthropic", "ai-assistant")),
    ("ClaudeBot", CrawlerInfo("ClaudeBot", "Anthropic", "ai-training")),
    ("anthropic-ai", CrawlerInfo("anthropic-ai", "Anthropic", "ai-training")),
    ("AnthropicBot", CrawlerInfo("AnthropicBot", "Anthropic", "ai-training")),

    # Google
    ("Google-Extended", CrawlerInfo("Google-Extended", "Google", "ai-training")),
    ("Googlebot-Image", CrawlerInfo("Googlebot-Image", "Google", "search-ai")),
    ("Googlebot-News", CrawlerInfo("Googlebot-News", "Google", "search-ai")),
    ("Googlebot-Video", CrawlerInfo("Googlebot-Video", "Google", "search-ai")),
    ("Googlebot", CrawlerInfo("Googlebot", "Google", "search-ai")),

    # Microsoft
    ("Bingbot", CrawlerInfo("Bingbot", "Microsoft", "search-ai")),
    ("BingPreview", CrawlerInfo("BingPreview", "Microsoft", "search-ai")),
    ("msnbot", CrawlerInfo("msnbot", "Microsoft", "search-ai")),
    ("adidxbot", CrawlerInfo("adidxbot", "Microsoft", "search-ai")),

    # Perplexity
    ("PerplexityBot", CrawlerInfo("PerplexityBot", "Perplexity", "ai-search")),
    ("Perplexity-User", CrawlerInfo("Perplexity-User", "Perplexity", "ai-assistant")),

    # Meta
    ("FacebookBot", CrawlerInfo("FacebookBot", "Meta", "social-ai")),
    ("facebookexternalhit", CrawlerInfo("facebookexternalhit", "Meta", "social-ai")),
    ("Meta-ExternalAgent", CrawlerInfo("Meta-ExternalAgent", "Meta", "ai-training")),

    # Other AI search engines
    ("YouBot", CrawlerInfo("YouBot", "You.com", "ai-search")),
    ("Neeva", CrawlerInfo("Neeva", "Neeva", "ai-search")),
    ("Phind", CrawlerInfo("Phind", "Phind", "ai-search")),

    # Chinese AI / search
    ("Bytespider", CrawlerInfo("Bytespider", "ByteDance", "ai-training")),
    ("Baiduspider", CrawlerInfo("Baiduspider", "Baidu", "search-ai")),
    ("Sogou", CrawlerInfo("Sogou", "Sogou", "search-ai")),
    ("YisouSpider", CrawlerInfo("YisouSpider", "Yisou", "search-ai")),

    # E-commerce & social
    ("Amazonbot", CrawlerInfo("Amazonbot", "Amazon", "ai-assistant")),
    ("LinkedInBot", CrawlerInfo("LinkedInBot", "LinkedIn", "social-ai")),
    ("Twitterbot", CrawlerInfo("Twitterbot", "Twitter", "social-ai")),

    # Apple
    ("Applebot-Extended", CrawlerInfo("Applebot-Extended", "Apple", "ai-training")),
    ("Applebot", CrawlerInfo("Applebot", "Apple", "search-ai")),

    # Data extraction & SEO
    ("Diffbot", CrawlerInfo("Diffbot", "Diffbot", "ai-extraction")),
    ("DataForSeoBot", CrawlerInfo("DataForSeoBot", "DataForSEO", "ai-extraction")),
    ("SemrushBot", CrawlerInfo("SemrushBot", "Semrush", "ai-extraction")),
    ("AhrefsBot", CrawlerInfo("AhrefsBot", "Ahrefs", "ai-extraction")),
    ("MJ12bot", CrawlerInfo("MJ12bot", "Majestic", "ai-extraction")),

    # Common Crawl & archives
    ("CCBot", CrawlerInfo("CCBot", "Common Crawl", "ai-training")),
    ("ia_archiver", CrawlerInfo("ia_archiver", "Internet Archive", "archival")),
    ("archive.org_bot", CrawlerInfo("archive.org_bot", "Internet Archive", "archival")),

    # Other search engines
    ("PetalBot", CrawlerInfo("PetalBot", "Petal Search", "search-ai")),
    ("SeznamBot", CrawlerInfo("SeznamBot", "Seznam", "search-ai")),
    ("YandexBot", CrawlerInfo("YandexBot", "Yandex", "search-ai")),
    ("DuckDuckBot", CrawlerInfo("DuckDuckBot", "DuckDuckGo", "search-ai")),
    ("Qwantify", CrawlerInfo("Qwantify", "Qwant", "search-ai")),

    # Research & emerging AI companies
    ("CohereBot", CrawlerInfo("CohereBot", "Cohere", "ai-training")),
    ("cohere-ai", CrawlerInfo("cohere-ai", "Cohere", "ai-training")),
    ("HuggingFaceBot", CrawlerInfo("HuggingFaceBot", "HuggingFace", "ai-training")),
    ("ResearchBot", CrawlerInfo("ResearchBot", "Research", "ai-training")),
    ("ScholarBot", CrawlerInfo("ScholarBot", "Scholar", "ai-training")),
]

_BROWSER_MARKERS: Final = (
    "mozilla/", "chrome/", "safari/", "firefox/", "edge/", "opera/",
    "webkit", "gecko", "trident", "android", "iphone", "ipad",
)

# Tokens that legitimately appear inside browser-style "Mozilla/5.0 (compatible; ...)" agents
_ALLOWED_IN_BROWSER_UA: Final = frozenset({
    "googlebot", "googlebot-image", "googlebot-news", "googlebot-video",
    "bingbot", "bingpreview", "facebookexternalhit",
    "gptbot", "chatgpt-user", "oai-searchbot", "claudebot", "claude-web",
    "perplexitybot", "perplexity-user", "applebot", "applebot-extended",
    "amazonbot", "bytespider", "meta-externalagent", "yandexbot", "petalbot",
    "semrushbot", "ahrefsbot", "duckduckbot", "baiduspider", "ccbot",
})

_GENERIC_BOT = re.compile(r"bot|crawler|spider|scraper", re.IGNORECASE)


def _browser_marker_count(ua_lower: str) -> int:
    return sum(1 for marker in _BROWSER_MARKERS if marker in ua_lower)


def _is_false_positive(ua_lower: str, token: str) -> bool:
    """A browser UA that merely contains a vendor token is not that crawler."""
    if _browser_marker_count(ua_lower) >= 2:
        return token.lower() not in _ALLOWED_IN_BROWSER_UA
    return False


def detect_crawler(user_agent: str | None) -> CrawlerMatch:
    """Classify a user agent as a known AI crawler, an unknown bot, or human traffic."""
    if not user_agent or not user_agent.strip():
        return CrawlerMatch(kind="human")

    ua_lower = user_agent.lower()

    for token, info in AI_CRAWLERS:
        if token.lower() in ua_lower:
            # a vendor token inside a browser UA is the browser, not a bot
            if _is_false_positive(ua_lower, token):
                return CrawlerMatch(kind="human")
            return CrawlerMatch(kind="known", crawler=info)

    if _GENERIC_BOT.search(user_agent):
        return CrawlerMatch(kind="unknown", crawler=UNKNOWN_CRAWLER)

    return CrawlerMatch(kind="human")


def get_crawler_info(user_agent: str | None) -> CrawlerInfo | None:
    return detect_crawler(user_agent).crawler


def is_ai_crawler(user_agent: str | None) -> bool:
    return detect_crawler(user_agent).is_crawler


def crawlers_by_company() -> dict[str, list[CrawlerInfo]]:
    grouped: dict[str, list[CrawlerInfo]] = {}
    for _, info in AI_CRAWLERS:
        grouped.setdefault(info.company, []).append(info)
    return grouped


def crawlers_by_category() -> dict[str, list[CrawlerInfo]]:
    grouped: dict[str, list[CrawlerInfo]] = {}
    for _, info in AI_CRAWLERS:
        grouped.setdefault(info.category, []).append(info)
    return grouped


def crawler_statistics() -> dict:
    """Counts of known crawlers per category and per company."""
    return {
        "total_crawlers": len(AI_CRAWLERS),
        "by_category": {k: len(v) for k, v in crawlers_by_category().items()},
        "by_company": {k: len(v) for k, v in crawlers_by_company().items()},
    }
