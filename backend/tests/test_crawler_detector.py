"""Tests for AI crawler user-agent classification."""

import pytest

from split.services.crawler_detector import (
    AI_CRAWLERS,
    crawler_statistics,
    crawlers_by_company,
    detect_crawler,
    get_crawler_info,
    is_ai_crawler,
)

CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@pytest.mark.parametrize(
    "user_agent, name, company",
    [
        ("GPTBot/1.0 (+https://openai.com/gptbot)", "GPTBot", "OpenAI"),
        ("Mozilla/5.0 AppleWebKit/537.36 (KHTML, like Gecko; compatible; GPTBot/1.1; +https://openai.com/gptbot)",
         "GPTBot", "OpenAI"),
        ("Mozilla/5.0 (compatible; ClaudeBot/1.0; +claudebot@anthropic.com)", "ClaudeBot", "Anthropic"),
        ("Googlebot-Image/1.0", "Googlebot-Image", "Google"),
        ("Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)", "Googlebot", "Google"),
        ("Applebot-Extended/0.1", "Applebot-Extended", "Apple"),
        ("PerplexityBot/1.0", "PerplexityBot", "Perplexity"),
        ("CCBot/2.0 (https://commoncrawl.org/faq/)", "CCBot", "Common Crawl"),
    ],
)
def test_known_crawlers(user_agent, name, company):
    match = detect_crawler(user_agent)
    assert match.kind == "known"
    assert match.crawler.name == name
    assert match.crawler.company == company


def test_matching_is_case_insensitive():
    assert detect_crawler("gptbot/1.0").crawler.name == "GPTBot"


def test_specific_tokens_precede_prefixes():
    tokens = [token for token, _ in AI_CRAWLERS]
    assert tokens.index("Googlebot-Image") < tokens.index("Googlebot")
    assert tokens.index("Applebot-Extended") < tokens.index("Applebot")


def test_regular_browser_is_human():
    match = detect_crawler(CHROME_UA)
    assert match.kind == "human"
    assert match.crawler is None
    assert not match.is_crawler


def test_browser_ua_with_vendor_token_is_false_positive():
    assert detect_crawler(CHROME_UA + " Diffbot").kind == "human"


def test_generic_bot_shape_is_unknown_ai_bot():
    match = detect_crawler("WidgetBot/2.1")
    assert match.kind == "unknown"
    assert match.crawler.name == "Unknown AI Bot"
    assert match.crawler.company == "Unknown"
    assert match.crawler.category == "ai-unknown"


@pytest.mark.parametrize(
    "user_agent",
    [
        "Mozilla/5.0 (compatible; FooBot/2.1; +http://foo.example/bot)",
        "somerandombot",
        "my uptime bot checking things",
        "AcmeCrawler",
        "site-scraper/0.3",
        "Mozilla/5.0 (Windows NT 10.0) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0 SpiderKit",
    ],
)
def test_any_unlisted_bot_is_unknown(user_agent):
    match = detect_crawler(user_agent)
    assert match.kind == "unknown"
    assert match.crawler.name == "Unknown AI Bot"


@pytest.mark.parametrize("user_agent", [None, "", "   "])
def test_missing_user_agent_is_human(user_agent):
    assert detect_crawler(user_agent).kind == "human"


def test_detection_is_deterministic():
    assert detect_crawler("ClaudeBot/1.0") == detect_crawler("ClaudeBot/1.0")


def test_helpers():
    assert is_ai_crawler("Bytespider")
    assert not is_ai_crawler(CHROME_UA)
    assert get_crawler_info("Amazonbot/0.1").company == "Amazon"
    assert get_crawler_info(CHROME_UA) is None

    by_company = crawlers_by_company()
    assert {c.name for c in by_company["OpenAI"]} == {"GPTBot", "ChatGPT-User", "OAI-SearchBot"}

    stats = crawler_statistics()
    assert stats["total_crawlers"] == len(AI_CRAWLERS)
    assert sum(stats["by_company"].values()) == len(AI_CRAWLERS)
