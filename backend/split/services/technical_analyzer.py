"""Technical AEO audit of a scraped page.

Scores five categories (content quality, technical health, media
accessibility, schema markup, AI optimization), detects whether the page is
server- or client-rendered, and collects issues and recommendations. Works
on whatever the scraper returned; missing HTML degrades to a hybrid verdict.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any

from bs4 import BeautifulSoup

from split.services.page_scraper import ScrapedPage

logger = logging.getLogger(__name__)

SCORING_WEIGHTS = {
    "content_quality": 0.25,
    "technical_health": 0.20,
    "ai_optimization": 0.20,
    "media_accessibility": 0.15,
    "schema_markup": 0.20,
}

# No LLM review of the page; the category takes a neutral score
DEFAULT_AI_OPTIMIZATION_SCORE = 50

RENDERING_PENALTY = {"csr": 15, "hybrid": 5, "ssr": 0}

_STOPWORDS = frozenset(
    "the and for are but not you all can had her was one our out day get has him his how man "
    "new now old see two way who boy did its let put say she too use".split()
)
_LOADING_TEXT = re.compile(r"Loading\.\.\.|Please enable JavaScript|Loading\s*$", re.IGNORECASE)
_MD_HEADING = re.compile(r"^#{1,6}\s+", re.MULTILINE)
_MD_IMAGE = re.compile(r"!\[[^\]]*\]\([^)]+\)")
_SENTENCE_SPLIT = re.compile(r"[.!?]+")

_SEMANTIC_TAGS = ("article", "section", "aside", "header", "footer", "nav", "main")


@dataclass
class RenderingAnalysis:
    mode: str
    confidence: int
    ssr_content: bool
    indicators: list[str] = field(default_factory=list)
    csr_warnings: list[str] = field(default_factory=list)


@dataclass
class CategoryResult:
    score: int
    issues: list[dict[str, Any]] = field(default_factory=list)
    recommendations: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class AuditResult:
    url: str
    overall_score: int
    weighted_score: int
    rendering_mode: str
    category_scores: dict[str, int]
    issues: list[dict[str, Any]]
    recommendations: list[dict[str, Any]]
    metadata: dict[str, Any] = field(default_factory=dict)


def _issue(severity: str, category: str, title: str, description: str, impact: str,
           fix_priority: int, **extra) -> dict[str, Any]:
    return {
        "severity": severity,
        "category": category,
        "title": title,
        "description": description,
        "impact": impact,
        "fix_priority": fix_priority,
        **extra,
    }


def _recommendation(category: str, title: str, description: str, implementation: str,
                    expected_impact: str, effort_level: str, priority_score: int) -> dict[str, Any]:
    return {
        "category": category,
        "title": title,
        "description": description,
        "implementation": implementation,
        "expected_impact": expected_impact,
        "effort_level": effort_level,
        "priority_score": priority_score,
    }


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "lxml")


def _visible_text(soup: BeautifulSoup) -> str:
    for tag in soup(["script", "style"]):
        tag.decompose()
    return " ".join(soup.get_text(" ").split())


def _has_content_before_scripts(soup: BeautifulSoup) -> bool:
    for tag in soup.find_all(True):
        if tag.name == "script":
            return False
        if tag.name in ("h1", "h2", "h3", "article", "main", "section"):
            return True
        if tag.name == "p" and len(tag.get_text(strip=True)) >= 20:
            return True
    return False


def _is_empty_mount(soup: BeautifulSoup, element_id: str) -> bool:
    node = soup.find("div", id=element_id)
    return node is not None and not node.get_text(strip=True) and not node.find(True)


def detect_rendering_mode(html: str) -> RenderingAnalysis:
    """Classify a page as ssr, csr or hybrid from its initial HTML."""
    if not html:
        return RenderingAnalysis(
            mode="hybrid",
            confidence=0,
            ssr_content=False,
            indicators=["No HTML content available"],
            csr_warnings=["Cannot analyze rendering without HTML"],
        )

    soup = _soup(html)
    indicators: list[str] = []
    warnings: list[str] = []

    ssr_content = _has_content_before_scripts(soup)
    if ssr_content:
        indicators.append("Server-rendered semantic content detected")
    else:
        warnings.append("No meaningful content found before JavaScript execution")

    empty_react_root = _is_empty_mount(soup, "root")
    empty_vue_app = _is_empty_mount(soup, "app")
    has_noscript = soup.find("noscript") is not None
    has_headings = soup.find(["h1", "h2", "nav", "main"]) is not None
    has_semantic = soup.find(list(_SEMANTIC_TAGS)) is not None

    text = _visible_text(soup)
    loading_states = bool(_LOADING_TEXT.search(text))
    meaningful_words = [w for w in text.split() if len(w) > 3 and w.lower() not in _STOPWORDS]
    rich_content = len(meaningful_words) > 50

    if empty_react_root:
        indicators.append("Empty React root div detected")
        warnings.append("React app with no server-rendered content")
    if empty_vue_app:
        indicators.append("Empty Vue app div detected")
        warnings.append("Vue app with no server-rendered content")
    if loading_states:
        indicators.append("Client-side loading states found")
        warnings.append("Page shows loading indicators suggesting client-side rendering")
    if has_noscript and len(meaningful_words) < 20:
        indicators.append("NoScript warning with minimal content")
        warnings.append("Page requires JavaScript with minimal fallback content")

    if rich_content:
        indicators.append(f"Rich content: {len(meaningful_words)} meaningful words")
    else:
        warnings.append(f"Thin content: only {len(meaningful_words)} meaningful words")
    if has_headings:
        indicators.append("Proper heading structure detected")
    else:
        warnings.append("Missing heading structure (H1-H6)")
    if has_semantic:
        indicators.append("Semantic HTML5 elements found")
    else:
        warnings.append("No semantic HTML5 elements detected")

    csr_score = (
        (25 if empty_react_root else 0)
        + (25 if empty_vue_app else 0)
        + (20 if loading_states else 0)
        + (0 if rich_content else 30)
    )
    ssr_score = (
        (40 if ssr_content else 0)
        + (30 if rich_content else 0)
        + (20 if has_headings else 0)
        + (10 if has_semantic else 0)
    )

    if csr_score > 50 and ssr_score < 30:
        mode, confidence = "csr", min(95, csr_score + 20)
    elif ssr_score > 70 and csr_score < 30:
        mode, confidence = "ssr", min(95, ssr_score + 10)
    else:
        mode, confidence = "hybrid", 60 if abs(ssr_score - csr_score) < 20 else 80

    return RenderingAnalysis(mode, confidence, ssr_content, indicators, warnings)


def analyze_content_quality(page: ScrapedPage, soup: BeautifulSoup) -> CategoryResult:
    result = CategoryResult(score=100)
    content = page.content or page.markdown
    title = page.title or (soup.title.get_text(strip=True) if soup.title else "")
    meta = soup.find("meta", attrs={"name": "description"})
    description = page.meta_description or (meta.get("content", "") if meta else "")
    word_count = page.word_count or len(content.split())

    if not title:
        result.issues.append(_issue(
            "critical", "seo", "Missing page title",
            "Page has no title tag, which is critical for SEO and user experience",
            "Major negative impact on search rankings and click-through rates", 10,
        ))
        result.score -= 25
    elif len(title) < 30:
        result.issues.append(_issue(
            "warning", "seo", "Title too short",
            f"Title is only {len(title)} characters. Recommended: 30-60 characters",
            "Missed opportunity for keyword optimization and user engagement", 7,
            html_snippet=f"<title>{title}</title>",
        ))
        result.score -= 10
    elif len(title) > 60:
        result.issues.append(_issue(
            "warning", "seo", "Title too long",
            f"Title is {len(title)} characters. May be truncated in search results",
            "Title may be cut off in search results, reducing effectiveness", 6,
            html_snippet=f"<title>{title}</title>",
        ))
        result.score -= 5

    if not description:
        result.issues.append(_issue(
            "warning", "seo", "Missing meta description",
            "Page has no meta description for search result snippets",
            "Search engines will generate their own snippet, potentially less compelling", 8,
        ))
        result.score -= 15
    elif len(description) < 120:
        result.recommendations.append(_recommendation(
            "seo", "Expand meta description",
            f"Meta description is only {len(description)} characters",
            "Expand to 150-160 characters to maximize search result real estate",
            "Improved click-through rates from search results", "low", 6,
        ))
    elif len(description) > 160:
        result.issues.append(_issue(
            "info", "seo", "Meta description too long",
            f"Meta description is {len(description)} characters and may be truncated",
            "Description may be cut off in search results", 4,
        ))
        result.score -= 3

    if word_count < 100:
        result.issues.append(_issue(
            "critical", "content", "Very thin content",
            f"Page has only {word_count} words, which is insufficient for most purposes",
            "Severe negative impact on search rankings and user value", 9,
            html_snippet=content[:200],
        ))
        result.score -= 30
    elif word_count < 300:
        result.issues.append(_issue(
            "warning", "content", "Thin content",
            f"Page has only {word_count} words. Recommended: 300+ words for substantial content",
            "May be considered thin content by search engines and AI systems", 7,
            html_snippet=content[:200],
        ))
        result.score -= 20

    has_headings = bool(_MD_HEADING.search(content)) or soup.find(["h1", "h2", "h3", "h4", "h5", "h6"]) is not None
    if not has_headings:
        result.issues.append(_issue(
            "warning", "content", "No heading structure",
            "Page appears to lack clear heading structure (H1-H6)",
            "Poor content organization affects readability and SEO", 6,
        ))
        result.score -= 10

    sentences = [s for s in _SENTENCE_SPLIT.split(content) if len(s.strip()) > 10]
    if sentences:
        avg_length = sum(len(s.split()) for s in sentences) / len(sentences)
        if avg_length > 25:
            result.recommendations.append(_recommendation(
                "content", "Simplify sentence structure",
                f"Average sentence length is {avg_length:.1f} words",
                "Break down complex sentences into shorter, clearer statements",
                "Improved readability for both humans and AI systems", "medium", 5,
            ))

    result.score = max(0, result.score)
    return result


def analyze_technical_health(page: ScrapedPage, soup: BeautifulSoup) -> CategoryResult:
    result = CategoryResult(score=100)
    status_code = page.metadata.get("statusCode")

    if status_code and status_code != 200:
        result.issues.append(_issue(
            "critical", "performance", f"HTTP {status_code} status",
            f"Page returns {status_code} status code instead of 200",
            "Page may not be indexed properly by search engines", 10,
        ))
        result.score -= 40

    has_canonical = page.metadata.get("canonicalUrl") or soup.find("link", rel="canonical")
    if not has_canonical:
        result.issues.append(_issue(
            "warning", "seo", "Missing canonical URL",
            "Page does not declare a canonical URL",
            "May lead to duplicate content issues", 6,
        ))
        result.score -= 10

    if page.url.startswith("http://"):
        result.issues.append(_issue(
            "critical", "performance", "Non-secure HTTP connection",
            "Page is served over HTTP instead of HTTPS",
            "Security risk and negative SEO impact", 9,
        ))
        result.score -= 25

    result.score = max(0, result.score)
    return result


def analyze_media_accessibility(page: ScrapedPage, soup: BeautifulSoup) -> CategoryResult:
    result = CategoryResult(score=100)
    images = soup.find_all("img")
    total = len(images) + len(_MD_IMAGE.findall(page.markdown or ""))
    if not total:
        return result

    missing_alt = sum(1 for img in images if not (img.get("alt") or "").strip())
    coverage = max(0.0, (total - missing_alt) / total)
    if coverage < 0.8:
        result.issues.append(_issue(
            "warning", "accessibility", "Missing image alt text",
            f"{round((1 - coverage) * 100)}% of images lack descriptive alt text",
            "Poor accessibility and reduced AI understanding of visual content", 7,
        ))
        result.score -= 20
    return result


def analyze_schema_markup(page: ScrapedPage, soup: BeautifulSoup) -> CategoryResult:
    # Schema is optional, so a page without it starts from 80 rather than 100
    result = CategoryResult(score=80)
    if not soup.find("script", attrs={"type": "application/ld+json"}):
        result.recommendations.append(_recommendation(
            "seo", "Add structured data",
            "Page lacks structured data markup",
            "Add JSON-LD schema markup relevant to content type (Article, Organization, Product, etc.)",
            "Enhanced search results and better AI understanding", "medium", 7,
        ))
        result.score -= 20
    return result


def analyze_page(page: ScrapedPage) -> AuditResult:
    """Run every category check and fold them into one scored audit."""
    soup = _soup(page.html)
    categories = {
        "content_quality": analyze_content_quality(page, soup),
        "technical_health": analyze_technical_health(page, soup),
        "media_accessibility": analyze_media_accessibility(page, soup),
        "schema_markup": analyze_schema_markup(page, soup),
    }
    issues = [i for c in categories.values() for i in c.issues]
    recommendations = [r for c in categories.values() for r in c.recommendations]
    scores = {name: c.score for name, c in categories.items()}
    scores["ai_optimization"] = DEFAULT_AI_OPTIMIZATION_SCORE

    rendering = detect_rendering_mode(page.html)
    penalty = RENDERING_PENALTY[rendering.mode]
    if rendering.csr_warnings and not rendering.ssr_content:
        issues.append(_issue(
            "warning", "performance", "Client-side rendering detected",
            "Page appears to be client-side rendered only, no server-rendered HTML detected. "
            + "; ".join(rendering.csr_warnings),
            "Poor SEO performance, slower initial page loads, and reduced AI crawler accessibility", 7,
            html_snippet=(page.html or "")[:300],
        ))

    simple = round(sum(scores.values()) / len(scores))
    weighted = round(sum(scores[name] * weight for name, weight in SCORING_WEIGHTS.items()))

    logger.info(
        f"AEO analysis for {page.url}: {max(0, weighted - penalty)}/100 "
        f"({rendering.mode}, confidence {rendering.confidence}%, {len(issues)} issues)"
    )

    return AuditResult(
        url=page.url,
        overall_score=max(0, simple - penalty),
        weighted_score=max(0, weighted - penalty),
        rendering_mode=rendering.mode,
        category_scores=scores,
        issues=sorted(issues, key=lambda i: i["fix_priority"], reverse=True),
        recommendations=sorted(recommendations, key=lambda r: r["priority_score"], reverse=True),
        metadata={
            "rendering_confidence": rendering.confidence,
            "rendering_indicators": rendering.indicators,
            "ssr_score_penalty": penalty,
            "scoring_weights": SCORING_WEIGHTS,
        },
    )
