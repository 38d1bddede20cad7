"""Answer-engine visibility probes.

One Perplexity search per question; the answer text and its cited sources
decide whether the target brand is visible, and a follow-up OpenAI call pulls
competitor product names out of the answer.
"""

import json
import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

from split.services.llm_client import ChatClient, VisibilityServiceError
from split.services.question_generator import Question

logger = logging.getLogger(__name__)

MAX_SNIPPET_LENGTH = 400
MAX_COMPETITOR_NAMES = 10
MAX_COMPETITOR_DOMAINS = 5
NO_ANSWER_SNIPPET = "No AI response available for this query."

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_CODE_FENCE = re.compile(r"```json\s*|\s*```")


@dataclass
class VisibilityCheck:
    question: Question
    target_found: bool = False
    position: int | None = None
    cited_domains: list[str] = field(default_factory=list)
    competitor_domains: list[str] = field(default_factory=list)
    competitor_names: list[str] = field(default_factory=list)
    citation_snippet: str | None = None
    reasoning: str = ""
    top_citations: list[dict[str, Any]] = field(default_factory=list)
    duration_ms: int = 0
    error: str | None = None


def normalize_domain(value: str) -> str:
    return value.lower().removeprefix("www.")


def extract_hostname(url: Any) -> str | None:
    if not url or not isinstance(url, str):
        return None
    full = url if url.startswith("http") else f"https://{url}"
    try:
        hostname = urlparse(full).hostname
    except ValueError:
        return None
    return normalize_domain(hostname) if hostname else None


def citation_snippet(answer: str) -> str:
    """First two meaningful sentences of an answer, capped for display."""
    if not answer:
        return NO_ANSWER_SNIPPET

    sentences = [s for s in _SENTENCE_SPLIT.split(answer) if len(s.strip()) > 10]
    if len(sentences) >= 2:
        snippet = f"{sentences[0]}.{sentences[1]}.".strip()
    elif sentences:
        snippet = f"{sentences[0]}.".strip()
    else:
        snippet = answer[:300].strip()

    if len(snippet) > MAX_SNIPPET_LENGTH:
        snippet = snippet[: MAX_SNIPPET_LENGTH - 3] + "..."
    return snippet


def _domains_match(hostname: str, target: str) -> bool:
    return hostname in target or target in hostname


def locate_target(answer: str, citations: list[dict[str, Any]], target_domain: str) -> int | None:
    """Position of the target in a search response, or None when absent.

    A brand mention in the answer itself counts as position 1; otherwise the
    1-based rank of the first citation hosted on the target domain.
    """
    target = normalize_domain(target_domain)
    brand = target.split(".")[0]
    if brand and brand in answer.lower():
        return 1
    for rank, citation in enumerate(citations, start=1):
        hostname = extract_hostname(citation.get("url"))
        if hostname and _domains_match(hostname, target):
            return rank
    return None


def parse_name_list(content: str) -> list[str]:
    cleaned = _CODE_FENCE.sub("", content or "[]").strip()
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        logger.warning(f"Competitor extraction returned non-JSON content: {cleaned[:100]!r}")
        return []
    if not isinstance(parsed, list):
        return []
    return [str(name) for name in parsed if name][:MAX_COMPETITOR_NAMES]


class VisibilityChecker:
    """Runs visibility probes for a set of questions against one target domain."""

    def __init__(self, search_client: ChatClient, extraction_client: ChatClient,
                 batch_size: int = 10, batch_delay: float = 0.0):
        self.search_client = search_client
        self.extraction_client = extraction_client
        self.batch_size = batch_size
        self.batch_delay = batch_delay

    def check_all(self, questions: list[Question], target_domain: str) -> list[VisibilityCheck]:
        """Probe every question, batch_size at a time, preserving question order."""
        checks: list[VisibilityCheck] = []
        for start in range(0, len(questions), self.batch_size):
            batch = questions[start:start + self.batch_size]
            logger.info(
                f"Testing batch {start // self.batch_size + 1}/"
                f"{(len(questions) + self.batch_size - 1) // self.batch_size} for {target_domain}"
            )
            with ThreadPoolExecutor(max_workers=len(batch)) as pool:
                checks.extend(pool.map(lambda q: self.check(q, target_domain), batch))
            if self.batch_delay and start + self.batch_size < len(questions):
                time.sleep(self.batch_delay)
        return checks

    def check(self, question: Question, target_domain: str) -> VisibilityCheck:
        """Probe one question. Search failures become a not-found result, never an exception."""
        try:
            resp = self.search_client.complete([{"role": "user", "content": question.text}])
        except VisibilityServiceError as e:
            logger.warning(f"Search failed for {question.text!r}: {e}")
            return VisibilityCheck(
                question=question,
                reasoning=f"Search failed: {e}",
                error=str(e),
            )

        answer = resp.content
        citations = resp.search_results
        target = normalize_domain(target_domain)
        brand = target.split(".")[0]

        position = locate_target(answer, citations, target)
        snippet = citation_snippet(answer)
        competitor_names = self.extract_competitors(answer, brand) if answer else []

        cited = [h for h in (extract_hostname(c.get("url")) for c in citations) if h]
        competitor_domains = [d for d in cited if not _domains_match(d, target)][:MAX_COMPETITOR_DOMAINS]

        if position is not None:
            reasoning = f'Target found at position {position}. Citation: "{snippet[:100]}..."'
        else:
            reasoning = (
                "Target not found in search results. AI identified competitors: "
                f"{', '.join(competitor_names[:3])}"
            )

        return VisibilityCheck(
            question=question,
            target_found=position is not None,
            position=position,
            cited_domains=cited,
            competitor_domains=competitor_domains,
            competitor_names=competitor_names,
            citation_snippet=snippet,
            reasoning=reasoning,
            top_citations=[
                {
                    "url": c.get("url"),
                    "title": (c.get("title") or "")[:200],
                    "rank": c.get("rank") or 1,
                }
                for c in citations[:5]
            ],
            duration_ms=resp.duration_ms,
        )

    def extract_competitors(self, answer: str, brand: str) -> list[str]:
        prompt = (
            f'You are analyzing search results about "{brand}" to find competing products or services mentioned.\n\n'
            f"Extract ONLY the product/service names (not website domains) that are mentioned as alternatives, "
            f'competitors, or comparisons to "{brand}".\n\n'
            "Do NOT include:\n"
            "- Website domains (mercury.com, stripe.com, etc.)\n"
            "- Generic terms (banking, fintech, startup)\n"
            f'- The target brand "{brand}" itself\n\n'
            "Return ONLY a JSON array of product names. If no competitors are mentioned, return [].\n\n"
            f'Search result snippets to analyze:\n1. "{answer}"\n\n'
            "JSON array of competitor product names:"
        )
        try:
            resp = self.extraction_client.complete(
                [
                    {"role": "system", "content": "Extract product/tool names from text snippets. Return only a JSON array of strings."},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=150,
                temperature=0.0,
            )
        except VisibilityServiceError as e:
            logger.warning(f"Competitor extraction failed: {e}")
            return []
        return parse_name_list(resp.content)
