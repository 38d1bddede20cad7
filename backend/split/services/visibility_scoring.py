"""Per-URL visibility score and insight text."""

from dataclasses import dataclass, field
from typing import Iterable, Protocol

SCORE_FLOOR = 15
TOP_COMPETITOR_LIMIT = 5


class ScoredResult(Protocol):
    question_type: str
    target_found: bool
    competitor_names: list[str] | None


@dataclass
class UrlSummary:
    visibility_score: int
    mentions_count: int
    total_questions: int
    top_competitors: list[str] = field(default_factory=list)
    insights: list[str] = field(default_factory=list)

    @property
    def insights_summary(self) -> str:
        return " ".join(self.insights)


def weighted_score(hits: dict[str, int], totals: dict[str, int]) -> int:
    """Scale weighted hit rates (direct 1, indirect 2, comparison 3) to 0-100.

    Any non-zero visibility is floored to SCORE_FLOOR.
    """
    weighted = (
        hits.get("direct", 0) / max(totals.get("direct", 0), 1) * 1
        + hits.get("indirect", 0) / max(totals.get("indirect", 0), 1) * 2
        + hits.get("comparison", 0) / max(totals.get("comparison", 0), 1) * 3
    ) / 6
    score = round(weighted * 100)
    if 0 < score < SCORE_FLOOR:
        score = SCORE_FLOOR
    return min(score, 100)


def top_competitors(results: Iterable[ScoredResult], limit: int = TOP_COMPETITOR_LIMIT) -> list[str]:
    seen: list[str] = []
    for result in results:
        for name in result.competitor_names or []:
            if name not in seen:
                seen.append(name)
    return seen[:limit]


def band_insights(score: int) -> list[str]:
    if score >= 81:
        return [
            f"AI-native category leader: Dominant presence across all search types ({score}/100)",
            "Your brand is exceptionally well-positioned in AI search results",
        ]
    if score >= 61:
        return [
            f"Dominant AI visibility: Strong performance across search categories ({score}/100)",
            "Your brand consistently appears in relevant AI responses",
        ]
    if score >= 41:
        return [
            f"Good AI visibility: Notable presence in search results ({score}/100)",
            "You're competing well but have room for improvement in category queries",
        ]
    if score >= 21:
        return [
            f"Light AI presence: Found in some searches ({score}/100)",
            "Focus on improving content depth and category positioning",
        ]
    return [
        f"Limited AI visibility: Minimal presence detected ({score}/100)",
        "Priority: Establish foundational content strategy for AI discoverability",
    ]


def summarize_url(results: list[ScoredResult]) -> UrlSummary:
    hits = {"direct": 0, "indirect": 0, "comparison": 0}
    totals = {"direct": 0, "indirect": 0, "comparison": 0}
    for result in results:
        if result.question_type not in totals:
            continue
        totals[result.question_type] += 1
        if result.target_found:
            hits[result.question_type] += 1

    score = weighted_score(hits, totals)
    competitors = top_competitors(results)

    insights = band_insights(score)

    if hits["direct"]:
        insights.append(f"Direct queries: {hits['direct']}/{totals['direct']} brand mentions found")
    elif totals["direct"]:
        insights.append("Direct queries: Not found for brand-specific searches - improve brand authority content")

    if hits["indirect"]:
        insights.append(f"Category visibility: Appearing in {hits['indirect']}/{totals['indirect']} category searches")
    elif totals["indirect"]:
        insights.append(f"Category queries: Missing from {totals['indirect']} category searches - expand use case content")

    if hits["comparison"]:
        insights.append(f"Competitive presence: Featured in {hits['comparison']}/{totals['comparison']} comparison results")
    elif totals["comparison"]:
        insights.append(f"Competitive queries: Not mentioned in {totals['comparison']} comparison searches")

    if competitors:
        insights.append(f"Main competitors mentioned: {', '.join(competitors[:3])}")

    return UrlSummary(
        visibility_score=score,
        mentions_count=sum(hits.values()),
        total_questions=len(results),
        top_competitors=competitors,
        insights=insights,
    )
