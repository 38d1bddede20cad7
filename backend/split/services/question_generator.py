"""Search-question generation for visibility snapshots.

Each URL is probed with three question sets:

* direct (weight 1): brand-specific informational queries
* indirect (weight 2): category queries that surface recommendations
* comparison (weight 3): brand-vs-alternatives queries

LLM output is cleaned line by line and padded with fixed fallbacks so every
set always has exactly its target size.
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Final

from split.services.llm_client import ChatClient, VisibilityServiceError

logger = logging.getLogger(__name__)

DIRECT_COUNT: Final = 10
INDIRECT_COUNT: Final = 20
COMPARISON_COUNT: Final = 10

QUESTION_WEIGHTS: Final[dict[str, int]] = {"direct": 1, "indirect": 2, "comparison": 3}

_BULLET = re.compile(r"^[-*]\s*")
_NUMBERING = re.compile(r"^\d+\.\s*")


@dataclass(frozen=True)
class Question:
    text: str
    type: str
    weight: int


def brand_from_domain(domain: str) -> str:
    return domain.lower().removeprefix("www.").split(".")[0]


def clean_question_lines(content: str, min_length: int) -> list[str]:
    """Strip bullets and numbering, drop short lines."""
    questions = []
    for line in content.split("\n"):
        cleaned = _NUMBERING.sub("", _BULLET.sub("", line.strip())).strip()
        if len(cleaned) > min_length:
            questions.append(cleaned)
    return questions


def pad_with_fallbacks(questions: list[str], fallbacks: list[str], count: int) -> list[str]:
    questions = questions[:count]
    while len(questions) < count:
        questions.append(fallbacks[len(questions)])
    return questions


def direct_fallbacks(brand: str) -> list[str]:
    return [
        f"What is {brand}?",
        f"How does {brand} work?",
        f"Who is {brand} for?",
        f"{brand} pricing",
        f"{brand} features and benefits",
        f"{brand} review",
        f"{brand} vs competitors",
        f"{brand} use cases",
        f"{brand} integration options",
        f"{brand} customer support",
    ]


def indirect_fallbacks(topic: str) -> list[str]:
    return [
        f"Best {topic} tools for businesses",
        f"Top {topic} software 2024",
        f"{topic} platform comparison",
        f"{topic} recommendations",
        f"Most popular {topic} tools",
        f"{topic} software for startups",
        f"Enterprise {topic} solutions",
        f"{topic} tools for small business",
        f"{topic} platform reviews",
        f"{topic} software pricing comparison",
        f"{topic} automation tools",
        f"{topic} integration platforms",
        f"{topic} SaaS solutions",
        f"{topic} tool alternatives",
        f"{topic} software features",
        f"{topic} platform benefits",
        f"{topic} tool comparison guide",
        f"{topic} software selection",
        f"{topic} platform evaluation",
        f"{topic} solution providers",
    ]


def comparison_fallbacks(brand: str, topic: str) -> list[str]:
    return [
        f"{brand} alternatives",
        f"{brand} competitors",
        f"{brand} vs other {topic} tools",
        f"Is {brand} the best {topic} solution?",
        f"{brand} comparison",
        f"{brand} vs top competitors",
        f"Better alternatives to {brand}",
        f"{brand} competitive analysis",
        f"{brand} vs market leaders",
        f"{brand} compared to other options",
    ]


def basic_fallback_questions(brand: str, topic: str) -> list[Question]:
    """Used when question generation fails outright."""
    return [
        Question(f"What is {brand}?", "direct", 1),
        Question(f"Best {topic} tools for businesses", "indirect", 2),
        Question(f"{topic} software comparison 2024", "indirect", 2),
        Question(f"Top {topic} platforms", "indirect", 2),
        Question(f"{topic} recommendations", "indirect", 2),
    ]


class QuestionGenerator:

    def __init__(self, client: ChatClient):
        self.client = client

    def generate(self, topic: str, domain: str) -> tuple[list[Question], bool]:
        """Return (questions, generated_ok). Falls back to a basic set on failure."""
        brand = brand_from_domain(domain)
        logger.info(f"Generating questions for topic={topic!r} brand={brand!r}")

        try:
            with ThreadPoolExecutor(max_workers=3) as pool:
                direct = pool.submit(self.direct_questions, brand, topic)
                indirect = pool.submit(self.indirect_questions, topic)
                comparison = pool.submit(self.comparison_questions, brand, topic)
                sets = {
                    "direct": direct.result(),
                    "indirect": indirect.result(),
                    "comparison": comparison.result(),
                }
        except VisibilityServiceError as e:
            logger.warning(f"Question generation failed, using fallbacks: {e}")
            return basic_fallback_questions(brand, topic), False

        questions = [
            Question(text, qtype, QUESTION_WEIGHTS[qtype])
            for qtype, texts in sets.items()
            for text in texts
        ]
        logger.info(
            f"Generated {len(questions)} questions "
            f"(direct={len(sets['direct'])}, indirect={len(sets['indirect'])}, comparison={len(sets['comparison'])})"
        )
        return questions, True

    def direct_questions(self, brand: str, topic: str) -> list[str]:
        resp = self.client.complete(
            [
                {"role": "system", "content": "Generate direct brand questions that users would ask about a specific company. Focus on informational queries."},
                {"role": "user", "content": (
                    f'Brand: "{brand}"\nTopic: "{topic}"\n\n'
                    f"Generate exactly {DIRECT_COUNT} direct questions about this brand. Examples:\n"
                    f'- "What is {brand}?"\n- "How does {brand} work?"\n- "Who is {brand} for?"\n'
                    f'- "{brand} pricing"\n- "{brand} features"\n\n'
                    "Return only the questions, one per line."
                )},
            ],
            max_tokens=200,
            temperature=0.8,
        )
        return pad_with_fallbacks(clean_question_lines(resp.content, 5), direct_fallbacks(brand), DIRECT_COUNT)

    def indirect_questions(self, topic: str) -> list[str]:
        resp = self.client.complete(
            [
                {"role": "system", "content": 'Generate category/topic questions that would surface product recommendations. Focus on "best", "top", "compare" queries.'},
                {"role": "user", "content": (
                    f'Topic: "{topic}"\n\n'
                    f"Generate exactly {INDIRECT_COUNT} indirect questions about this category. Examples:\n"
                    f'- "Best {topic} tools for startups"\n- "Top {topic} software 2024"\n'
                    f'- "Compare {topic} platforms"\n- "{topic} recommendations for small business"\n\n'
                    "Return only the questions, one per line."
                )},
            ],
            max_tokens=300,
            temperature=0.9,
        )
        return pad_with_fallbacks(clean_question_lines(resp.content, 10), indirect_fallbacks(topic), INDIRECT_COUNT)

    def comparison_questions(self, brand: str, topic: str) -> list[str]:
        resp = self.client.complete(
            [
                {"role": "system", "content": "Generate comparison questions that pit a specific brand against competitors or alternatives."},
                {"role": "user", "content": (
                    f'Brand: "{brand}"\nTopic: "{topic}"\n\n'
                    f"Generate exactly {COMPARISON_COUNT} comparison questions. Examples:\n"
                    f'- "{brand} vs [competitor]"\n- "Alternatives to {brand}"\n'
                    f'- "{brand} competitors"\n- "Is {brand} better than [alternative]?"\n\n'
                    "Return only the questions, one per line."
                )},
            ],
            max_tokens=150,
            temperature=0.7,
        )
        return pad_with_fallbacks(
            clean_question_lines(resp.content, 5),
            comparison_fallbacks(brand, topic),
            COMPARISON_COUNT,
        )
