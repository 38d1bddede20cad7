"""Snapshot worker: drains the queue and runs the per-URL visibility pipeline.

A drain claims one job at a time until the queue is empty or the
per-invocation cap is hit. Failures inside a job are written to that job's
row and the loop moves on; a failure to claim (database trouble) propagates
so the caller can surface it.
"""

import logging
import time
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable
from urllib.parse import urlparse

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from split.config import get_settings
from split.models.page_content import PageContent
from split.models.snapshot_summary import SnapshotSummary
from split.models.visibility_result import VisibilityResult
from split.services.llm_client import ChatClient, VisibilityServiceError
from split.services.page_scraper import PageScraper, ScrapedPage
from split.services.question_generator import QuestionGenerator
from split.services.snapshot_queue import (
    claim_next_snapshot,
    complete_snapshot,
    fail_snapshot,
    new_worker_id,
)
from split.services.technical_analyzer import AuditResult, analyze_page
from split.services.usage_service import increment_snapshots
from split.services.visibility_checker import VisibilityCheck, VisibilityChecker, normalize_domain
from split.services.visibility_scoring import summarize_url

logger = logging.getLogger(__name__)


def domain_from_url(url: str) -> str:
    hostname = urlparse(url).hostname
    if not hostname:
        raise ValueError(f"URL has no hostname: {url}")
    return normalize_domain(hostname)


@dataclass
class UrlAnalysis:
    url: str
    domain: str
    checks: list[VisibilityCheck] = field(default_factory=list)
    questions_generated: bool = True
    page: ScrapedPage | None = None
    audit: AuditResult | None = None
    page_error: str | None = None


@dataclass
class DrainResult:
    processed_count: int = 0
    last_request_id: uuid.UUID | None = None
    completed: list[uuid.UUID] = field(default_factory=list)
    failed: list[uuid.UUID] = field(default_factory=list)


class UrlAnalyzer:
    """Network side of the pipeline: questions, probes, scrape and audit."""

    def __init__(self, generator: QuestionGenerator, checker: VisibilityChecker, scraper: PageScraper):
        self.generator = generator
        self.checker = checker
        self.scraper = scraper

    @classmethod
    def from_settings(cls) -> "UrlAnalyzer":
        settings = get_settings()
        openai = ChatClient.openai()
        return cls(
            generator=QuestionGenerator(openai),
            checker=VisibilityChecker(
                ChatClient.perplexity(),
                openai,
                batch_size=settings.visibility_batch_size,
                batch_delay=settings.visibility_batch_delay_seconds,
            ),
            scraper=PageScraper.from_settings(),
        )

    def analyze(self, url: str, topic: str) -> UrlAnalysis:
        domain = domain_from_url(url)
        questions, generated = self.generator.generate(topic, domain)
        if not generated:
            logger.warning(f"Question generation failed for {url}, using fallback questions")

        analysis = UrlAnalysis(
            url=url,
            domain=domain,
            checks=self.checker.check_all(questions, domain),
            questions_generated=generated,
        )

        try:
            analysis.page = self.scraper.scrape(url)
        except VisibilityServiceError as e:
            logger.warning(f"Page scraping failed for {url}: {e}")
            analysis.page_error = str(e)
            return analysis

        try:
            analysis.audit = analyze_page(analysis.page)
        except Exception as e:
            logger.exception(f"Technical audit failed for {url}")
            analysis.page_error = f"Technical audit failed: {e}"
        return analysis


class SnapshotProcessor:

    def __init__(
        self,
        session_factory: Callable[[], Session],
        analyzer: UrlAnalyzer,
        max_per_invocation: int = 10,
        inter_job_delay: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.session_factory = session_factory
        self.analyzer = analyzer
        self.max_per_invocation = max_per_invocation
        self.inter_job_delay = inter_job_delay
        self.sleep = sleep

    @classmethod
    def from_settings(cls, session_factory: Callable[[], Session],
                      analyzer: UrlAnalyzer | None = None) -> "SnapshotProcessor":
        settings = get_settings()
        return cls(
            session_factory,
            analyzer or UrlAnalyzer.from_settings(),
            max_per_invocation=settings.snapshot_max_per_invocation,
            inter_job_delay=settings.snapshot_inter_job_delay_seconds,
        )

    def drain(
        self,
        user_id: uuid.UUID | None = None,
        request_id: uuid.UUID | None = None,
        worker_id: str | None = None,
    ) -> DrainResult:
        """Process pending snapshots until none remain or the cap is reached.

        With request_id only that row is eligible; with user_id only that
        user's rows are. Returns how many jobs were taken off the queue.
        """
        worker_id = worker_id or new_worker_id()
        result = DrainResult()
        logger.info(f"[{worker_id}] Starting queue drain (user={user_id}, request={request_id})")

        while result.processed_count < self.max_per_invocation:
            db = self.session_factory()
            try:
                job = claim_next_snapshot(db, worker_id, user_id=user_id, request_id=request_id)
                if job is None:
                    logger.info(f"[{worker_id}] Queue empty")
                    break
                job_id, urls, topic, owner_id = job.id, list(job.urls or []), job.topic, job.user_id
            finally:
                db.close()

            if self.process_job(worker_id, job_id, urls, topic, owner_id):
                result.completed.append(job_id)
            else:
                result.failed.append(job_id)
            result.processed_count += 1
            result.last_request_id = job_id

            if request_id is not None:
                break
            if self.inter_job_delay and result.processed_count < self.max_per_invocation:
                self.sleep(self.inter_job_delay)

        logger.info(f"[{worker_id}] Drain complete: processed {result.processed_count} snapshot(s)")
        return result

    def process_job(
        self,
        worker_id: str,
        job_id: uuid.UUID,
        urls: list[str],
        topic: str,
        owner_id: uuid.UUID | None,
    ) -> bool:
        """Run one claimed job to completed or failed. Returns True on completion."""
        logger.info(f"[{worker_id}] Processing snapshot {job_id}: {len(urls)} URL(s), topic={topic!r}")
        try:
            self.clear_results(job_id)
            for url in urls:
                try:
                    self.process_url(job_id, url, topic)
                except Exception:
                    logger.exception(f"[{worker_id}] Error processing URL {url} for snapshot {job_id}")

            self.write_summaries(job_id)

            db = self.session_factory()
            try:
                completed = complete_snapshot(db, job_id, worker_id)
                if completed and owner_id is not None:
                    increment_snapshots(db, owner_id)
                    db.commit()
            finally:
                db.close()

            if not completed:
                logger.warning(f"[{worker_id}] Snapshot {job_id} was no longer processing at completion")
            else:
                logger.info(f"[{worker_id}] Snapshot {job_id} completed")
            return completed

        except Exception as e:
            logger.error(f"[{worker_id}] Snapshot {job_id} failed: {e}")
            db = self.session_factory()
            try:
                fail_snapshot(db, job_id, worker_id, str(e))
            finally:
                db.close()
            return False

    def clear_results(self, job_id: uuid.UUID) -> None:
        """Drop rows left by an earlier run of a reclaimed or retried job."""
        db = self.session_factory()
        try:
            for model in (VisibilityResult, SnapshotSummary, PageContent):
                db.execute(
                    delete(model)
                    .where(model.request_id == job_id)
                    .execution_options(synchronize_session=False)
                )
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def process_url(self, job_id: uuid.UUID, url: str, topic: str) -> None:
        analysis = self.analyzer.analyze(url, topic)

        db = self.session_factory()
        try:
            for number, check in enumerate(analysis.checks, start=1):
                db.add(self.result_row(job_id, url, number, check))
            db.add(self.page_row(job_id, analysis))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

        found = sum(1 for c in analysis.checks if c.target_found)
        logger.info(f"Completed {url}: {found}/{len(analysis.checks)} questions found the target")

    @staticmethod
    def result_row(job_id: uuid.UUID, url: str, number: int, check: VisibilityCheck) -> VisibilityResult:
        metadata = {
            "api_call_duration_ms": check.duration_ms,
            "top_citations": check.top_citations,
        }
        if check.error:
            metadata["error"] = check.error
        return VisibilityResult(
            request_id=job_id,
            url=url,
            question_text=check.question.text,
            question_number=number,
            question_type=check.question.type,
            question_weight=check.question.weight,
            target_found=check.target_found,
            position=check.position,
            cited_domains=check.cited_domains,
            competitor_domains=check.competitor_domains,
            competitor_names=check.competitor_names,
            citation_snippet=check.citation_snippet,
            reasoning_summary=check.reasoning,
            search_metadata=metadata,
        )

    @staticmethod
    def page_row(job_id: uuid.UUID, analysis: UrlAnalysis) -> PageContent:
        row = PageContent(
            request_id=job_id,
            url=analysis.url,
            domain=analysis.domain,
            scrape_success=analysis.page is not None,
            scrape_error=analysis.page_error,
        )
        page = analysis.page
        if page is not None:
            row.title = page.title
            row.meta_description = page.meta_description
            row.raw_markdown = page.markdown
            row.raw_html = page.html
            row.word_count = page.word_count
            row.scrape_duration_ms = page.duration_ms
            row.scrape_metadata = page.metadata
        audit = analysis.audit
        if audit is not None:
            row.aeo_score = audit.weighted_score
            row.rendering_mode = audit.rendering_mode
            row.category_scores = audit.category_scores
            row.issues = audit.issues
            row.recommendations = audit.recommendations
        return row

    def write_summaries(self, job_id: uuid.UUID) -> None:
        db = self.session_factory()
        try:
            results = db.execute(
                select(VisibilityResult)
                .where(VisibilityResult.request_id == job_id)
                .order_by(VisibilityResult.url, VisibilityResult.question_number)
            ).scalars().all()

            by_url: dict[str, list[VisibilityResult]] = defaultdict(list)
            for row in results:
                by_url[row.url].append(row)

            for url, rows in by_url.items():
                summary = summarize_url(rows)
                db.add(SnapshotSummary(
                    request_id=job_id,
                    url=url,
                    visibility_score=summary.visibility_score,
                    mentions_count=summary.mentions_count,
                    total_questions=summary.total_questions,
                    top_competitors=summary.top_competitors,
                    insights=summary.insights,
                    insights_summary=summary.insights_summary,
                ))
                logger.info(f"Summary for {url}: {summary.visibility_score}/100 visibility")
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
