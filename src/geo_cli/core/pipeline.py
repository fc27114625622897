"""Citation intelligence pipeline.

Per citation, in order: verify, classify, detect hallucination, optionally
extract page text, analyze, synthesize a recommendation, persist. Each
citation is isolated: a failure is recorded on that citation and the rest of
the batch carries on.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timezone

import httpx
import structlog

from geo_cli.core.analyzer.base import AnalysisRequest, ContentAnalyzer, ContentExtractor
from geo_cli.core.analyzer.retry import with_retries
from geo_cli.core.classifier import ClassifierRules, classify_citation
from geo_cli.core.config import PipelineConfig
from geo_cli.core.errors import InvalidInputError, PersistenceFailure, UpstreamFailure
from geo_cli.core.hallucination import detect_hallucination
from geo_cli.core.models import (
    AnalysisStatus,
    BatchResult,
    BatchSummary,
    BrandContext,
    Citation,
    CitationIntelligence,
    CitationResult,
    Judgment,
    Priority,
    Recommendation,
    StoredSummary,
)
from geo_cli.core.recommendations import synthesize_recommendation
from geo_cli.core.store import CitationStore
from geo_cli.core.verifier import verify_url

logger = structlog.get_logger(__name__)


class CitationPipeline:
    """Runs citation batches against a store and optional analysis capabilities."""

    def __init__(
        self,
        store: CitationStore,
        analyzer: ContentAnalyzer | None = None,
        extractor: ContentExtractor | None = None,
        config: PipelineConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        rules: ClassifierRules | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self.store = store
        self.analyzer = analyzer
        self.extractor = extractor
        self.config = config or PipelineConfig()
        self.http_client = http_client
        self.rules = rules
        self._sleep = sleep

    async def _pause(self, delay_ms: int) -> None:
        if delay_ms > 0:
            await self._sleep(delay_ms / 1000)

    # ── Batch ─────────────────────────────────────────────────────────────────

    async def analyze_batch(
        self,
        citations: Sequence[Citation],
        brand: BrandContext,
        *,
        client_id: str | None = None,
        deep: bool = False,
    ) -> BatchResult:
        """Analyze a batch of citations for *brand*.

        Raises:
            InvalidInputError: brand name missing or no citations given.
        """
        if not brand.brand_name or not brand.brand_name.strip():
            raise InvalidInputError("brand_name is required")
        if not citations:
            raise InvalidInputError("at least one citation is required")

        limit = self.config.max_deep_batch_size if deep else self.config.max_batch_size
        batch = list(citations[:limit])
        skipped = len(citations) - len(batch)
        if skipped:
            logger.warning("batch_truncated", limit=limit, skipped=skipped, deep=deep)

        logger.info("batch_started", size=len(batch), client_id=client_id, deep=deep)
        if self.http_client is not None:
            results = await self._run_all(self.http_client, batch, brand, client_id, deep)
        else:
            async with httpx.AsyncClient() as client:
                results = await self._run_all(client, batch, brand, client_id, deep)

        summary = summarize_results(results)
        logger.info(
            "batch_finished",
            analyzed=summary.total_analyzed,
            hallucinated=summary.hallucinated,
            failed=summary.failed,
            recommendations=summary.recommendations_generated,
        )
        return BatchResult(summary=summary, results=results, skipped=skipped)

    async def _run_all(
        self,
        client: httpx.AsyncClient,
        batch: list[Citation],
        brand: BrandContext,
        client_id: str | None,
        deep: bool,
    ) -> list[CitationResult]:
        if self.config.concurrency == 1:
            return [await self.process_citation(client, c, brand, client_id, deep) for c in batch]

        semaphore = asyncio.Semaphore(self.config.concurrency)

        async def bounded(citation: Citation) -> CitationResult:
            async with semaphore:
                return await self.process_citation(client, citation, brand, client_id, deep)

        # gather keeps input order
        return list(await asyncio.gather(*(bounded(c) for c in batch)))

    # ── Single citation ───────────────────────────────────────────────────────

    async def process_citation(
        self,
        client: httpx.AsyncClient,
        citation: Citation,
        brand: BrandContext,
        client_id: str | None = None,
        deep: bool = False,
    ) -> CitationResult:
        intel = CitationIntelligence(
            citation_id=citation.id,
            source_answer_id=citation.source_answer_id,
            client_id=client_id,
            url=citation.url,
            domain=citation.domain,
            title=citation.title,
            source_model=citation.source_model,
            status=AnalysisStatus.analyzing,
        )
        errors: list[str] = []
        log = logger.bind(url=citation.url)

        try:
            verification = await verify_url(
                citation.url, client, timeout=self.config.verify_timeout
            )
            await self._pause(self.config.verify_delay_ms)

            classification = classify_citation(
                citation.url,
                citation.domain,
                brand.brand_domain,
                brand.competitors,
                self.rules,
            )
            hallucination = detect_hallucination(verification)
            intel = intel.model_copy(
                update={
                    "verification": verification,
                    "classification": classification,
                    "hallucination": hallucination,
                }
            )
            log.info(
                "citation_classified",
                category=classification.category.value,
                reachable=verification.reachable,
            )

            recommendation = None
            if not hallucination.is_hallucinated:
                extracted = None
                if deep and self.extractor is not None and self.extractor.configured:
                    extracted = await self.extractor.extract(citation.url)
                    await self._pause(self.config.extract_delay_ms)

                judgment = await self._judge(
                    AnalysisRequest(
                        brand_name=brand.brand_name,
                        url=citation.url,
                        domain=citation.domain,
                        title=citation.title,
                        category=classification.category,
                        competitors=brand.competitors,
                        extracted_text=extracted,
                    ),
                    errors,
                )
                if judgment is not None:
                    intel = intel.model_copy(
                        update={"analysis": judgment.model_dump(exclude_none=True)}
                    )
                recommendation = synthesize_recommendation(
                    citation, classification, judgment, brand.brand_name, intel.id
                )

            intel = intel.model_copy(
                update={
                    "status": AnalysisStatus.completed,
                    "processed_at": datetime.now(timezone.utc),
                }
            )
        except Exception as exc:  # noqa: BLE001
            log.error("citation_failed", error=str(exc))
            errors.append(str(exc) or type(exc).__name__)
            intel = intel.model_copy(
                update={
                    "status": AnalysisStatus.failed,
                    "error": str(exc) or type(exc).__name__,
                    "processed_at": datetime.now(timezone.utc),
                }
            )
            recommendation = None

        if recommendation is not None:
            recommendation = recommendation.model_copy(update={"client_id": client_id})
        return await self._persist(intel, recommendation, errors)

    async def _judge(self, request: AnalysisRequest, errors: list[str]) -> Judgment | None:
        analyzer = self.analyzer
        if analyzer is None or not analyzer.configured:
            return None
        try:
            judgment = await with_retries(
                lambda: analyzer.analyze(request),
                max_retries=self.config.max_retries,
                base_delay=self.config.retry_base_delay,
                operation="analyze",
                sleep=self._sleep,
            )
        except UpstreamFailure as exc:
            logger.warning("analyzer_failed_using_fallback", url=request.url, error=str(exc))
            errors.append(f"analyzer: {exc}")
            judgment = None
        await self._pause(self.config.analyze_delay_ms)
        return judgment

    def _write(
        self, intel: CitationIntelligence, recommendation: Recommendation | None
    ) -> tuple[CitationIntelligence, Recommendation | None]:
        stored = self.store.upsert_intelligence(intel)
        if recommendation is not None:
            recommendation = recommendation.model_copy(update={"intelligence_id": stored.id})
        self.store.replace_recommendation(stored.id, recommendation)
        return stored, recommendation

    async def _persist(
        self,
        intel: CitationIntelligence,
        recommendation: Recommendation | None,
        errors: list[str],
    ) -> CitationResult:
        # Store calls may block on disk; keep them off the event loop
        try:
            stored, recommendation = await asyncio.to_thread(self._write, intel, recommendation)
        except PersistenceFailure as exc:
            logger.error("citation_not_persisted", url=intel.url, error=str(exc))
            return CitationResult(
                intelligence=intel,
                recommendation=recommendation,
                persisted=False,
                errors=[*errors, str(exc)],
            )
        return CitationResult(intelligence=stored, recommendation=recommendation, errors=errors)


# ── Aggregation ───────────────────────────────────────────────────────────────


def summarize_results(results: Sequence[CitationResult]) -> BatchSummary:
    summary = BatchSummary(total_analyzed=len(results))
    for result in results:
        intel = result.intelligence
        if intel.status is AnalysisStatus.failed:
            summary.failed += 1
        if intel.hallucination.is_hallucinated:
            summary.hallucinated += 1
        elif intel.reachable:
            summary.verified += 1
        if intel.category is not None:
            summary.by_category[intel.category.value] += 1
        if result.recommendation is not None:
            summary.recommendations_generated += 1
    return summary


def get_summary(store: CitationStore, client_id: str | None = None) -> StoredSummary:
    """Aggregate already-persisted records without touching the network."""
    records = store.list_intelligence(client_id)
    recommendations = store.list_recommendations(client_id)

    summary = StoredSummary(
        total_analyzed=len(records),
        recommendations_total=len(recommendations),
    )
    for record in records:
        if record.hallucination.is_hallucinated:
            summary.hallucinated += 1
        elif record.reachable:
            summary.verified += 1
        if record.category is not None:
            summary.by_category[record.category.value] += 1
    for rec in recommendations:
        if not rec.actioned:
            summary.recommendations_pending += 1
        summary.recommendations_by_priority[Priority(rec.priority).value] += 1
    return summary
