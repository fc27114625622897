"""Pydantic models for citation intelligence, visibility audits and content signals."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from geo_cli.core.urls import extract_domain

INFLUENCE_WEIGHTS: tuple[float, float, float] = (0.4, 0.3, 0.3)
"""(authority, freshness, relevance) weights of the influence score."""


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Enums ─────────────────────────────────────────────────────────────────────


class Category(str, Enum):
    """Actionable citation category."""

    brand_owned = "brand_owned"
    wikipedia = "wikipedia"
    app_store = "app_store"
    competitor_blog = "competitor_blog"
    press_media = "press_media"
    ugc = "ugc"
    other = "other"


class OpportunityLevel(str, Enum):
    easy = "easy"
    medium = "medium"
    difficult = "difficult"


class Priority(str, Enum):
    critical = "critical"
    high = "high"
    medium = "medium"
    low = "low"


class AnalysisStatus(str, Enum):
    pending = "pending"
    analyzing = "analyzing"
    completed = "completed"
    failed = "failed"


class HallucinationType(str, Enum):
    unreachable = "unreachable"
    fake_domain = "fake_domain"


class OutputFormat(str, Enum):
    """Output format for CLI reports."""

    json = "json"
    csv = "csv"
    table = "table"


# ── Citation intelligence ─────────────────────────────────────────────────────


class Citation(BaseModel):
    """A URL referenced by a generative answer. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: str | None = Field(default=None, description="Citation record id, if persisted upstream")
    source_answer_id: str | None = Field(
        default=None, description="Id of the answer (audit result) that produced the citation"
    )
    url: str = Field(min_length=1)
    domain: str = ""
    title: str | None = None
    source_model: str | None = Field(default=None, description="Model that cited the URL")
    position: int | None = None

    @model_validator(mode="before")
    @classmethod
    def _fill_domain(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("domain") and data.get("url"):
            data = {**data, "domain": extract_domain(data["url"])}
        return data


class BrandContext(BaseModel):
    """The tracked brand and the competitors it is measured against."""

    brand_name: str
    brand_domain: str | None = None
    brand_aliases: list[str] = Field(default_factory=list)
    competitors: list[str] = Field(default_factory=list)

    @property
    def terms(self) -> list[str]:
        """Brand name followed by its aliases, empty strings removed."""
        return [t for t in [self.brand_name, *self.brand_aliases] if t]


class Verification(BaseModel):
    """Outcome of a reachability check."""

    reachable: bool
    status_code: int | None = None
    failure_reason: HallucinationType | None = None
    detail: str | None = None


class Classification(BaseModel):
    category: Category
    subcategory: str | None = None
    opportunity_level: OpportunityLevel


class HallucinationVerdict(BaseModel):
    is_hallucinated: bool = False
    hallucination_type: HallucinationType | None = None
    reason: str | None = None


class Judgment(BaseModel):
    """Structured judgment returned by the deep-content analyzer."""

    model_config = ConfigDict(extra="allow")

    content_analysis: str | None = None
    brand_opportunity: str | None = None
    competitor_threat: str | None = None
    recommended_action: str | None = None
    action_owner: str | None = None
    priority: str | None = None
    priority_reason: str | None = None
    effort_estimate: str | None = None
    success_metric: str | None = None


class CitationIntelligence(BaseModel):
    """Enriched analysis of one citation, upserted by its natural key."""

    id: str = Field(default_factory=_new_id)
    citation_id: str | None = None
    source_answer_id: str | None = None
    client_id: str | None = None
    url: str
    domain: str
    title: str | None = None
    source_model: str | None = None
    verification: Verification | None = None
    classification: Classification | None = None
    hallucination: HallucinationVerdict = Field(default_factory=HallucinationVerdict)
    analysis: dict[str, Any] = Field(default_factory=dict)
    status: AnalysisStatus = AnalysisStatus.pending
    error: str | None = None
    processed_at: datetime | None = None

    @property
    def reachable(self) -> bool:
        return bool(self.verification and self.verification.reachable)

    @property
    def category(self) -> Category | None:
        return self.classification.category if self.classification else None


class Recommendation(BaseModel):
    """Actionable recommendation. At most one live per CitationIntelligence."""

    id: str = Field(default_factory=_new_id)
    intelligence_id: str
    client_id: str | None = None
    type: str
    priority: Priority = Priority.medium
    title: str
    description: str
    action_items: list[str] = Field(default_factory=list)
    estimated_effort: str
    content_type: str | None = None
    generated_content: str | None = None
    actioned: bool = False


def _empty_category_counts() -> dict[str, int]:
    return {c.value: 0 for c in Category}


class BatchSummary(BaseModel):
    total_analyzed: int = 0
    hallucinated: int = 0
    verified: int = 0
    failed: int = 0
    by_category: dict[str, int] = Field(default_factory=_empty_category_counts)
    recommendations_generated: int = 0


class CitationResult(BaseModel):
    """Per-citation outcome inside a batch."""

    intelligence: CitationIntelligence
    recommendation: Recommendation | None = None
    persisted: bool = True
    errors: list[str] = Field(default_factory=list)


class BatchResult(BaseModel):
    success: bool = True
    summary: BatchSummary = Field(default_factory=BatchSummary)
    results: list[CitationResult] = Field(default_factory=list)
    skipped: int = 0
    timestamp: datetime = Field(default_factory=_utcnow)

    @property
    def recommendations(self) -> list[Recommendation]:
        return [r.recommendation for r in self.results if r.recommendation is not None]


class StoredSummary(BaseModel):
    """Read-only aggregation over already-persisted intelligence records."""

    total_analyzed: int = 0
    hallucinated: int = 0
    verified: int = 0
    by_category: dict[str, int] = Field(default_factory=_empty_category_counts)
    recommendations_total: int = 0
    recommendations_pending: int = 0
    recommendations_by_priority: dict[str, int] = Field(
        default_factory=lambda: {p.value: 0 for p in Priority}
    )


# ── Visibility ────────────────────────────────────────────────────────────────


class AnswerCitation(BaseModel):
    url: str
    title: str | None = None
    domain: str = ""
    is_brand_source: bool = False

    @model_validator(mode="before")
    @classmethod
    def _fill_domain(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("domain") and data.get("url"):
            data = {**data, "domain": extract_domain(data["url"])}
        return data


class CompetitorMention(BaseModel):
    name: str
    count: int = 0
    rank: int | None = None
    sentiment: str = "neutral"


class AuditAnswer(BaseModel):
    """One model's response to one prompt."""

    id: str = Field(default_factory=_new_id)
    model: str
    prompt: str = ""
    text: str = ""
    success: bool = True
    error: str | None = None
    citations: list[AnswerCitation] = Field(default_factory=list)
    mention_count: int = 0
    matched_terms: list[str] = Field(default_factory=list)
    rank: int | None = None
    sentiment: str = "neutral"
    is_cited: bool = False
    competitors_found: list[CompetitorMention] = Field(default_factory=list)
    winner_brand: str = ""
    weight: float = Field(default=1.0, gt=0, description="Model weight in the visibility score")
    cost: float = 0.0

    @property
    def brand_mentioned(self) -> bool:
        return self.mention_count > 0


class CompetitorGapItem(BaseModel):
    name: str
    mentions: int = 0
    percentage: int = 0


class CitationSource(BaseModel):
    """A cited URL aggregated across answers."""

    url: str
    domain: str = ""
    title: str | None = None
    count: int = 0
    prompts: list[str] = Field(default_factory=list)


class ModelStats(BaseModel):
    """Answers per model, how many mentioned the brand, and what they cost."""

    model: str
    visible: int = 0
    total: int = 0
    cost: float = 0.0


class CompetitorRank(BaseModel):
    name: str
    total_mentions: int = 0
    average_rank: float | None = None


class AuditSummary(BaseModel):
    share_of_voice: int = 0
    average_rank: float | None = None
    total_citations: int = 0
    total_cost: float = 0.0
    successful_answers: int = 0
    visible_in: int = 0
    cited_in: int = 0
    visibility_score: int = 0
    trust_index: int = 0


class VisibilityReport(BaseModel):
    """Downstream reporting bundle for a set of answers."""

    brand_name: str
    summary: AuditSummary = Field(default_factory=AuditSummary)
    competitor_gap: list[CompetitorGapItem] = Field(default_factory=list)
    sources: list[CitationSource] = Field(default_factory=list)
    model_stats: list[ModelStats] = Field(default_factory=list)
    top_competitors: list[CompetitorRank] = Field(default_factory=list)
    answers: list[AuditAnswer] = Field(default_factory=list)


# ── Content signals ───────────────────────────────────────────────────────────


class DomainAuthority(BaseModel):
    score: float = 0.5
    bucket: str = "unknown"
    trusted: bool = False


class Signal(BaseModel):
    """An externally discovered content item scored for relevance to the brand.

    ``influence`` is derived from authority, freshness and relevance on every
    access; it has no independent storage.
    """

    id: str = Field(default_factory=_new_id)
    client_id: str
    url: str
    normalized_url: str
    domain: str
    title: str = ""
    published_at: datetime | None = None
    brand_hits: list[str] = Field(default_factory=list)
    competitor_hits: list[str] = Field(default_factory=list)
    content_type: str = "blog"
    topic: str | None = None
    freshness: float = Field(default=0.5, ge=0.0, le=1.0)
    authority: float = Field(default=0.5, ge=0.0, le=1.0)
    authority_bucket: str = "unknown"
    relevance: float = Field(default=0.0, ge=0.0, le=1.0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def influence(self) -> float:
        wa, wf, wr = INFLUENCE_WEIGHTS
        return round(wa * self.authority + wf * self.freshness + wr * self.relevance, 4)
