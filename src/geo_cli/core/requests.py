"""Request payloads shared by the CLI (JSON files) and the HTTP service (JSON bodies)."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from geo_cli.core.errors import InvalidInputError
from geo_cli.core.models import (
    AnswerCitation,
    AuditAnswer,
    BrandContext,
    Citation,
    Signal,
    VisibilityReport,
)
from geo_cli.core.signals import (
    SignalAlert,
    SignalIngestor,
    SignalItem,
    classify_signal,
    signal_alerts,
)
from geo_cli.core.visibility import build_answer, build_visibility_report


class AnalyzeRequest(BaseModel):
    brand_name: str = ""
    brand_domain: str | None = None
    brand_aliases: list[str] = Field(default_factory=list)
    competitors: list[str] = Field(default_factory=list)
    client_id: str | None = None
    deep: bool = False
    citations: list[Citation] = Field(default_factory=list)

    @property
    def brand(self) -> BrandContext:
        return BrandContext(
            brand_name=self.brand_name,
            brand_domain=self.brand_domain,
            brand_aliases=self.brand_aliases,
            competitors=self.competitors,
        )


class RawAnswer(BaseModel):
    """An answer as collected from a model, before parsing."""

    model: str
    prompt: str = ""
    text: str = ""
    success: bool = True
    error: str | None = None
    citations: list[AnswerCitation] | None = None
    cost: float = 0.0
    weight: float = 1.0


class VisibilityRequest(BaseModel):
    brand_name: str = ""
    brand_domain: str | None = None
    brand_aliases: list[str] = Field(default_factory=list)
    competitors: list[str] = Field(default_factory=list)
    answers: list[RawAnswer] = Field(default_factory=list)

    def parsed_answers(self) -> list[AuditAnswer]:
        return [
            build_answer(
                model=a.model,
                prompt=a.prompt,
                text=a.text,
                brand_name=self.brand_name,
                aliases=self.brand_aliases,
                brand_domain=self.brand_domain,
                competitors=self.competitors,
                citations=a.citations,
                success=a.success,
                error=a.error,
                cost=a.cost,
                weight=a.weight,
            )
            for a in self.answers
        ]


def build_report(request: VisibilityRequest) -> VisibilityReport:
    """Parse the raw answers and compute the visibility report."""
    if not request.brand_name.strip():
        raise InvalidInputError("brand_name is required")
    return build_visibility_report(
        request.parsed_answers(), request.brand_name, request.competitors
    )


class SignalsRequest(BaseModel):
    client_id: str = Field(min_length=1)
    brand_terms: list[str] = Field(default_factory=list)
    competitors: list[str] = Field(default_factory=list)
    items: list[SignalItem] = Field(default_factory=list)
    appears_in_answers: list[str] = Field(
        default_factory=list, description="Domains already seen in AI answers"
    )

    @field_validator("brand_terms")
    @classmethod
    def _drop_empty(cls, v: list[str]) -> list[str]:
        return [t for t in v if t and t.strip()]


class ScoredSignal(BaseModel):
    signal: Signal
    created: bool
    classification: str
    reason: str
    alerts: list[SignalAlert] = Field(default_factory=list)


def score_signals(
    request: SignalsRequest, ingestor: SignalIngestor, now: datetime | None = None
) -> list[ScoredSignal]:
    """Score, deduplicate and classify every item of *request*."""
    if not request.brand_terms:
        raise InvalidInputError("at least one brand term is required")

    seen_domains = {d.lower() for d in request.appears_in_answers}
    scored: list[ScoredSignal] = []
    for item in request.items:
        stored = ingestor.ingest(
            item,
            client_id=request.client_id,
            brand_terms=request.brand_terms,
            competitors=request.competitors,
            now=now,
        )
        signal = stored or ingestor.score(
            item,
            client_id=request.client_id,
            brand_terms=request.brand_terms,
            competitors=request.competitors,
            now=now,
        )
        appears = signal.domain in seen_domains
        classification, reason = classify_signal(signal.influence, appears, signal.competitor_hits)
        scored.append(
            ScoredSignal(
                signal=signal,
                created=stored is not None,
                classification=classification,
                reason=reason,
                alerts=signal_alerts(signal, classification, appears),
            )
        )
    return scored
