"""Capability contracts for deep-content analysis and page extraction."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field

from geo_cli.core.models import Category, Judgment


class AnalysisRequest(BaseModel):
    """Everything the analyzer gets to see about one citation."""

    brand_name: str
    url: str
    domain: str
    title: str | None = None
    category: Category
    competitors: list[str] = Field(default_factory=list)
    extracted_text: str | None = None


@runtime_checkable
class ContentAnalyzer(Protocol):
    """Text-in, structured-judgment-out capability.

    ``analyze`` returns ``None`` when the judgment is unavailable (non-success
    response, malformed body). Transient failures raise a retryable
    :class:`~geo_cli.core.errors.UpstreamFailure` so the caller can back off.
    """

    @property
    def configured(self) -> bool: ...

    async def analyze(self, request: AnalysisRequest) -> Judgment | None: ...


@runtime_checkable
class ContentExtractor(Protocol):
    """Fetches readable page text for a URL. Returns ``None`` on any failure."""

    @property
    def configured(self) -> bool: ...

    async def extract(self, url: str) -> str | None: ...
