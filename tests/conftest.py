"""Shared fixtures: stub capabilities, fake HTTP clients, zero-delay config."""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest
import structlog

from geo_cli.core.analyzer.base import AnalysisRequest
from geo_cli.core.config import PipelineConfig
from geo_cli.core.errors import UpstreamFailure
from geo_cli.core.models import BrandContext, Judgment
from geo_cli.core.store import MemoryStore


class StubAnalyzer:
    """In-process analyzer that records requests and replays a canned judgment."""

    def __init__(
        self,
        judgment: Judgment | None = None,
        *,
        transient_failures: int = 0,
        configured: bool = True,
    ) -> None:
        self.judgment = judgment
        self.transient_failures = transient_failures
        self._configured = configured
        self.requests: list[AnalysisRequest] = []

    @property
    def configured(self) -> bool:
        return self._configured

    async def analyze(self, request: AnalysisRequest) -> Judgment | None:
        self.requests.append(request)
        if self.transient_failures > 0:
            self.transient_failures -= 1
            raise UpstreamFailure("upstream 503", status_code=503, retryable=True)
        return self.judgment


class StubExtractor:
    def __init__(self, text: str | None = "Extracted page text") -> None:
        self.text = text
        self.urls: list[str] = []

    @property
    def configured(self) -> bool:
        return True

    async def extract(self, url: str) -> str | None:
        self.urls.append(url)
        return self.text


def make_head_client(
    outcomes: dict[str, int | Exception] | None = None, default: int = 200
) -> AsyncMock:
    """AsyncClient mock whose ``head`` answers per URL with a status or an exception."""
    outcomes = outcomes or {}
    client = AsyncMock(spec=httpx.AsyncClient)

    def head(url: str, **kwargs: object) -> httpx.Response:
        outcome = outcomes.get(url, default)
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome, request=httpx.Request("HEAD", url))

    client.head.side_effect = head
    return client


@pytest.fixture
def fast_config() -> PipelineConfig:
    return PipelineConfig(
        verify_delay_ms=0,
        analyze_delay_ms=0,
        extract_delay_ms=0,
        retry_base_delay=0,
    )


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def brand() -> BrandContext:
    return BrandContext(
        brand_name="Acme",
        brand_domain="acme.com",
        competitors=["Bumble", "Tinder"],
    )


@pytest.fixture
def head_client():
    """Factory fixture for :func:`make_head_client`."""
    return make_head_client


@pytest.fixture
def stub_analyzer():
    """Factory fixture for :class:`StubAnalyzer`."""
    return StubAnalyzer


@pytest.fixture
def stub_extractor():
    return StubExtractor


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo logging configuration bound to a test's (later closed) captured stream."""
    yield
    structlog.reset_defaults()
