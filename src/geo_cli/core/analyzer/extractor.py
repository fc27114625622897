"""Page content extraction for deep analysis.

Two extractors share one contract: :class:`TavilyExtractor` asks the Tavily
search API for the raw page content, :class:`HtmlExtractor` fetches the page
directly and strips boilerplate with BeautifulSoup. Both return ``None`` on
failure and never raise.
"""

from __future__ import annotations

import httpx
import structlog
from bs4 import BeautifulSoup, Tag
from pydantic import BaseModel, Field

from geo_cli.core.analyzer.retry import with_retries
from geo_cli.core.errors import UpstreamFailure

logger = structlog.get_logger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; GeoCitationAnalyzer/1.0)"


class ExtractionConfig(BaseModel):
    """Boilerplate stripping and truncation rules for extracted page text."""

    max_chars: int = Field(default=3000, ge=1, description="Text passed on to the analyzer")
    strip_nav: bool = Field(default=True, description="Remove <nav> elements")
    strip_footer: bool = Field(default=True, description="Remove <footer> elements")
    strip_header: bool = Field(default=True, description="Remove <header> elements")
    boilerplate_patterns: list[str] = Field(
        default_factory=lambda: [
            "cookie",
            "consent",
            "gdpr",
            "newsletter",
            "advert",
            "sponsored",
            "ad-",
            "ads-",
        ],
        description="CSS class/id patterns for banners and ad containers",
    )


def sanitize_html(html: str, config: ExtractionConfig | None = None) -> BeautifulSoup:
    """Parse *html* and drop scripts, chrome, banners and hidden elements."""
    cfg = config or ExtractionConfig()
    soup = BeautifulSoup(html or "", "html.parser")

    for name in ["script", "style", "noscript", "iframe", "svg"]:
        for tag in soup.find_all(name):
            tag.decompose()

    structural = [
        name
        for name, enabled in (
            ("nav", cfg.strip_nav),
            ("footer", cfg.strip_footer),
            ("header", cfg.strip_header),
        )
        if enabled
    ]
    for name in structural:
        for tag in soup.find_all(name):
            tag.decompose()

    for tag in soup.find_all(True):
        # Children of an already-removed tag come back detached
        if not isinstance(tag, Tag) or tag.attrs is None:
            continue
        tag_id = tag.get("id", "") or ""
        tag_classes = " ".join(tag.get("class", []) or [])
        combined = f"{tag_id} {tag_classes}".lower()
        if any(p.lower() in combined for p in cfg.boilerplate_patterns):
            tag.decompose()
            continue
        if tag.get("aria-hidden") == "true":
            tag.decompose()

    return soup


def html_to_text(html: str, config: ExtractionConfig | None = None) -> str:
    """Readable, whitespace-collapsed text of an HTML page, truncated."""
    cfg = config or ExtractionConfig()
    soup = sanitize_html(html, cfg)
    root = soup.find("main") or soup.find("article") or soup.body or soup
    text = " ".join(root.get_text(separator=" ").split())
    return text[: cfg.max_chars]


class TavilyExtractor:
    """Raw page content via the Tavily search API (one result, raw content)."""

    def __init__(
        self,
        api_key: str,
        *,
        api_url: str = "https://api.tavily.com/search",
        client: httpx.AsyncClient | None = None,
        timeout: float = 20.0,
        max_retries: int = 1,
        retry_base_delay: float = 1.0,
        max_chars: int = 3000,
    ) -> None:
        self.api_key = api_key
        self.api_url = api_url
        self._client = client
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.max_chars = max_chars

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def _search(self, client: httpx.AsyncClient, url: str) -> str | None:
        resp = await client.post(
            self.api_url,
            json={
                "api_key": self.api_key,
                "query": url,
                "search_depth": "basic",
                "include_raw_content": True,
                "max_results": 1,
            },
            timeout=self.timeout,
        )
        if resp.status_code >= 500:
            raise UpstreamFailure(
                f"Tavily returned HTTP {resp.status_code}",
                status_code=resp.status_code,
                retryable=True,
            )
        if resp.status_code >= 400:
            raise UpstreamFailure(
                f"Tavily returned HTTP {resp.status_code}", status_code=resp.status_code
            )
        results = resp.json().get("results") or []
        if not results:
            return None
        first = results[0]
        return first.get("raw_content") or first.get("content") or None

    async def extract(self, url: str) -> str | None:
        if not self.configured:
            return None

        async def call() -> str | None:
            if self._client is not None:
                return await self._search(self._client, url)
            async with httpx.AsyncClient() as client:
                return await self._search(client, url)

        try:
            text = await with_retries(
                call,
                max_retries=self.max_retries,
                base_delay=self.retry_base_delay,
                operation="tavily_extract",
            )
        except (UpstreamFailure, ValueError) as exc:
            logger.warning("extract_failed", url=url, extractor="tavily", error=str(exc))
            return None
        return text[: self.max_chars] if text else None


class HtmlExtractor:
    """Direct page fetch with BeautifulSoup boilerplate stripping. Needs no key."""

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
        config: ExtractionConfig | None = None,
    ) -> None:
        self._client = client
        self.timeout = timeout
        self.config = config or ExtractionConfig()

    @property
    def configured(self) -> bool:
        return True

    async def _fetch(self, client: httpx.AsyncClient, url: str) -> httpx.Response:
        return await client.get(
            url,
            follow_redirects=True,
            timeout=self.timeout,
            headers={"User-Agent": USER_AGENT},
        )

    async def extract(self, url: str) -> str | None:
        try:
            if self._client is not None:
                resp = await self._fetch(self._client, url)
            else:
                async with httpx.AsyncClient() as client:
                    resp = await self._fetch(client, url)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            logger.warning("extract_failed", url=url, extractor="html", error=type(exc).__name__)
            return None

        if resp.status_code >= 400:
            logger.info("extract_non_success", url=url, status=resp.status_code)
            return None
        if "html" not in resp.headers.get("content-type", "text/html"):
            return None
        return html_to_text(resp.text, self.config) or None
