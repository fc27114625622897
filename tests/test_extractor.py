"""Tests for page extraction: HTML sanitizing, Tavily and direct fetch."""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest

from geo_cli.core.analyzer.base import ContentExtractor
from geo_cli.core.analyzer.extractor import (
    ExtractionConfig,
    HtmlExtractor,
    TavilyExtractor,
    html_to_text,
    sanitize_html,
)

PAGE = """
<html><head><title>T</title><style>body{}</style></head>
<body>
  <header>Site header</header>
  <nav>Home | About</nav>
  <div class="cookie-banner">We use cookies</div>
  <main>
    <h1>Best dating apps</h1>
    <p>Acme   is
       great.</p>
    <div aria-hidden="true">hidden text</div>
    <script>var x = 1;</script>
  </main>
  <footer>Copyright</footer>
</body></html>
"""

TAVILY_URL = "https://api.tavily.test/search"


# ── HTML sanitizing ───────────────────────────────────────────────────────────


def test_html_to_text_keeps_main_content():
    text = html_to_text(PAGE)
    assert text == "Best dating apps Acme is great."


def test_sanitize_strips_chrome_and_banners():
    soup = sanitize_html(PAGE)
    text = soup.get_text()
    for gone in ("Site header", "Home | About", "We use cookies", "Copyright", "var x"):
        assert gone not in text


def test_structural_stripping_can_be_disabled():
    cfg = ExtractionConfig(strip_footer=False)
    soup = sanitize_html(PAGE, cfg)
    assert "Copyright" in soup.get_text()


def test_truncation():
    html = "<body><p>" + "word " * 2000 + "</p></body>"
    assert len(html_to_text(html, ExtractionConfig(max_chars=100))) == 100


def test_empty_html():
    assert html_to_text("") == ""


# ── Tavily ────────────────────────────────────────────────────────────────────


def _tavily_client(*responses: httpx.Response) -> AsyncMock:
    client = AsyncMock(spec=httpx.AsyncClient)
    client.post.side_effect = list(responses)
    return client


def _resp(status: int, body: object | None = None) -> httpx.Response:
    return httpx.Response(status, json=body or {}, request=httpx.Request("POST", TAVILY_URL))


@pytest.mark.asyncio
async def test_tavily_returns_raw_content():
    client = _tavily_client(_resp(200, {"results": [{"raw_content": "Full page", "content": "s"}]}))
    extractor = TavilyExtractor("tvly-key", api_url=TAVILY_URL, client=client)

    assert await extractor.extract("https://example.com/a") == "Full page"
    payload = client.post.call_args.kwargs["json"]
    assert payload["api_key"] == "tvly-key"
    assert payload["query"] == "https://example.com/a"
    assert payload["include_raw_content"] is True
    assert payload["max_results"] == 1


@pytest.mark.asyncio
async def test_tavily_falls_back_to_snippet_and_truncates():
    client = _tavily_client(_resp(200, {"results": [{"content": "z" * 50}]}))
    extractor = TavilyExtractor("k", api_url=TAVILY_URL, client=client, max_chars=10)
    assert await extractor.extract("https://example.com") == "z" * 10


@pytest.mark.asyncio
async def test_tavily_no_results():
    client = _tavily_client(_resp(200, {"results": []}))
    extractor = TavilyExtractor("k", api_url=TAVILY_URL, client=client)
    assert await extractor.extract("https://example.com") is None


@pytest.mark.asyncio
async def test_tavily_retries_server_error_once():
    client = _tavily_client(_resp(502), _resp(200, {"results": [{"content": "ok"}]}))
    extractor = TavilyExtractor("k", api_url=TAVILY_URL, client=client, retry_base_delay=0)
    assert await extractor.extract("https://example.com") == "ok"
    assert client.post.call_count == 2


@pytest.mark.asyncio
async def test_tavily_gives_up_and_returns_none():
    client = _tavily_client(_resp(500), _resp(500))
    extractor = TavilyExtractor("k", api_url=TAVILY_URL, client=client, retry_base_delay=0)
    assert await extractor.extract("https://example.com") is None
    assert client.post.call_count == 2


@pytest.mark.asyncio
async def test_tavily_client_error_not_retried():
    client = _tavily_client(_resp(401))
    extractor = TavilyExtractor("k", api_url=TAVILY_URL, client=client, retry_base_delay=0)
    assert await extractor.extract("https://example.com") is None
    assert client.post.call_count == 1


@pytest.mark.asyncio
async def test_tavily_unconfigured():
    client = _tavily_client()
    extractor = TavilyExtractor("", client=client)
    assert extractor.configured is False
    assert await extractor.extract("https://example.com") is None
    client.post.assert_not_called()


# ── Direct HTML fetch ─────────────────────────────────────────────────────────


def _get_client(outcome: httpx.Response | Exception) -> AsyncMock:
    client = AsyncMock(spec=httpx.AsyncClient)
    if isinstance(outcome, Exception):
        client.get.side_effect = outcome
    else:
        client.get.return_value = outcome
    return client


def _page(status: int = 200, content_type: str = "text/html; charset=utf-8") -> httpx.Response:
    return httpx.Response(
        status,
        text=PAGE,
        headers={"content-type": content_type},
        request=httpx.Request("GET", "https://example.com"),
    )


def test_html_extractor_satisfies_protocol():
    assert isinstance(HtmlExtractor(), ContentExtractor)


@pytest.mark.asyncio
async def test_html_extractor_fetches_and_cleans():
    client = _get_client(_page())
    text = await HtmlExtractor(client=client).extract("https://example.com")
    assert text == "Best dating apps Acme is great."
    assert client.get.call_args.kwargs["follow_redirects"] is True


@pytest.mark.asyncio
async def test_html_extractor_error_status():
    client = _get_client(_page(status=404))
    assert await HtmlExtractor(client=client).extract("https://example.com") is None


@pytest.mark.asyncio
async def test_html_extractor_non_html():
    client = _get_client(_page(content_type="application/pdf"))
    assert await HtmlExtractor(client=client).extract("https://example.com/a.pdf") is None


@pytest.mark.asyncio
async def test_html_extractor_transport_error():
    client = _get_client(httpx.ConnectTimeout("slow"))
    assert await HtmlExtractor(client=client).extract("https://example.com") is None
