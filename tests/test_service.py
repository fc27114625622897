"""Tests for the aiohttp citation intelligence service."""

from __future__ import annotations

import threading
from unittest.mock import AsyncMock

import httpx
import pytest
from aiohttp.test_utils import TestClient, TestServer

from geo_cli.core.analyzer.content import NOT_CONFIGURED_MESSAGE
from geo_cli.core.analyzer.groq import GroqAnalyzer
from geo_cli.core.models import Judgment
from geo_cli.core.serve.app import create_app
from geo_cli.core.store import MemoryStore

REDDIT = "https://www.reddit.com/r/dating/comments/1"
DEAD = "https://made-up.example/x"

ANALYZE_BODY = {
    "brand_name": "Acme",
    "brand_domain": "acme.com",
    "competitors": ["Bumble"],
    "client_id": "c1",
    "citations": [{"url": REDDIT, "title": "Best app?"}, {"url": DEAD}],
}


@pytest.fixture
def service_store():
    return MemoryStore()


@pytest.fixture
def service_app(service_store, fast_config, head_client, stub_analyzer):
    return create_app(
        service_store,
        analyzer=stub_analyzer(Judgment(priority="critical", effort_estimate="30min")),
        config=fast_config,
        http_client=head_client({DEAD: 404}),
    )


@pytest.fixture
async def service_client(service_app):
    """aiohttp test client for the service app."""
    server = TestServer(service_app)
    client = TestClient(server)
    await client.start_server()
    yield client
    await client.close()


# ── /analyze and /summary ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_analyze_batch(service_client, service_store):
    resp = await service_client.post("/analyze", json=ANALYZE_BODY)
    assert resp.status == 200
    data = await resp.json()

    assert data["success"] is True
    assert data["summary"]["total_analyzed"] == 2
    assert data["summary"]["hallucinated"] == 1
    assert data["skipped"] == 0
    assert len(data["results"]) == 2
    assert data["results"][1]["intelligence"]["hallucination"]["hallucination_type"] == (
        "fake_domain"
    )
    [rec] = data["recommendations"]
    assert rec["priority"] == "critical"
    assert rec["client_id"] == "c1"
    assert len(service_store.list_intelligence("c1")) == 2


@pytest.mark.asyncio
async def test_analyze_missing_brand_is_400(service_client):
    resp = await service_client.post("/analyze", json={**ANALYZE_BODY, "brand_name": ""})
    assert resp.status == 400
    data = await resp.json()
    assert data == {"success": False, "error": "brand_name is required"}


@pytest.mark.asyncio
async def test_analyze_bad_citation_is_400(service_client):
    resp = await service_client.post(
        "/analyze", json={**ANALYZE_BODY, "citations": [{"title": "no url"}]}
    )
    assert resp.status == 400
    assert (await resp.json())["success"] is False


@pytest.mark.asyncio
async def test_malformed_json_is_400(service_client):
    resp = await service_client.post(
        "/analyze", data="{not json", headers={"Content-Type": "application/json"}
    )
    assert resp.status == 400


@pytest.mark.asyncio
async def test_non_object_body_is_400(service_client):
    resp = await service_client.post("/analyze", json=[1, 2])
    assert resp.status == 400


@pytest.mark.asyncio
async def test_summary_after_analyze(service_client):
    await service_client.post("/analyze", json=ANALYZE_BODY)
    resp = await service_client.get("/summary", params={"client_id": "c1"})
    assert resp.status == 200
    summary = (await resp.json())["summary"]
    assert summary["total_analyzed"] == 2
    assert summary["recommendations_total"] == 1
    assert summary["recommendations_by_priority"]["critical"] == 1

    other = await service_client.get("/summary", params={"client_id": "nobody"})
    assert (await other.json())["summary"]["total_analyzed"] == 0


# ── /generate-content ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_generate_content_without_groq_analyzer(service_client):
    resp = await service_client.post(
        "/generate-content",
        json={"content_type": "reddit_comment", "context": {"brand_name": "Acme"}},
    )
    assert resp.status == 200
    assert (await resp.json())["content"] == NOT_CONFIGURED_MESSAGE


@pytest.mark.asyncio
async def test_generate_content_unknown_type_is_400(service_client):
    resp = await service_client.post(
        "/generate-content", json={"content_type": "sonnet", "context": {"brand_name": "Acme"}}
    )
    assert resp.status == 400


@pytest.mark.asyncio
async def test_generate_content_missing_type_is_400(service_client):
    resp = await service_client.post("/generate-content", json={"context": {"brand_name": "A"}})
    assert resp.status == 400


@pytest.mark.asyncio
async def test_generate_content_with_groq(fast_config):
    http = AsyncMock(spec=httpx.AsyncClient)
    http.post.return_value = httpx.Response(
        200,
        json={"choices": [{"message": {"content": "Draft press release"}}]},
        request=httpx.Request("POST", "https://api.groq.test"),
    )
    app = create_app(
        MemoryStore(),
        analyzer=GroqAnalyzer("k", api_url="https://api.groq.test", client=http),
        config=fast_config,
    )
    async with TestClient(TestServer(app)) as client:
        resp = await client.post(
            "/generate-content",
            json={"content_type": "press_release", "context": {"brand_name": "Acme"}},
        )
        assert resp.status == 200
        assert (await resp.json())["content"] == "Draft press release"


# ── /visibility and /signals/score ────────────────────────────────────────────


@pytest.mark.asyncio
async def test_visibility(service_client):
    resp = await service_client.post(
        "/visibility",
        json={
            "brand_name": "Acme",
            "competitors": ["Bumble"],
            "answers": [
                {"model": "gpt-4o", "prompt": "p", "text": "1. Acme\n2. Bumble"},
                {"model": "claude", "prompt": "p", "text": "Bumble only"},
            ],
        },
    )
    assert resp.status == 200
    report = (await resp.json())["report"]
    assert report["summary"]["share_of_voice"] == 50
    assert report["summary"]["average_rank"] == 1.0


@pytest.mark.asyncio
async def test_visibility_missing_brand_is_400(service_client):
    resp = await service_client.post("/visibility", json={"answers": []})
    assert resp.status == 400


@pytest.mark.asyncio
async def test_signals_score_deduplicates(service_client, service_store):
    body = {
        "client_id": "c1",
        "brand_terms": ["Acme"],
        "competitors": ["Bumble"],
        "items": [{"url": "https://techcrunch.com/a", "title": "Best apps"}],
    }
    first = await (await service_client.post("/signals/score", json=body)).json()
    second = await (await service_client.post("/signals/score", json=body)).json()

    assert first["created"] == 1
    assert second["created"] == 0
    assert first["signals"][0]["signal"]["influence"] > 0
    assert len(service_store.list_signals("c1")) == 1


@pytest.mark.asyncio
async def test_signals_requires_client_id(service_client):
    resp = await service_client.post("/signals/score", json={"brand_terms": ["Acme"]})
    assert resp.status == 400


@pytest.mark.asyncio
async def test_unknown_route_is_404(service_client):
    resp = await service_client.get("/nope")
    assert resp.status == 404


class _ThreadRecordingStore(MemoryStore):
    def __init__(self) -> None:
        super().__init__()
        self.threads: set[int] = set()

    def list_intelligence(self, client_id=None):
        self.threads.add(threading.get_ident())
        return super().list_intelligence(client_id)

    def insert_signal_if_absent(self, signal):
        self.threads.add(threading.get_ident())
        return super().insert_signal_if_absent(signal)


@pytest.mark.asyncio
async def test_store_calls_leave_the_event_loop_free(fast_config, head_client):
    store = _ThreadRecordingStore()
    server = TestServer(create_app(store, config=fast_config, http_client=head_client()))
    client = TestClient(server)
    await client.start_server()
    try:
        assert (await client.get("/summary")).status == 200
        body = {
            "client_id": "c1",
            "brand_terms": ["Acme"],
            "items": [{"url": "https://techcrunch.com/a", "title": "Acme raises"}],
        }
        assert (await client.post("/signals/score", json=body)).status == 200
    finally:
        await client.close()

    assert len(store.threads) >= 1
    assert threading.get_ident() not in store.threads
