"""Tests for the Groq analyzer, prompts and draft generation."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from geo_cli.core.analyzer import prompts
from geo_cli.core.analyzer.base import AnalysisRequest, ContentAnalyzer
from geo_cli.core.analyzer.content import (
    NOT_CONFIGURED_MESSAGE,
    ContentContext,
    ContentType,
    build_content_prompt,
    generate_content,
)
from geo_cli.core.analyzer.groq import GroqAnalyzer
from geo_cli.core.errors import InvalidInputError, UpstreamFailure
from geo_cli.core.models import Category

API_URL = "https://api.groq.test/v1/chat/completions"


def _client(status: int = 200, body: object | None = None, text: str | None = None) -> AsyncMock:
    client = AsyncMock(spec=httpx.AsyncClient)
    request = httpx.Request("POST", API_URL)
    if text is not None:
        client.post.return_value = httpx.Response(status, text=text, request=request)
    else:
        client.post.return_value = httpx.Response(status, json=body or {}, request=request)
    return client


def _completion(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _analyzer(client: AsyncMock, api_key: str = "gsk-test") -> GroqAnalyzer:
    return GroqAnalyzer(api_key, api_url=API_URL, model="test-model", client=client)


@pytest.fixture
def request_():
    return AnalysisRequest(
        brand_name="Acme",
        url="https://reddit.com/r/dating/1",
        domain="reddit.com",
        title="Best apps?",
        category=Category.ugc,
        competitors=["Bumble"],
    )


# ── analyze ───────────────────────────────────────────────────────────────────


def test_satisfies_protocol():
    assert isinstance(GroqAnalyzer("k"), ContentAnalyzer)


@pytest.mark.asyncio
async def test_analyze_parses_judgment(request_):
    body = _completion(json.dumps({"priority": "high", "effort_estimate": "2h", "extra": 1}))
    client = _client(body=body)
    judgment = await _analyzer(client).analyze(request_)

    assert judgment is not None
    assert judgment.priority == "high"
    assert judgment.effort_estimate == "2h"

    args, kwargs = client.post.call_args
    assert args[0] == API_URL
    assert kwargs["headers"]["Authorization"] == "Bearer gsk-test"
    payload = kwargs["json"]
    assert payload["model"] == "test-model"
    assert payload["temperature"] == 0.4
    assert payload["max_tokens"] == 800
    assert payload["response_format"] == {"type": "json_object"}
    assert "BRAND: Acme" in payload["messages"][1]["content"]


@pytest.mark.asyncio
async def test_analyze_strips_code_fence(request_):
    content = '```json\n{"priority": "low"}\n```'
    judgment = await _analyzer(_client(body=_completion(content))).analyze(request_)
    assert judgment.priority == "low"


@pytest.mark.asyncio
async def test_analyze_coerces_non_string_values(request_):
    content = json.dumps({"priority": "medium", "effort_estimate": 3})
    judgment = await _analyzer(_client(body=_completion(content))).analyze(request_)
    assert judgment.effort_estimate == "3"


@pytest.mark.asyncio
async def test_unconfigured_returns_none_without_calling(request_):
    client = _client(body=_completion("{}"))
    assert await _analyzer(client, api_key="").analyze(request_) is None
    client.post.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [400, 401, 429])
async def test_client_error_returns_none(request_, status):
    assert await _analyzer(_client(status=status)).analyze(request_) is None


@pytest.mark.asyncio
async def test_server_error_raises_retryable(request_):
    with pytest.raises(UpstreamFailure) as info:
        await _analyzer(_client(status=503)).analyze(request_)
    assert info.value.retryable is True
    assert info.value.status_code == 503


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["not json at all", "[1, 2, 3]"])
async def test_malformed_content_returns_none(request_, content):
    assert await _analyzer(_client(body=_completion(content))).analyze(request_) is None


@pytest.mark.asyncio
async def test_missing_choices_returns_none(request_):
    assert await _analyzer(_client(body={"choices": []})).analyze(request_) is None


# ── prompts ───────────────────────────────────────────────────────────────────


def test_prompt_truncates_page_content(request_):
    req = request_.model_copy(update={"extracted_text": "y" * 5000})
    prompt = prompts.build_analysis_prompt(req)
    assert "PAGE CONTENT:" in prompt
    assert "y" * prompts.MAX_CONTENT_CHARS in prompt
    assert "y" * (prompts.MAX_CONTENT_CHARS + 1) not in prompt


def test_prompt_without_content(request_):
    prompt = prompts.build_analysis_prompt(request_)
    assert "PAGE CONTENT:" not in prompt
    assert "CATEGORY: ugc" in prompt
    assert "COMPETITORS: Bumble" in prompt


# ── generate_content ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_generate_content_returns_draft():
    client = _client(body=_completion("Here is a helpful reply."))
    context = ContentContext(brand_name="Acme", competitors=["Bumble"], thread_context="help")
    draft = await generate_content("reddit_comment", context, _analyzer(client))

    assert draft == "Here is a helpful reply."
    payload = client.post.call_args.kwargs["json"]
    assert payload["temperature"] == 0.8
    assert payload["max_tokens"] == 1500
    assert "response_format" not in payload
    assert "Reddit" in payload["messages"][1]["content"]


@pytest.mark.asyncio
async def test_generate_content_unknown_type():
    with pytest.raises(InvalidInputError):
        await generate_content("haiku", ContentContext(brand_name="Acme"), _analyzer(_client()))


@pytest.mark.asyncio
async def test_generate_content_not_configured():
    client = _client()
    draft = await generate_content(
        ContentType.press_release, ContentContext(brand_name="Acme"), _analyzer(client, "")
    )
    assert draft == NOT_CONFIGURED_MESSAGE
    client.post.assert_not_called()


@pytest.mark.asyncio
async def test_generate_content_failure_is_readable():
    draft = await generate_content(
        "quora_answer", ContentContext(brand_name="Acme"), _analyzer(_client(status=500))
    )
    assert draft.startswith("Failed to generate content:")


def test_comparison_prompt_uses_first_competitor():
    prompt = build_content_prompt(
        ContentType.comparison_page, ContentContext(brand_name="Acme", competitors=["Bumble"])
    )
    assert "Acme" in prompt
    assert "Bumble" in prompt


def test_press_prompt_uses_publication():
    prompt = build_content_prompt(
        ContentType.press_release,
        ContentContext(brand_name="Acme", target_publication="TechCrunch"),
    )
    assert "TechCrunch" in prompt
