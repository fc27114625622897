"""Groq chat-completions client used as the deep-content analyzer."""

from __future__ import annotations

import json
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from geo_cli.core.analyzer.base import AnalysisRequest
from geo_cli.core.analyzer.prompts import ANALYSIS_SYSTEM_PROMPT, build_analysis_prompt
from geo_cli.core.config import Settings
from geo_cli.core.errors import UpstreamFailure
from geo_cli.core.models import Judgment

DEFAULT_API_URL = "https://api.groq.com/openai/v1/chat/completions"
DEFAULT_MODEL = "llama-3.1-8b-instant"

logger = structlog.get_logger(__name__)


def _strip_code_fence(text: str) -> str:
    body = text.strip()
    if body.startswith("```"):
        body = body.split("\n", 1)[1] if "\n" in body else ""
        if body.rstrip().endswith("```"):
            body = body.rstrip()[:-3]
    return body.strip()


class GroqAnalyzer:
    """OpenAI-compatible chat-completions analyzer.

    Server errors (5xx) and transport errors surface as retryable
    ``UpstreamFailure`` so the pipeline can back off. Client errors, empty
    choices and bodies that are not a JSON object make :meth:`analyze`
    return ``None``.
    """

    def __init__(
        self,
        api_key: str,
        *,
        api_url: str = DEFAULT_API_URL,
        model: str = DEFAULT_MODEL,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self._client = client
        self.timeout = timeout

    @classmethod
    def from_settings(
        cls, settings: Settings, client: httpx.AsyncClient | None = None
    ) -> GroqAnalyzer:
        return cls(
            settings.GROQ_API_KEY,
            api_url=settings.GROQ_API_URL,
            model=settings.GROQ_MODEL,
            client=client,
            timeout=settings.ANALYZER_TIMEOUT,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def _post(self, client: httpx.AsyncClient, payload: dict[str, Any]) -> httpx.Response:
        return await client.post(
            self.api_url,
            json=payload,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            timeout=self.timeout,
        )

    async def complete(
        self,
        system: str,
        user: str,
        *,
        temperature: float = 0.4,
        max_tokens: int = 800,
        json_mode: bool = False,
    ) -> str:
        """Run one chat completion and return the message content.

        Raises:
            UpstreamFailure: on non-2xx status or a response without content.
            httpx.HTTPError: on transport failures.
        """
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        if self._client is not None:
            resp = await self._post(self._client, payload)
        else:
            async with httpx.AsyncClient() as client:
                resp = await self._post(client, payload)

        if resp.status_code >= 400:
            raise UpstreamFailure(
                f"Analyzer returned HTTP {resp.status_code}",
                status_code=resp.status_code,
                retryable=resp.status_code >= 500,
            )
        try:
            content = resp.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise UpstreamFailure("Analyzer response had no message content") from exc
        if not content:
            raise UpstreamFailure("Analyzer returned empty content")
        return str(content)

    async def analyze(self, request: AnalysisRequest) -> Judgment | None:
        if not self.configured:
            return None

        try:
            content = await self.complete(
                ANALYSIS_SYSTEM_PROMPT,
                build_analysis_prompt(request),
                temperature=0.4,
                max_tokens=800,
                json_mode=True,
            )
        except UpstreamFailure as exc:
            if exc.retryable:
                raise
            logger.warning("analyzer_unavailable", url=request.url, error=str(exc))
            return None

        try:
            data = json.loads(_strip_code_fence(content))
        except json.JSONDecodeError:
            logger.warning("analyzer_malformed_json", url=request.url)
            return None
        if not isinstance(data, dict):
            logger.warning("analyzer_malformed_json", url=request.url)
            return None

        # Models occasionally return non-string scalars; coerce for the str fields.
        cleaned = {k: (v if v is None or isinstance(v, str) else str(v)) for k, v in data.items()}
        try:
            return Judgment.model_validate(cleaned)
        except ValidationError:
            logger.warning("analyzer_invalid_judgment", url=request.url)
            return None
