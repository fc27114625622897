"""HTTP service exposing citation analysis, summaries, visibility and signal scoring.

Every endpoint speaks JSON. Rejected input answers 400 with
``{"success": false, "error": ...}``; unexpected failures answer 500.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable

import httpx
import structlog
from aiohttp import web
from pydantic import ValidationError

from geo_cli.core.analyzer.base import ContentAnalyzer, ContentExtractor
from geo_cli.core.analyzer.content import ContentContext, generate_content
from geo_cli.core.analyzer.groq import GroqAnalyzer
from geo_cli.core.config import PipelineConfig
from geo_cli.core.errors import InvalidInputError
from geo_cli.core.pipeline import CitationPipeline, get_summary
from geo_cli.core.requests import (
    AnalyzeRequest,
    SignalsRequest,
    VisibilityRequest,
    build_report,
    score_signals,
)
from geo_cli.core.signals import SignalIngestor
from geo_cli.core.store import CitationStore

logger = structlog.get_logger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def _error(status: int, message: str) -> web.Response:
    return web.json_response({"success": False, "error": message}, status=status)


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Map request errors to JSON responses."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except (InvalidInputError, ValidationError, json.JSONDecodeError) as exc:
        logger.info("request_rejected", path=request.path, error=str(exc))
        return _error(400, str(exc))
    except Exception as exc:  # noqa: BLE001
        logger.exception("request_failed", path=request.path)
        return _error(500, str(exc) or type(exc).__name__)


async def _json_body(request: web.Request) -> dict:
    if not request.can_read_body:
        raise InvalidInputError("request body is required")
    body = await request.json()
    if not isinstance(body, dict):
        raise InvalidInputError("request body must be a JSON object")
    return body


async def _analyze_handler(request: web.Request) -> web.Response:
    payload = AnalyzeRequest.model_validate(await _json_body(request))
    pipeline = CitationPipeline(
        request.app["store"],
        analyzer=request.app["analyzer"],
        extractor=request.app["extractor"],
        config=request.app["config"],
        http_client=request.app["http_client"],
    )
    result = await pipeline.analyze_batch(
        payload.citations, payload.brand, client_id=payload.client_id, deep=payload.deep
    )
    return web.json_response(
        {
            "success": result.success,
            "summary": result.summary.model_dump(mode="json"),
            "skipped": result.skipped,
            "results": [r.model_dump(mode="json") for r in result.results],
            "recommendations": [r.model_dump(mode="json") for r in result.recommendations],
            "timestamp": result.timestamp.isoformat(),
        }
    )


async def _summary_handler(request: web.Request) -> web.Response:
    client_id = request.query.get("client_id") or None
    summary = await asyncio.to_thread(get_summary, request.app["store"], client_id)
    return web.json_response({"success": True, "summary": summary.model_dump(mode="json")})


async def _generate_content_handler(request: web.Request) -> web.Response:
    body = await _json_body(request)
    content_type = body.get("content_type")
    if not content_type:
        raise InvalidInputError("content_type is required")
    context = ContentContext.model_validate(body.get("context") or {})
    analyzer = request.app["analyzer"]
    if not isinstance(analyzer, GroqAnalyzer):
        analyzer = GroqAnalyzer("")
    content = await generate_content(content_type, context, analyzer)
    return web.json_response({"success": True, "content": content})


async def _visibility_handler(request: web.Request) -> web.Response:
    payload = VisibilityRequest.model_validate(await _json_body(request))
    report = build_report(payload)
    return web.json_response({"success": True, "report": report.model_dump(mode="json")})


async def _signals_handler(request: web.Request) -> web.Response:
    payload = SignalsRequest.model_validate(await _json_body(request))
    scored = await asyncio.to_thread(
        score_signals, payload, SignalIngestor(request.app["store"])
    )
    return web.json_response(
        {
            "success": True,
            "created": sum(1 for s in scored if s.created),
            "signals": [s.model_dump(mode="json") for s in scored],
        }
    )


def create_app(
    store: CitationStore,
    *,
    analyzer: ContentAnalyzer | None = None,
    extractor: ContentExtractor | None = None,
    config: PipelineConfig | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> web.Application:
    """Create the aiohttp application.

    Args:
        store: Where intelligence, recommendations and signals are kept.
        analyzer: Deep-content analyzer; ``None`` always uses fallback judgments.
        extractor: Page extractor used for ``deep`` batches.
        config: Pipeline rate-limit and retry policy.
        http_client: Client used for verification; a fresh one per batch if omitted.
    """
    app = web.Application(middlewares=[error_middleware])
    app["store"] = store
    app["analyzer"] = analyzer
    app["extractor"] = extractor
    app["config"] = config or PipelineConfig()
    app["http_client"] = http_client
    app.router.add_post("/analyze", _analyze_handler)
    app.router.add_post("/generate-content", _generate_content_handler)
    app.router.add_get("/summary", _summary_handler)
    app.router.add_post("/visibility", _visibility_handler)
    app.router.add_post("/signals/score", _signals_handler)
    return app


def run_server(app: web.Application, host: str = "127.0.0.1", port: int = 8080) -> None:
    web.run_app(app, host=host, port=port, print=None)
