"""Long-form draft generation for recommendations (replies, comparison pages, PR)."""

from __future__ import annotations

from enum import Enum

import httpx
import structlog
from pydantic import BaseModel, Field

from geo_cli.core.analyzer import prompts
from geo_cli.core.analyzer.groq import GroqAnalyzer
from geo_cli.core.errors import InvalidInputError, UpstreamFailure

logger = structlog.get_logger(__name__)

CONTENT_SYSTEM_PROMPT = (
    "You write content that earns citations from AI assistants: factual, specific, "
    "written by a practitioner for practitioners. Never invent statistics; use a "
    "clearly marked placeholder instead."
)

NOT_CONFIGURED_MESSAGE = (
    "Groq API key not configured. Set GROQ_API_KEY to generate drafts."
)


class ContentType(str, Enum):
    quora_answer = "quora_answer"
    reddit_comment = "reddit_comment"
    social_response = "social_response"
    comparison_page = "comparison_page"
    press_release = "press_release"


_PLATFORMS = {
    ContentType.quora_answer: "Quora",
    ContentType.reddit_comment: "Reddit",
    ContentType.social_response: "LinkedIn or X",
}


class ContentContext(BaseModel):
    brand_name: str = Field(min_length=1)
    competitors: list[str] = Field(default_factory=list)
    thread_context: str = ""
    topic: str = ""
    target_publication: str = ""


def build_content_prompt(content_type: ContentType, context: ContentContext) -> str:
    competitors = ", ".join(context.competitors) or "other tools"
    if content_type in _PLATFORMS:
        return prompts.UGC_RESPONSE_PROMPT.format(
            platform=_PLATFORMS[content_type],
            thread_context=context.thread_context or context.topic or "(not provided)",
            brand_name=context.brand_name,
            competitors=competitors,
        )
    if content_type is ContentType.comparison_page:
        return prompts.COMPARISON_PAGE_PROMPT.format(
            brand_name=context.brand_name,
            competitor=context.competitors[0] if context.competitors else "the alternatives",
            topic=context.topic or context.thread_context or "product comparison",
        )
    return prompts.PRESS_RELEASE_PROMPT.format(
        publication=context.target_publication or "industry press",
        brand_name=context.brand_name,
        topic=context.topic or "(news hook to be confirmed)",
    )


async def generate_content(
    content_type: str | ContentType,
    context: ContentContext,
    analyzer: GroqAnalyzer,
) -> str:
    """Draft content of *content_type* for the brand in *context*.

    Raises ``InvalidInputError`` for an unknown content type. Provider
    problems come back as a readable message rather than an exception.
    """
    try:
        kind = ContentType(content_type)
    except ValueError as exc:
        raise InvalidInputError(f"Unknown content type: {content_type}") from exc

    if not analyzer.configured:
        return NOT_CONFIGURED_MESSAGE

    try:
        return await analyzer.complete(
            CONTENT_SYSTEM_PROMPT,
            build_content_prompt(kind, context),
            temperature=0.8,
            max_tokens=1500,
        )
    except (UpstreamFailure, httpx.HTTPError) as exc:
        logger.warning("content_generation_failed", content_type=kind.value, error=str(exc))
        return f"Failed to generate content: {exc}"
