"""Prompt templates for citation analysis and draft generation."""

from __future__ import annotations

from geo_cli.core.analyzer.base import AnalysisRequest

MAX_CONTENT_CHARS = 3000

ANALYSIS_SYSTEM_PROMPT = (
    "You are an expert Generative Engine Optimization (GEO) analyst. You study pages "
    "that AI assistants cite when answering questions about a brand's market, and you "
    "tell the brand's team what to do about each one. Your advice must be SPECIFIC and "
    "ACTIONABLE: name the page, the claim, the owner and the next step. Never give "
    "generic marketing advice. Respond with a single JSON object only."
)

ANALYSIS_OUTPUT_KEYS = """{
  "content_analysis": "what the page says and why an AI model would cite it",
  "brand_opportunity": "the concrete opening for the brand on this page",
  "competitor_threat": "the competitor that benefits most, or null",
  "recommended_action": "the single most valuable next step",
  "action_owner": "marketing | engineering | support | leadership",
  "priority": "critical | high | medium | low",
  "priority_reason": "one sentence",
  "effort_estimate": "30min | 2h | 1day | 3days | 1week",
  "success_metric": "how the team will know it worked"
}"""


def build_analysis_prompt(request: AnalysisRequest) -> str:
    competitors = ", ".join(request.competitors) if request.competitors else "none listed"
    lines = [
        f"BRAND: {request.brand_name}",
        f"URL: {request.url}",
        f"DOMAIN: {request.domain}",
        f"TITLE: {request.title or 'unknown'}",
        f"CATEGORY: {request.category.value}",
        f"COMPETITORS: {competitors}",
    ]
    if request.extracted_text:
        lines += ["", "PAGE CONTENT:", request.extracted_text[:MAX_CONTENT_CHARS]]
    lines += ["", "Return JSON with exactly these keys:", ANALYSIS_OUTPUT_KEYS]
    return "\n".join(lines)


# ── Draft generation ─────────────────────────────────────────────────────────

UGC_RESPONSE_PROMPT = """Write a reply for {platform} from a real practitioner, not a marketer.

Thread context:
{thread_context}

Rules:
- Answer the question first; mention {brand_name} once, only where it genuinely helps.
- Include one specific detail (a number, a setting, a personal outcome).
- Acknowledge alternatives such as {competitors} fairly.
- No links in the first sentence, no sales language, under 250 words."""

COMPARISON_PAGE_PROMPT = """Draft a comparison page: {brand_name} vs {competitor}.

Topic: {topic}

Include:
- An honest one-paragraph summary of who each product is for
- A markdown feature comparison table
- Pricing notes with placeholders where figures are unknown
- Three customer-quote placeholders
- A FAQ section with five questions buyers ask AI assistants
Use neutral, factual language. Output markdown."""

PRESS_RELEASE_PROMPT = """Write a press release pitched at {publication}.

Company: {brand_name}
News hook: {topic}

Structure: headline, dateline, lead paragraph answering who/what/when, one data
point, one executive quote placeholder, boilerplate "About {brand_name}" section.
Keep it under 400 words."""
