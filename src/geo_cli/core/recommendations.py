"""Recommendation synthesis: one templated, actionable recommendation per citation."""

from __future__ import annotations

from collections.abc import Callable

from geo_cli.core.models import (
    Category,
    Citation,
    Classification,
    Judgment,
    OpportunityLevel,
    Priority,
    Recommendation,
)
from geo_cli.core.urls import normalize_domain

# ── Fallback judgment ─────────────────────────────────────────────────────────

_FALLBACK_PRIORITY = {
    OpportunityLevel.easy: Priority.high,
    OpportunityLevel.medium: Priority.medium,
    OpportunityLevel.difficult: Priority.low,
}

_DEFAULT_DESCRIPTIONS = {
    Category.ugc: "AI assistants cite this community discussion. A helpful, credible reply "
    "puts the brand into the source they already trust.",
    Category.competitor_blog: "A competitor's own content is being cited. Publish comparison "
    "content so AI answers have a balanced source that includes the brand.",
    Category.press_media: "A media article is shaping AI answers in this space. Earning "
    "coverage from the same publication makes the brand citable.",
    Category.app_store: "An app-store listing is being cited. Listing quality and reviews "
    "drive how the brand compares.",
    Category.wikipedia: "Wikipedia is being cited. Inclusion depends on independent "
    "notability, not on edits by the brand.",
}


def fallback_judgment(opportunity_level: OpportunityLevel) -> Judgment:
    """Deterministic judgment used when no analyzer output is available."""
    return Judgment(
        priority=_FALLBACK_PRIORITY[opportunity_level].value,
        effort_estimate="2h" if opportunity_level is OpportunityLevel.easy else "3 days",
    )


def _priority(value: str | None, default: Priority = Priority.medium) -> Priority:
    try:
        return Priority((value or "").strip().lower())
    except ValueError:
        return default


def _truncate(text: str | None, limit: int) -> str:
    text = (text or "").strip()
    return f"{text[:limit]}..." if len(text) > limit else text


def _domain_label(domain: str) -> str:
    return normalize_domain(domain).split(".")[0]


# ── Templates ─────────────────────────────────────────────────────────────────

_Template = Callable[[Citation, Classification, Judgment, str, str], Recommendation]

_UGC_PLATFORMS = [
    ("quora", "Quora", "quora_answer"),
    ("reddit", "Reddit", "reddit_comment"),
    ("linkedin", "LinkedIn", "social_response"),
    ("twitter", "X/Twitter", "social_response"),
    ("x.com", "X/Twitter", "social_response"),
    ("stackoverflow", "Stack Overflow", "stackoverflow_answer"),
]


def _ugc(
    citation: Citation, cls: Classification, judgment: Judgment, brand: str, intel_id: str
) -> Recommendation:
    key = f"{cls.subcategory or ''} {citation.domain}".lower()
    platform, content_type = "Forum", "social_response"
    for needle, name, ctype in _UGC_PLATFORMS:
        if needle in key:
            platform, content_type = name, ctype
            break
    is_reddit = platform == "Reddit"
    audience = "the OP and commenters" if is_reddit else "the asker and answerers"
    account = (
        "your personal Reddit account with real post history"
        if is_reddit
        else "a credible personal profile, not the brand account"
    )
    return Recommendation(
        intelligence_id=intel_id,
        type="engage_ugc",
        priority=_priority(judgment.priority),
        title=f'{platform}: Respond to "{_truncate(citation.title or citation.url, 40)}"',
        description=judgment.brand_opportunity or _DEFAULT_DESCRIPTIONS[Category.ugc],
        action_items=[
            f"Read the FULL thread at {citation.url}, including low-voted replies",
            f"List the top 3 pain points raised by {audience}",
            "Note which competitors are mentioned and what is claimed about them",
            f"Draft a response that solves the problem first and mentions {brand} once",
            "Add ONE specific detail (a number, a setting, a real outcome)",
            f"Post from {account}",
            "Check back in 48 hours and answer follow-up questions",
        ],
        estimated_effort=judgment.effort_estimate or "1day",
        content_type=content_type,
    )


def _competitor_blog(
    citation: Citation, cls: Classification, judgment: Judgment, brand: str, intel_id: str
) -> Recommendation:
    # competitor_threat is analyzer prose, only fit for the description
    competitor = (cls.subcategory or _domain_label(citation.domain)).strip()
    slug = "".join(competitor.lower().split())
    brand_slug = "".join(brand.lower().split())
    return Recommendation(
        intelligence_id=intel_id,
        type="create_comparison",
        priority=Priority.high,
        title=f'Counter "{_truncate(citation.title or citation.url, 35)}" with comparison content',
        description=(
            judgment.brand_opportunity
            or judgment.competitor_threat
            or _DEFAULT_DESCRIPTIONS[Category.competitor_blog]
        ),
        action_items=[
            f"Read the competitor page at {citation.url}",
            f"List every claim {competitor} makes about features, pricing and outcomes",
            f"Write an honest {brand} vs {competitor} comparison, conceding where they win",
            f"Publish it at {brand_slug}.com/vs/{slug}",
            "Add a feature table, pricing notes and G2 or review-site quotes",
            "Add a FAQ section answering the questions buyers ask AI assistants",
            "Submit the page in Search Console and monitor citations for 2 weeks",
        ],
        estimated_effort="3 days",
        content_type="comparison_page",
    )


def _press_media(
    citation: Citation, cls: Classification, judgment: Judgment, brand: str, intel_id: str
) -> Recommendation:
    publication = _domain_label(citation.domain)
    return Recommendation(
        intelligence_id=intel_id,
        type="publish_pr",
        priority=_priority(judgment.priority),
        title=f"PR opportunity: Get {brand} featured on {publication}",
        description=judgment.brand_opportunity or _DEFAULT_DESCRIPTIONS[Category.press_media],
        action_items=[
            f"Read the article at {citation.url} and note its angle",
            f"Identify the journalist (search site:{normalize_domain(citation.domain)} "
            "for their other stories)",
            "Follow and engage with them on Twitter/LinkedIn for 1-2 weeks",
            f"Find a news hook that ties {brand} to their beat",
            "Pitch leading with their beat, not your product",
            "Offer 1 data point, an exclusive angle and a 15-minute call",
            "Follow up once after 5 days, then stop",
        ],
        estimated_effort=judgment.effort_estimate or "1 week",
        content_type="press_release",
    )


def _app_store(
    citation: Citation, cls: Classification, judgment: Judgment, brand: str, intel_id: str
) -> Recommendation:
    store = "Google Play" if cls.subcategory == "google_play" else "App Store"
    return Recommendation(
        intelligence_id=intel_id,
        type="improve_reviews",
        priority=_priority(judgment.priority),
        title=f"{store} optimization: Improve visibility vs competitors",
        description=judgment.brand_opportunity or _DEFAULT_DESCRIPTIONS[Category.app_store],
        action_items=[
            f"Audit the {brand} listing for the keywords used in this listing",
            "Analyze competitor reviews for recurring praise and complaints",
            "Reply to ALL negative reviews from the last 30 days",
            "Add an in-app review prompt after a successful user action",
            "A/B test screenshots that show the key differentiator",
            "Update the description to answer the comparison questions users ask",
        ],
        estimated_effort=judgment.effort_estimate or "1 week",
        content_type="review_template",
    )


def _wikipedia(
    citation: Citation, cls: Classification, judgment: Judgment, brand: str, intel_id: str
) -> Recommendation:
    return Recommendation(
        intelligence_id=intel_id,
        type="wikipedia_advisory",
        priority=Priority.low,
        title="Wikipedia: Build notability first (DO NOT edit directly)",
        description=judgment.brand_opportunity or _DEFAULT_DESCRIPTIONS[Category.wikipedia],
        action_items=[
            f"Check whether {citation.url} mentions {brand} or its category",
            "Notability needs 3+ independent, reliable secondary sources",
            "DO NOT create or edit your own page; conflict-of-interest edits get reverted",
            "Earn coverage in Forbes, TechCrunch or WSJ first",
            f"Set a Google Alert for {brand} to track new independent coverage",
            "Consider an experienced Wikipedia consultant once sources exist",
        ],
        estimated_effort=judgment.effort_estimate or "1 week",
        content_type="notability_analysis",
    )


TEMPLATES: dict[Category, _Template] = {
    Category.ugc: _ugc,
    Category.competitor_blog: _competitor_blog,
    Category.press_media: _press_media,
    Category.app_store: _app_store,
    Category.wikipedia: _wikipedia,
}


def synthesize_recommendation(
    citation: Citation,
    classification: Classification,
    judgment: Judgment | None,
    brand_name: str,
    intelligence_id: str,
) -> Recommendation | None:
    """Build the recommendation for one classified citation.

    Returns ``None`` for brand-owned and uncategorized citations. Without a
    judgment, the opportunity level's fallback judgment is used.
    """
    template = TEMPLATES.get(classification.category)
    if template is None:
        return None
    judgment = judgment or fallback_judgment(classification.opportunity_level)
    return template(citation, classification, judgment, brand_name, intelligence_id)
