"""Citation classifier: ordered rule chain mapping a cited URL to an actionable category."""

from __future__ import annotations

import re

from pydantic import BaseModel, Field

from geo_cli.core.models import Category, Classification, OpportunityLevel
from geo_cli.core.urls import normalize_domain, normalize_url

_WHITESPACE = re.compile(r"\s+")


class ClassifierRules(BaseModel):
    """Ordered, swappable lookup lists used by the rule chain.

    Lists are checked in order; the first entry that matches wins.
    """

    app_store_patterns: list[str] = Field(
        default_factory=lambda: [
            "play.google.com",
            "apps.apple.com",
            "itunes.apple.com",
            "app.aptoide.com",
            "amazon.com/gp/product",
        ],
        description="URL fragments identifying app-store listings",
    )
    press_domains: list[str] = Field(
        default_factory=lambda: [
            "techcrunch.com", "forbes.com", "businessinsider.com", "theverge.com",
            "wired.com", "cnet.com", "engadget.com", "mashable.com", "venturebeat.com",
            "reuters.com", "bloomberg.com", "wsj.com", "nytimes.com", "theguardian.com",
            "bbc.com", "cnn.com", "time.com", "ft.com", "axios.com", "theinformation.com",
        ],
        description="Press and media domains",
    )
    ugc_domains: list[str] = Field(
        default_factory=lambda: [
            "reddit.com", "quora.com", "twitter.com", "x.com", "linkedin.com",
            "stackoverflow.com", "stackexchange.com", "medium.com", "dev.to",
            "facebook.com", "instagram.com", "youtube.com", "producthunt.com",
            "hackernews.com", "news.ycombinator.com",
        ],
        description="User-generated-content platforms",
    )
    ugc_platforms: list[tuple[str, str]] = Field(
        default_factory=lambda: [
            ("reddit.com", "reddit"),
            ("quora.com", "quora"),
            ("twitter.com", "twitter"),
            ("x.com", "twitter"),
            ("linkedin.com", "linkedin"),
            ("stackoverflow.com", "stackoverflow"),
        ],
        description="(needle, platform) pairs; unmatched UGC domains use the domain",
    )


DEFAULT_RULES = ClassifierRules()


def _on_label_boundary(domain: str, needle: str) -> bool:
    """True if *needle* occurs in *domain* as whole dot-separated labels.

    Press and UGC needles match this way, so microsoft.com is not ft.com.
    """
    return f".{needle}." in f".{domain}."


def _ugc_platform(domain: str, matched: str, cfg: ClassifierRules) -> str:
    for needle, platform in cfg.ugc_platforms:
        if _on_label_boundary(domain, needle):
            return platform
    return matched


def _app_store_subcategory(url: str) -> str:
    if "play.google.com" in url:
        return "google_play"
    if "apps.apple.com" in url:
        return "app_store"
    return "other_store"


def classify_citation(
    url: str,
    domain: str,
    brand_domain: str | None = None,
    competitors: list[str] | None = None,
    rules: ClassifierRules | None = None,
) -> Classification:
    """Classify a citation. Pure and deterministic; first matching rule wins.

    Rule order: brand-owned, Wikipedia, app store, competitor, press/media,
    UGC, other. Matching ignores scheme, trailing slash and ``www.``.
    """
    cfg = rules or DEFAULT_RULES
    d = normalize_domain(domain)
    u = normalize_url(url)
    if not d:
        d = normalize_domain(u)

    # 1. Brand owned
    brand = normalize_domain(brand_domain or "")
    if brand and brand in d:
        return Classification(
            category=Category.brand_owned,
            subcategory="official",
            opportunity_level=OpportunityLevel.easy,
        )

    # 2. Wikipedia
    if "wikipedia.org" in d:
        return Classification(
            category=Category.wikipedia, opportunity_level=OpportunityLevel.difficult
        )

    # 3. App stores
    for pattern in cfg.app_store_patterns:
        if normalize_url(pattern) in u:
            return Classification(
                category=Category.app_store,
                subcategory=_app_store_subcategory(u),
                opportunity_level=OpportunityLevel.medium,
            )

    # 4. Competitor content: compacted name, substring on domain or URL
    for competitor in competitors or []:
        compact = _WHITESPACE.sub("", competitor.lower())
        if compact and (compact in d or compact in u):
            return Classification(
                category=Category.competitor_blog,
                subcategory=competitor,
                opportunity_level=OpportunityLevel.easy,
            )

    # 5. Press / media
    for press in cfg.press_domains:
        if _on_label_boundary(d, press):
            return Classification(
                category=Category.press_media,
                subcategory=press,
                opportunity_level=OpportunityLevel.medium,
            )

    # 6. UGC
    for ugc in cfg.ugc_domains:
        if _on_label_boundary(d, ugc):
            return Classification(
                category=Category.ugc,
                subcategory=_ugc_platform(d, ugc, cfg),
                opportunity_level=OpportunityLevel.easy,
            )

    return Classification(category=Category.other, opportunity_level=OpportunityLevel.medium)
