"""Content signal scoring: freshness, authority, relevance and influence.

A signal is a piece of web content discovered outside the AI answers (a feed
item, an alert) that may influence future answers about the brand.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime, timedelta, timezone

import structlog
from pydantic import BaseModel, Field

from geo_cli.core.models import INFLUENCE_WEIGHTS, DomainAuthority, Signal
from geo_cli.core.store import CitationStore
from geo_cli.core.urls import canonical_url, extract_domain, normalize_domain

logger = structlog.get_logger(__name__)

FRESHNESS_WINDOW_DAYS = 30
UNKNOWN_FRESHNESS = 0.5

MAX_TITLE_CHARS = 500


def influence_score(authority: float, freshness: float, relevance: float) -> float:
    """Weighted influence, rounded to 4 decimals. ``(0.8, 0.5, 0.2) -> 0.53``."""
    wa, wf, wr = INFLUENCE_WEIGHTS
    return round(wa * authority + wf * freshness + wr * relevance, 4)


# ── Domain authority ──────────────────────────────────────────────────────────

SEED_AUTHORITIES: dict[str, DomainAuthority] = {
    "nytimes.com": DomainAuthority(score=0.95, bucket="high", trusted=True),
    "wsj.com": DomainAuthority(score=0.95, bucket="high", trusted=True),
    "bbc.com": DomainAuthority(score=0.95, bucket="high", trusted=True),
    "reuters.com": DomainAuthority(score=0.95, bucket="high", trusted=True),
    "forbes.com": DomainAuthority(score=0.9, bucket="high", trusted=True),
    "techcrunch.com": DomainAuthority(score=0.85, bucket="high", trusted=True),
    "theverge.com": DomainAuthority(score=0.85, bucket="high", trusted=True),
    "wired.com": DomainAuthority(score=0.85, bucket="high", trusted=True),
    "wikipedia.org": DomainAuthority(score=0.95, bucket="high", trusted=True),
    "gov.in": DomainAuthority(score=0.95, bucket="high", trusted=True),
    "reddit.com": DomainAuthority(score=0.6, bucket="medium", trusted=False),
    "quora.com": DomainAuthority(score=0.55, bucket="medium", trusted=False),
    "medium.com": DomainAuthority(score=0.5, bucket="medium", trusted=False),
}


class DomainAuthorityLookup:
    """Domain to authority map. Unknown domains get the neutral default.

    Subdomains inherit their parent's entry (``en.wikipedia.org`` resolves
    to ``wikipedia.org``).
    """

    def __init__(self, entries: Mapping[str, DomainAuthority] | None = None) -> None:
        source = SEED_AUTHORITIES if entries is None else entries
        self._entries = {normalize_domain(k): v for k, v in source.items()}

    def __contains__(self, domain: str) -> bool:
        return self._resolve(domain) is not None

    def _resolve(self, domain: str) -> DomainAuthority | None:
        labels = normalize_domain(domain).split(".")
        for i in range(len(labels) - 1):
            hit = self._entries.get(".".join(labels[i:]))
            if hit is not None:
                return hit
        return None

    def get(self, domain: str) -> DomainAuthority:
        return self._resolve(domain) or DomainAuthority()

    def set(self, domain: str, authority: DomainAuthority) -> None:
        self._entries[normalize_domain(domain)] = authority


# ── Component scores ──────────────────────────────────────────────────────────


def freshness_score(published_at: datetime | None, now: datetime | None = None) -> float:
    """Linear decay from 1.0 (today) to 0.0 at 30 days; 0.5 when unknown."""
    if published_at is None:
        return UNKNOWN_FRESHNESS
    now = now or datetime.now(timezone.utc)
    if published_at.tzinfo is None:
        published_at = published_at.replace(tzinfo=timezone.utc)
    days_old = (now - published_at) / timedelta(days=1)
    return max(0.0, min(1.0, 1 - days_old / FRESHNESS_WINDOW_DAYS))


def relevance_score(title: str, brand_hits: Sequence[str], competitor_hits: Sequence[str]) -> float:
    score = 0.0
    if brand_hits:
        score += 0.4 + 0.1 * min(len(brand_hits), 3)
    if competitor_hits:
        score += 0.2 + 0.05 * min(len(competitor_hits), 4)

    lower = (title or "").lower()
    if "best" in lower or "top 10" in lower:
        score += 0.15
    if "review" in lower or "comparison" in lower:
        score += 0.1
    if "guide" in lower or "how to" in lower:
        score += 0.05
    return min(1.0, round(score, 4))


def detect_mentions(text: str, keywords: Sequence[str]) -> list[str]:
    """Keywords present in *text* (case-insensitive substring), in keyword order."""
    if not text or not keywords:
        return []
    lower = text.lower()
    return [kw for kw in keywords if kw and kw.lower() in lower]


def classify_content_type(title: str) -> str:
    lower = (title or "").lower()
    if "best" in lower or "top " in lower or "ranking" in lower:
        return "listicle"
    if "review" in lower or "rated" in lower:
        return "review"
    if "news" in lower or "announces" in lower or "update" in lower:
        return "news"
    if "how to" in lower or "guide" in lower:
        return "guide"
    return "blog"


def classify_signal(
    influence: float, appears_in_answers: bool, competitor_hits: Sequence[str]
) -> tuple[str, str]:
    """Bucket a scored signal. Returns ``(classification, reason)``."""
    if appears_in_answers and influence >= 0.7:
        return "reinforcing", "High-influence source already appearing in AI answers"
    if not appears_in_answers and influence >= 0.6:
        return "emerging", "High-influence source not yet in AI answers"
    if competitor_hits and influence >= 0.5:
        return "competitor_signal", f"Competitor activity detected: {', '.join(competitor_hits)}"
    return "low_impact", "Low influence or already saturated in AI visibility"


# ── Alerts ────────────────────────────────────────────────────────────────────


class SignalAlert(BaseModel):
    """Follow-up action raised by a scored signal."""

    type: str
    priority: str
    title: str
    description: str
    action_items: list[str] = Field(default_factory=list)
    urgency_days: int
    source_url: str


def signal_alerts(signal: Signal, classification: str, appears: bool) -> list[SignalAlert]:
    alerts: list[SignalAlert] = []
    influence = signal.influence

    if classification == "emerging" and influence >= 0.65:
        alerts.append(
            SignalAlert(
                type="content_opportunity",
                priority="high" if influence >= 0.8 else "medium",
                title=f"New high-impact content on {signal.domain}",
                description=f'A {signal.content_type} "{signal.title}" was published recently.',
                action_items=[
                    "Engage or secure inclusion on similar editorial sources",
                    "Publish content matching this format and angle",
                    "Monitor for AI answer changes in coming weeks",
                ],
                urgency_days=7,
                source_url=signal.url,
            )
        )

    if signal.competitor_hits and influence >= 0.5:
        alerts.append(
            SignalAlert(
                type="competitor_alert",
                priority="high" if appears else "medium",
                title=f"Competitor mentioned: {signal.competitor_hits[0]}",
                description=(
                    f"{', '.join(signal.competitor_hits)} mentioned in "
                    f'"{signal.title}" on {signal.domain}.'
                ),
                action_items=[
                    "Review the content for competitive positioning",
                    "Consider response content or outreach",
                    "Monitor for changes in your AI visibility"
                    if appears
                    else "Track if this content enters AI answers",
                ],
                urgency_days=3 if appears else 10,
                source_url=signal.url,
            )
        )

    if (
        not signal.brand_hits
        and signal.competitor_hits
        and signal.content_type in ("listicle", "review")
        and influence >= 0.5
    ):
        alerts.append(
            SignalAlert(
                type="visibility_gap",
                priority="high",
                title=f'Missing from: "{signal.title}"',
                description=(
                    f"The brand is not mentioned in this {signal.content_type}, "
                    "but competitors are."
                ),
                action_items=[
                    "Contact the publication for inclusion",
                    "Create similar content optimized for AI visibility",
                    "Track this source in future AI answer audits",
                ],
                urgency_days=5,
                source_url=signal.url,
            )
        )
    return alerts


# ── Ingestion ─────────────────────────────────────────────────────────────────


class SignalItem(BaseModel):
    """Raw discovered content before scoring."""

    url: str = Field(min_length=1)
    title: str = ""
    snippet: str = ""
    published_at: datetime | None = None
    topic: str | None = None


class SignalIngestor:
    """Scores discovered items and stores each once per (client, canonical URL)."""

    def __init__(
        self,
        store: CitationStore,
        authorities: DomainAuthorityLookup | None = None,
    ) -> None:
        self.store = store
        self.authorities = authorities or DomainAuthorityLookup()

    def score(
        self,
        item: SignalItem,
        *,
        client_id: str,
        brand_terms: Sequence[str],
        competitors: Sequence[str] = (),
        now: datetime | None = None,
    ) -> Signal:
        text = f"{item.title} {item.snippet}"
        brand_hits = detect_mentions(text, brand_terms)
        competitor_hits = detect_mentions(text, competitors)
        domain = extract_domain(item.url)
        authority = self.authorities.get(domain)
        return Signal(
            client_id=client_id,
            url=item.url,
            normalized_url=canonical_url(item.url),
            domain=domain,
            title=item.title[:MAX_TITLE_CHARS],
            published_at=item.published_at,
            brand_hits=brand_hits,
            competitor_hits=competitor_hits,
            content_type=classify_content_type(item.title),
            topic=item.topic,
            freshness=freshness_score(item.published_at, now),
            authority=authority.score,
            authority_bucket=authority.bucket,
            relevance=relevance_score(item.title, brand_hits, competitor_hits),
        )

    def ingest(
        self,
        item: SignalItem,
        *,
        client_id: str,
        brand_terms: Sequence[str],
        competitors: Sequence[str] = (),
        now: datetime | None = None,
    ) -> Signal | None:
        """Score and store *item*. Returns ``None`` if it was already ingested."""
        signal = self.score(
            item, client_id=client_id, brand_terms=brand_terms, competitors=competitors, now=now
        )
        if not self.store.insert_signal_if_absent(signal):
            logger.debug("signal_duplicate", url=signal.normalized_url, client_id=client_id)
            return None
        logger.info("signal_ingested", url=signal.url, influence=signal.influence)
        return signal
