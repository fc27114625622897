"""Visibility scoring for brand mentions in generative answers.

Text parsing (rank, mention counts, sentiment, cited URLs) and the run-level
aggregates: share of voice, average rank, competitor gap, citation
aggregation, visibility score and trust index.
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence

from pydantic import BaseModel, Field

from geo_cli.core.models import (
    AnswerCitation,
    AuditAnswer,
    AuditSummary,
    CitationSource,
    CompetitorGapItem,
    CompetitorMention,
    CompetitorRank,
    ModelStats,
    VisibilityReport,
)
from geo_cli.core.urls import extract_domain, normalize_domain

RANK_LINE = re.compile(r"^\s*(\d+)[.)\]]\s*\*{0,2}(.+)")

POSITIVE_WORDS = [
    "best", "top", "excellent", "recommended", "leading", "trusted",
    "popular", "great", "amazing", "reliable", "safe", "premium",
    "innovative", "award", "favorite", "preferred", "quality",
]
NEGATIVE_WORDS = [
    "avoid", "poor", "worst", "bad", "unreliable", "scam", "fake",
    "terrible", "issues", "problems", "complaints", "disappointing",
    "overpriced", "slow", "buggy", "unsafe",
]

BRAND_CONTEXT_CHARS = 100
COMPETITOR_CONTEXT_CHARS = 50

# Visibility score components
CITED_BASE = 100
MENTIONED_BASE = 50
RANK_BONUS_MAX = 30
RANK_BONUS_STEP = 10
MENTION_BONUS_MAX = 20
MENTION_BONUS_EACH = 5

# Trust index weights
CITATION_RATE_WEIGHT = 0.6
AUTHORITY_RATE_WEIGHT = 0.4
AUTHORITY_MIN_MENTIONS = 3

TOP_COMPETITORS = 5


class BrandData(BaseModel):
    mentioned: bool = False
    count: int = 0
    rank: int | None = None
    sentiment: str = "neutral"
    matched_terms: list[str] = Field(default_factory=list)


# ── Text parsing ──────────────────────────────────────────────────────────────


def _count_overlapping(haystack: str, needle: str) -> int:
    count, idx = 0, haystack.find(needle)
    while idx != -1:
        count += 1
        idx = haystack.find(needle, idx + 1)
    return count


def count_mentions(text: str, terms: Sequence[str]) -> int:
    """Case-insensitive, overlapping substring count summed over *terms*."""
    lower = (text or "").lower()
    return sum(_count_overlapping(lower, t.lower()) for t in terms if t)


def detect_rank(text: str, terms: Sequence[str]) -> int | None:
    """Numeral of the first numbered-list line mentioning any of *terms*."""
    needles = [t.lower() for t in terms if t]
    for line in (text or "").split("\n"):
        match = RANK_LINE.match(line)
        if match and any(n in match.group(2).lower() for n in needles):
            return int(match.group(1))
    return None


def analyze_sentiment(context: str) -> str:
    """Keyword sentiment: more positive than negative cue words wins."""
    lower = context.lower()
    pos = sum(1 for w in POSITIVE_WORDS if w in lower)
    neg = sum(1 for w in NEGATIVE_WORDS if w in lower)
    if pos > neg:
        return "positive"
    if neg > pos:
        return "negative"
    return "neutral"


def _context_window(text: str, idx: int, length: int, radius: int) -> str:
    return text[max(0, idx - radius) : min(len(text), idx + length + radius)]


def parse_brand_data(text: str, brand_name: str, aliases: Sequence[str] = ()) -> BrandData:
    """Mentions, rank and sentiment of the brand in one answer."""
    if not text:
        return BrandData()

    lower = text.lower()
    terms = [t for t in [brand_name, *aliases] if t]
    total = 0
    matched: list[str] = []
    for term in terms:
        n = _count_overlapping(lower, term.lower())
        if n:
            total += n
            matched.append(term)

    sentiment = "neutral"
    for term in terms:
        idx = lower.find(term.lower())
        if idx != -1:
            window = _context_window(text, idx, len(term), BRAND_CONTEXT_CHARS)
            sentiment = analyze_sentiment(window)
            break

    return BrandData(
        mentioned=total > 0,
        count=total,
        rank=detect_rank(text, terms),
        sentiment=sentiment,
        matched_terms=matched,
    )


def parse_competitors(text: str, competitors: Sequence[str]) -> list[CompetitorMention]:
    """Competitors mentioned in *text*, most-mentioned first."""
    if not text or not competitors:
        return []

    lower = text.lower()
    found: list[CompetitorMention] = []
    for name in competitors:
        if not name:
            continue
        count = _count_overlapping(lower, name.lower())
        if count == 0:
            continue
        idx = lower.find(name.lower())
        found.append(
            CompetitorMention(
                name=name,
                count=count,
                rank=detect_rank(text, [name]),
                sentiment=analyze_sentiment(
                    _context_window(text, idx, len(name), COMPETITOR_CONTEXT_CHARS)
                ),
            )
        )
    return sorted(found, key=lambda c: c.count, reverse=True)


def find_winner_brand(text: str, brand_name: str, competitors: Sequence[str]) -> str:
    """Rank #1 wins outright; otherwise most mentions, better rank breaking ties."""
    if not text:
        return ""

    winner, max_count, top_rank = "", 0, 999
    for name in [brand_name, *competitors]:
        data = parse_brand_data(text, name)
        if data.rank == 1:
            return name
        rank = data.rank or 999
        if data.count > max_count or (data.count == max_count and rank < top_rank):
            winner, max_count, top_rank = name, data.count, rank
    return winner


_URL_PATTERNS = [
    re.compile(r"https?://[^\s<>\"{}|\\^`\[\]]+", re.IGNORECASE),
    re.compile(
        r"(?:^|\s)(www\.[a-zA-Z0-9][a-zA-Z0-9-]*\.[a-zA-Z]{2,}[^\s<>\"{}|\\^`\[\]]*)",
        re.IGNORECASE,
    ),
    re.compile(
        r"(?:^|\s)([a-zA-Z0-9][a-zA-Z0-9-]*\.(?:com|org|net|io|co|ai|dev|app|edu|gov|info)"
        r"[^\s<>\"{}|\\^`\[\]]*)",
        re.IGNORECASE,
    ),
]
_MARKDOWN_LINK = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_TRAILING_PUNCT = re.compile(r"[.,;:!?)]+$")


def extract_urls_from_text(text: str) -> list[AnswerCitation]:
    """URLs mentioned in answer text, in discovery order, deduplicated."""
    if not text:
        return []

    seen: set[str] = set()
    citations: list[AnswerCitation] = []

    def add(url: str, title: str | None) -> None:
        if not url.startswith("http"):
            url = f"https://{url}"
        domain = extract_domain(url)
        if not domain or url in seen:
            return
        seen.add(url)
        citations.append(AnswerCitation(url=url, title=title or domain, domain=domain))

    for pattern in _URL_PATTERNS:
        for match in pattern.finditer(text):
            raw = (match.group(1) if match.groups() else match.group(0)).strip()
            url = _TRAILING_PUNCT.sub("", raw)
            bare = url.split("://", 1)[-1]
            # very short bare hosts ("a.io") are usually noise
            if "/" not in bare and "www." not in url and len(extract_domain(url)) < 5:
                continue
            add(url, None)

    for match in _MARKDOWN_LINK.finditer(text):
        add(match.group(2).strip(), match.group(1))

    return citations


def _is_brand_source(citation: AnswerCitation, brand_domain: str) -> bool:
    return brand_domain in citation.domain.lower() or brand_domain in citation.url.lower()


def build_answer(
    *,
    model: str,
    prompt: str,
    text: str,
    brand_name: str,
    aliases: Sequence[str] = (),
    brand_domain: str | None = None,
    competitors: Sequence[str] = (),
    citations: Sequence[AnswerCitation] | None = None,
    success: bool = True,
    error: str | None = None,
    cost: float = 0.0,
    weight: float = 1.0,
) -> AuditAnswer:
    """Construct an :class:`AuditAnswer` by parsing raw answer text.

    When *citations* is omitted, URLs are extracted from the text itself.
    """
    brand = parse_brand_data(text, brand_name, aliases)
    cited = list(citations) if citations is not None else extract_urls_from_text(text)
    needle = normalize_domain(brand_domain or "")
    if needle:
        cited = [
            c.model_copy(update={"is_brand_source": _is_brand_source(c, needle)}) for c in cited
        ]
    return AuditAnswer(
        model=model,
        prompt=prompt,
        text=text,
        success=success,
        error=error,
        citations=cited,
        mention_count=brand.count,
        matched_terms=brand.matched_terms,
        rank=brand.rank,
        sentiment=brand.sentiment,
        is_cited=any(c.is_brand_source for c in cited),
        competitors_found=parse_competitors(text, competitors),
        winner_brand=find_winner_brand(text, brand_name, competitors),
        cost=cost,
        weight=weight,
    )


# ── Aggregates ────────────────────────────────────────────────────────────────


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with halves going up (``round()`` sends them to the even neighbour)."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def _percent(part: float, whole: float) -> int:
    return int(round_half_up(part / whole * 100))


def share_of_voice(answers: Sequence[AuditAnswer]) -> int:
    """Percent of successful answers mentioning the brand. 0 if none succeeded."""
    successful = [a for a in answers if a.success]
    if not successful:
        return 0
    visible = sum(1 for a in successful if a.brand_mentioned)
    return _percent(visible, len(successful))


def average_rank(answers: Sequence[AuditAnswer]) -> float | None:
    ranks = [a.rank for a in answers if a.success and a.rank is not None]
    if not ranks:
        return None
    return round_half_up(sum(ranks) / len(ranks), 1)


def competitor_gap(
    answers: Sequence[AuditAnswer], brand_name: str, competitors: Sequence[str]
) -> list[CompetitorGapItem]:
    """Brand vs competitor mention share across answers, largest first.

    Competitor counts are plain substring counts, so a name also matches
    inside longer words.
    """
    in_scope = [a for a in answers if a.success]
    counts: dict[str, int] = {brand_name: sum(a.mention_count for a in in_scope)}
    for name in competitors:
        if name and name not in counts:
            counts[name] = sum(count_mentions(a.text, [name]) for a in in_scope)

    total = max(sum(counts.values()), 1)
    items = [
        CompetitorGapItem(name=name, mentions=n, percentage=_percent(n, total))
        for name, n in counts.items()
    ]
    return sorted(items, key=lambda i: i.mentions, reverse=True)


def aggregate_citations(answers: Sequence[AuditAnswer]) -> list[CitationSource]:
    """Deduplicate cited URLs across answers with counts and source prompts."""
    sources: dict[str, CitationSource] = {}
    for answer in answers:
        if not answer.success:
            continue
        for citation in answer.citations:
            source = sources.get(citation.url)
            if source is None:
                source = sources[citation.url] = CitationSource(
                    url=citation.url, domain=citation.domain, title=citation.title
                )
            source.count += 1
            if answer.prompt and answer.prompt not in source.prompts:
                source.prompts.append(answer.prompt)
    return sorted(sources.values(), key=lambda s: s.count, reverse=True)


def _answer_score(answer: AuditAnswer) -> int:
    if not answer.brand_mentioned:
        return 0
    score = CITED_BASE if answer.is_cited else MENTIONED_BASE
    if answer.rank:
        score += max(0, RANK_BONUS_MAX - (answer.rank - 1) * RANK_BONUS_STEP)
    score += min(MENTION_BONUS_MAX, answer.mention_count * MENTION_BONUS_EACH)
    return score


def visibility_score(answers: Sequence[AuditAnswer]) -> int:
    """Weighted mean of per-answer scores over successful answers.

    Per answer: 100 if the brand's site is cited, 50 if only mentioned, plus
    up to 30 for rank and up to 20 for repeated mentions.
    """
    successful = [a for a in answers if a.success]
    total_weight = sum(a.weight for a in successful)
    if total_weight <= 0:
        return 0
    return int(
        round_half_up(sum(_answer_score(a) * a.weight for a in successful) / total_weight)
    )


def authority_type(answer: AuditAnswer) -> str:
    if not answer.is_cited:
        return "mentioned"
    return "authority" if answer.mention_count >= AUTHORITY_MIN_MENTIONS else "alternative"


def trust_index(answers: Sequence[AuditAnswer]) -> int:
    successful = [a for a in answers if a.success]
    if not successful:
        return 0
    cited = sum(1 for a in successful if a.is_cited)
    authority = sum(1 for a in successful if authority_type(a) == "authority")
    citation_rate = cited / len(successful) * 100
    authority_rate = authority / len(successful) * 100
    score = citation_rate * CITATION_RATE_WEIGHT + authority_rate * AUTHORITY_RATE_WEIGHT
    return int(round_half_up(score))


def model_stats(answers: Sequence[AuditAnswer]) -> list[ModelStats]:
    """Per-model visible/total answer counts and spend, in first-seen order."""
    stats: dict[str, ModelStats] = {}
    for answer in answers:
        entry = stats.get(answer.model)
        if entry is None:
            entry = stats[answer.model] = ModelStats(model=answer.model)
        entry.total += 1
        if answer.success and answer.brand_mentioned:
            entry.visible += 1
        entry.cost += answer.cost
    for entry in stats.values():
        entry.cost = round(entry.cost, 4)
    return list(stats.values())


def top_competitors(
    answers: Sequence[AuditAnswer], limit: int = TOP_COMPETITORS
) -> list[CompetitorRank]:
    """Competitor mentions summed over successful answers with their mean list rank."""
    totals: dict[str, int] = {}
    ranks: dict[str, list[int]] = {}
    for answer in answers:
        if not answer.success:
            continue
        for comp in answer.competitors_found:
            totals[comp.name] = totals.get(comp.name, 0) + comp.count
            ranks.setdefault(comp.name, [])
            if comp.rank:
                ranks[comp.name].append(comp.rank)

    items = [
        CompetitorRank(
            name=name,
            total_mentions=count,
            average_rank=(
                round_half_up(sum(ranks[name]) / len(ranks[name]), 1) if ranks[name] else None
            ),
        )
        for name, count in totals.items()
    ]
    return sorted(items, key=lambda c: c.total_mentions, reverse=True)[:limit]


def summarize_audit(answers: Sequence[AuditAnswer]) -> AuditSummary:
    successful = [a for a in answers if a.success]
    return AuditSummary(
        share_of_voice=share_of_voice(answers),
        average_rank=average_rank(answers),
        total_citations=sum(len(a.citations) for a in successful),
        total_cost=round(sum(a.cost for a in answers), 4),
        successful_answers=len(successful),
        visible_in=sum(1 for a in successful if a.brand_mentioned),
        cited_in=sum(1 for a in successful if a.is_cited),
        visibility_score=visibility_score(answers),
        trust_index=trust_index(answers),
    )


def build_visibility_report(
    answers: Sequence[AuditAnswer], brand_name: str, competitors: Sequence[str] = ()
) -> VisibilityReport:
    return VisibilityReport(
        brand_name=brand_name,
        summary=summarize_audit(answers),
        competitor_gap=competitor_gap(answers, brand_name, competitors),
        sources=aggregate_citations(answers),
        model_stats=model_stats(answers),
        top_competitors=top_competitors(answers),
        answers=list(answers),
    )
