"""Tests for recommendation templates and the fallback judgment."""

from __future__ import annotations

import pytest

from geo_cli.core.classifier import classify_citation
from geo_cli.core.models import (
    Category,
    Citation,
    Classification,
    Judgment,
    OpportunityLevel,
    Priority,
)
from geo_cli.core.recommendations import fallback_judgment, synthesize_recommendation


def _rec(url: str, title: str | None = "Best dating apps in 2024", judgment=None, competitors=None):
    citation = Citation(url=url, title=title)
    cls = classify_citation(url, citation.domain, "acme.com", competitors or ["Bumble"])
    return synthesize_recommendation(citation, cls, judgment, "Acme", "intel-1")


# ── Fallback ──────────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "level, priority, effort",
    [
        (OpportunityLevel.easy, "high", "2h"),
        (OpportunityLevel.medium, "medium", "3 days"),
        (OpportunityLevel.difficult, "low", "3 days"),
    ],
)
def test_fallback_judgment(level, priority, effort):
    judgment = fallback_judgment(level)
    assert judgment.priority == priority
    assert judgment.effort_estimate == effort


# ── Terminal categories ───────────────────────────────────────────────────────


def test_brand_owned_has_no_recommendation():
    assert _rec("https://acme.com/pricing") is None


def test_other_has_no_recommendation():
    assert _rec("https://unknown-site.net/x") is None


# ── Templates ─────────────────────────────────────────────────────────────────


def test_reddit_thread():
    rec = _rec("https://www.reddit.com/r/dating/comments/abc", title="Which app actually works?")
    assert rec is not None
    assert rec.type == "engage_ugc"
    assert rec.title.startswith("Reddit: Respond to")
    assert rec.content_type == "reddit_comment"
    assert len(rec.action_items) == 7
    assert any("OP and commenters" in item for item in rec.action_items)
    assert any("48 hours" in item for item in rec.action_items)
    # fallback for easy opportunity
    assert rec.priority == Priority.high
    assert rec.estimated_effort == "2h"
    assert rec.intelligence_id == "intel-1"


def test_quora_uses_analyzer_judgment():
    judgment = Judgment(
        priority="critical",
        effort_estimate="30min",
        brand_opportunity="Top answer lists three rivals but not Acme.",
    )
    rec = _rec("https://quora.com/What-is-the-best-app", judgment=judgment)
    assert rec.content_type == "quora_answer"
    assert rec.priority == Priority.critical
    assert rec.estimated_effort == "30min"
    assert rec.description == "Top answer lists three rivals but not Acme."
    assert any("the asker and answerers" in item for item in rec.action_items)


def test_ugc_title_truncated():
    long_title = "x" * 100
    rec = _rec("https://reddit.com/r/a", title=long_title)
    assert '"' + "x" * 40 + '..."' in rec.title


def test_unknown_priority_from_judgment_defaults_to_medium():
    rec = _rec("https://reddit.com/r/a", judgment=Judgment(priority="urgent!!"))
    assert rec.priority == Priority.medium


def test_competitor_blog_comparison():
    rec = _rec("https://bumblehq.com/blog/why-bumble", title="Why Bumble beats the rest")
    assert rec.type == "create_comparison"
    assert rec.priority == Priority.high
    assert rec.estimated_effort == "3 days"
    assert rec.content_type == "comparison_page"
    assert rec.title.startswith('Counter "Why Bumble beats the rest"')
    assert any("acme.com/vs/bumble" in item for item in rec.action_items)
    assert len(rec.action_items) == 7


def test_competitor_priority_high_even_if_judgment_says_low():
    rec = _rec("https://bumblehq.com/x", judgment=Judgment(priority="low"))
    assert rec.priority == Priority.high


def test_competitor_name_comes_from_classification_not_judgment_prose():
    threat = "Bumble is mentioned and claims better matching than Acme."
    rec = _rec("https://bumblehq.com/blog/x", judgment=Judgment(competitor_threat=threat))
    assert any(item == "Publish it at acme.com/vs/bumble" for item in rec.action_items)
    assert any(item.startswith("List every claim Bumble makes") for item in rec.action_items)
    assert rec.description == threat


def test_press_media():
    rec = _rec("https://www.techcrunch.com/2024/dating", title="Dating apps raise prices")
    assert rec.type == "publish_pr"
    assert rec.title == "PR opportunity: Get Acme featured on techcrunch"
    assert rec.content_type == "press_release"
    assert any("after 5 days" in item for item in rec.action_items)
    assert any("1 data point" in item for item in rec.action_items)


def test_app_store():
    rec = _rec("https://play.google.com/store/apps/details?id=com.bumble")
    assert rec.type == "improve_reviews"
    assert rec.title.startswith("Google Play optimization")
    assert rec.content_type == "review_template"
    assert len(rec.action_items) == 6
    assert any("negative reviews" in item for item in rec.action_items)
    assert any("A/B test screenshots" in item for item in rec.action_items)


def test_wikipedia_advises_against_self_editing():
    rec = _rec("https://en.wikipedia.org/wiki/Online_dating")
    assert rec.type == "wikipedia_advisory"
    assert rec.priority == Priority.low
    assert "DO NOT edit" in rec.title
    assert any("DO NOT create or edit your own page" in item for item in rec.action_items)
    assert any("Forbes, TechCrunch or WSJ" in item for item in rec.action_items)


def test_description_defaults_without_judgment():
    citation = Citation(url="https://reddit.com/r/a")
    cls = Classification(category=Category.ugc, subcategory="reddit",
                         opportunity_level=OpportunityLevel.easy)
    rec = synthesize_recommendation(citation, cls, None, "Acme", "i")
    assert rec.description
