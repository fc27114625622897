"""CSV formatters for batch results, visibility reports and scored signals."""

from __future__ import annotations

import csv
import io

from geo_cli.core.models import BatchResult, StoredSummary, VisibilityReport
from geo_cli.core.requests import ScoredSignal


def format_batch_csv(result: BatchResult) -> str:
    """One row per citation with its verdict and recommendation."""
    output = io.StringIO()
    writer = csv.writer(output)

    writer.writerow(["url", "domain", "status", "reachable", "category", "subcategory",
                     "opportunity", "hallucinated", "recommendation", "priority", "effort"])
    for item in result.results:
        intel = item.intelligence
        cls = intel.classification
        rec = item.recommendation
        writer.writerow([
            intel.url,
            intel.domain,
            intel.status.value,
            intel.reachable,
            cls.category.value if cls else "",
            (cls.subcategory or "") if cls else "",
            cls.opportunity_level.value if cls else "",
            intel.hallucination.is_hallucinated,
            rec.type if rec else "",
            rec.priority.value if rec else "",
            rec.estimated_effort if rec else "",
        ])

    return output.getvalue()


def format_summary_csv(summary: StoredSummary) -> str:
    output = io.StringIO()
    writer = csv.writer(output)

    writer.writerow(["metric", "value"])
    writer.writerow(["total_analyzed", summary.total_analyzed])
    writer.writerow(["hallucinated", summary.hallucinated])
    writer.writerow(["verified", summary.verified])
    for category, count in summary.by_category.items():
        writer.writerow([f"category.{category}", count])
    writer.writerow(["recommendations_total", summary.recommendations_total])
    writer.writerow(["recommendations_pending", summary.recommendations_pending])
    for priority, count in summary.recommendations_by_priority.items():
        writer.writerow([f"priority.{priority}", count])

    return output.getvalue()


def format_visibility_csv(report: VisibilityReport) -> str:
    """Competitor gap rows, then citation sources, then the summary row."""
    output = io.StringIO()
    writer = csv.writer(output)

    writer.writerow(["name", "mentions", "percentage"])
    for item in report.competitor_gap:
        writer.writerow([item.name, item.mentions, item.percentage])

    writer.writerow([])
    writer.writerow(["url", "domain", "count", "prompts"])
    for source in report.sources:
        writer.writerow([source.url, source.domain, source.count, " | ".join(source.prompts)])

    # Summary row
    s = report.summary
    writer.writerow([])
    writer.writerow(["SUMMARY", "share_of_voice", "average_rank", "visibility_score",
                     "trust_index", "successful_answers", "total_citations"])
    writer.writerow([
        report.brand_name,
        s.share_of_voice,
        "" if s.average_rank is None else s.average_rank,
        s.visibility_score,
        s.trust_index,
        s.successful_answers,
        s.total_citations,
    ])

    return output.getvalue()


def format_signals_csv(scored: list[ScoredSignal]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)

    writer.writerow(["url", "domain", "content_type", "authority", "freshness", "relevance",
                     "influence", "classification", "created"])
    for item in scored:
        sig = item.signal
        writer.writerow([
            sig.url,
            sig.domain,
            sig.content_type,
            sig.authority,
            round(sig.freshness, 4),
            sig.relevance,
            sig.influence,
            item.classification,
            item.created,
        ])

    return output.getvalue()
