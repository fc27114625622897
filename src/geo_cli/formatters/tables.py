"""Rich table renderers for CLI output."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from geo_cli.core.models import BatchResult, Priority, StoredSummary, VisibilityReport
from geo_cli.core.requests import ScoredSignal

_PRIORITY_STYLE = {
    Priority.critical: "bold red",
    Priority.high: "red",
    Priority.medium: "yellow",
    Priority.low: "dim",
}


def _score_style(score: float) -> str:
    if score >= 70:
        return "green"
    if score >= 40:
        return "yellow"
    return "red"


def render_batch(result: BatchResult, console: Console) -> None:
    table = Table(title="Citation Intelligence", show_lines=False)
    table.add_column("URL", style="cyan", overflow="fold", max_width=48)
    table.add_column("Category")
    table.add_column("Reachable", justify="center")
    table.add_column("Recommendation")
    table.add_column("Priority")

    for item in result.results:
        intel = item.intelligence
        rec = item.recommendation
        reachable = "[green]yes[/green]" if intel.reachable else "[red]no[/red]"
        category = intel.category.value if intel.category else "-"
        if rec is not None:
            style = _PRIORITY_STYLE[rec.priority]
            priority = f"[{style}]{rec.priority.value}[/{style}]"
        else:
            priority = "-"
        table.add_row(
            escape(intel.url), category, reachable, escape(rec.title) if rec else "-", priority
        )

    console.print(table)
    s = result.summary
    console.print(
        f"\n[bold]Analyzed:[/bold] {s.total_analyzed}  "
        f"[bold]Verified:[/bold] {s.verified}  "
        f"[bold]Hallucinated:[/bold] {s.hallucinated}  "
        f"[bold]Failed:[/bold] {s.failed}  "
        f"[bold]Recommendations:[/bold] {s.recommendations_generated}"
    )
    if result.skipped:
        console.print(
            f"[yellow]{result.skipped} citation(s) over the batch limit skipped.[/yellow]"
        )


def render_summary(summary: StoredSummary, console: Console) -> None:
    table = Table(title="Stored Citation Summary")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Analyzed", str(summary.total_analyzed))
    table.add_row("Verified", str(summary.verified))
    table.add_row("Hallucinated", str(summary.hallucinated))
    for category, count in summary.by_category.items():
        if count:
            table.add_row(f"  {category}", str(count))
    table.add_row("Recommendations", str(summary.recommendations_total))
    table.add_row("  pending", str(summary.recommendations_pending))
    console.print(table)


def render_visibility(report: VisibilityReport, console: Console) -> None:
    s = report.summary
    rank = "-" if s.average_rank is None else f"{s.average_rank:.1f}"
    console.print(f"\n[bold]{escape(report.brand_name)}[/bold]")
    console.print(
        f"  Share of voice: [{_score_style(s.share_of_voice)}]{s.share_of_voice}%[/]  "
        f"Avg rank: {rank}  "
        f"Visibility: [{_score_style(s.visibility_score)}]{s.visibility_score}[/]  "
        f"Trust: {s.trust_index}"
    )

    gap = Table(title="Competitor Gap")
    gap.add_column("Brand")
    gap.add_column("Mentions", justify="right")
    gap.add_column("Share", justify="right")
    for item in report.competitor_gap:
        name = escape(item.name)
        if item.name == report.brand_name:
            name = f"[bold]{name}[/bold]"
        gap.add_row(name, str(item.mentions), f"{item.percentage}%")
    console.print(gap)

    if report.model_stats:
        models = Table(title="Per Model")
        models.add_column("Model")
        models.add_column("Visible", justify="right")
        models.add_column("Cost", justify="right")
        for stat in report.model_stats:
            models.add_row(escape(stat.model), f"{stat.visible}/{stat.total}", f"${stat.cost:.4f}")
        console.print(models)

    if report.top_competitors:
        rivals = Table(title="Top Competitors")
        rivals.add_column("Competitor")
        rivals.add_column("Mentions", justify="right")
        rivals.add_column("Avg Rank", justify="right")
        for comp in report.top_competitors:
            avg = "-" if comp.average_rank is None else f"{comp.average_rank:.1f}"
            rivals.add_row(escape(comp.name), str(comp.total_mentions), avg)
        console.print(rivals)

    if report.sources:
        sources = Table(title="Cited Sources")
        sources.add_column("URL", style="cyan", overflow="fold")
        sources.add_column("Count", justify="right")
        sources.add_column("Prompts", justify="right")
        for source in report.sources:
            sources.add_row(source.url, str(source.count), str(len(source.prompts)))
        console.print(sources)


def render_signals(scored: list[ScoredSignal], console: Console) -> None:
    table = Table(title="Content Signals")
    table.add_column("Domain", style="cyan")
    table.add_column("Type")
    table.add_column("Influence", justify="right")
    table.add_column("Class")
    table.add_column("New", justify="center")
    for item in sorted(scored, key=lambda s: s.signal.influence, reverse=True):
        sig = item.signal
        table.add_row(
            sig.domain,
            sig.content_type,
            f"{sig.influence:.2f}",
            item.classification,
            "yes" if item.created else "dup",
        )
    console.print(table)
