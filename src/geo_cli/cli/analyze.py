"""Analyze and summary commands: citation intelligence over a local store."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console

from geo_cli.cli._helpers import _load_json_model, _print_raw
from geo_cli.core.analyzer.extractor import HtmlExtractor, TavilyExtractor
from geo_cli.core.analyzer.groq import GroqAnalyzer
from geo_cli.core.config import Settings, load_settings
from geo_cli.core.errors import InvalidInputError, PersistenceFailure
from geo_cli.core.models import BatchResult, OutputFormat
from geo_cli.core.pipeline import CitationPipeline, get_summary
from geo_cli.core.requests import AnalyzeRequest
from geo_cli.core.store import SQLiteStore
from geo_cli.formatters.csv import format_batch_csv, format_summary_csv
from geo_cli.formatters.tables import render_batch, render_summary

console = Console()


def _open_store(db: str | None, settings: Settings) -> SQLiteStore:
    try:
        return SQLiteStore(Path(db) if db else settings.GEO_DB_PATH)
    except PersistenceFailure as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)


async def run_batch(
    request: AnalyzeRequest, store: SQLiteStore, settings: Settings, concurrency: int | None
) -> BatchResult:
    """Wire the configured capabilities into a pipeline and run one batch."""
    config = settings.pipeline_config
    if concurrency is not None:
        config = config.model_copy(update={"concurrency": concurrency})
    extractor: TavilyExtractor | HtmlExtractor
    if settings.TAVILY_API_KEY:
        extractor = TavilyExtractor(settings.TAVILY_API_KEY, api_url=settings.TAVILY_API_URL)
    else:
        extractor = HtmlExtractor()
    pipeline = CitationPipeline(
        store,
        analyzer=GroqAnalyzer.from_settings(settings),
        extractor=extractor,
        config=config,
    )
    return await pipeline.analyze_batch(
        request.citations, request.brand, client_id=request.client_id, deep=request.deep
    )


def register(app: typer.Typer) -> None:
    """Register the analyze and summary commands onto the Typer app."""

    @app.command()
    def analyze(
        file: Path = typer.Argument(..., help="JSON file with brand context and citations"),
        brand: str = typer.Option(None, "--brand", "-b", help="Brand name (overrides file)"),
        brand_domain: str = typer.Option(
            None, "--brand-domain", help="Brand's own domain (overrides file)"
        ),
        competitor: list[str] = typer.Option(
            None, "--competitor", "-c", help="Competitor name (repeatable, overrides file)"
        ),
        client_id: str = typer.Option(None, "--client-id", help="Client the records belong to"),
        deep: bool = typer.Option(
            False, "--deep", help="Extract page content before analysis (smaller batches)"
        ),
        concurrency: int = typer.Option(
            None, "--concurrency", min=1, max=16, help="Citations processed at once"
        ),
        format: OutputFormat = typer.Option(
            OutputFormat.table, "--format", "-f", help="Output format: json, csv, or table"
        ),
        db: str = typer.Option(None, "--db", help="SQLite store path (default: ~/.geo-cli)"),
    ) -> None:
        """Verify, classify and build recommendations for a batch of citations."""
        settings = load_settings()
        request = _load_json_model(file, AnalyzeRequest, console)
        overrides: dict = {}
        if brand:
            overrides["brand_name"] = brand
        if brand_domain:
            overrides["brand_domain"] = brand_domain
        if competitor:
            overrides["competitors"] = list(competitor)
        if client_id:
            overrides["client_id"] = client_id
        if deep:
            overrides["deep"] = True
        request = request.model_copy(update=overrides)

        store = _open_store(db, settings)
        try:
            if format == OutputFormat.table:
                with console.status(f"Analyzing {len(request.citations)} citations..."):
                    result = asyncio.run(run_batch(request, store, settings, concurrency))
            else:
                result = asyncio.run(run_batch(request, store, settings, concurrency))
        except InvalidInputError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise SystemExit(1)

        if format == OutputFormat.json:
            _print_raw(console, result.model_dump_json(indent=2))
        elif format == OutputFormat.csv:
            _print_raw(console, format_batch_csv(result))
        else:
            render_batch(result, console)

    @app.command()
    def summary(
        client_id: str = typer.Option(None, "--client-id", help="Restrict to one client"),
        format: OutputFormat = typer.Option(
            OutputFormat.table, "--format", "-f", help="Output format: json, csv, or table"
        ),
        db: str = typer.Option(None, "--db", help="SQLite store path (default: ~/.geo-cli)"),
    ) -> None:
        """Summarize stored citation intelligence without re-running analysis."""
        store = _open_store(db, load_settings())
        result = get_summary(store, client_id)

        if format == OutputFormat.json:
            _print_raw(console, result.model_dump_json(indent=2))
        elif format == OutputFormat.csv:
            _print_raw(console, format_summary_csv(result))
        else:
            render_summary(result, console)
