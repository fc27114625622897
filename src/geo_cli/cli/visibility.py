"""Visibility command: share of voice, rank, competitor gap and cited sources."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from geo_cli.cli._helpers import _load_json_model, _print_raw
from geo_cli.core.errors import InvalidInputError
from geo_cli.core.models import OutputFormat
from geo_cli.core.requests import VisibilityRequest, build_report
from geo_cli.formatters.csv import format_visibility_csv
from geo_cli.formatters.tables import render_visibility

console = Console()


def register(app: typer.Typer) -> None:
    """Register the visibility command onto the Typer app."""

    @app.command()
    def visibility(
        file: Path = typer.Argument(..., help="JSON file with brand context and model answers"),
        brand: str = typer.Option(None, "--brand", "-b", help="Brand name (overrides file)"),
        competitor: list[str] = typer.Option(
            None, "--competitor", "-c", help="Competitor name (repeatable, overrides file)"
        ),
        format: OutputFormat = typer.Option(
            OutputFormat.table, "--format", "-f", help="Output format: json, csv, or table"
        ),
    ) -> None:
        """Score how visible a brand is across a set of AI answers."""
        request = _load_json_model(file, VisibilityRequest, console)
        overrides: dict = {}
        if brand:
            overrides["brand_name"] = brand
        if competitor:
            overrides["competitors"] = list(competitor)
        request = request.model_copy(update=overrides)

        try:
            report = build_report(request)
        except InvalidInputError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise SystemExit(1)

        if format == OutputFormat.json:
            _print_raw(console, report.model_dump_json(indent=2, exclude={"answers"}))
        elif format == OutputFormat.csv:
            _print_raw(console, format_visibility_csv(report))
        else:
            render_visibility(report, console)
