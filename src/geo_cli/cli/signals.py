"""Signals command: score discovered content for influence on AI answers."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console

from geo_cli.cli._helpers import _load_json_model, _print_raw
from geo_cli.core.config import load_settings
from geo_cli.core.errors import InvalidInputError, PersistenceFailure
from geo_cli.core.models import OutputFormat
from geo_cli.core.requests import SignalsRequest, score_signals
from geo_cli.core.signals import SignalIngestor
from geo_cli.core.store import MemoryStore, SQLiteStore
from geo_cli.formatters.csv import format_signals_csv
from geo_cli.formatters.tables import render_signals

console = Console()


def register(app: typer.Typer) -> None:
    """Register the signals command onto the Typer app."""

    @app.command()
    def signals(
        file: Path = typer.Argument(..., help="JSON file with client, brand terms and items"),
        save: bool = typer.Option(
            False, "--save", help="Store new signals so repeats are recognized later"
        ),
        format: OutputFormat = typer.Option(
            OutputFormat.table, "--format", "-f", help="Output format: json, csv, or table"
        ),
        db: str = typer.Option(None, "--db", help="SQLite store path (default: ~/.geo-cli)"),
    ) -> None:
        """Score content signals by authority, freshness and relevance."""
        request = _load_json_model(file, SignalsRequest, console)

        try:
            store = (
                SQLiteStore(Path(db) if db else load_settings().GEO_DB_PATH)
                if save
                else MemoryStore()
            )
            scored = score_signals(request, SignalIngestor(store))
        except (InvalidInputError, PersistenceFailure) as e:
            console.print(f"[red]Error:[/red] {e}")
            raise SystemExit(1)

        if format == OutputFormat.json:
            _print_raw(
                console, json.dumps([s.model_dump(mode="json") for s in scored], indent=2)
            )
        elif format == OutputFormat.csv:
            _print_raw(console, format_signals_csv(scored))
        else:
            render_signals(scored, console)
