"""CLI command for the citation intelligence HTTP service."""

from __future__ import annotations

import typer
from rich.console import Console

from geo_cli.core.analyzer.extractor import HtmlExtractor, TavilyExtractor
from geo_cli.core.analyzer.groq import GroqAnalyzer
from geo_cli.core.config import load_settings
from geo_cli.core.errors import PersistenceFailure
from geo_cli.core.serve.app import create_app, run_server
from geo_cli.core.store import SQLiteStore

console = Console()


def register(app: typer.Typer) -> None:
    """Register the ``serve`` command on the given Typer app."""

    @app.command()
    def serve(
        port: int = typer.Option(
            8080, "--port", "-p", help="Port to listen on",
        ),
        host: str = typer.Option(
            "127.0.0.1", "--host", "-H", help="Host/interface to bind",
        ),
        db: str = typer.Option(
            None, "--db", help="SQLite store path (default: ~/.geo-cli)",
        ),
    ) -> None:
        """Serve citation analysis, summaries, visibility and signal scoring over HTTP."""
        settings = load_settings()
        try:
            store = SQLiteStore(db or settings.GEO_DB_PATH)
        except PersistenceFailure as e:
            console.print(f"[red]Error:[/red] {e}")
            raise SystemExit(1)

        analyzer = GroqAnalyzer.from_settings(settings)
        extractor = (
            TavilyExtractor(settings.TAVILY_API_KEY, api_url=settings.TAVILY_API_URL)
            if settings.TAVILY_API_KEY
            else HtmlExtractor()
        )
        analysis = "[green]on[/green]" if analyzer.configured else "[yellow]fallback only[/yellow]"
        console.print(
            f"[bold green]GEO service[/bold green] on [cyan]{host}:{port}[/cyan]  "
            f"(store: {store.path}, analysis: {analysis})"
        )
        service = create_app(
            store,
            analyzer=analyzer,
            extractor=extractor,
            config=settings.pipeline_config,
        )
        run_server(service, host=host, port=port)
