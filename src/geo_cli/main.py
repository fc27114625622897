"""geo: citation intelligence and brand visibility scoring for generative answers."""

from __future__ import annotations

import typer

from geo_cli import __version__
from geo_cli.cli import analyze, serve, signals, visibility
from geo_cli.core.config import load_settings
from geo_cli.core.log import configure_logging

app = typer.Typer(
    name="geo",
    help="Verify, classify and act on the citations AI assistants give for your brand.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"geo-cli {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log pipeline events to stderr"),
    log_json: bool = typer.Option(False, "--log-json", help="Render logs as JSON lines"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version"
    ),
) -> None:
    """Citation intelligence and visibility scoring."""
    level = "DEBUG" if verbose else load_settings().LOG_LEVEL
    configure_logging(level, json=log_json)


analyze.register(app)
visibility.register(app)
signals.register(app)
serve.register(app)
