"""Shared helpers for CLI commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, ValidationError
from rich.console import Console

M = TypeVar("M", bound=BaseModel)


def _print_raw(con: Console, text: str) -> None:
    """Print machine-readable output without markup, highlighting or wrapping."""
    con.print(
        text,
        end="" if text.endswith("\n") else "\n",
        soft_wrap=True,
        markup=False,
        highlight=False,
    )


def _load_json_model(path: Path, model: type[M], con: Console) -> M:
    """Read *path* as JSON into *model*, exiting with code 1 on bad input."""
    try:
        return model.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except FileNotFoundError:
        con.print(f"[red]Error:[/red] File not found: {path}")
        raise SystemExit(1)
    except (json.JSONDecodeError, ValidationError) as e:
        con.print(f"[red]Error:[/red] Invalid input file {path}: {e}")
        raise SystemExit(1)
