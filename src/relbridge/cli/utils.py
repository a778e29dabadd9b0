"""
CLI utility helpers — handler lifecycle and output formatting.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from relbridge.core.adapters import create_adapter
from relbridge.core.errors import ServiceFault
from relbridge.core.logging import configure_logging
from relbridge.core.settings import RelbridgeSettings
from relbridge.handler import EntityHandler

console = Console()
err_console = Console(stderr=True)


# ── Handler helper ───────────────────────────────────────────────────────


def load_settings(database: str | None = None) -> RelbridgeSettings:
    """Settings from the environment; ``database`` overrides the SQLite path."""
    settings = RelbridgeSettings()
    if database:
        settings = settings.model_copy(update={"db_type": "sqlite", "path": database})
    return settings


@contextmanager
def open_handler(database: str | None = None) -> Iterator[EntityHandler]:
    """Connect, build a handler, and disconnect on exit.

    Any ``ServiceFault`` is reported on stderr and turned into exit code 1.
    """
    settings = load_settings(database)
    configure_logging(settings.log_level, json_format=settings.json_logs)
    try:
        adapter = create_adapter(settings)
        adapter.connect()
    except ServiceFault as e:
        fail(e)
    try:
        with EntityHandler(adapter, settings.scope_id) as handler:
            yield handler
    except ServiceFault as e:
        fail(e)
    finally:
        adapter.disconnect()


def fail(error: ServiceFault) -> None:
    """Print a fault and exit with status 1."""
    err_console.print(f"[bold red]Error[/bold red] ({type(error).__name__}): {escape(error.message)}")
    raise typer.Exit(code=1)


def parse_pairs(pairs: list[str] | None) -> dict[str, str | None]:
    """``["id=1", "name=Ann"]`` -> ``{"id": "1", "name": "Ann"}``.

    A bare ``col=`` keeps the empty string; ``col`` alone means NULL.
    """
    result: dict[str, str | None] = {}
    for pair in pairs or []:
        if "=" in pair:
            name, value = pair.split("=", 1)
            result[name.strip()] = value
        else:
            result[pair.strip()] = None
    return result


# ── Output helpers ───────────────────────────────────────────────────────


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def print_rows(rows: list[dict[str, Any]], *, title: str = "") -> None:
    """Render a list of dicts as a Rich table."""
    if not rows:
        console.print("[dim]No rows.[/dim]")
        return
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in rows[0]:
        table.add_column(escape(col), overflow="fold")
    for row in rows:
        table.add_row(*("[dim]NULL[/dim]" if v is None else escape(str(v)) for v in row.values()))
    console.print(table)


__all__ = [
    "console",
    "err_console",
    "fail",
    "load_settings",
    "open_handler",
    "parse_pairs",
    "print_json",
    "print_rows",
]
