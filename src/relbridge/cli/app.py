"""
Root Typer application for the relbridge CLI.

Connection settings come from ``RELBRIDGE_*`` environment variables (see
``RelbridgeSettings``); ``--database`` points at a SQLite file instead.
"""

from __future__ import annotations

import typer
from typer import Typer

from relbridge.cli.utils import console, open_handler, parse_pairs, print_json, print_rows

app = Typer(
    name="relbridge",
    help="relbridge — schema-driven entity access to relational databases.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("relbridge")
        except PackageNotFoundError:
            v = "unknown"
        typer.echo(f"relbridge {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """relbridge CLI — inspect the catalog and read entities."""


# ── Commands ─────────────────────────────────────────────────────────────


@app.command()
def tables(
    database: str | None = typer.Option(None, "--database", "-d", help="SQLite database path"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """List tables with their primary keys and referencing tables."""
    with open_handler(database) as handler:
        keys = handler.primary_keys()
        links = handler.navigation_links()
        rows = [
            {
                "table": name,
                "primary_key": ", ".join(keys[name]),
                "referenced_by": ", ".join(links[name]),
            }
            for name in handler.list_tables()
        ]
    if json_out:
        print_json(rows)
        return
    print_rows(rows, title="Tables")


@app.command()
def describe(
    table: str = typer.Argument(..., help="Table name"),
    database: str | None = typer.Option(None, "--database", "-d", help="SQLite database path"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show columns, key and navigation links of one table."""
    with open_handler(database) as handler:
        schema = handler.catalog.schema(table)
        related = handler.catalog.related_tables(table)
    if json_out:
        payload = schema.to_dict()
        payload["related"] = related
        print_json(payload)
        return

    rows = [
        {
            "column": col.name,
            "type": col.canonical_type.value,
            "declared": col.declared_type or "",
            "nullable": "yes" if col.nullable else "no",
            "key": str(schema.primary_keys.index(col.name) + 1) if schema.is_key(col.name) else "",
            "default": col.default,
        }
        for col in schema.columns.values()
    ]
    print_rows(rows, title=schema.name)
    for link in schema.navigation.values():
        pairs = ", ".join(f"{p} -> {link.child}.{c}" for p, c in link.pairs)
        console.print(f"  [cyan]{link.child}[/cyan]: {pairs}")
    if related:
        console.print(f"  [dim]related: {', '.join(related)}[/dim]")


@app.command()
def read(
    table: str = typer.Argument(..., help="Table name"),
    key: list[str] | None = typer.Option(None, "--key", "-k", help="Match column=value (repeatable)"),
    database: str | None = typer.Option(None, "--database", "-d", help="SQLite database path"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Read entities, all rows or those matching ``--key`` values."""
    with open_handler(database) as handler:
        if key:
            entities = handler.read_by_keys(table, parse_pairs(key))
        else:
            entities = handler.read_all(table)
    rows = [{**entity.to_dict(), "@version": entity.version} for entity in entities]
    if json_out:
        print_json(rows)
        return
    print_rows(rows, title=table)


__all__ = ["app"]
