"""
CLI layer for relbridge.

A Typer application over ``EntityHandler``: argument parsing, coloured
output and table formatting only.

Entry point::

    relbridge --help
"""

from relbridge.cli.app import app

__all__ = ["app"]
