"""
Canonical protocol definitions for relbridge.

The datasource collaborator is any PEP 249 (DB-API 2.0) driver. These
protocols pin down the subset of that surface the catalog readers, the
transaction context and the handler rely on, so test doubles and pooled
wrappers can stand in without inheritance.

Architecture:
    ::

        Connection Protocol:
        ┌────────────────────────────────────────────────────────┐
        │ cursor()               → Open a cursor                 │
        │ commit()               → Commit transaction            │
        │ rollback()             → Rollback transaction          │
        │ close()                → Release the session           │
        └────────────────────────────────────────────────────────┘

        Cursor Protocol:
        ┌────────────────────────────────────────────────────────┐
        │ execute(sql, params)   → Execute one statement         │
        │ fetchall()             → All remaining rows            │
        │ description            → Column descriptors            │
        │ rowcount               → Rows affected                 │
        │ close()                → Release the cursor            │
        └────────────────────────────────────────────────────────┘

        Implementations:
        sqlite3.Connection, psycopg2 connection,
        mysql.connector pooled connection

Tags:
    protocol, connection, cursor, dbapi, relbridge

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Cursor(Protocol):
    """Minimal DB-API cursor."""

    @property
    def description(self) -> Sequence[Sequence[Any]] | None:
        """Column descriptors of the last query, ``None`` for DML."""
        ...

    @property
    def rowcount(self) -> int:
        """Rows affected by the last statement (-1 when unknown)."""
        ...

    def execute(self, sql: str, parameters: Sequence[Any] = ...) -> Any:
        """Execute a single parameterized statement."""
        ...

    def fetchall(self) -> list[Any]:
        """Fetch all remaining rows."""
        ...

    def close(self) -> None:
        """Release the cursor."""
        ...


@runtime_checkable
class Connection(Protocol):
    """Minimal DB-API connection (one datasource session)."""

    def cursor(self) -> Cursor:
        """Open a cursor on this session."""
        ...

    def commit(self) -> None:
        """Commit the current transaction."""
        ...

    def rollback(self) -> None:
        """Rollback the current transaction."""
        ...

    def close(self) -> None:
        """Close the session."""
        ...


__all__ = [
    "Connection",
    "Cursor",
]
