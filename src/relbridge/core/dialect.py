"""SQL dialect abstraction for statement synthesis and catalog queries.

Provides a ``Dialect`` protocol and concrete implementations for every
supported backend. The statement synthesizer and the catalog readers use
``Dialect`` methods for placeholders, identifier quoting and the active
schema expression, so no driver-specific syntax leaks into them.

Manifesto:
    Generated CRUD must be portable across SQLite, PostgreSQL and MySQL.

    - **One interface:** Dialect protocol for all SQL fragments
    - **Zero coupling:** Synthesis never imports database drivers
    - **Quoted identifiers:** Catalog names are quoted, never trusted raw

Architecture::

    ┌──────────┐ ┌──────────────┐ ┌────────────┐
    │ SQLite   │ │ PostgreSQL   │ │ MySQL      │
    │ ?, ?, ?  │ │ %s, %s, %s   │ │ %s, %s     │
    │ "name"   │ │ "name"       │ │ `name`     │
    │ main     │ │ current_sch..│ │ DATABASE() │
    └──────────┘ └──────────────┘ └────────────┘

Examples:
    >>> from relbridge.core.dialect import get_dialect
    >>> d = get_dialect("sqlite")
    >>> d.placeholders(3)
    '?, ?, ?'
    >>> d.quote_identifier('order lines')
    '"order lines"'

Guardrails:
    ❌ DON'T: Interpolate caller-supplied identifiers into SQL
    ✅ DO: Quote catalog-validated identifiers via ``quote_identifier``

Tags:
    dialect, sql, abstraction, portability, database, relbridge

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract."""

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    def placeholder(self, index: int) -> str:
        """Single positional placeholder (0-based index).

        ``index`` is ignored by dialects that use anonymous placeholders
        (SQLite ``?``, MySQL ``%s``).
        """
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated placeholder list."""
        ...

    def quote_identifier(self, identifier: str) -> str:
        """Quote a table or column name, escaping embedded quote characters."""
        ...

    def current_schema(self) -> str:
        """SQL expression naming the schema catalog queries are scoped to."""
        ...


class SQLiteDialect:
    """SQLite dialect — ``?`` placeholders, double-quoted identifiers."""

    @property
    def name(self) -> str:
        return "sqlite"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    def quote_identifier(self, identifier: str) -> str:
        return '"' + identifier.replace('"', '""') + '"'

    def current_schema(self) -> str:
        return "'main'"


class PostgreSQLDialect:
    """PostgreSQL dialect — ``%s`` placeholders (psycopg2)."""

    @property
    def name(self) -> str:
        return "postgresql"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    def placeholders(self, count: int) -> str:
        return ", ".join("%s" for _ in range(count))

    def quote_identifier(self, identifier: str) -> str:
        return '"' + identifier.replace('"', '""') + '"'

    def current_schema(self) -> str:
        return "current_schema()"


class MySQLDialect:
    """MySQL dialect — ``%s`` placeholders, backtick identifiers.

    Compatible with ``mysql.connector`` (format paramstyle).
    """

    @property
    def name(self) -> str:
        return "mysql"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    def placeholders(self, count: int) -> str:
        return ", ".join("%s" for _ in range(count))

    def quote_identifier(self, identifier: str) -> str:
        return "`" + identifier.replace("`", "``") + "`"

    def current_schema(self) -> str:
        return "DATABASE()"


# Dialects are stateless
_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),  # alias
    "mysql": MySQLDialect(),
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by database type name.

    Raises:
        ValueError: If ``db_type`` is not recognised.
    """
    key = db_type.lower() if isinstance(db_type, str) else db_type.value
    if key not in _DIALECTS:
        raise ValueError(
            f"Unknown dialect '{db_type}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'postgres'})}"
        )
    return _DIALECTS[key]


def register_dialect(name: str, dialect: Dialect) -> None:
    """Register a custom dialect implementation (lower-cased key)."""
    _DIALECTS[name.lower()] = dialect


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "MySQLDialect",
    "get_dialect",
    "register_dialect",
]
