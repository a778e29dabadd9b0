"""Per-dialect catalog readers.

Each reader answers four metadata questions for one backend: which base
tables exist, what columns a table has, which columns form its primary key,
and which foreign keys in other tables reference it. Readers are stateless
and run on a session the caller owns; ``MetadataCatalog`` does the grouping,
classification and error wrapping.

Architecture::

    CatalogReader (ABC)
        |-- SQLiteCatalogReader        sqlite_master + pragma_* functions
        |-- InformationSchemaReader    information_schema, scoped by dialect
              |-- PostgreSQLCatalogReader
              |-- MySQLCatalogReader

    get_catalog_reader(dialect) ──▶ registry lookup by dialect name

Guardrails:
    ❌ DON'T: Format table names into metadata queries
    ✅ DO: Pass them as bound parameters (they come from callers)

Tags:
    catalog, introspection, information-schema, sqlite, relbridge

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, NamedTuple

from relbridge.catalog.models import ColumnMeta
from relbridge.catalog.types import (
    CanonicalType,
    classify,
    normalize_declared_type,
    parse_declared_size,
)
from relbridge.core.dialect import Dialect
from relbridge.core.errors import ConfigError
from relbridge.core.protocols import Connection


class ExportedKey(NamedTuple):
    """One column pair of a foreign key that references the parent table."""

    child_table: str
    constraint: str
    sequence: int
    parent_column: str
    child_column: str


_NUMERIC = {CanonicalType.DOUBLE, CanonicalType.SINGLE, CanonicalType.DECIMAL}


def build_column(
    name: str,
    declared: str | None,
    position: int,
    *,
    nullable: bool = True,
    default: Any = None,
    size: int | None = None,
    precision: int | None = None,
    scale: int | None = None,
) -> ColumnMeta:
    """Classify a declared type and assemble its ``ColumnMeta``.

    Size and scale fall back to the ``NAME(size, scale)`` declaration when the
    backend does not report them in separate fields.
    """
    raw_type = normalize_declared_type(declared)
    canonical = classify(raw_type)
    declared_size, declared_scale = parse_declared_size(declared)
    if size is None:
        size = precision if precision is not None else declared_size
    if canonical in _NUMERIC:
        precision = precision if precision is not None else size
        if scale is None and canonical is CanonicalType.DECIMAL:
            scale = declared_scale
    else:
        precision = None
        scale = None
    return ColumnMeta(
        name=name,
        canonical_type=canonical,
        raw_type=raw_type,
        position=position,
        nullable=nullable,
        size=size,
        default=None if default is None else str(default),
        precision=precision,
        scale=scale,
        declared_type=declared,
    )


def fetch_rows(conn: Connection, sql: str, params: Sequence[Any] = ()) -> list[Any]:
    """Run one metadata query and return all rows; the cursor is always closed."""
    cursor = conn.cursor()
    try:
        cursor.execute(sql, tuple(params))
        return list(cursor.fetchall())
    finally:
        cursor.close()


class CatalogReader(ABC):
    """Metadata queries for one backend."""

    def __init__(self, dialect: Dialect):
        self.dialect = dialect

    @abstractmethod
    def list_tables(self, conn: Connection) -> list[str]:
        """Base tables of the active schema, in name order."""
        ...

    @abstractmethod
    def read_columns(self, conn: Connection, table: str) -> list[ColumnMeta]:
        """Columns of ``table`` in ordinal order."""
        ...

    @abstractmethod
    def read_primary_keys(self, conn: Connection, table: str) -> list[str]:
        """Primary-key columns of ``table`` in key-sequence order."""
        ...

    @abstractmethod
    def read_exported_keys(self, conn: Connection, table: str) -> list[ExportedKey]:
        """Foreign-key column pairs referencing ``table``.

        Ordered by child table, constraint and key sequence.
        """
        ...


class SQLiteCatalogReader(CatalogReader):
    """SQLite reader using ``sqlite_master`` and the ``pragma_*`` table functions."""

    def list_tables(self, conn: Connection) -> list[str]:
        rows = fetch_rows(
            conn,
            "SELECT name FROM sqlite_master "
            "WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name",
        )
        return [row[0] for row in rows]

    def read_columns(self, conn: Connection, table: str) -> list[ColumnMeta]:
        rows = fetch_rows(
            conn,
            'SELECT cid, name, type, "notnull", dflt_value, pk '
            "FROM pragma_table_info(?) ORDER BY cid",
            (table,),
        )
        return [
            build_column(
                name,
                declared or None,
                cid + 1,
                nullable=not notnull and not pk,
                default=dflt_value,
            )
            for cid, name, declared, notnull, dflt_value, pk in rows
        ]

    def read_primary_keys(self, conn: Connection, table: str) -> list[str]:
        rows = fetch_rows(
            conn,
            "SELECT name FROM pragma_table_info(?) WHERE pk > 0 ORDER BY pk",
            (table,),
        )
        return [row[0] for row in rows]

    def read_exported_keys(self, conn: Connection, table: str) -> list[ExportedKey]:
        # SQLite only records outgoing keys, so scan every table for references
        parent_keys: list[str] | None = None
        keys: list[ExportedKey] = []
        for child in self.list_tables(conn):
            rows = fetch_rows(
                conn,
                'SELECT id, seq, "table", "from", "to" '
                "FROM pragma_foreign_key_list(?) ORDER BY id, seq",
                (child,),
            )
            for fk_id, seq, parent, from_col, to_col in rows:
                if parent.lower() != table.lower():
                    continue
                if to_col is None:
                    # REFERENCES parent without a column list targets its primary key
                    if parent_keys is None:
                        parent_keys = self.read_primary_keys(conn, table)
                    to_col = parent_keys[seq] if seq < len(parent_keys) else from_col
                keys.append(
                    ExportedKey(
                        child_table=child,
                        constraint=f"fk_{child}_{fk_id}",
                        sequence=seq + 1,
                        parent_column=to_col,
                        child_column=from_col,
                    )
                )
        return keys


class InformationSchemaReader(CatalogReader):
    """Reader for backends exposing the SQL-standard ``information_schema``.

    Subclasses supply the query text; every query is scoped to
    ``dialect.current_schema()`` and takes the table name as a parameter.
    """

    tables_sql: str = ""
    columns_sql: str = ""
    primary_keys_sql: str = ""
    exported_keys_sql: str = ""

    def _sql(self, template: str) -> str:
        return template.format(schema=self.dialect.current_schema(), param=self.dialect.placeholder(0))

    def list_tables(self, conn: Connection) -> list[str]:
        return [row[0] for row in fetch_rows(conn, self._sql(self.tables_sql))]

    def read_columns(self, conn: Connection, table: str) -> list[ColumnMeta]:
        rows = fetch_rows(conn, self._sql(self.columns_sql), (table,))
        columns = []
        for name, declared, position, is_nullable, default, char_len, precision, scale in rows:
            columns.append(
                build_column(
                    name,
                    declared,
                    int(position),
                    nullable=str(is_nullable).upper() == "YES",
                    default=default,
                    size=int(char_len) if char_len is not None else None,
                    precision=int(precision) if precision is not None else None,
                    scale=int(scale) if scale is not None else None,
                )
            )
        return columns

    def read_primary_keys(self, conn: Connection, table: str) -> list[str]:
        return [row[0] for row in fetch_rows(conn, self._sql(self.primary_keys_sql), (table,))]

    def read_exported_keys(self, conn: Connection, table: str) -> list[ExportedKey]:
        rows = fetch_rows(conn, self._sql(self.exported_keys_sql), (table,))
        return [
            ExportedKey(child, constraint, int(seq), parent_col, child_col)
            for child, constraint, seq, parent_col, child_col in rows
        ]


class PostgreSQLCatalogReader(InformationSchemaReader):
    """PostgreSQL reader scoped to ``current_schema()``."""

    tables_sql = (
        "SELECT table_name FROM information_schema.tables "
        "WHERE table_schema = {schema} AND table_type = 'BASE TABLE' "
        "ORDER BY table_name"
    )
    columns_sql = (
        "SELECT column_name, data_type, ordinal_position, is_nullable, column_default, "
        "character_maximum_length, numeric_precision, numeric_scale "
        "FROM information_schema.columns "
        "WHERE table_schema = {schema} AND table_name = {param} "
        "ORDER BY ordinal_position"
    )
    primary_keys_sql = (
        "SELECT kcu.column_name "
        "FROM information_schema.table_constraints tc "
        "JOIN information_schema.key_column_usage kcu "
        "  ON kcu.constraint_schema = tc.constraint_schema "
        " AND kcu.constraint_name = tc.constraint_name "
        " AND kcu.table_name = tc.table_name "
        "WHERE tc.constraint_type = 'PRIMARY KEY' "
        "  AND tc.table_schema = {schema} AND tc.table_name = {param} "
        "ORDER BY kcu.ordinal_position"
    )
    exported_keys_sql = (
        "SELECT fk.table_name, fk.constraint_name, fk.ordinal_position, "
        "       pk.column_name, fk.column_name "
        "FROM information_schema.referential_constraints rc "
        "JOIN information_schema.key_column_usage fk "
        "  ON fk.constraint_schema = rc.constraint_schema "
        " AND fk.constraint_name = rc.constraint_name "
        "JOIN information_schema.key_column_usage pk "
        "  ON pk.constraint_schema = rc.unique_constraint_schema "
        " AND pk.constraint_name = rc.unique_constraint_name "
        " AND pk.ordinal_position = fk.position_in_unique_constraint "
        "WHERE pk.table_schema = {schema} AND pk.table_name = {param} "
        "ORDER BY fk.table_name, fk.constraint_name, fk.ordinal_position"
    )


class MySQLCatalogReader(InformationSchemaReader):
    """MySQL reader scoped to ``DATABASE()``."""

    tables_sql = (
        "SELECT TABLE_NAME FROM information_schema.TABLES "
        "WHERE TABLE_SCHEMA = {schema} AND TABLE_TYPE = 'BASE TABLE' "
        "ORDER BY TABLE_NAME"
    )
    # DATA_TYPE carries the bare name; COLUMN_TYPE adds length and modifiers
    columns_sql = (
        "SELECT COLUMN_NAME, COLUMN_TYPE, ORDINAL_POSITION, IS_NULLABLE, COLUMN_DEFAULT, "
        "CHARACTER_MAXIMUM_LENGTH, NUMERIC_PRECISION, NUMERIC_SCALE "
        "FROM information_schema.COLUMNS "
        "WHERE TABLE_SCHEMA = {schema} AND TABLE_NAME = {param} "
        "ORDER BY ORDINAL_POSITION"
    )
    primary_keys_sql = (
        "SELECT COLUMN_NAME FROM information_schema.KEY_COLUMN_USAGE "
        "WHERE TABLE_SCHEMA = {schema} AND TABLE_NAME = {param} "
        "AND CONSTRAINT_NAME = 'PRIMARY' "
        "ORDER BY ORDINAL_POSITION"
    )
    exported_keys_sql = (
        "SELECT TABLE_NAME, CONSTRAINT_NAME, ORDINAL_POSITION, "
        "       REFERENCED_COLUMN_NAME, COLUMN_NAME "
        "FROM information_schema.KEY_COLUMN_USAGE "
        "WHERE REFERENCED_TABLE_SCHEMA = {schema} AND REFERENCED_TABLE_NAME = {param} "
        "ORDER BY TABLE_NAME, CONSTRAINT_NAME, ORDINAL_POSITION"
    )


_READERS: dict[str, type[CatalogReader]] = {
    "sqlite": SQLiteCatalogReader,
    "postgresql": PostgreSQLCatalogReader,
    "postgres": PostgreSQLCatalogReader,
    "mysql": MySQLCatalogReader,
}


def get_catalog_reader(dialect: Dialect) -> CatalogReader:
    """Reader for ``dialect``.

    Raises:
        ConfigError: If no reader is registered for the dialect's name.
    """
    reader_class = _READERS.get(dialect.name.lower())
    if reader_class is None:
        raise ConfigError(f"No catalog reader for dialect '{dialect.name}'")
    return reader_class(dialect)


def register_catalog_reader(name: str, reader_class: type[CatalogReader]) -> None:
    """Register a reader class for a custom dialect name."""
    _READERS[name.lower()] = reader_class


__all__ = [
    "ExportedKey",
    "CatalogReader",
    "SQLiteCatalogReader",
    "InformationSchemaReader",
    "PostgreSQLCatalogReader",
    "MySQLCatalogReader",
    "build_column",
    "fetch_rows",
    "get_catalog_reader",
    "register_catalog_reader",
]
