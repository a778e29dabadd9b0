"""SQLSynthesizer: parameterized CRUD statements from catalog metadata.

Manifesto:
    Identifiers come only from the catalog and are always quoted through
    the dialect; only values are parameters. Every synthesis call returns a
    ``StatementPlan`` whose ``bind_columns`` were collected in the same pass
    that emitted the placeholders, so text order and bind order cannot
    drift apart.

Architecture::

    SQLSynthesizer(dialect)
        select_all(schema)            SELECT cols FROM t
        select_by_keys(schema, entry) SELECT cols FROM t WHERE a = ? AND b = ?
        insert(schema)                INSERT INTO t (cols) VALUES (?, ...)
        update(schema, entry)         UPDATE t SET x = ?, y = ? WHERE k1 = ? AND k2 = ?
        delete(schema)                DELETE FROM t WHERE k1 = ? AND k2 = ?
                │
                ▼
    StatementPlan(sql, bind_columns) ──bind_plan()──▶ BoundStatement
                                                       .parameters() ──▶ cursor.execute

Guardrails:
    ❌ DON'T: Emit UPDATE or DELETE without a WHERE clause
    ✅ DO: Raise MissingKeyError when the table has no primary key

Tags:
    sql, synthesis, parameterized, crud, relbridge

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from relbridge.catalog.models import TableSchema
from relbridge.catalog.types import RawType
from relbridge.codec import TypeBridge, type_bridge
from relbridge.core.adapters.types import TypedNull
from relbridge.core.dialect import Dialect
from relbridge.core.errors import (
    BindError,
    MissingKeyError,
    StatementError,
    UnknownPropertyError,
)

_UNBOUND = object()


class BoundStatement:
    """
    Statement text plus its positional parameter slots.

    Positions are 1-based. ``parameters()`` refuses to hand out a parameter
    list while any slot is still unbound.
    """

    def __init__(self, sql: str, slot_count: int):
        self.sql = sql
        self._slots: list[Any] = [_UNBOUND] * slot_count

    @property
    def slot_count(self) -> int:
        return len(self._slots)

    def bind(self, position: int, value: Any) -> None:
        if not 1 <= position <= len(self._slots):
            raise BindError(
                f"Parameter position {position} outside 1..{len(self._slots)}"
            ).with_context(position=position)
        self._slots[position - 1] = value

    def bind_null(self, position: int, raw_type: RawType) -> None:
        self.bind(position, TypedNull(raw_type))

    def parameters(self) -> tuple[Any, ...]:
        for index, value in enumerate(self._slots):
            if value is _UNBOUND:
                raise BindError(f"Parameter {index + 1} was never bound").with_context(
                    position=index + 1
                )
        return tuple(self._slots)

    def __repr__(self) -> str:
        return f"BoundStatement({self.sql!r}, slots={len(self._slots)})"


@dataclass(frozen=True)
class StatementPlan:
    """Statement text and the column bound at each placeholder, in order."""

    sql: str
    bind_columns: tuple[str, ...] = ()

    def new_statement(self) -> BoundStatement:
        return BoundStatement(self.sql, len(self.bind_columns))


def bind_plan(
    plan: StatementPlan,
    schema: TableSchema,
    values: Mapping[str, str | None],
    bridge: TypeBridge = type_bridge,
) -> BoundStatement:
    """Bind ``values`` into a fresh statement by walking ``plan.bind_columns``.

    Columns missing from ``values`` bind a typed null.
    """
    statement = plan.new_statement()
    for position, name in enumerate(plan.bind_columns, start=1):
        column = schema.columns[name]
        try:
            bridge.encode(column.raw_type, values.get(name), position, statement)
        except BindError as e:
            e.with_context(table=schema.name, column=name)
            raise
    return statement


def check_properties(schema: TableSchema, entry: Mapping[str, Any]) -> None:
    """Raise UnknownPropertyError for any entry key the table does not have."""
    unknown = [name for name in entry if name not in schema.columns]
    if unknown:
        raise UnknownPropertyError(
            f"Table {schema.name} has no column(s): {', '.join(unknown)}"
        ).with_context(table=schema.name, column=unknown[0])


def require_keys(schema: TableSchema, entry: Mapping[str, Any] | None = None) -> tuple[str, ...]:
    """Primary-key columns of ``schema``, checked against ``entry``.

    Raises:
        MissingKeyError: If the table has no primary key, or ``entry`` lacks
            a value for one of its key columns.
    """
    if not schema.primary_keys:
        raise MissingKeyError(f"Table {schema.name} has no primary key").with_context(
            table=schema.name
        )
    if entry is not None:
        for key in schema.primary_keys:
            if entry.get(key) is None:
                raise MissingKeyError(
                    f"Entry for {schema.name} has no value for key column {key}"
                ).with_context(table=schema.name, column=key)
    return schema.primary_keys


class SQLSynthesizer:
    """Builds statement plans for one dialect."""

    def __init__(self, dialect: Dialect):
        self.dialect = dialect

    def _q(self, identifier: str) -> str:
        return self.dialect.quote_identifier(identifier)

    def _table(self, schema: TableSchema) -> str:
        return self._q(schema.name)

    def _column_list(self, schema: TableSchema) -> str:
        return ", ".join(self._q(name) for name in schema.columns)

    def _predicates(self, columns: list[str] | tuple[str, ...], offset: int = 0) -> str:
        return " AND ".join(
            f"{self._q(name)} = {self.dialect.placeholder(offset + i)}"
            for i, name in enumerate(columns)
        )

    def select_all(self, schema: TableSchema) -> StatementPlan:
        return StatementPlan(f"SELECT {self._column_list(schema)} FROM {self._table(schema)}")

    def select_by_keys(self, schema: TableSchema, entry: Mapping[str, str | None]) -> StatementPlan:
        """Conjunctive lookup on every catalog column ``entry`` gives a value for.

        Columns are taken in catalog order; entry keys outside the catalog
        and null values are ignored. With nothing to match on, the
        statement selects no rows.
        """
        columns = [name for name in schema.columns if entry.get(name) is not None]
        head = f"SELECT {self._column_list(schema)} FROM {self._table(schema)}"
        if not columns:
            return StatementPlan(f"{head} WHERE 1 = 0")
        return StatementPlan(f"{head} WHERE {self._predicates(columns)}", tuple(columns))

    def insert(self, schema: TableSchema) -> StatementPlan:
        columns = tuple(schema.columns)
        placeholders = ", ".join(self.dialect.placeholder(i) for i in range(len(columns)))
        return StatementPlan(
            f"INSERT INTO {self._table(schema)} ({self._column_list(schema)}) "
            f"VALUES ({placeholders})",
            columns,
        )

    def update(self, schema: TableSchema, entry: Mapping[str, str | None]) -> StatementPlan:
        """SET the entry's non-key columns (entry order) WHERE every key matches.

        Raises:
            MissingKeyError: No primary key, or the entry lacks a key value.
            UnknownPropertyError: The entry names a column the table lacks.
            StatementError: The entry has no non-key column to set.
        """
        keys = require_keys(schema)
        check_properties(schema, entry)
        require_keys(schema, entry)
        assignments = [name for name in entry if name not in keys]
        if not assignments:
            raise StatementError(
                f"Nothing to update in {schema.name}: entry holds key columns only"
            ).with_context(table=schema.name, operation="update")
        set_clause = ", ".join(
            f"{self._q(name)} = {self.dialect.placeholder(i)}" for i, name in enumerate(assignments)
        )
        where = self._predicates(keys, offset=len(assignments))
        return StatementPlan(
            f"UPDATE {self._table(schema)} SET {set_clause} WHERE {where}",
            tuple(assignments) + keys,
        )

    def delete(self, schema: TableSchema) -> StatementPlan:
        keys = require_keys(schema)
        return StatementPlan(
            f"DELETE FROM {self._table(schema)} WHERE {self._predicates(keys)}",
            keys,
        )


__all__ = [
    "BoundStatement",
    "StatementPlan",
    "SQLSynthesizer",
    "bind_plan",
    "check_properties",
    "require_keys",
]
