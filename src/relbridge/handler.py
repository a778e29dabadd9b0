"""EntityHandler: generic CRUD over any cataloged table.

The handler owns the catalog, the statement synthesizer and at most one
transactional session. Every value it accepts or returns is canonical text
or ``None``; every failure it raises is a ``ServiceFault``.

Manifesto:
    - **Schema-driven:** No table-specific code, only catalog metadata
    - **Scoped resources:** Cursor then session, released on every exit path
    - **One transaction:** Opening a second is an error, never an overwrite
    - **No retries:** A failure aborts the call and surfaces immediately

Architecture::

    EntityHandler(adapter, scope_id)
        │
        ├── MetadataCatalog ───── list_tables / primary_keys / table_metadata
        │                         navigation_links
        │
        ├── read_all / read_by_keys ───────┐
        ├── insert / update / delete_row   ├── SQLSynthesizer ─▶ StatementPlan
        ├── update_property ───────────────┘        │
        │                                          bind_plan (TypeBridge.encode)
        │                                           │
        │           transactional=False             ▼
        ├──────────── adapter.session() ──▶ cursor.execute ──▶ TypeBridge.decode
        │           transactional=True               │
        └──────────── TransactionContext ─┘          ▼
                      (handler lock, commit       EntityVersioner.compute_tag
                       per statement)

Transactions:
    ``open_transaction()`` binds one session in repeatable-read isolation.
    Transactional writes commit eagerly, right after their statement; a
    failed statement is rolled back so the session stays usable. The
    transaction therefore groups session and isolation reuse, not atomicity
    across calls. Transactions do not nest, and all transactional calls on
    one handler are serialized by a lock.

Examples:
    >>> from relbridge.core.adapters import SQLiteAdapter
    >>> with SQLiteAdapter("crm.db") as adapter:           # doctest: +SKIP
    ...     handler = EntityHandler(adapter, scope_id="crm")
    ...     tag = handler.insert("USERS", {"id": "1", "name": "Ann", "active": "true"})
    ...     handler.read_by_keys("USERS", {"id": "1"})[0]["name"]
    'Ann'

Guardrails:
    ❌ DON'T: Keep a transaction open across unrelated requests
    ✅ DO: Use ``with handler.transaction():`` so close always runs

Tags:
    handler, crud, entity, transaction, relbridge

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import threading
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any

from relbridge.catalog.catalog import MetadataCatalog
from relbridge.catalog.models import ColumnMeta, Entity, NavigationLink, TableSchema
from relbridge.codec import TypeBridge, type_bridge
from relbridge.core.adapters.base import DatabaseAdapter
from relbridge.core.errors import (
    BindError,
    ServiceFault,
    StatementError,
    TransactionError,
    TransactionLostError,
)
from relbridge.core.logging import get_logger
from relbridge.core.protocols import Connection
from relbridge.statements import (
    BoundStatement,
    SQLSynthesizer,
    bind_plan,
    check_properties,
    require_keys,
)
from relbridge.transaction import TransactionContext
from relbridge.versioning import EntityVersioner

logger = get_logger(__name__)


class EntityHandler:
    """
    CRUD over every table of one datasource.

    Args:
        adapter: Connected (or connectable) datasource adapter
        scope_id: Identifier mixed into every version tag
        catalog: Prebuilt catalog; introspected from ``adapter`` when omitted
    """

    def __init__(
        self,
        adapter: DatabaseAdapter,
        scope_id: str = "default",
        *,
        catalog: MetadataCatalog | None = None,
        bridge: TypeBridge = type_bridge,
        versioner: EntityVersioner | None = None,
    ):
        self._adapter = adapter
        self.scope_id = scope_id
        self.catalog = catalog if catalog is not None else MetadataCatalog.build(adapter)
        self._synthesizer = SQLSynthesizer(adapter.dialect)
        self._bridge = bridge
        self._versioner = versioner or EntityVersioner()
        self._transaction: TransactionContext | None = None
        self._lock = threading.RLock()

    # ── Metadata ─────────────────────────────────────────────────

    def list_tables(self) -> list[str]:
        return self.catalog.tables()

    def primary_keys(self) -> dict[str, tuple[str, ...]]:
        return self.catalog.primary_keys()

    def table_metadata(self) -> dict[str, Mapping[str, ColumnMeta]]:
        return self.catalog.table_metadata()

    def navigation_links(self) -> dict[str, Mapping[str, NavigationLink]]:
        return self.catalog.navigation_links()

    # ── Reads ────────────────────────────────────────────────────

    def read_all(self, table: str) -> list[Entity]:
        """Every row of ``table``, each stamped with its version tag."""
        schema = self.catalog.schema(table)
        plan = self._synthesizer.select_all(schema)
        rows, _ = self._run(schema, plan.new_statement(), operation="read_all", fetch=True)
        return self._entities(schema, rows)

    def read_by_keys(
        self,
        table: str,
        keys: Mapping[str, str | None],
        transactional: bool = False,
    ) -> list[Entity]:
        """Rows matching every non-null column value in ``keys``.

        With no usable column in ``keys`` nothing matches and the result is
        empty.
        """
        schema = self.catalog.schema(table)
        plan = self._synthesizer.select_by_keys(schema, keys)
        statement = bind_plan(plan, schema, keys, self._bridge)
        rows, _ = self._run(
            schema, statement, operation="read_by_keys", fetch=True, transactional=transactional
        )
        return self._entities(schema, rows)

    # ── Writes ───────────────────────────────────────────────────

    def insert(self, table: str, entry: Mapping[str, str | None]) -> str:
        """Insert one row and return its version tag.

        Columns absent from ``entry`` are inserted as NULL. The tag covers
        every catalog column in catalog order, each value in the canonical
        form a later read returns (``"+1"`` is tagged as ``"1"``).
        """
        schema = self.catalog.schema(table)
        check_properties(schema, entry)
        plan = self._synthesizer.insert(schema)
        statement = bind_plan(plan, schema, entry, self._bridge)
        self._run(schema, statement, operation="insert")
        values = {
            name: self._bridge.canonicalize(column.raw_type, entry.get(name))
            for name, column in schema.columns.items()
        }
        tag = self._versioner.compute_tag(self.scope_id, schema.name, values)
        logger.debug("entity_inserted", table=schema.name, version=tag)
        return tag

    def update(
        self,
        table: str,
        entry: Mapping[str, str | None],
        transactional: bool = False,
    ) -> int:
        """Set the entry's non-key columns on the row its key columns identify.

        Returns:
            Number of rows the datasource reports as changed.
        """
        return self._update(table, entry, transactional, operation="update")

    def update_property(
        self,
        table: str,
        entry: Mapping[str, str | None],
        transactional: bool = False,
    ) -> int:
        """Point update of the entry's non-key columns in a single statement.

        Unknown columns are rejected before the datasource is touched, and
        the entry must carry the full primary key.
        """
        return self._update(table, entry, transactional, operation="update_property")

    def delete_row(
        self,
        table: str,
        entry: Mapping[str, str | None],
        transactional: bool = False,
    ) -> int:
        """Delete the row identified by the entry's key columns."""
        schema = self.catalog.schema(table)
        require_keys(schema, entry)
        plan = self._synthesizer.delete(schema)
        statement = bind_plan(plan, schema, entry, self._bridge)
        _, rowcount = self._run(
            schema, statement, operation="delete_row", transactional=transactional
        )
        return rowcount

    def _update(
        self,
        table: str,
        entry: Mapping[str, str | None],
        transactional: bool,
        *,
        operation: str,
    ) -> int:
        schema = self.catalog.schema(table)
        plan = self._synthesizer.update(schema, entry)
        statement = bind_plan(plan, schema, entry, self._bridge)
        _, rowcount = self._run(
            schema, statement, operation=operation, transactional=transactional
        )
        return rowcount

    # ── Transactions ─────────────────────────────────────────────

    @property
    def in_transaction(self) -> bool:
        return self._transaction is not None

    def open_transaction(self) -> None:
        """Bind one repeatable-read session to this handler.

        Raises:
            TransactionError: If a transaction is already open.
            SessionError: If the session cannot be acquired.
        """
        with self._lock:
            if self._transaction is not None:
                raise TransactionError("A transaction is already open on this handler")
            self._transaction = TransactionContext.open(self._adapter)
        logger.info("transaction_opened", scope_id=self.scope_id)

    def close_transaction(self) -> None:
        """Restore autocommit and release the bound session.

        Raises:
            TransactionError: If no transaction is open.
        """
        with self._lock:
            transaction, self._transaction = self._transaction, None
            if transaction is None:
                raise TransactionError("No transaction is open on this handler")
            transaction.close()
        logger.info("transaction_closed", scope_id=self.scope_id)

    @contextmanager
    def transaction(self) -> Iterator[EntityHandler]:
        """Open a transaction for the block and close it on every exit path."""
        self.open_transaction()
        try:
            yield self
        finally:
            self.close_transaction()

    def close(self) -> None:
        """Close any open transaction. The adapter stays with its owner."""
        with self._lock:
            transaction, self._transaction = self._transaction, None
        if transaction is not None:
            transaction.close()

    def __enter__(self) -> EntityHandler:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ── Execution ────────────────────────────────────────────────

    def _run(
        self,
        schema: TableSchema,
        statement: BoundStatement,
        *,
        operation: str,
        fetch: bool = False,
        transactional: bool = False,
    ) -> tuple[list[Sequence[Any]], int]:
        try:
            params = self._adapter.adapt_parameters(statement.parameters())
        except BindError as e:
            e.with_context(table=schema.name, operation=operation)
            raise
        if not transactional:
            with self._adapter.session() as conn:
                return self._execute(conn, schema, statement.sql, params, operation, fetch)

        with self._lock:
            transaction = self._transaction
            if transaction is None or not transaction.is_open:
                raise TransactionLostError(
                    f"Transactional {operation} on {schema.name} without an open transaction"
                ).with_context(table=schema.name, operation=operation)
            try:
                result = self._execute(
                    transaction.connection, schema, statement.sql, params, operation, fetch
                )
                if not fetch:
                    self._commit(transaction, schema, operation)
                return result
            except ServiceFault:
                transaction.rollback()
                raise

    def _execute(
        self,
        conn: Connection,
        schema: TableSchema,
        sql: str,
        params: tuple[Any, ...],
        operation: str,
        fetch: bool,
    ) -> tuple[list[Sequence[Any]], int]:
        cursor = conn.cursor()
        try:
            cursor.execute(sql, params)
            rows = list(cursor.fetchall()) if fetch else []
            rowcount = cursor.rowcount
        except self._adapter.driver_errors as e:
            logger.warning(
                "statement_failed",
                table=schema.name,
                operation=operation,
                error=str(e),
            )
            raise StatementError(f"{operation} on {schema.name} failed: {e}", cause=e).with_context(
                table=schema.name, operation=operation
            ) from e
        finally:
            self._close_cursor(cursor)
        logger.debug("statement_executed", table=schema.name, operation=operation, rowcount=rowcount)
        return rows, rowcount

    def _commit(self, transaction: TransactionContext, schema: TableSchema, operation: str) -> None:
        try:
            transaction.commit()
        except self._adapter.driver_errors as e:
            raise StatementError(f"Commit after {operation} on {schema.name} failed: {e}", cause=e).with_context(
                table=schema.name, operation=operation
            ) from e

    @staticmethod
    def _close_cursor(cursor: Any) -> None:
        try:
            cursor.close()
        except Exception as e:  # noqa: BLE001
            logger.debug("cursor_close_failed", error=str(e))

    def _entities(self, schema: TableSchema, rows: list[Sequence[Any]]) -> list[Entity]:
        columns = list(schema.columns.values())
        entities = []
        for row in rows:
            values: dict[str, str | None] = {}
            for column, cell in zip(columns, row):
                try:
                    values[column.name] = self._bridge.decode(column.raw_type, cell, cell is None)
                except ServiceFault as e:
                    e.with_context(table=schema.name, column=column.name)
                    raise
            tag = self._versioner.compute_tag(self.scope_id, schema.name, values)
            entities.append(Entity(values, version=tag))
        return entities

    def __repr__(self) -> str:
        return (
            f"EntityHandler(scope_id={self.scope_id!r}, tables={len(self.catalog)}, "
            f"in_transaction={self.in_transaction})"
        )


__all__ = [
    "EntityHandler",
]
