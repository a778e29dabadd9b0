"""MetadataCatalog: the immutable schema snapshot every request reads from.

Manifesto:
    The catalog is the only source of identifiers the statement
    synthesizer ever sees. It is built once, from one session, and either
    completely or not at all: any metadata failure aborts construction
    with ``IntrospectionError`` so no request ever runs against a partial
    schema.

Architecture::

    MetadataCatalog.build(adapter)
        │
        ├── adapter.session() ─────────────── one session, always released
        ├── reader.list_tables()              name order
        └── per table
              ├── reader.read_columns()       ColumnMeta (classified)
              ├── reader.read_primary_keys()  key-sequence order
              └── reader.read_exported_keys() grouped ──▶ NavigationLink per child

Features:
    - ``schema()``, ``raw_types()``, ``primary_keys()``, ``table_metadata()``,
      ``navigation_links()`` lookups
    - ``related_tables()`` cycle-safe walk of the navigation graph
    - ``fingerprint`` identifying the schema shape

Examples:
    >>> catalog = MetadataCatalog.build(adapter)       # doctest: +SKIP
    >>> catalog.primary_keys()["USERS"]                # doctest: +SKIP
    ('id',)

Tags:
    catalog, metadata, introspection, foreign-keys, relbridge

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from relbridge.catalog.models import ColumnMeta, NavigationLink, TableSchema
from relbridge.catalog.readers import CatalogReader, ExportedKey, get_catalog_reader
from relbridge.catalog.types import RawType
from relbridge.core.adapters.base import DatabaseAdapter
from relbridge.core.errors import IntrospectionError, ServiceFault, UnknownTableError
from relbridge.core.hashing import compute_hash
from relbridge.core.logging import get_logger
from relbridge.core.protocols import Connection

logger = get_logger(__name__)


def group_exported_keys(parent: str, keys: Iterable[ExportedKey]) -> dict[str, NavigationLink]:
    """One ``NavigationLink`` per distinct child table, in discovery order.

    Pairs keep the order they were discovered in; several constraints from
    the same child are folded into that child's single link.
    """
    pairs: dict[str, list[tuple[str, str]]] = {}
    for key in keys:
        pairs.setdefault(key.child_table, []).append((key.parent_column, key.child_column))
    return {
        child: NavigationLink(parent=parent, child=child, pairs=tuple(child_pairs))
        for child, child_pairs in pairs.items()
    }


def discover_tables(reader: CatalogReader, conn: Connection) -> list[str]:
    """Base-table names of the active schema, in name order."""
    return list(reader.list_tables(conn))


def build_schema(reader: CatalogReader, conn: Connection, table: str) -> TableSchema:
    """Columns, primary key and navigation links of one table."""
    columns: list[ColumnMeta] = reader.read_columns(conn, table)
    keys = reader.read_primary_keys(conn, table)
    navigation = group_exported_keys(table, reader.read_exported_keys(conn, table))
    logger.debug(
        "table_introspected",
        table=table,
        columns=len(columns),
        primary_keys=list(keys),
        children=list(navigation),
    )
    return TableSchema(
        name=table,
        columns={col.name: col for col in columns},
        primary_keys=tuple(keys),
        navigation=navigation,
    )


class MetadataCatalog:
    """
    Read-only view of every table's columns, keys and navigation links.

    Construct with ``MetadataCatalog.build(adapter)``; the constructor
    accepts already-built schemas (tests, custom sources).
    """

    def __init__(self, schemas: Iterable[TableSchema]):
        self._schemas: Mapping[str, TableSchema] = MappingProxyType(
            {schema.name: schema for schema in schemas}
        )

    @classmethod
    def build(cls, adapter: DatabaseAdapter, reader: CatalogReader | None = None) -> MetadataCatalog:
        """Introspect the adapter's datasource.

        Raises:
            SessionError: If no session can be acquired.
            IntrospectionError: If any metadata query fails.
        """
        reader = reader or get_catalog_reader(adapter.dialect)
        with adapter.session() as conn:
            try:
                schemas = cls._introspect(reader, conn)
            except ServiceFault:
                raise
            except Exception as e:
                logger.error("catalog_build_failed", error=str(e), db_type=adapter.db_type.value)
                raise IntrospectionError(f"Metadata introspection failed: {e}", cause=e) from e

        catalog = cls(schemas)
        logger.info(
            "catalog_built",
            tables=len(schemas),
            fingerprint=catalog.fingerprint,
            db_type=adapter.db_type.value,
        )
        return catalog

    @staticmethod
    def _introspect(reader: CatalogReader, conn: Connection) -> list[TableSchema]:
        return [build_schema(reader, conn, table) for table in discover_tables(reader, conn)]

    # ── Lookups ──────────────────────────────────────────────────

    @property
    def fingerprint(self) -> str:
        """Short hash of table names, column names/types and keys."""
        parts = []
        for schema in self._schemas.values():
            cols = ",".join(f"{c.name}:{c.raw_type.value}" for c in schema.columns.values())
            parts.append(f"{schema.name}({cols})[{','.join(schema.primary_keys)}]")
        return compute_hash(*parts, length=16)

    def tables(self) -> list[str]:
        return list(self._schemas)

    def has_table(self, table: str) -> bool:
        return table in self._schemas

    def schema(self, table: str) -> TableSchema:
        try:
            return self._schemas[table]
        except KeyError:
            raise UnknownTableError(f"Unknown table: {table}").with_context(table=table) from None

    def raw_types(self, table: str) -> dict[str, RawType]:
        return self.schema(table).raw_types()

    def primary_keys(self) -> dict[str, tuple[str, ...]]:
        """Table name to primary-key columns (empty tuple for keyless tables)."""
        return {name: schema.primary_keys for name, schema in self._schemas.items()}

    def table_metadata(self) -> dict[str, Mapping[str, ColumnMeta]]:
        """Table name to its ordered column metadata."""
        return {name: schema.columns for name, schema in self._schemas.items()}

    def navigation_links(self) -> dict[str, Mapping[str, NavigationLink]]:
        """Parent table name to ``{child table: NavigationLink}``."""
        return {name: schema.navigation for name, schema in self._schemas.items()}

    def related_tables(self, table: str) -> list[str]:
        """Tables reachable from ``table`` over foreign keys in either direction.

        Breadth-first, excluding ``table`` itself; terminates on cyclic graphs.
        """
        self.schema(table)
        parents: dict[str, list[str]] = {}
        for schema in self._schemas.values():
            for child in schema.navigation:
                parents.setdefault(child, []).append(schema.name)

        visited = {table}
        order: list[str] = []
        queue = deque([table])
        while queue:
            current = queue.popleft()
            neighbours = list(self._schemas[current].navigation) if current in self._schemas else []
            neighbours.extend(parents.get(current, []))
            for name in neighbours:
                if name not in visited:
                    visited.add(name)
                    order.append(name)
                    queue.append(name)
        return order

    def __contains__(self, table: object) -> bool:
        return table in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)

    def __repr__(self) -> str:
        return f"MetadataCatalog(tables={len(self._schemas)})"


__all__ = [
    "MetadataCatalog",
    "build_schema",
    "discover_tables",
    "group_exported_keys",
]
