"""Schema catalog: type classification, metadata readers and the catalog itself."""

from relbridge.catalog.catalog import (
    MetadataCatalog,
    build_schema,
    discover_tables,
    group_exported_keys,
)
from relbridge.catalog.models import ColumnMeta, Entity, NavigationLink, TableSchema
from relbridge.catalog.readers import (
    CatalogReader,
    ExportedKey,
    MySQLCatalogReader,
    PostgreSQLCatalogReader,
    SQLiteCatalogReader,
    get_catalog_reader,
    register_catalog_reader,
)
from relbridge.catalog.types import CanonicalType, RawType, classify, normalize_declared_type

__all__ = [
    "MetadataCatalog",
    "build_schema",
    "discover_tables",
    "group_exported_keys",
    "ColumnMeta",
    "Entity",
    "NavigationLink",
    "TableSchema",
    "CatalogReader",
    "ExportedKey",
    "SQLiteCatalogReader",
    "PostgreSQLCatalogReader",
    "MySQLCatalogReader",
    "get_catalog_reader",
    "register_catalog_reader",
    "CanonicalType",
    "RawType",
    "classify",
    "normalize_declared_type",
]
