"""
relbridge - schema-driven entity access to relational databases.

Introspects tables, columns, primary keys and foreign keys of a datasource
and exposes generic CRUD over any table, with every value carried as
canonical text:

- relbridge.catalog: type classification and the metadata catalog
- relbridge.codec: canonical text <-> driver values
- relbridge.statements: parameterized statement synthesis
- relbridge.handler: the entity handler
- relbridge.core: adapters, dialects, errors, logging, settings
"""

__version__ = "0.1.0"

from relbridge.catalog import (
    CanonicalType,
    ColumnMeta,
    Entity,
    MetadataCatalog,
    NavigationLink,
    RawType,
    TableSchema,
)
from relbridge.codec import TypeBridge, type_bridge
from relbridge.core.errors import ServiceFault
from relbridge.handler import EntityHandler
from relbridge.statements import BoundStatement, SQLSynthesizer, StatementPlan
from relbridge.transaction import TransactionContext
from relbridge.versioning import EntityVersioner

__all__ = [
    "CanonicalType",
    "ColumnMeta",
    "Entity",
    "MetadataCatalog",
    "NavigationLink",
    "RawType",
    "TableSchema",
    "TypeBridge",
    "type_bridge",
    "ServiceFault",
    "EntityHandler",
    "BoundStatement",
    "SQLSynthesizer",
    "StatementPlan",
    "TransactionContext",
    "EntityVersioner",
]
