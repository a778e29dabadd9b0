"""Database adapters -- one session interface for three backends.

Manifesto:
    The entity handler must run identically on SQLite (tests, embedded use),
    PostgreSQL and MySQL.  Each adapter is **import-guarded**: the database
    driver is only required when the adapter is used.  Install the
    corresponding extra::

        pip install relbridge[postgresql]   # psycopg2-binary
        pip install relbridge[mysql]        # mysql-connector-python

Architecture::

    DatabaseAdapter (base.py)        Session lifecycle + parameter adaptation
        |-- SQLiteAdapter            stdlib sqlite3 (always available)
        |-- PostgreSQLAdapter        psycopg2 pool (optional)
        |-- MySQLAdapter             mysql.connector pool (optional)

    AdapterRegistry (registry.py)    DatabaseType -> adapter class
    DatabaseConfig (types.py)        Connection parameters
    TypedNull (types.py)             NULL bound with its raw column type

Guardrails:
    ❌ ``cursor.execute("SELECT * FROM t WHERE id=" + user_input)``
    ✅ ``cursor.execute("SELECT * FROM t WHERE id=?", [user_input])``
    ❌ Importing optional drivers at module scope
    ✅ Import-guarded at use time with clear ``ConfigError``

Tags:
    relbridge, database, adapters, multi-backend, import-guarded

Doc-Types:
    package-overview, module-index
"""

from relbridge.core.dialect import Dialect, get_dialect
from relbridge.core.protocols import Connection, Cursor

from .base import DatabaseAdapter
from .mysql import MySQLAdapter
from .postgresql import PostgreSQLAdapter
from .registry import AdapterRegistry, adapter_registry, create_adapter, get_adapter
from .sqlite import SQLiteAdapter
from .types import DatabaseConfig, DatabaseType, IsolationLevel, TypedNull

__all__ = [
    # Types
    "DatabaseType",
    "DatabaseConfig",
    "IsolationLevel",
    "TypedNull",
    # Protocols / Abstractions
    "Connection",
    "Cursor",
    "Dialect",
    "get_dialect",
    # Base class
    "DatabaseAdapter",
    # Implementations
    "SQLiteAdapter",
    "PostgreSQLAdapter",
    "MySQLAdapter",
    # Registry
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
    "create_adapter",
]
