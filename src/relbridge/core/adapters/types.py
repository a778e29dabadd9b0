"""Database types, configuration and binding primitives."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class DatabaseType(str, Enum):
    """Supported database types."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"


class IsolationLevel(str, Enum):
    """Session isolation levels the transaction context can request."""

    DEFAULT = "DEFAULT"
    REPEATABLE_READ = "REPEATABLE READ"


@dataclass
class DatabaseConfig:
    """
    Configuration for database connection.

    Different fields are used by different database types.
    """

    # Common
    db_type: DatabaseType = DatabaseType.SQLITE

    # SQLite
    path: str | None = None

    # PostgreSQL / MySQL
    host: str = "localhost"
    port: int = 5432
    database: str = ""
    username: str | None = None
    password: str | None = None

    # Connection pool
    pool_size: int = 5

    # Options
    connect_timeout: int = 10
    readonly: bool = False

    # Extra options (driver-specific)
    options: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TypedNull:
    """
    An explicit SQL NULL bound for a column of a known raw type.

    DB-API drivers take ``None`` for NULL; the raw type travels with the
    parameter until the adapter hands it to the driver so a bound null is
    never confused with a missing binding.
    """

    raw_type: Any

    def __repr__(self) -> str:
        name = getattr(self.raw_type, "name", self.raw_type)
        return f"TypedNull({name})"


__all__ = [
    "DatabaseType",
    "DatabaseConfig",
    "IsolationLevel",
    "TypedNull",
]
