"""relbridge.core -- datasource, error and observability primitives.

Architecture::

    Layer 1 -- Type System & Errors
        errors.py          ServiceFault hierarchy
        protocols.py       DB-API Connection / Cursor protocols

    Layer 2 -- Datasource
        dialect.py         Placeholders, identifier quoting, schema scope
        adapters/          SQLite / PostgreSQL / MySQL session adapters

    Layer 3 -- Cross-Cutting Concerns
        hashing.py         Deterministic content hashing
        logging.py         Structured logging (structlog)
        settings.py        RelbridgeSettings (pydantic-settings)
"""

from relbridge.core.errors import (
    BindError,
    ConfigError,
    DecodeError,
    ErrorCategory,
    ErrorContext,
    IntrospectionError,
    MissingKeyError,
    ServiceFault,
    SessionError,
    StatementError,
    TransactionError,
    TransactionLostError,
    UnknownPropertyError,
    UnknownTableError,
)
from relbridge.core.logging import LogContext, configure_logging, get_logger

__all__ = [
    "BindError",
    "ConfigError",
    "DecodeError",
    "ErrorCategory",
    "ErrorContext",
    "IntrospectionError",
    "MissingKeyError",
    "ServiceFault",
    "SessionError",
    "StatementError",
    "TransactionError",
    "TransactionLostError",
    "UnknownPropertyError",
    "UnknownTableError",
    "LogContext",
    "configure_logging",
    "get_logger",
]
