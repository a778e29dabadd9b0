"""SQLite database adapter."""

from __future__ import annotations

import sqlite3
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from relbridge.core.errors import BindError, SessionError
from relbridge.core.logging import get_logger
from relbridge.core.protocols import Connection

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType, IsolationLevel

logger = get_logger(__name__)

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1


def _exact_decimal(value: Decimal) -> int | str:
    """Integer or text SQLite stores without changing the value."""
    if value == value.to_integral_value() and _INT64_MIN <= value <= _INT64_MAX:
        return int(value)
    # anything else lands in a REAL column slot
    if Decimal(repr(float(value))) != value:
        raise BindError(
            f"Decimal {value} cannot be stored exactly by SQLite"
        ).with_context(value=str(value))
    return format(value, "f")


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter.

    Uses the built-in sqlite3 module. Every session is its own
    ``sqlite3.Connection``; while the adapter is connected an anchor
    connection stays open so shared-cache in-memory databases
    (``file:name?mode=memory&cache=shared``) survive between sessions.
    A plain ``:memory:`` path gives every session a separate, empty database.

    Decimals are bound as text and NUMERIC affinity stores them as INTEGER
    or REAL. A decimal that a 64-bit integer or a double cannot hold
    exactly raises ``BindError`` instead of losing digits.
    """

    def __init__(
        self,
        path: str = ":memory:",
        *,
        readonly: bool = False,
        timeout: float = 5.0,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.SQLITE,
            path=path,
            readonly=readonly,
            options=kwargs,
        )
        super().__init__(config)
        self._timeout = timeout
        self._anchor: sqlite3.Connection | None = None

    @property
    def driver_errors(self) -> tuple[type[BaseException], ...]:
        return (sqlite3.Error,)

    def _open(self) -> sqlite3.Connection:
        path = self._config.path or ":memory:"
        uri = path.startswith("file:")

        try:
            # isolation_level=None: sqlite3 autocommit mode
            conn = sqlite3.connect(
                path,
                timeout=self._timeout,
                check_same_thread=False,
                uri=uri,
                isolation_level=None,
            )
            conn.execute("PRAGMA foreign_keys = ON")
            if self._config.readonly:
                conn.execute("PRAGMA query_only = ON")
            return conn
        except sqlite3.Error as e:
            raise SessionError(
                f"Failed to connect to SQLite: {e}",
                cause=e,
            ) from e

    def connect(self) -> None:
        """Open the anchor connection."""
        if self._anchor is None:
            self._anchor = self._open()
        self._connected = True

    def disconnect(self) -> None:
        """Close the anchor connection."""
        if self._anchor is not None:
            self._anchor.close()
            self._anchor = None
        self._connected = False

    def open_session(self) -> Connection:
        """Open a new SQLite connection in autocommit mode."""
        if not self._connected:
            self.connect()
        return self._open()

    def release_session(self, conn: Connection) -> None:
        conn.close()

    def set_autocommit(self, conn: Connection, enabled: bool) -> None:
        # Switching to None commits any open transaction
        conn.isolation_level = None if enabled else "DEFERRED"

    def set_isolation(self, conn: Connection, level: IsolationLevel) -> None:
        # SQLite transactions are always SERIALIZABLE, which covers repeatable read
        logger.debug("sqlite_isolation_implicit", requested=level.value)

    def adapt_parameter(self, value: Any) -> Any:
        value = super().adapt_parameter(value)
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, Decimal):
            return _exact_decimal(value)
        if isinstance(value, datetime):
            return value.isoformat(sep=" ")
        if isinstance(value, (date, time)):
            return value.isoformat()
        return value


__all__ = [
    "SQLiteAdapter",
]
