"""Database adapter base class.

Manifesto:
    The entity handler never talks to a driver directly. Every adapter
    exposes the same session lifecycle (open/release), the same session
    controls (autocommit, isolation) and the same parameter adaptation, so
    the catalog, the synthesizer and the transaction context stay
    vendor-neutral.

Features:
    - Abstract ``connect()``, ``disconnect()``, ``open_session()``,
      ``release_session()``, ``set_autocommit()``, ``set_isolation()``
    - ``session()`` context manager with guaranteed, quiet release
    - ``adapt_parameters()`` turning typed nulls into driver ``None``
    - ``driver_errors`` naming the exceptions the handler may wrap

Tags:
    relbridge, database, abstract-base, adapter-pattern

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from relbridge.core.dialect import Dialect, get_dialect
from relbridge.core.logging import get_logger
from relbridge.core.protocols import Connection

from .types import DatabaseConfig, DatabaseType, IsolationLevel, TypedNull

logger = get_logger(__name__)


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    Sessions returned by ``open_session()`` are exclusive to the caller and
    start in autocommit mode, matching the behaviour the handler expects
    from a freshly acquired session.
    """

    def __init__(self, config: DatabaseConfig):
        self._config = config
        self._connected = False
        self._dialect: Dialect = get_dialect(config.db_type.value)

    @property
    def dialect(self) -> Dialect:
        """SQL dialect for this adapter's database type."""
        return self._dialect

    @property
    def db_type(self) -> DatabaseType:
        """Database type."""
        return self._config.db_type

    @property
    def is_connected(self) -> bool:
        """Whether adapter is connected."""
        return self._connected

    @property
    @abstractmethod
    def driver_errors(self) -> tuple[type[BaseException], ...]:
        """Exception types raised by the underlying driver."""
        ...

    @abstractmethod
    def connect(self) -> None:
        """Prepare the datasource (pool, anchor connection, ...)."""
        ...

    @abstractmethod
    def disconnect(self) -> None:
        """Tear down the datasource."""
        ...

    @abstractmethod
    def open_session(self) -> Connection:
        """Acquire one exclusive session in autocommit mode.

        Raises:
            SessionError: If the datasource cannot hand out a session.
        """
        ...

    @abstractmethod
    def release_session(self, conn: Connection) -> None:
        """Give a session back (close it or return it to the pool)."""
        ...

    @abstractmethod
    def set_autocommit(self, conn: Connection, enabled: bool) -> None:
        """Switch autocommit on or off for ``conn``."""
        ...

    @abstractmethod
    def set_isolation(self, conn: Connection, level: IsolationLevel) -> None:
        """Set the isolation level for subsequent transactions on ``conn``."""
        ...

    def adapt_parameter(self, value: Any) -> Any:
        """Convert one bound value into something the driver accepts."""
        if isinstance(value, TypedNull):
            return None
        return value

    def adapt_parameters(self, params: Sequence[Any]) -> tuple[Any, ...]:
        """Convert bound values into a driver parameter tuple."""
        return tuple(self.adapt_parameter(p) for p in params)

    @contextmanager
    def session(self) -> Iterator[Connection]:
        """Scoped session: acquired on entry, released on every exit path.

        Release failures are logged and swallowed so they never replace the
        exception that is already propagating.
        """
        conn = self.open_session()
        try:
            yield conn
        finally:
            self.release_quietly(conn)

    def release_quietly(self, conn: Connection) -> None:
        """Release ``conn``, logging instead of raising on failure."""
        try:
            self.release_session(conn)
        except Exception as e:  # noqa: BLE001
            logger.debug("session_release_failed", error=str(e), db_type=self.db_type.value)

    def __enter__(self) -> DatabaseAdapter:
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.disconnect()


__all__ = [
    "DatabaseAdapter",
]
