"""PostgreSQL database adapter."""

from __future__ import annotations

from typing import Any

from relbridge.core.errors import ConfigError, SessionError
from relbridge.core.protocols import Connection

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType, IsolationLevel


def _import_psycopg2() -> Any:
    try:
        import psycopg2
        import psycopg2.pool  # noqa: F401
    except ImportError:
        raise ConfigError(
            "psycopg2 is required for PostgreSQL. Install with: pip install relbridge[postgresql]"
        ) from None
    return psycopg2


class PostgreSQLAdapter(DatabaseAdapter):
    """
    PostgreSQL database adapter.

    Uses a psycopg2 ``ThreadedConnectionPool``; each session is one pooled
    connection checked out for the caller's exclusive use.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5432,
        database: str = "",
        username: str | None = None,
        password: str | None = None,
        *,
        pool_size: int = 5,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.POSTGRESQL,
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            pool_size=pool_size,
            options=kwargs,
        )
        super().__init__(config)
        self._pool: Any = None

    @property
    def driver_errors(self) -> tuple[type[BaseException], ...]:
        return (_import_psycopg2().Error,)

    def connect(self) -> None:
        """Create the connection pool."""
        psycopg2 = _import_psycopg2()

        try:
            self._pool = psycopg2.pool.ThreadedConnectionPool(
                minconn=1,
                maxconn=self._config.pool_size,
                host=self._config.host,
                port=self._config.port,
                database=self._config.database,
                user=self._config.username,
                password=self._config.password,
                connect_timeout=self._config.connect_timeout,
            )
            self._connected = True
        except psycopg2.Error as e:
            raise SessionError(
                f"Failed to connect to PostgreSQL: {e}",
                cause=e,
            ) from e

    def disconnect(self) -> None:
        """Close PostgreSQL connection pool."""
        if self._pool:
            self._pool.closeall()
            self._pool = None
            self._connected = False

    def open_session(self) -> Connection:
        """Check a connection out of the pool, in autocommit mode."""
        if not self._pool:
            self.connect()
        psycopg2 = _import_psycopg2()
        try:
            conn = self._pool.getconn()
            conn.autocommit = True
            return conn
        except psycopg2.pool.PoolError as e:
            raise SessionError(f"PostgreSQL pool exhausted: {e}", cause=e) from e
        except psycopg2.Error as e:
            raise SessionError(f"Failed to acquire PostgreSQL session: {e}", cause=e) from e

    def release_session(self, conn: Connection) -> None:
        """Reset session characteristics and return the connection to the pool."""
        try:
            conn.rollback()
            conn.set_session(isolation_level=IsolationLevel.DEFAULT.value, autocommit=True)
        finally:
            if self._pool:
                self._pool.putconn(conn)

    def set_autocommit(self, conn: Connection, enabled: bool) -> None:
        if enabled:
            # psycopg2 refuses to change session characteristics mid-transaction
            conn.rollback()
        conn.autocommit = enabled

    def set_isolation(self, conn: Connection, level: IsolationLevel) -> None:
        conn.set_session(isolation_level=level.value)


__all__ = [
    "PostgreSQLAdapter",
]
