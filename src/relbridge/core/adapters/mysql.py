"""MySQL / MariaDB database adapter.

Uses ``mysql-connector-python`` (``mysql.connector``).  Install with::

    pip install relbridge[mysql]
"""

from __future__ import annotations

from typing import Any

from relbridge.core.errors import ConfigError, SessionError
from relbridge.core.protocols import Connection

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType, IsolationLevel


def _import_mysql_connector() -> Any:
    try:
        import mysql.connector
        from mysql.connector import pooling  # noqa: F401
    except ImportError:
        raise ConfigError(
            "mysql-connector-python is required for MySQL. "
            "Install with: pip install relbridge[mysql]"
        ) from None
    return mysql.connector


class MySQLAdapter(DatabaseAdapter):
    """
    MySQL database adapter.

    Sessions come from a ``MySQLConnectionPool``; closing a pooled
    connection hands it back to the pool.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 3306,
        database: str = "",
        username: str | None = None,
        password: str | None = None,
        *,
        pool_size: int = 5,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.MYSQL,
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
        return (_import_mysql_connector().Error,)

    def connect(self) -> None:
        """Create the connection pool."""
        connector = _import_mysql_connector()

        try:
            self._pool = connector.pooling.MySQLConnectionPool(
                pool_name=self._config.options.get("pool_name", "relbridge_mysql_pool"),
                pool_size=self._config.pool_size,
                host=self._config.host,
                port=self._config.port,
                database=self._config.database,
                user=self._config.username,
                password=self._config.password,
                charset=self._config.options.get("charset", "utf8mb4"),
                connect_timeout=self._config.connect_timeout,
                autocommit=True,
            )
            self._connected = True
        except connector.Error as e:
            raise SessionError(
                f"Failed to connect to MySQL: {e}",
                cause=e,
            ) from e

    def disconnect(self) -> None:
        """Drop the pool; pooled connections close as they are released."""
        self._pool = None
        self._connected = False

    def open_session(self) -> Connection:
        """Check a connection out of the pool, in autocommit mode."""
        if not self._pool:
            self.connect()
        connector = _import_mysql_connector()
        try:
            conn = self._pool.get_connection()
            conn.autocommit = True
            return conn
        except connector.Error as e:
            raise SessionError(f"Failed to acquire MySQL session: {e}", cause=e) from e

    def release_session(self, conn: Connection) -> None:
        """Reset session characteristics and return the connection to the pool."""
        try:
            conn.rollback()
            conn.autocommit = True
            self.set_isolation(conn, IsolationLevel.DEFAULT)
        finally:
            conn.close()  # returns the connection to the pool

    def set_autocommit(self, conn: Connection, enabled: bool) -> None:
        if enabled:
            conn.rollback()
        conn.autocommit = enabled

    def set_isolation(self, conn: Connection, level: IsolationLevel) -> None:
        if level is IsolationLevel.DEFAULT:
            sql = "SET SESSION transaction_isolation = DEFAULT"
        else:
            sql = f"SET SESSION TRANSACTION ISOLATION LEVEL {level.value}"
        cursor = conn.cursor()
        try:
            cursor.execute(sql)
        finally:
            cursor.close()


__all__ = [
    "MySQLAdapter",
]
