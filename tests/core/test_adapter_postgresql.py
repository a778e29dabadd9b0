"""Tests for ``relbridge.core.adapters.postgresql`` — PostgreSQL adapter."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from relbridge.core.adapters.postgresql import PostgreSQLAdapter
from relbridge.core.adapters.types import IsolationLevel
from relbridge.core.errors import ConfigError, SessionError


class TestPostgreSQLAdapterInit:
    def test_default_config(self):
        adapter = PostgreSQLAdapter()
        assert adapter.db_type.value == "postgresql"
        assert adapter.dialect.name == "postgresql"
        assert adapter.is_connected is False


class TestPostgreSQLAdapterConnect:
    @patch("psycopg2.pool.ThreadedConnectionPool")
    def test_connect_success(self, mock_pool_cls):
        adapter = PostgreSQLAdapter(host="localhost", database="crm", pool_size=3)
        adapter.connect()
        assert adapter.is_connected is True
        kwargs = mock_pool_cls.call_args.kwargs
        assert kwargs["maxconn"] == 3
        assert kwargs["database"] == "crm"

    @patch("psycopg2.pool.ThreadedConnectionPool")
    def test_connect_failure(self, mock_pool_cls):
        import psycopg2

        mock_pool_cls.side_effect = psycopg2.OperationalError("Connection refused")
        adapter = PostgreSQLAdapter(host="bad-host", database="crm")
        with pytest.raises(SessionError, match="Failed to connect"):
            adapter.connect()

    @patch("psycopg2.pool.ThreadedConnectionPool")
    def test_disconnect(self, mock_pool_cls):
        adapter = PostgreSQLAdapter(database="crm")
        adapter.connect()
        adapter.disconnect()
        mock_pool_cls.return_value.closeall.assert_called_once()
        assert adapter.is_connected is False

    def test_missing_driver(self):
        with patch.dict("sys.modules", {"psycopg2": None, "psycopg2.pool": None}):
            with pytest.raises(ConfigError, match="psycopg2 is required"):
                PostgreSQLAdapter().connect()


class TestPostgreSQLAdapterSessions:
    @patch("psycopg2.pool.ThreadedConnectionPool")
    def test_open_session_autocommit(self, mock_pool_cls):
        conn = MagicMock()
        mock_pool_cls.return_value.getconn.return_value = conn
        adapter = PostgreSQLAdapter(database="crm")
        assert adapter.open_session() is conn
        assert conn.autocommit is True

    @patch("psycopg2.pool.ThreadedConnectionPool")
    def test_pool_exhausted(self, mock_pool_cls):
        import psycopg2.pool

        mock_pool_cls.return_value.getconn.side_effect = psycopg2.pool.PoolError("exhausted")
        adapter = PostgreSQLAdapter(database="crm")
        with pytest.raises(SessionError, match="pool exhausted") as exc_info:
            adapter.open_session()
        assert exc_info.value.retryable is True

    @patch("psycopg2.pool.ThreadedConnectionPool")
    def test_release_resets_and_returns(self, mock_pool_cls):
        pool = mock_pool_cls.return_value
        conn = MagicMock()
        adapter = PostgreSQLAdapter(database="crm")
        adapter.connect()
        adapter.release_session(conn)
        conn.rollback.assert_called_once()
        conn.set_session.assert_called_once_with(isolation_level="DEFAULT", autocommit=True)
        pool.putconn.assert_called_once_with(conn)

    @patch("psycopg2.pool.ThreadedConnectionPool")
    def test_release_returns_even_if_reset_fails(self, mock_pool_cls):
        pool = mock_pool_cls.return_value
        conn = MagicMock()
        conn.rollback.side_effect = RuntimeError("connection lost")
        adapter = PostgreSQLAdapter(database="crm")
        adapter.connect()
        adapter.release_quietly(conn)
        pool.putconn.assert_called_once_with(conn)

    def test_session_controls(self):
        conn = MagicMock()
        adapter = PostgreSQLAdapter()
        adapter.set_autocommit(conn, False)
        assert conn.autocommit is False
        adapter.set_isolation(conn, IsolationLevel.REPEATABLE_READ)
        conn.set_session.assert_called_once_with(isolation_level="REPEATABLE READ")
        adapter.set_autocommit(conn, True)
        assert conn.autocommit is True
        conn.rollback.assert_called_once()
