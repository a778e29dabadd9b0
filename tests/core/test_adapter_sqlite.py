"""Tests for ``relbridge.core.adapters.sqlite`` — SQLite adapter."""

from __future__ import annotations

import sqlite3
from datetime import date, datetime, time
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from relbridge.catalog.types import RawType
from relbridge.core.adapters.sqlite import SQLiteAdapter
from relbridge.core.adapters.types import IsolationLevel, TypedNull
from relbridge.core.errors import BindError, SessionError


class TestSQLiteAdapterInit:
    def test_default_memory(self):
        adapter = SQLiteAdapter()
        assert adapter.db_type.value == "sqlite"
        assert adapter.dialect.name == "sqlite"
        assert adapter.is_connected is False

    def test_driver_errors(self):
        assert SQLiteAdapter().driver_errors == (sqlite3.Error,)


class TestSQLiteAdapterConnect:
    def test_connect_disconnect(self):
        adapter = SQLiteAdapter(path=":memory:")
        adapter.connect()
        assert adapter.is_connected is True
        adapter.disconnect()
        assert adapter.is_connected is False

    def test_disconnect_when_not_connected(self):
        adapter = SQLiteAdapter()
        adapter.disconnect()  # Should not raise
        assert adapter.is_connected is False

    @patch("sqlite3.connect", side_effect=sqlite3.OperationalError("unable to open database"))
    def test_connect_failure_raises(self, mock_connect):
        adapter = SQLiteAdapter(path="/nonexistent/path.db")
        with pytest.raises(SessionError, match="Failed to connect"):
            adapter.connect()

    def test_context_manager(self):
        with SQLiteAdapter() as adapter:
            assert adapter.is_connected is True
        assert adapter.is_connected is False


class TestSQLiteAdapterSessions:
    def test_session_is_autocommit(self, db_path):
        adapter = SQLiteAdapter(str(db_path))
        conn = adapter.open_session()
        try:
            assert conn.isolation_level is None
            assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
        finally:
            adapter.release_session(conn)
            adapter.disconnect()

    def test_open_session_auto_connects(self):
        adapter = SQLiteAdapter()
        conn = adapter.open_session()
        assert adapter.is_connected is True
        adapter.release_session(conn)
        adapter.disconnect()

    def test_sessions_share_file(self, db_path):
        adapter = SQLiteAdapter(str(db_path))
        with adapter.session() as writer:
            writer.execute("INSERT INTO USERS (id, name) VALUES (1, 'Ann')")
        with adapter.session() as reader:
            assert reader.execute("SELECT name FROM USERS").fetchone()[0] == "Ann"
        adapter.disconnect()

    def test_readonly_session_rejects_writes(self, db_path):
        adapter = SQLiteAdapter(str(db_path), readonly=True)
        with adapter.session() as conn:
            with pytest.raises(sqlite3.OperationalError):
                conn.execute("INSERT INTO USERS (id, name) VALUES (1, 'Ann')")
        adapter.disconnect()

    def test_session_released_on_error(self):
        adapter = SQLiteAdapter()
        with patch.object(adapter, "release_session") as release:
            with pytest.raises(RuntimeError):
                with adapter.session():
                    raise RuntimeError("boom")
        release.assert_called_once()

    def test_release_failure_is_swallowed(self):
        adapter = SQLiteAdapter()
        conn = MagicMock()
        conn.close.side_effect = sqlite3.ProgrammingError("already closed")
        adapter.release_quietly(conn)  # Should not raise

    def test_set_autocommit(self):
        adapter = SQLiteAdapter()
        conn = adapter.open_session()
        adapter.set_autocommit(conn, False)
        assert conn.isolation_level == "DEFERRED"
        adapter.set_autocommit(conn, True)
        assert conn.isolation_level is None
        adapter.set_isolation(conn, IsolationLevel.REPEATABLE_READ)  # no-op
        adapter.release_session(conn)
        adapter.disconnect()


class TestSQLiteAdapterParameters:
    def test_typed_null_becomes_none(self):
        adapter = SQLiteAdapter()
        assert adapter.adapt_parameters([TypedNull(RawType.INTEGER), 1]) == (None, 1)

    def test_native_values(self):
        adapter = SQLiteAdapter()
        params = adapter.adapt_parameters(
            [True, Decimal("12.50"), date(2024, 1, 5), time(10, 30), datetime(2024, 1, 5, 10, 30)]
        )
        assert params == (1, "12.50", "2024-01-05", "10:30:00", "2024-01-05 10:30:00")

    def test_bytes_untouched(self):
        assert SQLiteAdapter().adapt_parameter(b"\x00") == b"\x00"

    def test_integral_decimal_binds_as_integer(self):
        adapter = SQLiteAdapter()
        assert adapter.adapt_parameter(Decimal("9007199254740993")) == 9007199254740993
        assert adapter.adapt_parameter(Decimal("1E+2")) == 100

    def test_decimal_beyond_double_precision_rejected(self):
        with pytest.raises(BindError, match="cannot be stored exactly"):
            SQLiteAdapter().adapt_parameter(Decimal("12345678901234567.89"))

    def test_decimal_round_trips_through_numeric_column(self):
        adapter = SQLiteAdapter()
        conn = sqlite3.connect(":memory:")
        conn.execute("CREATE TABLE t (v NUMERIC(20, 2))")
        conn.execute("INSERT INTO t VALUES (?)", adapter.adapt_parameters([Decimal("19.99")]))
        assert conn.execute("SELECT v FROM t").fetchone() == (19.99,)
        conn.close()
