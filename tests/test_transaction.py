"""Tests for ``relbridge.transaction`` — transactional session lifecycle."""

from __future__ import annotations

import sqlite3
from unittest.mock import MagicMock, patch

import pytest

from relbridge.core.adapters.types import IsolationLevel
from relbridge.core.errors import SessionError, TransactionLostError
from relbridge.transaction import TransactionContext


class TestOpen:
    def test_autocommit_off_and_isolation_requested(self, adapter):
        with patch.object(adapter, "set_isolation", wraps=adapter.set_isolation) as isolation:
            ctx = TransactionContext.open(adapter)
        try:
            assert ctx.is_open
            assert ctx.connection.isolation_level == "DEFERRED"
            isolation.assert_called_once_with(ctx.connection, IsolationLevel.REPEATABLE_READ)
        finally:
            ctx.close()

    def test_session_failure(self, adapter):
        with patch.object(adapter, "open_session", side_effect=SessionError("pool exhausted")):
            with pytest.raises(SessionError):
                TransactionContext.open(adapter)

    def test_configuration_failure_releases_session(self, adapter):
        conn = MagicMock()
        with (
            patch.object(adapter, "open_session", return_value=conn),
            patch.object(adapter, "set_autocommit", side_effect=sqlite3.OperationalError("locked")),
            patch.object(adapter, "release_session") as release,
        ):
            with pytest.raises(SessionError, match="locked"):
                TransactionContext.open(adapter)
        release.assert_called_once_with(conn)


class TestCommitRollback:
    def test_commit_makes_write_visible(self, adapter, raw_conn):
        ctx = TransactionContext.open(adapter)
        try:
            ctx.connection.execute("INSERT INTO USERS (id, name) VALUES (1, 'Ann')")
            assert raw_conn.execute("SELECT COUNT(*) FROM USERS").fetchone()[0] == 0
            ctx.commit()
            assert raw_conn.execute("SELECT COUNT(*) FROM USERS").fetchone()[0] == 1
        finally:
            ctx.close()

    def test_rollback_discards_write(self, adapter, raw_conn):
        ctx = TransactionContext.open(adapter)
        try:
            ctx.connection.execute("INSERT INTO USERS (id, name) VALUES (1, 'Ann')")
            ctx.rollback()
        finally:
            ctx.close()
        assert raw_conn.execute("SELECT COUNT(*) FROM USERS").fetchone()[0] == 0

    def test_rollback_failure_swallowed(self):
        conn = MagicMock()
        conn.rollback.side_effect = RuntimeError("gone")
        TransactionContext(MagicMock(), conn).rollback()


class TestClose:
    def test_restores_autocommit_and_releases(self):
        adapter, conn = MagicMock(), MagicMock()
        ctx = TransactionContext(adapter, conn)
        ctx.close()
        adapter.set_autocommit.assert_called_once_with(conn, True)
        adapter.release_quietly.assert_called_once_with(conn)
        assert not ctx.is_open

    def test_releases_even_when_autocommit_restore_fails(self):
        adapter, conn = MagicMock(), MagicMock()
        adapter.set_autocommit.side_effect = RuntimeError("connection reset")
        ctx = TransactionContext(adapter, conn)
        ctx.close()
        adapter.release_quietly.assert_called_once_with(conn)

    def test_idempotent(self):
        adapter = MagicMock()
        ctx = TransactionContext(adapter, MagicMock())
        ctx.close()
        ctx.close()
        assert adapter.release_quietly.call_count == 1

    def test_connection_after_close(self):
        ctx = TransactionContext(MagicMock(), MagicMock())
        ctx.close()
        with pytest.raises(TransactionLostError):
            _ = ctx.connection
        assert repr(ctx) == "TransactionContext(closed)"
