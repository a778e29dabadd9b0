"""TransactionContext: one exclusive session bound for transactional calls.

Manifesto:
    A transactional session is an owned resource with an explicit
    lifecycle. ``open`` acquires it, turns autocommit off and requests
    repeatable-read isolation; ``close`` restores autocommit and releases
    it unconditionally. There is no implicit reuse: after ``close`` the
    context is dead and a new one must be opened.

Architecture::

    TransactionContext.open(adapter)
        ├── adapter.open_session()
        ├── adapter.set_autocommit(conn, False)
        └── adapter.set_isolation(conn, REPEATABLE_READ)
                 │  (any failure: session released, error raised)
                 ▼
        ctx.connection  ──▶ transactional reads / writes (commit per statement)
                 │
                 ▼
    ctx.close()
        ├── adapter.set_autocommit(conn, True)      errors logged, swallowed
        └── adapter.release_quietly(conn)           always

Tags:
    transaction, session, lifecycle, isolation, relbridge

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from relbridge.core.adapters.base import DatabaseAdapter
from relbridge.core.adapters.types import IsolationLevel
from relbridge.core.errors import ServiceFault, SessionError, TransactionLostError
from relbridge.core.logging import get_logger
from relbridge.core.protocols import Connection

logger = get_logger(__name__)


class TransactionContext:
    """A session bound to a handler between open and close."""

    def __init__(self, adapter: DatabaseAdapter, conn: Connection):
        self._adapter = adapter
        self._conn: Connection | None = conn

    @classmethod
    def open(
        cls,
        adapter: DatabaseAdapter,
        isolation: IsolationLevel = IsolationLevel.REPEATABLE_READ,
    ) -> TransactionContext:
        """Acquire a session and prepare it for explicit commits.

        Raises:
            SessionError: If the session cannot be acquired or configured.
        """
        conn = adapter.open_session()
        try:
            adapter.set_autocommit(conn, False)
            adapter.set_isolation(conn, isolation)
        except ServiceFault:
            adapter.release_quietly(conn)
            raise
        except adapter.driver_errors as e:
            adapter.release_quietly(conn)
            raise SessionError(f"Failed to prepare transactional session: {e}", cause=e) from e
        logger.debug("transaction_session_bound", isolation=isolation.value)
        return cls(adapter, conn)

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def connection(self) -> Connection:
        if self._conn is None:
            raise TransactionLostError("Transactional session is no longer bound")
        return self._conn

    def commit(self) -> None:
        self.connection.commit()

    def rollback(self) -> None:
        """Roll back the open transaction; failures are logged and swallowed."""
        if self._conn is None:
            return
        try:
            self._conn.rollback()
        except Exception as e:  # noqa: BLE001
            logger.debug("transaction_rollback_failed", error=str(e))

    def close(self) -> None:
        """Restore autocommit and release the session. Idempotent."""
        conn, self._conn = self._conn, None
        if conn is None:
            return
        try:
            self._adapter.set_autocommit(conn, True)
        except Exception as e:  # noqa: BLE001
            logger.debug("transaction_autocommit_restore_failed", error=str(e))
        finally:
            self._adapter.release_quietly(conn)
        logger.debug("transaction_session_released")

    def __repr__(self) -> str:
        state = "open" if self._conn is not None else "closed"
        return f"TransactionContext({state})"


__all__ = [
    "TransactionContext",
]
