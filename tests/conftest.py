"""
Shared pytest fixtures and configuration for relbridge tests.

This module provides:
- A SQLite database file with a representative schema (composite keys,
  keyless tables, self-referencing and cyclic foreign keys, every type family)
- Connected adapter and handler fixtures over that file

Usage:
    def test_something(handler):
        handler.insert("USERS", {"id": "1", "name": "Ann", "active": "true"})
"""

import sqlite3
import sys
from pathlib import Path
from typing import Generator

import pytest

# Ensure relbridge package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from relbridge.core.adapters import SQLiteAdapter
from relbridge.handler import EntityHandler

SCOPE_ID = "test-scope"

SCHEMA_SQL = """
CREATE TABLE USERS (
    id INTEGER PRIMARY KEY,
    name VARCHAR(40) NOT NULL,
    active BOOLEAN
);

CREATE TABLE ORDERS (
    order_id INTEGER NOT NULL,
    user_id INTEGER NOT NULL REFERENCES USERS (id),
    region CHAR(2) NOT NULL,
    total DECIMAL(10, 2),
    PRIMARY KEY (region, order_id)
);

CREATE TABLE ORDER_LINES (
    line_no INTEGER NOT NULL,
    region CHAR(2) NOT NULL,
    order_id INTEGER NOT NULL,
    sku TEXT,
    qty SMALLINT DEFAULT 1,
    PRIMARY KEY (region, order_id, line_no),
    FOREIGN KEY (region, order_id) REFERENCES ORDERS (region, order_id)
);

CREATE TABLE AUDIT_LOG (
    message TEXT,
    logged_at TIMESTAMP
);

CREATE TABLE EMPLOYEES (
    emp_id INTEGER PRIMARY KEY,
    manager_id INTEGER REFERENCES EMPLOYEES (emp_id),
    dept_id INTEGER REFERENCES DEPARTMENTS
);

CREATE TABLE DEPARTMENTS (
    dept_id INTEGER PRIMARY KEY,
    head_id INTEGER REFERENCES EMPLOYEES (emp_id)
);

CREATE TABLE SAMPLES (
    id INTEGER PRIMARY KEY,
    small SMALLINT,
    big BIGINT,
    ratio DOUBLE,
    weight REAL,
    price NUMERIC(12, 4),
    flag BOOLEAN,
    payload BLOB,
    day DATE,
    at_time TIME,
    stamp TIMESTAMP,
    note NVARCHAR(20),
    shape GEOMETRY
);
"""


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark tests that touch a database file as integration, the rest as unit."""
    for item in items:
        fixtures = getattr(item, "fixturenames", ())
        if {"db_path", "adapter", "handler"}.intersection(fixtures):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """SQLite database file with the shared test schema."""
    path = tmp_path / "relbridge_test.db"
    conn = sqlite3.connect(path)
    try:
        conn.executescript(SCHEMA_SQL)
        conn.commit()
    finally:
        conn.close()
    return path


@pytest.fixture
def adapter(db_path: Path) -> Generator[SQLiteAdapter, None, None]:
    """Connected SQLite adapter over ``db_path``."""
    adapter = SQLiteAdapter(str(db_path))
    adapter.connect()
    yield adapter
    adapter.disconnect()


@pytest.fixture
def handler(adapter: SQLiteAdapter) -> Generator[EntityHandler, None, None]:
    """Entity handler over the shared schema."""
    handler = EntityHandler(adapter, scope_id=SCOPE_ID)
    yield handler
    handler.close()


@pytest.fixture
def raw_conn(db_path: Path) -> Generator[sqlite3.Connection, None, None]:
    """Direct sqlite3 connection for seeding and verifying rows."""
    conn = sqlite3.connect(db_path, isolation_level=None)
    yield conn
    conn.close()
