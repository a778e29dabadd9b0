"""Tests for relbridge.cli — command smoke tests via CliRunner over a SQLite file."""

from __future__ import annotations

import json
import os
import sqlite3

import pytest
from typer.testing import CliRunner

from relbridge.cli.app import app
from relbridge.cli.utils import load_settings, parse_pairs

runner = CliRunner()


@pytest.fixture(autouse=True)
def quiet_env(monkeypatch, tmp_path):
    for key in list(os.environ):
        if key.startswith("RELBRIDGE_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("RELBRIDGE_LOG_LEVEL", "WARNING")
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def seeded_db(db_path):
    conn = sqlite3.connect(db_path)
    conn.execute("INSERT INTO USERS (id, name, active) VALUES (1, 'Ann', 1)")
    conn.execute("INSERT INTO USERS (id, name, active) VALUES (2, 'Bo', NULL)")
    conn.commit()
    conn.close()
    return str(db_path)


# ─── tables ─────────────────────────────────────────────────────────────


class TestTablesCommand:
    def test_json(self, seeded_db):
        result = runner.invoke(app, ["tables", "--database", seeded_db, "--json"])
        assert result.exit_code == 0, result.output
        rows = {row["table"]: row for row in json.loads(result.stdout)}
        assert rows["ORDERS"]["primary_key"] == "region, order_id"
        assert rows["USERS"]["referenced_by"] == "ORDERS"
        assert rows["AUDIT_LOG"]["primary_key"] == ""

    def test_table_output(self, seeded_db):
        result = runner.invoke(app, ["tables", "-d", seeded_db])
        assert result.exit_code == 0
        assert "ORDER_LINES" in result.stdout


# ─── describe ───────────────────────────────────────────────────────────


class TestDescribeCommand:
    def test_json(self, seeded_db):
        result = runner.invoke(app, ["describe", "ORDERS", "-d", seeded_db, "--json"])
        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["primary_keys"] == ["region", "order_id"]
        assert [c["name"] for c in payload["columns"]] == ["order_id", "user_id", "region", "total"]
        assert payload["navigation"][0]["child"] == "ORDER_LINES"
        assert payload["related"] == ["ORDER_LINES", "USERS"]

    def test_table_output(self, seeded_db):
        result = runner.invoke(app, ["describe", "USERS", "-d", seeded_db])
        assert result.exit_code == 0
        assert "Int32" in result.stdout
        assert "ORDERS" in result.stdout

    def test_unknown_table(self, seeded_db):
        result = runner.invoke(app, ["describe", "NOPE", "-d", seeded_db])
        assert result.exit_code == 1
        assert "UnknownTableError" in result.output


# ─── read ───────────────────────────────────────────────────────────────


class TestReadCommand:
    def test_all(self, seeded_db):
        result = runner.invoke(app, ["read", "USERS", "-d", seeded_db, "--json"])
        assert result.exit_code == 0, result.output
        rows = json.loads(result.stdout)
        assert [r["name"] for r in rows] == ["Ann", "Bo"]
        assert rows[0]["active"] == "true"
        assert rows[1]["active"] is None
        assert len(rows[0]["@version"]) == 64

    def test_by_key(self, seeded_db):
        result = runner.invoke(app, ["read", "USERS", "-k", "id=2", "-d", seeded_db, "--json"])
        assert result.exit_code == 0, result.output
        assert [r["id"] for r in json.loads(result.stdout)] == ["2"]

    def test_bad_key_value(self, seeded_db):
        result = runner.invoke(app, ["read", "USERS", "-k", "id=two", "-d", seeded_db])
        assert result.exit_code == 1
        assert "BindError" in result.output

    def test_empty(self, db_path):
        result = runner.invoke(app, ["read", "AUDIT_LOG", "-d", str(db_path)])
        assert result.exit_code == 0
        assert "No rows" in result.stdout


# ─── helpers ────────────────────────────────────────────────────────────


class TestHelpers:
    def test_parse_pairs(self):
        assert parse_pairs(["id=1", "name=", "note", "expr=a=b"]) == {
            "id": "1",
            "name": "",
            "note": None,
            "expr": "a=b",
        }

    def test_database_option_forces_sqlite(self, monkeypatch):
        monkeypatch.setenv("RELBRIDGE_DB_TYPE", "postgresql")
        settings = load_settings("other.db")
        assert settings.db_type == "sqlite"
        assert settings.path == "other.db"

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.stdout.startswith("relbridge ")
