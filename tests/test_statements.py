"""Tests for ``relbridge.statements`` — SQL synthesis and parameter binding."""

from __future__ import annotations

from decimal import Decimal

import pytest

from relbridge.catalog.models import ColumnMeta, TableSchema
from relbridge.catalog.types import RawType, classify
from relbridge.core.adapters.types import TypedNull
from relbridge.core.dialect import MySQLDialect, PostgreSQLDialect, SQLiteDialect
from relbridge.core.errors import (
    BindError,
    MissingKeyError,
    StatementError,
    UnknownPropertyError,
)
from relbridge.statements import (
    BoundStatement,
    SQLSynthesizer,
    StatementPlan,
    bind_plan,
)


def _schema(name: str, columns: list[tuple[str, RawType]], keys: tuple[str, ...] = ()) -> TableSchema:
    return TableSchema(
        name,
        {
            col: ColumnMeta(col, classify(raw), raw, position)
            for position, (col, raw) in enumerate(columns, start=1)
        },
        keys,
    )


@pytest.fixture
def orders() -> TableSchema:
    return _schema(
        "ORDERS",
        [
            ("order_id", RawType.INTEGER),
            ("user_id", RawType.INTEGER),
            ("region", RawType.CHAR),
            ("total", RawType.DECIMAL),
        ],
        keys=("region", "order_id"),
    )


@pytest.fixture
def audit_log() -> TableSchema:
    return _schema("AUDIT_LOG", [("message", RawType.LONGVARCHAR), ("logged_at", RawType.TIMESTAMP)])


@pytest.fixture
def synth() -> SQLSynthesizer:
    return SQLSynthesizer(SQLiteDialect())


class TestSelect:
    def test_select_all_lists_columns(self, synth, orders):
        plan = synth.select_all(orders)
        assert plan.sql == 'SELECT "order_id", "user_id", "region", "total" FROM "ORDERS"'
        assert plan.bind_columns == ()

    def test_select_by_keys_catalog_order(self, synth, orders):
        plan = synth.select_by_keys(orders, {"total": "9.50", "region": "EU", "user_id": None})
        assert plan.sql.endswith('WHERE "region" = ? AND "total" = ?')
        assert plan.bind_columns == ("region", "total")

    def test_select_by_keys_ignores_unknown_columns(self, synth, orders):
        plan = synth.select_by_keys(orders, {"nope": "1", "order_id": "5"})
        assert plan.bind_columns == ("order_id",)

    def test_select_by_keys_nothing_to_match(self, synth, orders):
        plan = synth.select_by_keys(orders, {"user_id": None})
        assert plan.sql.endswith("WHERE 1 = 0")
        assert plan.bind_columns == ()


class TestInsert:
    def test_every_column_in_catalog_order(self, synth, orders):
        plan = synth.insert(orders)
        assert plan.sql == (
            'INSERT INTO "ORDERS" ("order_id", "user_id", "region", "total") VALUES (?, ?, ?, ?)'
        )
        assert plan.bind_columns == ("order_id", "user_id", "region", "total")

    def test_missing_values_bind_typed_null(self, synth, orders):
        statement = bind_plan(synth.insert(orders), orders, {"order_id": "1", "region": "EU"})
        assert statement.parameters() == (
            1,
            TypedNull(RawType.INTEGER),
            "EU",
            TypedNull(RawType.DECIMAL),
        )

    def test_keyless_table_allowed(self, synth, audit_log):
        assert synth.insert(audit_log).bind_columns == ("message", "logged_at")


class TestUpdate:
    def test_set_then_where_in_key_order(self, synth, orders):
        entry = {"order_id": "7", "total": "12.50", "region": "EU", "user_id": "3"}
        plan = synth.update(orders, entry)
        assert plan.sql == (
            'UPDATE "ORDERS" SET "total" = ?, "user_id" = ? WHERE "region" = ? AND "order_id" = ?'
        )
        assert plan.bind_columns == ("total", "user_id", "region", "order_id")

        statement = bind_plan(plan, orders, entry)
        assert statement.parameters() == (Decimal("12.50"), 3, "EU", 7)

    def test_explicit_null_is_set(self, synth, orders):
        plan = synth.update(orders, {"region": "EU", "order_id": "7", "user_id": None})
        assert plan.bind_columns == ("user_id", "region", "order_id")
        params = bind_plan(plan, orders, {"region": "EU", "order_id": "7", "user_id": None}).parameters()
        assert params[0] == TypedNull(RawType.INTEGER)

    def test_keyless_table(self, synth, audit_log):
        with pytest.raises(MissingKeyError):
            synth.update(audit_log, {"message": "x"})

    def test_missing_key_value(self, synth, orders):
        with pytest.raises(MissingKeyError) as exc_info:
            synth.update(orders, {"order_id": "7", "total": "1"})
        assert exc_info.value.context.column == "region"

    def test_null_key_value(self, synth, orders):
        with pytest.raises(MissingKeyError):
            synth.update(orders, {"order_id": "7", "region": None, "total": "1"})

    def test_unknown_property(self, synth, orders):
        with pytest.raises(UnknownPropertyError) as exc_info:
            synth.update(orders, {"order_id": "7", "region": "EU", "colour": "red"})
        assert exc_info.value.context.column == "colour"

    def test_keys_only(self, synth, orders):
        with pytest.raises(StatementError, match="Nothing to update"):
            synth.update(orders, {"order_id": "7", "region": "EU"})


class TestDelete:
    def test_where_all_keys(self, synth, orders):
        plan = synth.delete(orders)
        assert plan.sql == 'DELETE FROM "ORDERS" WHERE "region" = ? AND "order_id" = ?'
        assert plan.bind_columns == ("region", "order_id")

    def test_keyless_table(self, synth, audit_log):
        with pytest.raises(MissingKeyError):
            synth.delete(audit_log)


class TestDialects:
    def test_postgresql(self, orders):
        plan = SQLSynthesizer(PostgreSQLDialect()).delete(orders)
        assert plan.sql == 'DELETE FROM "ORDERS" WHERE "region" = %s AND "order_id" = %s'

    def test_mysql(self, orders):
        plan = SQLSynthesizer(MySQLDialect()).select_all(orders)
        assert plan.sql == "SELECT `order_id`, `user_id`, `region`, `total` FROM `ORDERS`"

    def test_quote_escaping(self):
        odd = _schema('we"ird', [('co"l', RawType.VARCHAR)])
        assert SQLSynthesizer(SQLiteDialect()).select_all(odd).sql == (
            'SELECT "co""l" FROM "we""ird"'
        )


class TestBinding:
    def test_position_out_of_range(self):
        statement = BoundStatement("?", 1)
        with pytest.raises(BindError):
            statement.bind(2, "x")
        with pytest.raises(BindError):
            statement.bind(0, "x")

    def test_unbound_slot(self):
        statement = BoundStatement("? ?", 2)
        statement.bind(1, "x")
        with pytest.raises(BindError) as exc_info:
            statement.parameters()
        assert exc_info.value.context.position == 2

    def test_bind_error_names_column(self, synth, orders):
        with pytest.raises(BindError) as exc_info:
            bind_plan(synth.delete(orders), orders, {"region": "EU", "order_id": "seven"})
        context = exc_info.value.context
        assert (context.table, context.column, context.position) == ("ORDERS", "order_id", 2)

    def test_plan_new_statement(self):
        plan = StatementPlan("SELECT ?", ("a",))
        assert plan.new_statement().slot_count == 1
