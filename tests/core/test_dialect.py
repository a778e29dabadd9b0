"""Tests for ``relbridge.core.dialect`` — SQL dialect abstraction."""

import pytest

from relbridge.core.dialect import (
    Dialect,
    MySQLDialect,
    PostgreSQLDialect,
    SQLiteDialect,
    get_dialect,
    register_dialect,
)


class TestGetDialect:
    def test_known_names(self):
        assert isinstance(get_dialect("sqlite"), SQLiteDialect)
        assert isinstance(get_dialect("postgresql"), PostgreSQLDialect)
        assert isinstance(get_dialect("postgres"), PostgreSQLDialect)
        assert isinstance(get_dialect("MySQL"), MySQLDialect)

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Unknown dialect"):
            get_dialect("oracle")

    def test_register_custom(self):
        class DuckDialect(SQLiteDialect):
            @property
            def name(self) -> str:
                return "duck"

        register_dialect("Duck", DuckDialect())
        assert get_dialect("duck").name == "duck"

    @pytest.mark.parametrize("name", ["sqlite", "postgresql", "mysql"])
    def test_satisfies_protocol(self, name):
        assert isinstance(get_dialect(name), Dialect)


class TestPlaceholders:
    def test_sqlite(self):
        d = SQLiteDialect()
        assert d.placeholder(0) == "?"
        assert d.placeholders(3) == "?, ?, ?"

    def test_postgresql(self):
        d = PostgreSQLDialect()
        assert d.placeholder(5) == "%s"
        assert d.placeholders(2) == "%s, %s"

    def test_mysql(self):
        assert MySQLDialect().placeholders(1) == "%s"

    def test_zero_count(self):
        assert SQLiteDialect().placeholders(0) == ""


class TestQuoting:
    def test_double_quotes(self):
        assert SQLiteDialect().quote_identifier("USERS") == '"USERS"'
        assert PostgreSQLDialect().quote_identifier('a"b') == '"a""b"'

    def test_trailing_quote_escaped(self):
        assert SQLiteDialect().quote_identifier('order "lines"') == '"order ""lines"""'

    def test_module_examples(self):
        import doctest

        import relbridge.core.dialect as dialect_module

        result = doctest.testmod(dialect_module)
        assert result.failed == 0
        assert result.attempted >= 3

    def test_backticks(self):
        assert MySQLDialect().quote_identifier("order`s") == "`order``s`"


class TestCurrentSchema:
    def test_expressions(self):
        assert SQLiteDialect().current_schema() == "'main'"
        assert PostgreSQLDialect().current_schema() == "current_schema()"
        assert MySQLDialect().current_schema() == "DATABASE()"
