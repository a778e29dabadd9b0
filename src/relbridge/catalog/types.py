"""Raw column categories, canonical value types and the mapping between them.

Every column the catalog discovers is tagged with a ``RawType`` (the
vendor-neutral category of its declared SQL type) and exactly one
``CanonicalType`` (the shape of its canonical text). ``classify`` is a pure
lookup with a String fallback, so it is total over ``RawType``.

Architecture::

    declared type text ──normalize──▶ RawType ──classify──▶ CanonicalType
    "character varying(40)"           VARCHAR                STRING
    "int8"                            BIGINT                 INT64
    "geometry"                        OTHER                  STRING

Tags:
    types, classification, catalog, relbridge

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import re
from enum import Enum


class RawType(str, Enum):
    """Vendor-neutral category of a column's declared SQL type."""

    INTEGER = "INTEGER"
    TINYINT = "TINYINT"
    SMALLINT = "SMALLINT"
    BIGINT = "BIGINT"
    DOUBLE = "DOUBLE"
    FLOAT = "FLOAT"
    REAL = "REAL"
    DECIMAL = "DECIMAL"
    NUMERIC = "NUMERIC"
    VARCHAR = "VARCHAR"
    CHAR = "CHAR"
    LONGVARCHAR = "LONGVARCHAR"
    NVARCHAR = "NVARCHAR"
    NCHAR = "NCHAR"
    LONGNVARCHAR = "LONGNVARCHAR"
    CLOB = "CLOB"
    NCLOB = "NCLOB"
    SQLXML = "SQLXML"
    BOOLEAN = "BOOLEAN"
    BIT = "BIT"
    BLOB = "BLOB"
    BINARY = "BINARY"
    VARBINARY = "VARBINARY"
    LONGVARBINARY = "LONGVARBINARY"
    DATE = "DATE"
    TIME = "TIME"
    TIMESTAMP = "TIMESTAMP"
    OTHER = "OTHER"


class CanonicalType(str, Enum):
    """Canonical value types exposed to the protocol layer."""

    INT16 = "Int16"
    INT32 = "Int32"
    INT64 = "Int64"
    DOUBLE = "Double"
    SINGLE = "Single"
    DECIMAL = "Decimal"
    BOOLEAN = "Boolean"
    STRING = "String"
    BINARY = "Binary"
    DATE = "Date"
    TIME_OF_DAY = "TimeOfDay"
    DATE_TIME_OFFSET = "DateTimeOffset"


_CANONICAL: dict[RawType, CanonicalType] = {
    RawType.INTEGER: CanonicalType.INT32,
    RawType.TINYINT: CanonicalType.INT16,
    RawType.SMALLINT: CanonicalType.INT16,
    RawType.BIGINT: CanonicalType.INT64,
    RawType.DOUBLE: CanonicalType.DOUBLE,
    RawType.FLOAT: CanonicalType.SINGLE,
    RawType.REAL: CanonicalType.SINGLE,
    RawType.DECIMAL: CanonicalType.DECIMAL,
    RawType.NUMERIC: CanonicalType.DECIMAL,
    RawType.VARCHAR: CanonicalType.STRING,
    RawType.CHAR: CanonicalType.STRING,
    RawType.LONGVARCHAR: CanonicalType.STRING,
    RawType.NVARCHAR: CanonicalType.STRING,
    RawType.NCHAR: CanonicalType.STRING,
    RawType.LONGNVARCHAR: CanonicalType.STRING,
    RawType.CLOB: CanonicalType.STRING,
    RawType.NCLOB: CanonicalType.STRING,
    RawType.SQLXML: CanonicalType.STRING,
    RawType.BOOLEAN: CanonicalType.BOOLEAN,
    RawType.BIT: CanonicalType.BOOLEAN,
    RawType.BLOB: CanonicalType.BINARY,
    RawType.BINARY: CanonicalType.BINARY,
    RawType.VARBINARY: CanonicalType.BINARY,
    RawType.LONGVARBINARY: CanonicalType.BINARY,
    RawType.DATE: CanonicalType.DATE,
    RawType.TIME: CanonicalType.TIME_OF_DAY,
    RawType.TIMESTAMP: CanonicalType.DATE_TIME_OFFSET,
}


def classify(raw_type: RawType) -> CanonicalType:
    """Canonical type for a raw category; unmapped categories are String."""
    return _CANONICAL.get(raw_type, CanonicalType.STRING)


# Declared type names as SQLite, PostgreSQL (information_schema.data_type)
# and MySQL report them, lower-cased with size/precision stripped.
_DECLARED: dict[str, RawType] = {
    "int": RawType.INTEGER,
    "integer": RawType.INTEGER,
    "int4": RawType.INTEGER,
    "mediumint": RawType.INTEGER,
    "serial": RawType.INTEGER,
    "tinyint": RawType.TINYINT,
    "smallint": RawType.SMALLINT,
    "int2": RawType.SMALLINT,
    "smallserial": RawType.SMALLINT,
    "bigint": RawType.BIGINT,
    "int8": RawType.BIGINT,
    "bigserial": RawType.BIGINT,
    "double": RawType.DOUBLE,
    "double precision": RawType.DOUBLE,
    "float8": RawType.DOUBLE,
    "float": RawType.FLOAT,
    "float4": RawType.FLOAT,
    "real": RawType.REAL,
    "decimal": RawType.DECIMAL,
    "dec": RawType.DECIMAL,
    "numeric": RawType.NUMERIC,
    "number": RawType.NUMERIC,
    "varchar": RawType.VARCHAR,
    "character varying": RawType.VARCHAR,
    "varchar2": RawType.VARCHAR,
    "char": RawType.CHAR,
    "character": RawType.CHAR,
    "bpchar": RawType.CHAR,
    "text": RawType.LONGVARCHAR,
    "tinytext": RawType.LONGVARCHAR,
    "mediumtext": RawType.LONGVARCHAR,
    "longtext": RawType.LONGVARCHAR,
    "longvarchar": RawType.LONGVARCHAR,
    "nvarchar": RawType.NVARCHAR,
    "national character varying": RawType.NVARCHAR,
    "national varchar": RawType.NVARCHAR,
    "nchar": RawType.NCHAR,
    "national character": RawType.NCHAR,
    "national char": RawType.NCHAR,
    "ntext": RawType.LONGNVARCHAR,
    "longnvarchar": RawType.LONGNVARCHAR,
    "clob": RawType.CLOB,
    "nclob": RawType.NCLOB,
    "xml": RawType.SQLXML,
    "boolean": RawType.BOOLEAN,
    "bool": RawType.BOOLEAN,
    "bit": RawType.BIT,
    "blob": RawType.BLOB,
    "tinyblob": RawType.BLOB,
    "mediumblob": RawType.BLOB,
    "longblob": RawType.BLOB,
    "binary": RawType.BINARY,
    "varbinary": RawType.VARBINARY,
    "binary varying": RawType.VARBINARY,
    "bytea": RawType.LONGVARBINARY,
    "longvarbinary": RawType.LONGVARBINARY,
    "date": RawType.DATE,
    "time": RawType.TIME,
    "time without time zone": RawType.TIME,
    "time with time zone": RawType.TIME,
    "timetz": RawType.TIME,
    "timestamp": RawType.TIMESTAMP,
    "timestamp without time zone": RawType.TIMESTAMP,
    "timestamp with time zone": RawType.TIMESTAMP,
    "timestamptz": RawType.TIMESTAMP,
    "datetime": RawType.TIMESTAMP,
}

_SIZE = re.compile(r"\(\s*(\d+)\s*(?:,\s*(-?\d+)\s*)?\)")
_MODIFIERS = {"unsigned", "signed", "zerofill"}


def normalize_declared_type(declared: str | None) -> RawType:
    """Map a declared SQL type name to its raw category.

    Sizes, precision and trailing modifiers are ignored:
    ``VARCHAR(40)``, ``int unsigned`` and ``timestamp(3) with time zone``
    all resolve. Unknown or empty names are ``RawType.OTHER``.
    """
    if not declared:
        return RawType.OTHER
    name = _SIZE.sub(" ", declared.lower())
    words = [w for w in name.split() if w not in _MODIFIERS]
    name = " ".join(words)
    if name in _DECLARED:
        return _DECLARED[name]
    # "varchar2 byte", "double precision unsigned", ...
    if words and words[0] in _DECLARED:
        return _DECLARED[words[0]]
    return RawType.OTHER


def parse_declared_size(declared: str | None) -> tuple[int | None, int | None]:
    """Extract ``(size, scale)`` from ``NAME(size[, scale])``."""
    if not declared:
        return None, None
    match = _SIZE.search(declared)
    if match is None:
        return None, None
    size = int(match.group(1))
    scale = int(match.group(2)) if match.group(2) is not None else None
    return size, scale


__all__ = [
    "RawType",
    "CanonicalType",
    "classify",
    "normalize_declared_type",
    "parse_declared_size",
]
