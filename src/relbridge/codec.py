"""TypeBridge: canonical text <-> driver values, one codec per canonical type.

Every value crossing the handler boundary is canonical text or ``None``.
``decode`` turns a cell fetched from a cursor into canonical text;
``encode`` parses canonical text and binds it at a 1-based parameter
position of a statement. A ``None`` text binds an explicit typed null
carrying the column's raw type.

Manifesto:
    - **Total:** Every raw type has a codec; unknown types travel as String
    - **Locale-free:** Numbers and temporals use fixed ASCII grammars
    - **Lossless:** Decimal text becomes ``decimal.Decimal``, never float
    - **Stable:** ``decode`` output is always accepted back by ``encode``

Canonical forms::

    Int16/Int32/Int64   -?[0-9]+, range-checked per width
    Double/Single       repr() digits, or INF, -INF, NaN
    Decimal             plain notation, no exponent, no trailing zeros
    Boolean             true | false
    Binary              base64, standard alphabet with padding
    Date                YYYY-MM-DD
    TimeOfDay           HH:MM:SS[.ffffff][±HH:MM]
    DateTimeOffset      YYYY-MM-DDTHH:MM:SS[.ffffff][±HH:MM]

Examples:
    >>> bridge = TypeBridge()
    >>> bridge.decode(RawType.BLOB, b"\\x00\\xff", was_null=False)
    'AP8='
    >>> bridge.decode(RawType.VARCHAR, None, was_null=True) is None
    True

Guardrails:
    ❌ DON'T: ``float(text)`` for DECIMAL columns
    ✅ DO: ``Decimal(text)`` so no digit is lost
    ❌ DON'T: Infer NULL from a falsy cell value
    ✅ DO: Check ``was_null`` before looking at the cell

Tags:
    codec, types, canonical-text, base64, iso-8601, relbridge

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import base64
import binascii
import math
import re
from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Protocol

from relbridge.catalog.types import CanonicalType, RawType, classify
from relbridge.core.errors import BindError, DecodeError


class ParameterSink(Protocol):
    """Anything ``TypeBridge.encode`` can bind into (see ``BoundStatement``)."""

    def bind(self, position: int, value: Any) -> None: ...

    def bind_null(self, position: int, raw_type: RawType) -> None: ...


_INTEGER = re.compile(r"[+-]?[0-9]+")
_FLOAT = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_DATE = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})")
_TIME = r"([0-9]{2}):([0-9]{2})(?::([0-9]{2})(?:\.([0-9]{1,6}))?)?\s*(Z|[+-][0-9]{2}(?::?[0-9]{2})?)?"
_TIME_OF_DAY = re.compile(_TIME)
_TIMESTAMP = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})[T ]" + _TIME)

_NON_FINITE = {
    "inf": math.inf,
    "+inf": math.inf,
    "infinity": math.inf,
    "+infinity": math.inf,
    "-inf": -math.inf,
    "-infinity": -math.inf,
    "nan": math.nan,
}
_SINGLE_MAX = 3.4028234663852886e38


def _tz(text: str | None) -> timezone | None:
    if text is None:
        return None
    if text == "Z":
        return timezone.utc
    sign = -1 if text[0] == "-" else 1
    digits = text[1:].replace(":", "")
    hours, minutes = int(digits[:2]), int(digits[2:4] or 0)
    if hours > 23 or minutes > 59:
        raise ValueError(f"offset out of range: {text}")
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def _time_parts(groups: tuple[str | None, ...]) -> dict[str, Any]:
    hour, minute, second, fraction, offset = groups
    return {
        "hour": int(hour),
        "minute": int(minute),
        "second": int(second or 0),
        "microsecond": int((fraction or "").ljust(6, "0")),
        "tzinfo": _tz(offset),
    }


def parse_time_of_day(text: str) -> time:
    match = _TIME_OF_DAY.fullmatch(text)
    if match is None:
        raise ValueError(f"not a time of day: {text!r}")
    return time(**_time_parts(match.groups()))


def parse_timestamp(text: str) -> datetime:
    match = _TIMESTAMP.fullmatch(text)
    if match is None:
        raise ValueError(f"not a timestamp: {text!r}")
    year, month, day = (int(g) for g in match.groups()[:3])
    return datetime(year, month, day, **_time_parts(match.groups()[3:]))


def parse_date(text: str) -> date:
    match = _DATE.fullmatch(text)
    if match is None:
        raise ValueError(f"not a date: {text!r}")
    return date(*(int(g) for g in match.groups()))


# =============================================================================
# CODECS
# =============================================================================


class ValueCodec(ABC):
    """Conversion between one canonical type's text and driver values."""

    canonical_type: CanonicalType

    @abstractmethod
    def decode(self, cell: Any) -> str:
        """Canonical text for a non-null cell. Raises ValueError/TypeError."""
        ...

    @abstractmethod
    def encode(self, text: str) -> Any:
        """Driver value for canonical text. Raises ValueError."""
        ...


class IntegerCodec(ValueCodec):
    """Signed integers of a fixed bit width."""

    def __init__(self, canonical_type: CanonicalType, bits: int):
        self.canonical_type = canonical_type
        self.minimum = -(1 << (bits - 1))
        self.maximum = (1 << (bits - 1)) - 1

    def decode(self, cell: Any) -> str:
        if isinstance(cell, (bool, int)):
            value = int(cell)
        elif isinstance(cell, Decimal):
            if cell != cell.to_integral_value():
                raise ValueError(f"non-integral value {cell!r}")
            value = int(cell)
        elif isinstance(cell, float):
            if not cell.is_integer():
                raise ValueError(f"non-integral value {cell!r}")
            value = int(cell)
        elif isinstance(cell, str) and _INTEGER.fullmatch(cell.strip()):
            value = int(cell)
        else:
            raise TypeError(f"cannot read {type(cell).__name__} as {self.canonical_type.value}")
        return str(self._checked(value))

    def encode(self, text: str) -> int:
        if not _INTEGER.fullmatch(text):
            raise ValueError(f"not an integer: {text!r}")
        return self._checked(int(text))

    def _checked(self, value: int) -> int:
        if not self.minimum <= value <= self.maximum:
            raise ValueError(
                f"{value} out of range for {self.canonical_type.value} "
                f"[{self.minimum}, {self.maximum}]"
            )
        return value


class FloatCodec(ValueCodec):
    """Binary floating point; ``Single`` values are range-checked both ways."""

    def __init__(self, canonical_type: CanonicalType, maximum: float | None = None):
        self.canonical_type = canonical_type
        self.maximum = maximum

    def decode(self, cell: Any) -> str:
        if isinstance(cell, str):
            cell = self.encode(cell.strip())
        value = float(cell)
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "INF" if value > 0 else "-INF"
        if self.maximum is not None and abs(value) > self.maximum:
            raise ValueError(f"{value!r} out of range for {self.canonical_type.value}")
        return repr(value)

    def encode(self, text: str) -> float:
        lowered = text.lower()
        if lowered in _NON_FINITE:
            return _NON_FINITE[lowered]
        if not _FLOAT.fullmatch(text):
            raise ValueError(f"not a number: {text!r}")
        value = float(text)
        if math.isinf(value) or (self.maximum is not None and abs(value) > self.maximum):
            raise ValueError(f"{text} out of range for {self.canonical_type.value}")
        return value


class DecimalCodec(ValueCodec):
    canonical_type = CanonicalType.DECIMAL

    def decode(self, cell: Any) -> str:
        if isinstance(cell, bool):
            raise TypeError("boolean is not a decimal")
        if isinstance(cell, float):
            # repr gives the shortest text that round-trips the stored float
            cell = repr(cell)
        value = Decimal(cell.strip() if isinstance(cell, str) else cell)
        if not value.is_finite():
            raise ValueError(f"non-finite decimal {cell!r}")
        # scale is not preserved by every backend, so trailing zeros are dropped
        value = value.normalize() if value else Decimal(0)
        return format(value, "f")

    def encode(self, text: str) -> Decimal:
        if not _FLOAT.fullmatch(text):
            raise ValueError(f"not a decimal: {text!r}")
        try:
            return Decimal(text)
        except InvalidOperation as e:
            raise ValueError(f"not a decimal: {text!r}") from e


class BooleanCodec(ValueCodec):
    canonical_type = CanonicalType.BOOLEAN

    _TRUE = {"true", "t", "1", "y", "yes"}
    _FALSE = {"false", "f", "0", "n", "no"}

    def decode(self, cell: Any) -> str:
        if isinstance(cell, (bytes, bytearray)):
            # MySQL BIT(1) comes back as raw bytes
            cell = int.from_bytes(cell, "big")
        if isinstance(cell, (bool, int)):
            return "true" if cell else "false"
        if isinstance(cell, str):
            lowered = cell.strip().lower()
            if lowered in self._TRUE:
                return "true"
            if lowered in self._FALSE:
                return "false"
        raise ValueError(f"cannot read {cell!r} as Boolean")

    def encode(self, text: str) -> bool:
        lowered = text.lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        raise ValueError(f"not a boolean: {text!r}")


class StringCodec(ValueCodec):
    canonical_type = CanonicalType.STRING

    def decode(self, cell: Any) -> str:
        if isinstance(cell, str):
            return cell
        if isinstance(cell, (bytes, bytearray, memoryview)):
            return bytes(cell).decode("utf-8")
        return str(cell)

    def encode(self, text: str) -> str:
        return text


class BinaryCodec(ValueCodec):
    canonical_type = CanonicalType.BINARY

    def decode(self, cell: Any) -> str:
        if isinstance(cell, str):
            cell = cell.encode("utf-8")
        if not isinstance(cell, (bytes, bytearray, memoryview)):
            raise TypeError(f"cannot read {type(cell).__name__} as Binary")
        return base64.b64encode(bytes(cell)).decode("ascii")

    def encode(self, text: str) -> bytes:
        try:
            return base64.b64decode(text.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as e:
            raise ValueError(f"not base64: {e}") from e


class DateCodec(ValueCodec):
    canonical_type = CanonicalType.DATE

    def decode(self, cell: Any) -> str:
        if isinstance(cell, datetime):
            return cell.date().isoformat()
        if isinstance(cell, date):
            return cell.isoformat()
        if isinstance(cell, str):
            text = cell.strip()
            if _DATE.fullmatch(text):
                return parse_date(text).isoformat()
            return parse_timestamp(text).date().isoformat()
        raise TypeError(f"cannot read {type(cell).__name__} as Date")

    def encode(self, text: str) -> date:
        return parse_date(text)


class TimeOfDayCodec(ValueCodec):
    canonical_type = CanonicalType.TIME_OF_DAY

    def decode(self, cell: Any) -> str:
        if isinstance(cell, timedelta):
            # MySQL TIME columns come back as durations
            if cell < timedelta(0) or cell >= timedelta(days=1):
                raise ValueError(f"{cell} is not a time of day")
            cell = (datetime.min + cell).time()
        elif isinstance(cell, datetime):
            cell = cell.timetz()
        elif isinstance(cell, str):
            cell = parse_time_of_day(cell.strip())
        if not isinstance(cell, time):
            raise TypeError(f"cannot read {type(cell).__name__} as TimeOfDay")
        return cell.isoformat()

    def encode(self, text: str) -> time:
        return parse_time_of_day(text)


class DateTimeOffsetCodec(ValueCodec):
    canonical_type = CanonicalType.DATE_TIME_OFFSET

    def decode(self, cell: Any) -> str:
        if isinstance(cell, str):
            cell = parse_timestamp(cell.strip())
        elif isinstance(cell, date) and not isinstance(cell, datetime):
            cell = datetime(cell.year, cell.month, cell.day)
        if not isinstance(cell, datetime):
            raise TypeError(f"cannot read {type(cell).__name__} as DateTimeOffset")
        return cell.isoformat()

    def encode(self, text: str) -> datetime:
        return parse_timestamp(text)


_CODECS: dict[CanonicalType, ValueCodec] = {
    CanonicalType.INT16: IntegerCodec(CanonicalType.INT16, 16),
    CanonicalType.INT32: IntegerCodec(CanonicalType.INT32, 32),
    CanonicalType.INT64: IntegerCodec(CanonicalType.INT64, 64),
    CanonicalType.DOUBLE: FloatCodec(CanonicalType.DOUBLE),
    CanonicalType.SINGLE: FloatCodec(CanonicalType.SINGLE, maximum=_SINGLE_MAX),
    CanonicalType.DECIMAL: DecimalCodec(),
    CanonicalType.BOOLEAN: BooleanCodec(),
    CanonicalType.STRING: StringCodec(),
    CanonicalType.BINARY: BinaryCodec(),
    CanonicalType.DATE: DateCodec(),
    CanonicalType.TIME_OF_DAY: TimeOfDayCodec(),
    CanonicalType.DATE_TIME_OFFSET: DateTimeOffsetCodec(),
}


# =============================================================================
# BRIDGE
# =============================================================================


class TypeBridge:
    """
    Entry point for classification, decoding and binding.

    Stateless; one shared instance (``type_bridge``) serves every handler.
    """

    def classify(self, raw_type: RawType) -> CanonicalType:
        return classify(raw_type)

    def codec(self, raw_type: RawType) -> ValueCodec:
        return _CODECS[classify(raw_type)]

    def decode(self, raw_type: RawType, cell: Any, was_null: bool) -> str | None:
        """Canonical text for a fetched cell, or ``None`` when ``was_null``.

        Raises:
            DecodeError: If the stored value has no canonical form.
        """
        if was_null:
            return None
        codec = self.codec(raw_type)
        try:
            return codec.decode(cell)
        except (ValueError, TypeError, ArithmeticError, UnicodeDecodeError) as e:
            raise DecodeError(
                f"Cannot read {type(cell).__name__} value as {codec.canonical_type.value}: {e}",
                cause=e,
            ).with_context(raw_type=raw_type.value) from e

    def encode(
        self,
        raw_type: RawType,
        text: str | None,
        position: int,
        statement: ParameterSink,
    ) -> None:
        """Parse ``text`` and bind it at 1-based ``position`` of ``statement``.

        Raises:
            BindError: If ``text`` is not valid canonical text for the column.
        """
        if text is None:
            statement.bind_null(position, raw_type)
            return
        statement.bind(position, self._parse(raw_type, text, position))

    def canonicalize(self, raw_type: RawType, text: str | None) -> str | None:
        """The text a read-back of ``text`` would produce (``"+1"`` -> ``"1"``).

        Raises:
            BindError: If ``text`` is not valid canonical text for the column.
        """
        if text is None:
            return None
        value = self._parse(raw_type, text)
        codec = self.codec(raw_type)
        try:
            return codec.decode(value)
        except (ValueError, TypeError, ArithmeticError) as e:
            raise BindError(
                f"Cannot bind {text!r} as {codec.canonical_type.value}: {e}", cause=e
            ).with_context(raw_type=raw_type.value) from e

    def _parse(self, raw_type: RawType, text: Any, position: int | None = None) -> Any:
        codec = self.codec(raw_type)
        context: dict[str, Any] = {"raw_type": raw_type.value}
        if position is not None:
            context["position"] = position
        if not isinstance(text, str):
            raise BindError(
                f"Expected canonical text for {codec.canonical_type.value}, "
                f"got {type(text).__name__}"
            ).with_context(**context)
        try:
            return codec.encode(text)
        except (ValueError, ArithmeticError) as e:
            raise BindError(
                f"Cannot bind {text!r} as {codec.canonical_type.value}: {e}",
                cause=e,
            ).with_context(**context) from e


type_bridge = TypeBridge()


__all__ = [
    "ParameterSink",
    "ValueCodec",
    "IntegerCodec",
    "FloatCodec",
    "DecimalCodec",
    "BooleanCodec",
    "StringCodec",
    "BinaryCodec",
    "DateCodec",
    "TimeOfDayCodec",
    "DateTimeOffsetCodec",
    "TypeBridge",
    "type_bridge",
    "parse_date",
    "parse_time_of_day",
    "parse_timestamp",
]
