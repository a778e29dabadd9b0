"""Immutable catalog records: columns, tables, navigation links, entities.

Manifesto:
    The catalog is built once and shared by every request the handler
    serves, so its records are frozen. Column order, key order and link
    discovery order are all meaningful and preserved.

Architecture::

    TableSchema
      ├── columns     name -> ColumnMeta     (catalog order, read-only)
      ├── primary_keys (col, ...)             (key-sequence order)
      └── navigation  child -> NavigationLink (discovery order, read-only)

    Entity
      ├── values      name -> canonical text | None
      └── version     opaque tag | None

Tags:
    catalog, models, dataclass, immutable, relbridge

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from relbridge.catalog.types import CanonicalType, RawType


@dataclass(frozen=True)
class ColumnMeta:
    """
    One column of a table.

    Attributes:
        name: Column name as the catalog reports it
        canonical_type: Shape of the column's canonical text
        raw_type: Vendor-neutral category of the declared type
        position: 1-based ordinal position in the table
        nullable: Whether the column accepts NULL
        size: Declared length or precision, when known
        default: Default value expression text, when declared
        precision: Numeric precision for floating/decimal columns
        scale: Numeric scale for decimal columns
        declared_type: Type text as declared in the datasource
    """

    name: str
    canonical_type: CanonicalType
    raw_type: RawType
    position: int
    nullable: bool = True
    size: int | None = None
    default: str | None = None
    precision: int | None = None
    scale: int | None = None
    declared_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.canonical_type.value,
            "raw_type": self.raw_type.value,
            "declared_type": self.declared_type,
            "position": self.position,
            "nullable": self.nullable,
            "size": self.size,
            "default": self.default,
            "precision": self.precision,
            "scale": self.scale,
        }


@dataclass(frozen=True)
class NavigationLink:
    """A referencing (child) table and the column pairs tying it to its parent.

    ``pairs`` holds ``(parent_column, child_column)`` tuples in key-sequence
    order.
    """

    parent: str
    child: str
    pairs: tuple[tuple[str, str], ...]

    @property
    def parent_columns(self) -> tuple[str, ...]:
        return tuple(p for p, _ in self.pairs)

    @property
    def child_columns(self) -> tuple[str, ...]:
        return tuple(c for _, c in self.pairs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "parent": self.parent,
            "child": self.child,
            "pairs": [list(pair) for pair in self.pairs],
        }


@dataclass(frozen=True)
class TableSchema:
    """Columns, primary key and exported foreign keys of one table."""

    name: str
    columns: Mapping[str, ColumnMeta]
    primary_keys: tuple[str, ...] = ()
    navigation: Mapping[str, NavigationLink] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Freeze caller-supplied dicts; frozen dataclasses need object.__setattr__
        object.__setattr__(self, "columns", MappingProxyType(dict(self.columns)))
        object.__setattr__(self, "primary_keys", tuple(self.primary_keys))
        object.__setattr__(self, "navigation", MappingProxyType(dict(self.navigation)))

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(self.columns)

    @property
    def has_primary_key(self) -> bool:
        return bool(self.primary_keys)

    def column(self, name: str) -> ColumnMeta | None:
        return self.columns.get(name)

    def is_key(self, name: str) -> bool:
        return name in self.primary_keys

    def raw_types(self) -> dict[str, RawType]:
        """Column name to raw type, in catalog order."""
        return {name: col.raw_type for name, col in self.columns.items()}

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "columns": [col.to_dict() for col in self.columns.values()],
            "primary_keys": list(self.primary_keys),
            "navigation": [link.to_dict() for link in self.navigation.values()],
        }


class Entity(Mapping[str, "str | None"]):
    """
    An ordered row: column name to canonical text, or ``None`` for SQL NULL.

    Behaves as a read-only mapping; ``version`` holds the optimistic
    concurrency tag when one has been computed.

    Examples:
        >>> e = Entity({"id": "1", "name": None}, version="ab12")
        >>> list(e)
        ['id', 'name']
        >>> e["name"] is None
        True
    """

    __slots__ = ("_values", "version")

    def __init__(self, values: Mapping[str, str | None] | None = None, version: str | None = None):
        self._values: dict[str, str | None] = dict(values or {})
        self.version = version

    def __getitem__(self, key: str) -> str | None:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Entity):
            return self._values == other._values and self.version == other.version
        if isinstance(other, Mapping):
            return self._values == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def items_in_order(self) -> list[tuple[str, str | None]]:
        return list(self._values.items())

    def to_dict(self) -> dict[str, str | None]:
        return dict(self._values)

    def __repr__(self) -> str:
        return f"Entity({self._values!r}, version={self.version!r})"


__all__ = [
    "ColumnMeta",
    "NavigationLink",
    "TableSchema",
    "Entity",
]
