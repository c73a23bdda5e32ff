"""Dataclasses describing a workbook request and its per-cell decisions."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Literal, TypeAlias


class ColumnType(str, Enum):
    """How to coerce and display the values of one column.

    Values that cannot be coerced are written as text instead.
    """

    STRING = "String"
    DATE = "Date"
    """Displayed as mm/dd/yyyy."""
    PERCENTAGE = "Percentage"
    """Input on a 0-100 scale, displayed as 0.00%."""
    INTEGER = "Integer"
    """Displayed as #,##0."""
    MONEY = "Money"
    """Displayed as € #,##0.00."""
    DECIMAL = "Decimal"
    """Displayed as #,##0.00."""
    BOOLEAN = "Boolean"

    @classmethod
    def lookup(cls, name: str) -> ColumnType | None:
        """Find a member by value, ignoring case and surrounding whitespace."""
        wanted = name.strip().lower()
        for member in cls:
            if member.value.lower() == wanted:
                return member
        return None

    @classmethod
    def _missing_(cls, value: object) -> ColumnType | None:
        if isinstance(value, str):
            return cls.lookup(value)
        return None


class RawKind(str, Enum):
    """Kind of value that arrived for one grid position."""

    NULL = "null"
    ABSENT = "absent"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"


@dataclass(frozen=True)
class RawCell:
    """A single input value exactly as it arrived in the payload.

    Numbers are held as Decimal built from their shortest text form so that
    JSON floats such as 0.1 keep the digits the client sent.
    """

    kind: RawKind
    value: bool | Decimal | str | None = None

    @classmethod
    def null(cls) -> RawCell:
        return cls(RawKind.NULL)

    @classmethod
    def absent(cls) -> RawCell:
        return cls(RawKind.ABSENT)

    @classmethod
    def from_json(cls, value: Any) -> RawCell:
        """Build a RawCell from a decoded JSON scalar.

        Raises:
            TypeError: If the value is not null, boolean, number or string.
        """
        if value is None:
            return cls.null()
        # bool is a subclass of int and must be checked first
        if isinstance(value, bool):
            return cls(RawKind.BOOLEAN, value)
        if isinstance(value, int):
            return cls(RawKind.NUMBER, Decimal(value))
        if isinstance(value, float):
            return cls(RawKind.NUMBER, Decimal(repr(value)))
        if isinstance(value, Decimal):
            return cls(RawKind.NUMBER, value)
        if isinstance(value, str):
            return cls(RawKind.STRING, value)
        raise TypeError(f"Unsupported cell value type: {type(value).__name__}")

    @property
    def is_missing(self) -> bool:
        """True for null values and for positions past the end of a row."""
        return self.kind in (RawKind.NULL, RawKind.ABSENT)

    @property
    def number(self) -> Decimal | None:
        """The numeric value of a NUMBER cell, None for every other kind."""
        if self.kind is RawKind.NUMBER and isinstance(self.value, Decimal):
            return self.value
        return None


@dataclass(frozen=True)
class ColumnSpec:
    """Declared behaviour of one output column."""

    header: str
    column_type: ColumnType
    formula_template: str | None = None
    """Formula with optional leading '=' and {row} placeholders."""

    @property
    def has_formula(self) -> bool:
        return bool(self.formula_template and self.formula_template.strip())


class _NotConfigured(Enum):
    NOT_CONFIGURED = "not_configured"

    def __repr__(self) -> str:
        return "NOT_CONFIGURED"


NOT_CONFIGURED = _NotConfigured.NOT_CONFIGURED
"""Resolution result for a column index with no ColumnSpec."""

ResolvedColumn: TypeAlias = ColumnSpec | Literal[_NotConfigured.NOT_CONFIGURED]


@dataclass(frozen=True)
class SheetConfiguration:
    """Everything about the worksheet except the data itself."""

    sheet_name: str = "Sheet1"
    columns: tuple[ColumnSpec, ...] = ()
    freeze_column_count: int | None = None


DataGrid: TypeAlias = Sequence[Sequence[RawCell]]


class ContentKind(str, Enum):
    """Kind of content written into an output cell."""

    STRING = "string"
    INTEGER = "integer"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    FORMULA = "formula"


@dataclass(frozen=True)
class MaterializedCell:
    """Decision for one output cell: what to write and how to display it."""

    kind: ContentKind
    value: str | int | Decimal | bool | datetime
    number_format: str | None = None
    has_conflict_warning: bool = False
    discarded_value: str | None = None
    """Text of the raw value a formula took precedence over."""
    is_fallback: bool = False
    """True when a typed column received a value it could not coerce."""

    @property
    def is_formula(self) -> bool:
        return self.kind is ContentKind.FORMULA
