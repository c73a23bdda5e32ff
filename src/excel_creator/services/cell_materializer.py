"""Coercion and formatting of a single grid position.

Given the resolved column and the raw value at one position, decide what is
written into the cell and which number format it gets. Bad data never raises:
a value that cannot be coerced to the column type is written as text, using
the same string projection everywhere.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from decimal import ROUND_HALF_EVEN, Context, Decimal

from dateutil import parser as date_parser

from excel_creator.excel_document import (
    NOT_CONFIGURED,
    ColumnSpec,
    ColumnType,
    ContentKind,
    MaterializedCell,
    RawCell,
    RawKind,
    ResolvedColumn,
)
from excel_creator.services.schema_resolver import (
    ROW_PLACEHOLDER,
    strip_formula_sign,
)
from excel_creator.utils.exceptions import UnsupportedColumnTypeError
from excel_creator.utils.logging import get_logger

logger = get_logger(__name__)

DATE_FORMAT = "mm/dd/yyyy"
PERCENTAGE_FORMAT = "0.00%"
INTEGER_FORMAT = "#,##0"
MONEY_FORMAT = "€ #,##0.00"
DECIMAL_FORMAT = "#,##0.00"

# Worksheet numbers keep 15 significant digits.
MAX_SIGNIFICANT_DIGITS = 15
_STORAGE_CONTEXT = Context(prec=MAX_SIGNIFICANT_DIGITS, rounding=ROUND_HALF_EVEN)
_HUNDRED = Decimal(100)

# Invariant culture: optional sign, digits with ',' group separators, '.' point.
_NUMBER_TEXT_RE = re.compile(r"^[+-]?(?:\d[\d,]*(?:\.\d*)?|\.\d+)$")

# Largest magnitude a worksheet cell can hold.
EXCEL_MAX_NUMBER = Decimal("9.99999999999999E+307")

# Year, month and day all differ, so a field missing from the text shows up.
_DATE_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def number_format_for(column_type: ColumnType) -> str:
    """Return the display format for a column type ('' means none).

    Raises:
        UnsupportedColumnTypeError: For anything that is not a ColumnType.
    """
    match column_type:
        case ColumnType.STRING | ColumnType.BOOLEAN:
            return ""
        case ColumnType.DATE:
            return DATE_FORMAT
        case ColumnType.PERCENTAGE:
            return PERCENTAGE_FORMAT
        case ColumnType.INTEGER:
            return INTEGER_FORMAT
        case ColumnType.MONEY:
            return MONEY_FORMAT
        case ColumnType.DECIMAL:
            return DECIMAL_FORMAT
        case _:
            raise UnsupportedColumnTypeError(column_type)


def string_projection(raw: RawCell) -> str:
    """Text form of any raw value, used as the universal fallback.

    Numbers use '.' as decimal separator and never an exponent; booleans
    become "true"/"false"; null and absent values become "".
    """
    match raw.kind:
        case RawKind.STRING:
            return str(raw.value)
        case RawKind.NUMBER:
            number = raw.number
            if number is None:
                return str(raw.value)
            if not number.is_finite():
                return str(number)
            return format(number, "f")
        case RawKind.BOOLEAN:
            return "true" if raw.value else "false"
        case _:
            return ""


def parse_decimal(raw: RawCell) -> Decimal | None:
    """Read a number a worksheet can store from a NUMBER or numeric STRING.

    Values that are not finite or lie beyond EXCEL_MAX_NUMBER return None.
    """
    if raw.kind is RawKind.NUMBER:
        value = raw.number
    elif raw.kind is RawKind.STRING:
        text = str(raw.value).strip()
        if not _NUMBER_TEXT_RE.match(text):
            return None
        value = Decimal(text.replace(",", ""))
    else:
        return None

    if value is None or not value.is_finite():
        return None
    if abs(value) > EXCEL_MAX_NUMBER:
        return None
    return value


def parse_integer(raw: RawCell) -> int | None:
    """Read a whole number, truncating any fraction toward zero."""
    value = parse_decimal(raw)
    if value is None:
        return None
    return int(value)


def parse_date(raw: RawCell) -> datetime | None:
    """Parse a STRING value as a calendar date or date-time.

    The text must name the year, month and day itself; "2024", "March" or
    "42" are not dates. Offsets are normalized to UTC and dropped, since
    worksheet cells cannot carry a timezone.
    """
    if raw.kind is not RawKind.STRING:
        return None
    text = str(raw.value).strip()
    if not text:
        return None
    try:
        parsed = date_parser.parse(text, default=_DATE_DEFAULTS[0])
        # Any field taken from the default differs between the two parses.
        if parsed != date_parser.parse(text, default=_DATE_DEFAULTS[1]):
            return None
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return parsed


def clip_decimal(value: Decimal) -> Decimal:
    """Round to the number of significant digits a worksheet keeps."""
    return _STORAGE_CONTEXT.plus(value)


def resolve_formula(template: str, output_row: int) -> str:
    """Substitute the 1-based output row and drop the leading '='."""
    return strip_formula_sign(template.replace(ROW_PLACEHOLDER, str(output_row)))


def materialize(
    column: ResolvedColumn,
    raw: RawCell,
    output_row: int,
) -> MaterializedCell:
    """Decide the content and format of one output cell.

    Args:
        column: The ColumnSpec for this position, or NOT_CONFIGURED.
        raw: The input value; RawKind.ABSENT when the row is too short.
        output_row: 1-based worksheet row the cell is written to.

    Returns:
        The cell decision. A configured formula always wins over data; when
        both are present the decision carries a conflict warning.
    """
    if isinstance(column, ColumnSpec) and column.has_formula:
        return _formula_cell(column, raw, output_row)

    if column is NOT_CONFIGURED:
        return MaterializedCell(ContentKind.STRING, string_projection(raw))

    number_format = number_format_for(column.column_type) or None

    if raw.kind is RawKind.ABSENT:
        return MaterializedCell(ContentKind.STRING, "")
    if raw.kind is RawKind.NULL:
        return MaterializedCell(ContentKind.STRING, "", number_format)

    return _coerce(column.column_type, raw, number_format)


def _formula_cell(
    column: ColumnSpec, raw: RawCell, output_row: int
) -> MaterializedCell:
    formula = resolve_formula(column.formula_template or "", output_row)
    number_format = number_format_for(column.column_type) or None
    if raw.is_missing:
        return MaterializedCell(ContentKind.FORMULA, formula, number_format)
    return MaterializedCell(
        ContentKind.FORMULA,
        formula,
        number_format,
        has_conflict_warning=True,
        discarded_value=string_projection(raw),
    )


def _coerce(
    column_type: ColumnType,
    raw: RawCell,
    number_format: str | None,
) -> MaterializedCell:
    match column_type:
        case ColumnType.STRING:
            return MaterializedCell(ContentKind.STRING, string_projection(raw))

        case ColumnType.INTEGER:
            integer = parse_integer(raw)
            if integer is None:
                return _fallback(column_type, raw)
            return MaterializedCell(ContentKind.INTEGER, integer, number_format)

        case ColumnType.DECIMAL | ColumnType.MONEY:
            decimal = parse_decimal(raw)
            if decimal is None:
                return _fallback(column_type, raw)
            return MaterializedCell(
                ContentKind.DECIMAL, clip_decimal(decimal), number_format
            )

        case ColumnType.PERCENTAGE:
            decimal = parse_decimal(raw)
            if decimal is None:
                return _fallback(column_type, raw)
            fraction = _STORAGE_CONTEXT.divide(decimal, _HUNDRED)
            return MaterializedCell(ContentKind.DECIMAL, fraction, number_format)

        case ColumnType.BOOLEAN:
            if raw.kind is not RawKind.BOOLEAN:
                return _fallback(column_type, raw)
            return MaterializedCell(ContentKind.BOOLEAN, bool(raw.value))

        case ColumnType.DATE:
            parsed = parse_date(raw)
            if parsed is None:
                return _fallback(column_type, raw)
            return MaterializedCell(ContentKind.DATETIME, parsed, number_format)

        case _:
            raise UnsupportedColumnTypeError(column_type)


def _fallback(column_type: ColumnType, raw: RawCell) -> MaterializedCell:
    text = string_projection(raw)
    logger.debug(
        "Value not coercible, writing as text",
        column_type=column_type.value,
        raw_kind=raw.kind.value,
    )
    return MaterializedCell(ContentKind.STRING, text, is_fallback=True)
