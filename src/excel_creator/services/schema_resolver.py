"""Column lookup for the data grid.

The grid may be wider than the declared columns, so looking up an index past
the configuration is a normal outcome (NOT_CONFIGURED), not an error.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from excel_creator.excel_document import (
    NOT_CONFIGURED,
    ColumnSpec,
    ColumnType,
    ResolvedColumn,
)
from excel_creator.utils.exceptions import (
    FormulaTemplateError,
    UnsupportedColumnTypeError,
)
from excel_creator.utils.logging import get_logger

logger = get_logger(__name__)

ROW_PLACEHOLDER = "{row}"
_PLACEHOLDER_RE = re.compile(r"\{[A-Za-z_]\w*\}")


def resolve(columns: Sequence[ColumnSpec], index: int) -> ResolvedColumn:
    """Return the column declared at ``index`` or NOT_CONFIGURED."""
    if 0 <= index < len(columns):
        return columns[index]
    return NOT_CONFIGURED


def strip_formula_sign(formula: str) -> str:
    """Drop surrounding whitespace and one leading '='."""
    formula = formula.strip()
    if formula.startswith("="):
        formula = formula[1:]
    return formula


def validate_column(column: ColumnSpec, index: int) -> None:
    """Check that a column can be materialized.

    Raises:
        UnsupportedColumnTypeError: If the type is not a ColumnType member.
        FormulaTemplateError: If the formula is empty after its '=' or uses
            a placeholder other than {row}.
    """
    if not isinstance(column.column_type, ColumnType):
        raise UnsupportedColumnTypeError(column.column_type, column_index=index)

    if not column.has_formula:
        return

    template = column.formula_template or ""
    if not strip_formula_sign(template):
        raise FormulaTemplateError(
            "Formula template is empty", template=template, column_index=index
        )

    unknown = sorted(
        {token for token in _PLACEHOLDER_RE.findall(template)} - {ROW_PLACEHOLDER}
    )
    if unknown:
        raise FormulaTemplateError(
            f"Unknown placeholder(s) in formula: {', '.join(unknown)}",
            template=template,
            column_index=index,
            details={"placeholders": unknown},
        )


class SchemaResolver:
    """Validated, index-addressable view of the declared columns."""

    def __init__(self, columns: Sequence[ColumnSpec]) -> None:
        for index, column in enumerate(columns):
            validate_column(column, index)
        self._columns = tuple(columns)
        logger.debug(
            "Columns resolved",
            columns=len(self._columns),
            formulas=sum(1 for c in self._columns if c.has_formula),
        )

    @property
    def columns(self) -> tuple[ColumnSpec, ...]:
        return self._columns

    def __len__(self) -> int:
        return len(self._columns)

    def resolve(self, index: int) -> ResolvedColumn:
        return resolve(self._columns, index)
