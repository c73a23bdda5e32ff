"""Worksheet assembly from a sheet configuration and a data grid."""

from __future__ import annotations

import re
from dataclasses import dataclass

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.comments import Comment
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from excel_creator.config import EXCEL_MAX_DATA_ROWS, Settings, settings
from excel_creator.excel_document import (
    ContentKind,
    DataGrid,
    MaterializedCell,
    RawCell,
    SheetConfiguration,
)
from excel_creator.output.xlsx_delivery import XlsxDelivery, deliver_workbook
from excel_creator.services.cell_materializer import (
    DATE_FORMAT,
    MONEY_FORMAT,
    PERCENTAGE_FORMAT,
    materialize,
)
from excel_creator.services.schema_resolver import SchemaResolver
from excel_creator.utils.exceptions import (
    ConfigurationError,
    GridTooLargeError,
    SheetNameError,
)
from excel_creator.utils.logging import LogContext, get_logger, timed_operation

logger = get_logger(__name__)

EXCEL_MAX_COLUMNS = 16_384
MAX_SHEET_NAME_LENGTH = 31
HEADER_ROW = 1
FIRST_DATA_ROW = 2

_INVALID_SHEET_NAME_RE = re.compile(r"[\\/?*:\[\]]")
_ABSENT = RawCell.absent()


@dataclass
class BuildSummary:
    """Extents and anomaly counts of a built worksheet."""

    sheet_name: str
    rows: int = 0
    columns: int = 0
    conflicts: int = 0
    fallbacks: int = 0
    auto_filter: str | None = None


def grid_width(column_count: int, grid: DataGrid) -> int:
    """Number of worksheet columns touched: declared columns or widest row."""
    return max(column_count, max((len(row) for row in grid), default=0))


def auto_filter_range(row_count: int, column_count: int) -> tuple[int, int, int, int] | None:
    """Return (first_row, first_col, last_row, last_col), 1-based.

    The filter covers the header row plus every data row across the declared
    columns. Without declared columns there is nothing to filter.
    """
    if column_count <= 0:
        return None
    return (HEADER_ROW, 1, row_count + HEADER_ROW, column_count)


def to_a1_range(bounds: tuple[int, int, int, int]) -> str:
    first_row, first_col, last_row, last_col = bounds
    return (
        f"{get_column_letter(first_col)}{first_row}:"
        f"{get_column_letter(last_col)}{last_row}"
    )


def validate_sheet_name(name: str) -> None:
    """Raise SheetNameError unless Excel accepts ``name`` as a sheet title."""
    if not name or not name.strip():
        raise SheetNameError(name, "name is empty")
    if len(name) > MAX_SHEET_NAME_LENGTH:
        raise SheetNameError(
            name, f"name is longer than {MAX_SHEET_NAME_LENGTH} characters"
        )
    if _INVALID_SHEET_NAME_RE.search(name):
        raise SheetNameError(name, "name contains one of \\ / ? * : [ ]")


def display_width(cell: MaterializedCell) -> int:
    """Approximate number of characters the cell shows once formatted."""
    match cell.kind:
        case ContentKind.STRING:
            lines = str(cell.value).splitlines() or [""]
            return max(len(line) for line in lines)
        case ContentKind.INTEGER:
            return len(f"{cell.value:,}")
        case ContentKind.DECIMAL:
            if cell.number_format == PERCENTAGE_FORMAT:
                return len(f"{cell.value * 100:.2f}%")
            if cell.number_format == MONEY_FORMAT:
                return len(f"€ {cell.value:,.2f}")
            return len(f"{cell.value:,.2f}")
        case ContentKind.BOOLEAN:
            return len(str(cell.value).upper())
        case ContentKind.DATETIME:
            return len(DATE_FORMAT)
        case _:
            # Formula results are computed by the spreadsheet application.
            return 0


class ExcelService:
    """Build formatted worksheets from a sheet configuration and a data grid.

    Each call creates its own Workbook, so one service instance can be shared
    between concurrent requests.
    """

    def __init__(self, app_settings: Settings | None = None) -> None:
        self._settings = app_settings or settings
        self._header_font = Font(bold=True)
        self._header_fill = PatternFill(
            start_color=self._settings.header_fill_color,
            end_color=self._settings.header_fill_color,
            fill_type="solid",
        )
        self._conflict_fill = PatternFill(
            start_color=self._settings.conflict_fill_color,
            end_color=self._settings.conflict_fill_color,
            fill_type="solid",
        )

    def create_workbook(
        self, configuration: SheetConfiguration, grid: DataGrid
    ) -> Workbook:
        """Build the workbook for a request."""
        workbook, _ = self.build(configuration, grid)
        return workbook

    def render(
        self,
        configuration: SheetConfiguration,
        grid: DataGrid,
        file_name: str,
    ) -> XlsxDelivery:
        """Build the workbook and serialize it for download."""
        workbook = self.create_workbook(configuration, grid)
        return deliver_workbook(workbook, file_name)

    def build(
        self, configuration: SheetConfiguration, grid: DataGrid
    ) -> tuple[Workbook, BuildSummary]:
        """Build the workbook and report its extents.

        Raises:
            ConfigurationError: If the sheet name, a column type, a formula
                template or the freeze count is unusable. Raised before any
                cell is written.
            GridTooLargeError: If the grid does not fit in a worksheet.
        """
        validate_sheet_name(configuration.sheet_name)
        resolver = SchemaResolver(configuration.columns)
        width = grid_width(len(resolver), grid)
        self._check_extents(configuration, len(grid), width)

        summary = BuildSummary(
            sheet_name=configuration.sheet_name, rows=len(grid), columns=width
        )

        with (
            LogContext(sheet=configuration.sheet_name),
            timed_operation(logger, "create_workbook") as metrics,
        ):
            workbook = Workbook()
            worksheet = workbook.active
            worksheet.title = configuration.sheet_name
            widths = [0] * width

            self._write_headers(worksheet, resolver, widths)

            for row_index, row in enumerate(grid):
                output_row = row_index + FIRST_DATA_ROW
                for col_index in range(max(len(row), len(resolver))):
                    raw = row[col_index] if col_index < len(row) else _ABSENT
                    decision = materialize(
                        resolver.resolve(col_index), raw, output_row
                    )
                    self._write_cell(worksheet, output_row, col_index + 1, decision)
                    widths[col_index] = max(widths[col_index], display_width(decision))
                    if decision.has_conflict_warning:
                        summary.conflicts += 1
                    if decision.is_fallback:
                        summary.fallbacks += 1
                    metrics.cells_written += 1

            summary.auto_filter = self._apply_auto_filter(
                worksheet, len(grid), len(resolver)
            )
            self._apply_freeze(worksheet, configuration.freeze_column_count)
            self._autosize_columns(worksheet, widths)

            metrics.rows_processed = len(grid)
            metrics.conflicts = summary.conflicts
            metrics.fallbacks = summary.fallbacks

        logger.log_workbook_result(
            sheet_name=summary.sheet_name,
            rows=summary.rows,
            columns=summary.columns,
            conflicts=summary.conflicts,
            fallbacks=summary.fallbacks,
        )
        return workbook, summary

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _check_extents(
        configuration: SheetConfiguration, row_count: int, width: int
    ) -> None:
        if row_count > EXCEL_MAX_DATA_ROWS or width > EXCEL_MAX_COLUMNS:
            raise GridTooLargeError(rows=row_count, columns=width)
        freeze = configuration.freeze_column_count
        if freeze is not None and freeze >= EXCEL_MAX_COLUMNS:
            raise ConfigurationError(
                f"Cannot freeze {freeze} columns; a worksheet has "
                f"{EXCEL_MAX_COLUMNS} columns",
                details={"freeze_columns": freeze},
            )

    def _write_headers(
        self, worksheet: Worksheet, resolver: SchemaResolver, widths: list[int]
    ) -> None:
        for index, column in enumerate(resolver.columns):
            cell = worksheet.cell(row=HEADER_ROW, column=index + 1)
            header = self._clean_text(column.header, cell.coordinate)
            cell.value = header
            if header.startswith("="):
                cell.data_type = "s"
            cell.font = self._header_font
            cell.fill = self._header_fill
            widths[index] = max(widths[index], len(header))

    def _write_cell(
        self,
        worksheet: Worksheet,
        row: int,
        column: int,
        decision: MaterializedCell,
    ) -> None:
        cell = worksheet.cell(row=row, column=column)

        if decision.kind is ContentKind.FORMULA:
            cell.value = f"={decision.value}"
        elif decision.kind is ContentKind.STRING:
            text = self._clean_text(str(decision.value), cell.coordinate)
            cell.value = text
            # Literal text, even when it looks like a formula.
            if text.startswith("="):
                cell.data_type = "s"
        else:
            cell.value = decision.value

        if decision.number_format:
            cell.number_format = decision.number_format

        if decision.has_conflict_warning:
            note = (
                f"ERR: Both formula (={decision.value}) "
                f"and data ({decision.discarded_value})"
            )
            cell.fill = self._conflict_fill
            cell.comment = Comment(
                self._clean_text(note, cell.coordinate), self._settings.comment_author
            )
            logger.warning(
                "Formula overrides supplied value",
                cell=cell.coordinate,
                formula=decision.value,
                value=decision.discarded_value,
            )

    @staticmethod
    def _clean_text(text: str, coordinate: str) -> str:
        if ILLEGAL_CHARACTERS_RE.search(text):
            logger.warning(
                "Removed characters not allowed in worksheet text",
                cell=coordinate,
            )
            return ILLEGAL_CHARACTERS_RE.sub("", text)
        return text

    @staticmethod
    def _apply_auto_filter(
        worksheet: Worksheet, row_count: int, column_count: int
    ) -> str | None:
        bounds = auto_filter_range(row_count, column_count)
        if bounds is None:
            return None
        worksheet.auto_filter.ref = to_a1_range(bounds)
        return worksheet.auto_filter.ref

    @staticmethod
    def _apply_freeze(worksheet: Worksheet, freeze_column_count: int | None) -> None:
        if freeze_column_count is None or freeze_column_count <= 0:
            return
        # Top-left cell of the scrollable pane; row 1 means no rows frozen.
        worksheet.freeze_panes = worksheet.cell(
            row=1, column=freeze_column_count + 1
        )

    def _autosize_columns(self, worksheet: Worksheet, widths: list[int]) -> None:
        lower = self._settings.min_column_width
        upper = self._settings.max_column_width
        for index, content_width in enumerate(widths):
            letter = get_column_letter(index + 1)
            worksheet.column_dimensions[letter].width = min(
                max(content_width + 2, lower), upper
            )
