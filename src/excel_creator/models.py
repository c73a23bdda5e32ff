"""Pydantic models for API requests and responses."""

from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
)

from excel_creator.excel_document import (
    ColumnSpec,
    ColumnType,
    RawCell,
    SheetConfiguration,
)
from excel_creator.utils.exceptions import ErrorCode

CellValue = StrictBool | StrictInt | StrictFloat | StrictStr | None
"""A single JSON scalar in the data grid."""


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: str
    version: str


class ColumnConfiguration(BaseModel):
    """One declared column of the worksheet."""

    model_config = ConfigDict(populate_by_name=True)

    header: str = Field(default="", description="Label shown in the header row")
    column_type: ColumnType = Field(
        default=ColumnType.STRING,
        alias="type",
        description="How values in this column are coerced and displayed",
    )
    formula: str | None = Field(
        default=None,
        description=(
            "Formula for every cell of the column, with or without a leading '='. "
            "{row} is replaced by the row number, e.g. '=A{row}+B{row}'"
        ),
    )

    @field_validator("column_type", mode="before")
    @classmethod
    def normalize_column_type(cls, v: Any) -> Any:
        """Accept column type names in any letter case."""
        if isinstance(v, str):
            return ColumnType.lookup(v) or v
        return v

    def to_spec(self) -> ColumnSpec:
        return ColumnSpec(
            header=self.header,
            column_type=self.column_type,
            formula_template=self.formula,
        )


class ExcelConfiguration(BaseModel):
    """How to lay out and format the worksheet."""

    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(
        default="", alias="fileName", description="Download name of the file"
    )
    sheet_name: str | None = Field(
        default=None, alias="sheetName", description="Title of the worksheet"
    )
    columns: list[ColumnConfiguration] = Field(
        default_factory=list, description="Column declarations in output order"
    )
    freeze_columns: int | None = Field(
        default=None,
        alias="freezeColumns",
        ge=0,
        description="Number of leading columns kept visible while scrolling",
    )

    def to_sheet_configuration(self, default_sheet_name: str) -> SheetConfiguration:
        """Convert to the core configuration, filling in the sheet name."""
        sheet_name = self.sheet_name
        if sheet_name is None or not sheet_name.strip():
            sheet_name = default_sheet_name
        return SheetConfiguration(
            sheet_name=sheet_name,
            columns=tuple(column.to_spec() for column in self.columns),
            freeze_column_count=self.freeze_columns,
        )

    def __str__(self) -> str:
        headers = ", ".join(column.header for column in self.columns)
        return f"{self.sheet_name or ''}: {headers}"


class FullExcelData(BaseModel):
    """Request body of POST /api/excel: the rows plus their configuration."""

    data: list[list[CellValue]] = Field(
        default_factory=list, description="Rows of cell values"
    )
    config: ExcelConfiguration = Field(
        default_factory=ExcelConfiguration,
        description="Worksheet and column configuration",
    )

    def to_grid(self) -> list[list[RawCell]]:
        """Convert the JSON rows into RawCell rows."""
        return [[RawCell.from_json(value) for value in row] for row in self.data]

    def __str__(self) -> str:
        return f"Rows={len(self.data)}, Config={self.config}"


class ErrorDetail(BaseModel):
    """Error detail model for API error responses.

    This model provides structured error responses with:
    - Human-readable error message
    - Machine-readable error code
    - Optional additional details for debugging
    - Optional request ID for correlation
    """

    detail: str = Field(..., description="Human-readable error message")
    error_code: str | None = Field(
        default=None,
        description="Machine-readable error code (e.g., 'E2001')",
    )
    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional error details for debugging",
    )
    request_id: str | None = Field(
        default=None,
        description="Request ID for error correlation",
    )

    @classmethod
    def from_error_code(
        cls,
        error_code: ErrorCode,
        detail: str,
        details: dict[str, Any] | None = None,
        request_id: str | None = None,
    ) -> "ErrorDetail":
        """Create an ErrorDetail from an ErrorCode enum value.

        Args:
            error_code: The error code enum.
            detail: Human-readable error message.
            details: Optional additional details.
            request_id: Optional request ID.

        Returns:
            ErrorDetail instance.
        """
        return cls(
            detail=detail,
            error_code=error_code.value,
            details=details,
            request_id=request_id,
        )
