"""Centralized exception classes for the Excel creator.

This module provides a hierarchy of custom exceptions with error codes,
HTTP status code mapping, and structured error details for consistent
error handling throughout the application.

Bad cell data never raises: coercion failures fall back to the string form
of the value inside the generated sheet. The exceptions below are reserved
for conditions that must abort the whole workbook.

Exception Hierarchy:
    ExcelCreatorError (base)
    ├── ConfigurationError
    │   ├── UnsupportedColumnTypeError
    │   ├── FormulaTemplateError
    │   └── SheetNameError
    ├── PayloadError
    │   ├── PayloadTooLargeError
    │   └── GridTooLargeError
    ├── ValidationError
    └── WorkbookWriteError

Error Codes:
    All errors have a unique error code (e.g., "E2001") that can be used
    for programmatic error handling and documentation.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Enumeration of all error codes used in the application.

    Error codes are grouped by category:
    - E1xxx: Payload errors
    - E2xxx: Sheet configuration errors
    - E3xxx: Workbook output errors
    - E9xxx: Internal/unexpected errors
    """

    # Payload errors (E1xxx)
    INVALID_PAYLOAD = "E1001"
    PAYLOAD_TOO_LARGE = "E1002"
    GRID_TOO_LARGE = "E1003"
    REQUEST_VALIDATION_FAILED = "E1004"

    # Configuration errors (E2xxx)
    INVALID_CONFIGURATION = "E2001"
    UNSUPPORTED_COLUMN_TYPE = "E2002"
    INVALID_FORMULA_TEMPLATE = "E2003"
    INVALID_SHEET_NAME = "E2004"

    # Output errors (E3xxx)
    WORKBOOK_WRITE_FAILED = "E3001"

    # Internal errors (E9xxx)
    INTERNAL_ERROR = "E9001"
    UNEXPECTED_ERROR = "E9999"


class HTTPStatusMixin:
    """Mixin that provides HTTP status code for exceptions.

    This mixin allows exceptions to declare their appropriate HTTP status code
    for API responses. Subclasses should set the `http_status` class attribute.
    """

    http_status: int = 500

    def get_http_status(self) -> int:
        """Get the HTTP status code for this exception.

        Returns:
            HTTP status code appropriate for this error.
        """
        return self.http_status


class ExcelCreatorError(Exception, HTTPStatusMixin):
    """Base exception for all Excel creator errors.

    Attributes:
        message: Human-readable error message.
        error_code: Unique error code from ErrorCode enum.
        details: Optional dictionary with additional error details.
        http_status: HTTP status code for API responses (default 500).
    """

    http_status: int = 500

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Error code from ErrorCode enum.
            details: Optional additional details about the error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a dictionary for API responses.

        Returns:
            Dictionary with error information.
        """
        result: dict[str, Any] = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code.value}] {self.message}"


# =============================================================================
# Configuration Errors (E2xxx)
# =============================================================================


class ConfigurationError(ExcelCreatorError):
    """Base class for errors in the sheet configuration of a request."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INVALID_CONFIGURATION,
        column_index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the offending column position.

        Args:
            message: Error message.
            error_code: Error code.
            column_index: 0-based index of the column at fault, if any.
            details: Additional details.
        """
        details = details or {}
        if column_index is not None:
            details["column_index"] = column_index
        super().__init__(message, error_code, details)
        self.column_index = column_index


class UnsupportedColumnTypeError(ConfigurationError):
    """Raised when a column declares a type the formatter does not handle."""

    def __init__(
        self,
        column_type: Any,
        column_index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["column_type"] = str(column_type)
        super().__init__(
            message=f"Unsupported column type: {column_type!r}",
            error_code=ErrorCode.UNSUPPORTED_COLUMN_TYPE,
            column_index=column_index,
            details=details,
        )
        self.column_type = column_type


class FormulaTemplateError(ConfigurationError):
    """Raised when a formula template cannot be turned into a cell formula."""

    def __init__(
        self,
        message: str,
        template: str,
        column_index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["formula"] = template
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_FORMULA_TEMPLATE,
            column_index=column_index,
            details=details,
        )
        self.template = template


class SheetNameError(ConfigurationError):
    """Raised when the requested worksheet name is not valid in Excel."""

    def __init__(
        self,
        sheet_name: str,
        reason: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["sheet_name"] = sheet_name
        super().__init__(
            message=f"Invalid sheet name {sheet_name!r}: {reason}",
            error_code=ErrorCode.INVALID_SHEET_NAME,
            details=details,
        )
        self.sheet_name = sheet_name


# =============================================================================
# Payload Errors (E1xxx)
# =============================================================================


class PayloadError(ExcelCreatorError):
    """Base class for errors about the shape or size of the data grid."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INVALID_PAYLOAD,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, error_code, details)


class PayloadTooLargeError(PayloadError):
    """Raised when a request carries more rows than the service accepts."""

    http_status: int = 413

    def __init__(
        self,
        row_count: int,
        max_rows: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with size information.

        Args:
            row_count: Number of data rows in the request.
            max_rows: Maximum number of rows allowed.
            details: Additional details.
        """
        details = details or {}
        details["row_count"] = row_count
        details["max_rows"] = max_rows
        super().__init__(
            message=(
                f"Row count ({row_count}) exceeds maximum allowed rows ({max_rows})"
            ),
            error_code=ErrorCode.PAYLOAD_TOO_LARGE,
            details=details,
        )
        self.row_count = row_count
        self.max_rows = max_rows


class GridTooLargeError(PayloadError):
    """Raised when the grid does not fit inside a single Excel worksheet."""

    def __init__(
        self,
        rows: int,
        columns: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["rows"] = rows
        details["columns"] = columns
        super().__init__(
            message=(
                f"Grid of {rows} rows x {columns} columns exceeds worksheet limits"
            ),
            error_code=ErrorCode.GRID_TOO_LARGE,
            details=details,
        )
        self.rows = rows
        self.columns = columns


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(ExcelCreatorError):
    """General validation error for request bodies."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        field: str | None = None,
        errors: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with validation details.

        Args:
            message: Main error message.
            field: Field that failed validation.
            errors: List of validation errors.
            details: Additional details.
        """
        details = details or {}
        if field:
            details["field"] = field
        if errors:
            details["validation_errors"] = errors
        super().__init__(
            message=message,
            error_code=ErrorCode.REQUEST_VALIDATION_FAILED,
            details=details,
        )
        self.errors = errors or []


# =============================================================================
# Output Errors (E3xxx)
# =============================================================================


class WorkbookWriteError(ExcelCreatorError):
    """Raised when the workbook cannot be serialized to xlsx bytes."""

    http_status: int = 500

    def __init__(
        self,
        message: str,
        file_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if file_name:
            details["file_name"] = file_name
        super().__init__(
            message=message,
            error_code=ErrorCode.WORKBOOK_WRITE_FAILED,
            details=details,
        )
        self.file_name = file_name
