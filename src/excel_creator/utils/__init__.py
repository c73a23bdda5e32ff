"""Utilities package for the Excel creator.

This package provides:
- Centralized exception classes (exceptions.py)
- Structured logging utilities (logging.py)
"""

from excel_creator.utils.exceptions import (
    ConfigurationError,
    ErrorCode,
    ExcelCreatorError,
    FormulaTemplateError,
    GridTooLargeError,
    HTTPStatusMixin,
    PayloadError,
    PayloadTooLargeError,
    SheetNameError,
    UnsupportedColumnTypeError,
    ValidationError,
    WorkbookWriteError,
)
from excel_creator.utils.logging import (
    LogContext,
    StructuredLogger,
    get_logger,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Exceptions
    "ConfigurationError",
    "ErrorCode",
    "ExcelCreatorError",
    "FormulaTemplateError",
    "GridTooLargeError",
    "HTTPStatusMixin",
    "PayloadError",
    "PayloadTooLargeError",
    "SheetNameError",
    "UnsupportedColumnTypeError",
    "ValidationError",
    "WorkbookWriteError",
    # Logging
    "LogContext",
    "StructuredLogger",
    "get_logger",
    "get_request_id",
    "set_request_id",
]
