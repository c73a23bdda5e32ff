"""Output module for generated workbooks.

This module provides functionality to serialize a workbook into an xlsx
download, including the file name and HTTP header handling.
"""

from excel_creator.output.xlsx_delivery import (
    XLSX_CONTENT_TYPE,
    XlsxDelivery,
    deliver_workbook,
    normalize_file_name,
)

__all__ = [
    "XLSX_CONTENT_TYPE",
    "XlsxDelivery",
    "deliver_workbook",
    "normalize_file_name",
]
