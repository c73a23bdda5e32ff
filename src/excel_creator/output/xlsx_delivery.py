"""Serialization of a finished workbook into a downloadable xlsx artifact.

This module turns an openpyxl workbook into bytes held in memory and carries
the metadata an HTTP response needs: file name, content type and the
Content-Disposition header.
"""

import re
from dataclasses import dataclass
from io import BytesIO
from typing import Any
from urllib.parse import quote

from openpyxl import Workbook

from excel_creator.utils.exceptions import WorkbookWriteError
from excel_creator.utils.logging import get_logger

logger = get_logger(__name__)

XLSX_CONTENT_TYPE = (
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
)
XLSX_EXTENSION = ".xlsx"

_UNSAFE_FILE_NAME_RE = re.compile(r"[\\/\x00-\x1f\x7f]")


@dataclass
class XlsxDelivery:
    """An xlsx document ready to be sent to a client."""

    content: bytes
    """Serialized workbook."""

    file_name: str
    """Name offered to the client for saving the file."""

    content_type: str = XLSX_CONTENT_TYPE
    """MIME type of the content."""

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def content_disposition(self) -> str:
        """Attachment header value, RFC 5987 encoded for non-ASCII names."""
        quoted = quote(self.file_name)
        if quoted != self.file_name:
            return f"attachment; filename*=utf-8''{quoted}"
        return f'attachment; filename="{self.file_name}"'

    def to_headers(self) -> dict[str, str]:
        return {"Content-Disposition": self.content_disposition}

    def to_dict(self) -> dict[str, Any]:
        """Summary of the artifact for logging, without the content."""
        return {
            "file_name": self.file_name,
            "content_type": self.content_type,
            "size": self.size,
        }


def normalize_file_name(file_name: str | None, default: str) -> str:
    """Make a client-supplied name safe to use as a download name.

    Path separators and control characters are replaced, an empty name falls
    back to ``default``, and the .xlsx extension is added when missing.

    Args:
        file_name: Name from the request, possibly empty.
        default: Name to use when the request does not supply one.

    Returns:
        A file name ending in .xlsx.
    """
    name = _UNSAFE_FILE_NAME_RE.sub("_", (file_name or "").strip())
    if not name:
        name = default
    if not name.lower().endswith(XLSX_EXTENSION):
        name = f"{name}{XLSX_EXTENSION}"
    return name


def deliver_workbook(workbook: Workbook, file_name: str) -> XlsxDelivery:
    """Serialize a workbook into an in-memory xlsx document.

    Args:
        workbook: The workbook to save.
        file_name: Download name for the document.

    Returns:
        XlsxDelivery holding the bytes and response metadata.

    Raises:
        WorkbookWriteError: If openpyxl cannot write the workbook.
    """
    buffer = BytesIO()
    try:
        workbook.save(buffer)
    except (OSError, TypeError, ValueError, OverflowError) as e:
        logger.error("Workbook serialization failed", file_name=file_name, error=str(e))
        raise WorkbookWriteError(
            f"Could not serialize workbook: {e}", file_name=file_name
        ) from e

    delivery = XlsxDelivery(content=buffer.getvalue(), file_name=file_name)
    logger.debug("Workbook serialized", **delivery.to_dict())
    return delivery
