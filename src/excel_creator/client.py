"""HTTP client for the Excel creator service."""

import re
from types import TracebackType
from typing import Any
from urllib.parse import unquote

import httpx

from excel_creator.models import FullExcelData
from excel_creator.output.xlsx_delivery import XLSX_CONTENT_TYPE, XlsxDelivery
from excel_creator.utils.exceptions import ErrorCode, ExcelCreatorError
from excel_creator.utils.logging import get_logger

logger = get_logger(__name__)

EXCEL_ENDPOINT = "/api/excel"
DEFAULT_TIMEOUT = 60.0

_ENCODED_FILE_NAME_RE = re.compile(r"filename\*=utf-8''([^;]+)", re.IGNORECASE)
_PLAIN_FILE_NAME_RE = re.compile(r'filename="?([^";]+)"?', re.IGNORECASE)


class ExcelCreatorClientError(ExcelCreatorError):
    """Raised when the service rejects a request or cannot be reached.

    Attributes:
        status_code: HTTP status of the response, None if no response arrived.
        request_id: Request ID reported by the server, if any.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_code: ErrorCode = ErrorCode.UNEXPECTED_ERROR,
        request_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, error_code, details)
        self.status_code = status_code
        self.request_id = request_id
        if status_code is not None:
            self.http_status = status_code


def file_name_from_disposition(header: str | None, default: str) -> str:
    """Extract the download name from a Content-Disposition header."""
    if not header:
        return default
    match = _ENCODED_FILE_NAME_RE.search(header)
    if match:
        return unquote(match.group(1).strip())
    match = _PLAIN_FILE_NAME_RE.search(header)
    if match:
        return match.group(1).strip()
    return default


class ExcelCreatorClient:
    """Synchronous client for POST /api/excel.

    Usage:
        with ExcelCreatorClient("http://localhost:8000") as client:
            delivery = client.create_excel(payload)
            Path(delivery.file_name).write_bytes(delivery.content)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Root URL of the service, e.g. http://localhost:8000.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport, mainly for tests.
        """
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self) -> "ExcelCreatorClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def create_excel(
        self,
        payload: FullExcelData | dict[str, Any],
        request_id: str | None = None,
        default_file_name: str = "export.xlsx",
    ) -> XlsxDelivery:
        """Send rows and configuration and return the generated workbook.

        Args:
            payload: Request body as a model or as a JSON-ready dict.
            request_id: Optional X-Request-ID to send for correlation.
            default_file_name: Name used if the response does not carry one.

        Returns:
            XlsxDelivery with the xlsx bytes and the server's file name.

        Raises:
            ExcelCreatorClientError: On transport failures and non-2xx
                responses. The server's error code is kept when present.
        """
        if isinstance(payload, FullExcelData):
            body = payload.model_dump(mode="json", by_alias=True, exclude_none=True)
        else:
            body = payload

        headers = {"Accept": XLSX_CONTENT_TYPE}
        if request_id:
            headers["X-Request-ID"] = request_id

        try:
            response = self._client.post(EXCEL_ENDPOINT, json=body, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Excel request failed", error=str(e))
            raise ExcelCreatorClientError(f"Request to Excel service failed: {e}") from e

        if response.is_error:
            raise self._error_from_response(response)

        file_name = file_name_from_disposition(
            response.headers.get("Content-Disposition"), default_file_name
        )
        logger.debug(
            "Excel received",
            file_name=file_name,
            size=len(response.content),
            request_id=response.headers.get("X-Request-ID"),
        )
        return XlsxDelivery(
            content=response.content,
            file_name=file_name,
            content_type=response.headers.get("Content-Type", XLSX_CONTENT_TYPE),
        )

    @staticmethod
    def _error_from_response(response: httpx.Response) -> ExcelCreatorClientError:
        request_id = response.headers.get("X-Request-ID")
        try:
            body = response.json()
        except ValueError:
            body = None

        if not isinstance(body, dict):
            return ExcelCreatorClientError(
                f"Excel service returned HTTP {response.status_code}",
                status_code=response.status_code,
                request_id=request_id,
            )

        try:
            error_code = ErrorCode(body.get("error_code"))
        except ValueError:
            error_code = ErrorCode.UNEXPECTED_ERROR

        logger.warning(
            "Excel service rejected request",
            status_code=response.status_code,
            error_code=error_code.value,
        )
        return ExcelCreatorClientError(
            str(body.get("detail", f"HTTP {response.status_code}")),
            status_code=response.status_code,
            error_code=error_code,
            request_id=body.get("request_id", request_id),
            details=body.get("details"),
        )
