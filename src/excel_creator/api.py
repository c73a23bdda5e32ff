"""FastAPI application for the Excel creator."""

import uuid
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from excel_creator.config import settings, validate_settings_on_startup
from excel_creator.models import ErrorDetail, FullExcelData, HealthResponse
from excel_creator.output.xlsx_delivery import XLSX_CONTENT_TYPE, normalize_file_name
from excel_creator.services.grid_assembler import ExcelService
from excel_creator.utils.exceptions import (
    ErrorCode,
    ExcelCreatorError,
    PayloadTooLargeError,
    ValidationError,
)
from excel_creator.utils.logging import (
    clear_context,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)

API_VERSION = "0.1.0"

# Configure structured logging using settings
configure_logging(
    level=settings.log_level_int,
    use_structured_formatter=True,
)
logger = get_logger(__name__)


def _format_validation_errors(exc: RequestValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        messages.append(f"{location}: {error.get('msg', 'invalid value')}")
    return messages


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Excel Creator API",
        description=(
            "Turns rows of loosely-typed values and a column configuration "
            "into a formatted Excel workbook."
        ),
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Configure CORS using settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Request-ID"],
    )

    # Validate settings on startup
    validate_settings_on_startup(settings)

    excel_service = ExcelService(settings)

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next: Any) -> Any:
        """Middleware to assign and track request IDs.

        This middleware:
        1. Generates a unique request ID for each request
        2. Sets it in context for logging correlation
        3. Adds it to the response headers
        4. Clears context after request completes
        """
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        set_request_id(request_id)
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_context()

    @app.exception_handler(ExcelCreatorError)
    async def excel_creator_exception_handler(
        request: Request, exc: ExcelCreatorError
    ) -> JSONResponse:
        """Return structured error responses for application exceptions."""
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.error(
            f"Excel creator error: {exc.message}",
            error_code=exc.error_code.value,
            http_status=exc.http_status,
        )
        return JSONResponse(
            status_code=exc.http_status,
            content=ErrorDetail(
                detail=exc.message,
                error_code=exc.error_code.value,
                details=exc.details if exc.details else None,
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Report malformed request bodies as 400 with the failing fields."""
        request_id = getattr(request.state, "request_id", get_request_id())
        error = ValidationError(
            message="Request body is not a valid Excel request",
            errors=_format_validation_errors(exc),
        )
        logger.warning(
            "Request validation failed",
            errors=error.errors,
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorDetail.from_error_code(
                error.error_code,
                detail=error.message,
                details=error.details,
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        """Custom exception handler for HTTP exceptions."""
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.warning(
            f"HTTP Error: {exc.detail}",
            status_code=exc.status_code,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorDetail(
                detail=str(exc.detail),
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all exception handler for unexpected errors.

        Logs the full exception and returns a generic error response
        to avoid leaking internal details.
        """
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.exception(
            f"Unexpected error: {type(exc).__name__}",
            error_type=type(exc).__name__,
        )
        if settings.debug:
            detail = f"Internal server error: {type(exc).__name__}: {exc}"
        else:
            detail = "Internal server error. Please try again later."

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorDetail(
                detail=detail,
                error_code=ErrorCode.INTERNAL_ERROR.value,
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(request: Request) -> dict[str, Any]:
        """Check the health status of the service.

        Returns:
            HealthResponse: Service status information including status,
                timestamp, and version.
        """
        request_id = getattr(request.state, "request_id", None)
        logger.debug("Health check requested", request_id=request_id)
        return {
            "status": "healthy",
            "timestamp": datetime.now(UTC).isoformat(),
            "version": API_VERSION,
        }

    @app.post(
        "/api/excel",
        response_class=Response,
        tags=["Excel"],
        responses={
            200: {
                "content": {XLSX_CONTENT_TYPE: {}},
                "description": "The generated workbook",
            },
            400: {"model": ErrorDetail, "description": "Invalid data or configuration"},
            413: {"model": ErrorDetail, "description": "Too many rows"},
        },
    )
    def create_excel(request: Request, payload: FullExcelData) -> Response:
        """Create an Excel workbook from the rows and configuration in the body.

        Every column is coerced to its declared type. Values that cannot be
        coerced are written as text; cells where a column formula overrides
        a supplied value are highlighted and annotated.

        Args:
            request: FastAPI request object
            payload: The data rows and the sheet configuration

        Returns:
            The xlsx document as an attachment.

        Raises:
            PayloadTooLargeError: 413 if the request has too many rows
            ConfigurationError: 400 if a column type, formula or the sheet
                name is unusable
        """
        request_id = getattr(request.state, "request_id", None)
        logger.info("Excel requested", payload=str(payload), request_id=request_id)

        if len(payload.data) > settings.max_rows:
            raise PayloadTooLargeError(
                row_count=len(payload.data), max_rows=settings.max_rows
            )

        configuration = payload.config.to_sheet_configuration(
            settings.default_sheet_name
        )
        file_name = normalize_file_name(
            payload.config.file_name, settings.default_file_name
        )
        delivery = excel_service.render(configuration, payload.to_grid(), file_name)

        logger.info("Excel delivered", request_id=request_id, **delivery.to_dict())
        return Response(
            content=delivery.content,
            media_type=delivery.content_type,
            headers=delivery.to_headers(),
        )

    logger.info("FastAPI application created successfully")
    return app


# Create the application instance
app = create_app()
