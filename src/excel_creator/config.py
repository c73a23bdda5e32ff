"""Configuration management for the Excel creator service.

This module provides centralized configuration using pydantic-settings.
All configuration options can be set via environment variables with the
EXC_ prefix, or via a .env file in the project root.

Environment Variables:
    EXC_MAX_ROWS: Maximum number of data rows per request (default: 100000)
    EXC_DEFAULT_FILE_NAME: File name used when a request names none
        (default: export.xlsx)
    EXC_DEFAULT_SHEET_NAME: Sheet name used when a request names none
        (default: Sheet1)
    EXC_HEADER_FILL_COLOR: Header row background, hex RGB (default: D3D3D3)
    EXC_CONFLICT_FILL_COLOR: Background of formula/data conflict cells,
        hex RGB (default: FF0000)
    EXC_COMMENT_AUTHOR: Author of conflict notes (default: Excel Creator)
    EXC_MIN_COLUMN_WIDTH: Lower bound for autosized columns (default: 8.0)
    EXC_MAX_COLUMN_WIDTH: Upper bound for autosized columns (default: 80.0)
    EXC_LOG_LEVEL: Logging level (default: INFO)
    EXC_DEBUG: Enable debug mode (default: false)
    EXC_CORS_ORIGINS: Comma-separated CORS origins (default: *)
    EXC_SERVER_HOST: Server bind host (default: 0.0.0.0)
    EXC_SERVER_PORT: Server bind port (default: 8000)
"""

import logging
import re
from typing import Any

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Last worksheet row is 1,048,576 and row 1 holds the headers.
EXCEL_MAX_DATA_ROWS = 1_048_575

_HEX_COLOR_RE = re.compile(r"^[0-9A-Fa-f]{6}$")


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables prefixed with EXC_
    or via a .env file.

    Example .env file:
        EXC_LOG_LEVEL=DEBUG
        EXC_MAX_ROWS=5000
        EXC_COMMENT_AUTHOR=Reporting
    """

    model_config = SettingsConfigDict(
        env_prefix="EXC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # Request Limits
    # =========================================================================

    max_rows: int = 100_000
    """Maximum number of data rows accepted in a single request."""

    # =========================================================================
    # Workbook Defaults
    # =========================================================================

    default_file_name: str = "export.xlsx"
    """File name offered for download when the request does not name one."""

    default_sheet_name: str = "Sheet1"
    """Worksheet title used when the request does not name one."""

    # =========================================================================
    # Styling
    # =========================================================================

    header_fill_color: str = "D3D3D3"
    """Background color of the header row (light gray)."""

    conflict_fill_color: str = "FF0000"
    """Background color of cells where a formula overrode supplied data."""

    comment_author: str = "Excel Creator"
    """Author name attached to conflict notes."""

    min_column_width: float = 8.0
    """Narrowest width an autosized column may get."""

    max_column_width: float = 80.0
    """Widest width an autosized column may get."""

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = "INFO"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    debug: bool = False
    """Enable debug mode with additional logging and error details."""

    # =========================================================================
    # Server Settings
    # =========================================================================

    cors_origins: str = "*"
    """Comma-separated list of allowed CORS origins, or * for all."""

    server_host: str = "0.0.0.0"
    """Host address for the server to bind to."""

    server_port: int = 8000
    """Port for the server to listen on."""

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return upper_v

    @field_validator("max_rows")
    @classmethod
    def validate_max_rows(cls, v: int) -> int:
        """Validate the row limit fits inside a worksheet."""
        if not 1 <= v <= EXCEL_MAX_DATA_ROWS:
            raise ValueError(
                f"max_rows must be between 1 and {EXCEL_MAX_DATA_ROWS}, got {v}"
            )
        return v

    @field_validator("default_file_name")
    @classmethod
    def validate_default_file_name(cls, v: str) -> str:
        """Validate the default file name is an xlsx name."""
        v = v.strip()
        if not v.lower().endswith(".xlsx") or v.lower() == ".xlsx":
            raise ValueError(f"default_file_name must end with .xlsx, got {v!r}")
        return v

    @field_validator("default_sheet_name")
    @classmethod
    def validate_default_sheet_name(cls, v: str) -> str:
        """Validate the default sheet name is non-empty."""
        if not v.strip():
            raise ValueError("default_sheet_name must be a non-empty string")
        return v

    @field_validator("header_fill_color", "conflict_fill_color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        """Validate colors are 6-digit hex RGB values."""
        v = v.lstrip("#")
        if not _HEX_COLOR_RE.match(v):
            raise ValueError(f"Color must be a 6-digit hex RGB value, got {v!r}")
        return v.upper()

    @field_validator("min_column_width", "max_column_width")
    @classmethod
    def validate_column_width(cls, v: float) -> float:
        """Validate column widths are within Excel's range."""
        if not 0 < v <= 255:
            raise ValueError(f"Column width must be between 0 and 255, got {v}")
        return v

    @field_validator("server_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is in valid range."""
        if not 1 <= v <= 65535:
            raise ValueError(f"server_port must be between 1 and 65535, got {v}")
        return v

    @model_validator(mode="after")
    def validate_width_bounds(self) -> "Settings":
        """Validate the minimum column width is below the maximum."""
        if self.min_column_width >= self.max_column_width:
            raise ValueError(
                f"min_column_width ({self.min_column_width}) must be less than "
                f"max_column_width ({self.max_column_width})"
            )
        return self

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        level: int = getattr(logging, self.log_level)
        return level

    def to_safe_dict(self) -> dict[str, Any]:
        """Convert settings to a dictionary suitable for logging.

        Returns:
            Dictionary representation of all settings.
        """
        return {
            "max_rows": self.max_rows,
            "default_file_name": self.default_file_name,
            "default_sheet_name": self.default_sheet_name,
            "header_fill_color": self.header_fill_color,
            "conflict_fill_color": self.conflict_fill_color,
            "comment_author": self.comment_author,
            "min_column_width": self.min_column_width,
            "max_column_width": self.max_column_width,
            "log_level": self.log_level,
            "debug": self.debug,
            "cors_origins": self.cors_origins,
            "server_host": self.server_host,
            "server_port": self.server_port,
        }


def validate_settings_on_startup(s: Settings) -> None:
    """Validate settings on application startup.

    Emits warnings for settings that are legal but unwise in production
    and logs a configuration summary.

    Args:
        s: Settings instance to validate.
    """
    logger = logging.getLogger(__name__)

    if s.cors_origins == "*" and not s.debug:
        logger.warning(
            "CORS is configured to allow all origins (*). "
            "Consider restricting this in production."
        )

    summary = ", ".join(f"{key}={value}" for key, value in s.to_safe_dict().items())
    logger.info(f"Configuration loaded: {summary}")


# Create the global settings instance
settings = Settings()
