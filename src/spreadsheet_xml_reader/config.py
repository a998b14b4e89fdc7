"""Configuration management for the spreadsheet XML reader.

This module provides centralized configuration using pydantic-settings.
All configuration options can be set via environment variables with the
SXR_ prefix, or via a .env file in the working directory.

Environment Variables:
    SXR_MAX_FILE_SIZE_MB: Largest document accepted for a full load (default: 50)
    SXR_DEFAULT_CHARSET: Charset used when the prolog declares none (default: UTF-8)
    SXR_DATE_CALENDAR: Serial date epoch, "1900" or "1904" (default: 1900)
    SXR_LOG_LEVEL: Logging level (default: INFO)
    SXR_DEBUG: Enable debug mode (default: false)
"""

import codecs
import logging
from datetime import datetime
from typing import Any, Literal

from openpyxl.utils.datetime import MAC_EPOCH, WINDOWS_EPOCH
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Reader settings loaded from environment variables.

    Example .env file:
        SXR_LOG_LEVEL=DEBUG
        SXR_DATE_CALENDAR=1904
    """

    model_config = SettingsConfigDict(
        env_prefix="SXR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # Input Settings
    # =========================================================================

    max_file_size_mb: int = 50
    """Largest document, in megabytes, that a full load will parse."""

    default_charset: str = "UTF-8"
    """Charset assumed when the XML prolog carries no encoding declaration."""

    # =========================================================================
    # Conversion Settings
    # =========================================================================

    date_calendar: Literal["1900", "1904"] = "1900"
    """Epoch used when converting DateTime cells to serial dates."""

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = "INFO"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    debug: bool = False
    """Enable debug mode with per-worksheet logging."""

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

    @field_validator("max_file_size_mb")
    @classmethod
    def validate_file_size(cls, v: int) -> int:
        """Validate file size is positive and reasonable."""
        if not 1 <= v <= 2048:
            raise ValueError(f"max_file_size_mb must be between 1 and 2048, got {v}")
        return v

    @field_validator("default_charset")
    @classmethod
    def validate_default_charset(cls, v: str) -> str:
        """Validate the charset names a codec Python knows about."""
        try:
            codecs.lookup(v)
        except LookupError as exc:
            raise ValueError(f"Unknown charset: {v}") from exc
        return v.strip().upper()

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def max_file_size_bytes(self) -> int:
        """Get max file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    @property
    def date_epoch(self) -> datetime:
        """Get the epoch matching ``date_calendar``."""
        if self.date_calendar == "1904":
            return MAC_EPOCH
        return WINDOWS_EPOCH

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        level: int = getattr(logging, self.log_level)
        return level

    def to_safe_dict(self) -> dict[str, Any]:
        """Convert settings to a dictionary suitable for logging."""
        return {
            "max_file_size_mb": self.max_file_size_mb,
            "default_charset": self.default_charset,
            "date_calendar": self.date_calendar,
            "log_level": self.log_level,
            "debug": self.debug,
        }


# Create the global settings instance
settings = Settings()
