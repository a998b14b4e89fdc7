"""Utilities package for the spreadsheet XML reader.

This package provides:
- Centralized exception classes (exceptions.py)
- Structured logging utilities (logging.py)
- Cell address and date conversion helpers (cell_address.py, dates.py)
"""

from spreadsheet_xml_reader.utils.exceptions import (
    ConversionError,
    EncodingError,
    ErrorCode,
    FileError,
    FileTooLargeError,
    FormulaReferenceError,
    InvalidSpreadsheetFormatError,
    MalformedMarkupError,
    SpreadsheetFileNotFoundError,
    SpreadsheetReaderError,
)
from spreadsheet_xml_reader.utils.logging import (
    LogContext,
    StructuredLogger,
    configure_logging,
    get_load_id,
    get_logger,
    set_load_id,
    set_package_log_level,
)

__all__ = [
    # Exceptions
    "ConversionError",
    "EncodingError",
    "ErrorCode",
    "FileError",
    "FileTooLargeError",
    "FormulaReferenceError",
    "InvalidSpreadsheetFormatError",
    "MalformedMarkupError",
    "SpreadsheetFileNotFoundError",
    "SpreadsheetReaderError",
    # Logging
    "LogContext",
    "StructuredLogger",
    "configure_logging",
    "get_load_id",
    "get_logger",
    "set_load_id",
    "set_package_log_level",
]
