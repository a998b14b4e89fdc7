"""Centralized exception classes for the spreadsheet XML reader.

This module provides a hierarchy of custom exceptions with error codes and
structured error details for consistent error handling throughout the
package.

Exception Hierarchy:
    SpreadsheetReaderError (base)
    ├── FileError
    │   ├── SpreadsheetFileNotFoundError
    │   ├── FileTooLargeError
    │   ├── InvalidSpreadsheetFormatError
    │   ├── EncodingError
    │   └── MalformedMarkupError
    └── ConversionError
        └── FormulaReferenceError

Error Codes:
    All errors have a unique error code (e.g., "E1001") that can be used
    for programmatic error handling and documentation.

Non-fatal conditions (unrecognized style values, unknown custom property
types, filtered cells) are policy defaults and never raise.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Enumeration of all error codes used in the package.

    Error codes are grouped by category:
    - E1xxx: File/document errors
    - E4xxx: Conversion errors raised while building the model
    - E9xxx: Internal/unexpected errors
    """

    # File errors (E1xxx)
    FILE_NOT_FOUND = "E1001"
    FILE_TOO_LARGE = "E1002"
    INVALID_FORMAT = "E1003"
    FILE_READ_ERROR = "E1004"
    ENCODING_ERROR = "E1006"
    MALFORMED_MARKUP = "E1007"

    # Conversion errors (E4xxx)
    CONVERSION_FAILED = "E4001"
    FORMULA_REFERENCE_OUT_OF_RANGE = "E4002"

    # Internal errors (E9xxx)
    INTERNAL_ERROR = "E9001"
    CONFIGURATION_ERROR = "E9002"


class SpreadsheetReaderError(Exception):
    """Base exception for all spreadsheet reader errors.

    Attributes:
        message: Human-readable error message.
        error_code: Unique error code from ErrorCode enum.
        details: Optional dictionary with additional error details.
    """

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
        """Convert the exception to a dictionary for structured logging.

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
# File Errors (E1xxx)
# =============================================================================


class FileError(SpreadsheetReaderError):
    """Base class for errors about the input document itself."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.FILE_READ_ERROR,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with file path information.

        Args:
            message: Error message.
            error_code: Error code.
            file_path: Path to the problematic file.
            details: Additional details.
        """
        details = details or {}
        if file_path:
            details["file_path"] = file_path
        super().__init__(message, error_code, details)
        self.file_path = file_path


class SpreadsheetFileNotFoundError(FileError):
    """Raised when the input document does not exist.

    Note: Named to avoid shadowing built-in FileNotFoundError.
    """

    def __init__(
        self,
        file_path: str,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with file path.

        Args:
            file_path: Path to the file that was not found.
            message: Optional custom message.
            details: Additional details.
        """
        message = message or (
            f"Could not open {file_path} for reading: file does not exist"
        )
        super().__init__(
            message=message,
            error_code=ErrorCode.FILE_NOT_FOUND,
            file_path=file_path,
            details=details,
        )


class FileTooLargeError(FileError):
    """Raised when a document exceeds the configured size limit."""

    def __init__(
        self,
        file_size: int,
        max_size: int,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with size information.

        Args:
            file_size: Actual file size in bytes.
            max_size: Maximum allowed size in bytes.
            file_path: Optional file path.
            details: Additional details.
        """
        details = details or {}
        details["file_size_bytes"] = file_size
        details["max_size_bytes"] = max_size
        message = (
            f"File size ({file_size} bytes) exceeds maximum "
            f"allowed size ({max_size} bytes)"
        )
        super().__init__(
            message=message,
            error_code=ErrorCode.FILE_TOO_LARGE,
            file_path=file_path,
            details=details,
        )
        self.file_size = file_size
        self.max_size = max_size


class InvalidSpreadsheetFormatError(FileError):
    """Raised when the signature check fails or required structure is missing."""

    def __init__(
        self,
        message: str,
        missing_signatures: list[str] | None = None,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the signature entries that were not found.

        Args:
            message: Error message.
            missing_signatures: Signature tokens absent from the prefix.
            file_path: Optional file path.
            details: Additional details.
        """
        details = details or {}
        if missing_signatures:
            details["missing_signatures"] = missing_signatures
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_FORMAT,
            file_path=file_path,
            details=details,
        )
        self.missing_signatures = missing_signatures or []


class EncodingError(FileError):
    """Raised when the declared charset is not a known codec."""

    def __init__(
        self,
        message: str,
        encoding: str | None = None,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with encoding information.

        Args:
            message: Error message.
            encoding: The encoding that caused the error.
            file_path: Optional file path.
            details: Additional details.
        """
        details = details or {}
        if encoding:
            details["encoding"] = encoding
        super().__init__(
            message=message,
            error_code=ErrorCode.ENCODING_ERROR,
            file_path=file_path,
            details=details,
        )
        self.encoding = encoding


class MalformedMarkupError(FileError):
    """Raised when the underlying XML cannot be parsed."""

    def __init__(
        self,
        message: str,
        line: int | None = None,
        column: int | None = None,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the parser position.

        Args:
            message: Error message.
            line: Line reported by the XML parser.
            column: Column reported by the XML parser.
            file_path: Optional file path.
            details: Additional details.
        """
        details = details or {}
        if line is not None:
            details["line"] = line
        if column is not None:
            details["column"] = column
        super().__init__(
            message=message,
            error_code=ErrorCode.MALFORMED_MARKUP,
            file_path=file_path,
            details=details,
        )


# =============================================================================
# Conversion Errors (E4xxx)
# =============================================================================


class ConversionError(SpreadsheetReaderError):
    """Base class for errors raised while building the spreadsheet model."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.CONVERSION_FAILED,
        sheet_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the worksheet being converted.

        Args:
            message: Error message.
            error_code: Error code.
            sheet_name: Worksheet in which the error occurred.
            details: Additional details.
        """
        details = details or {}
        if sheet_name:
            details["sheet_name"] = sheet_name
        super().__init__(message, error_code, details)
        self.sheet_name = sheet_name


class FormulaReferenceError(ConversionError):
    """Raised when a relative reference resolves before row 1 or column A."""

    def __init__(
        self,
        formula: str,
        row: int,
        column: int,
        sheet_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the offending formula and resolved position.

        Args:
            formula: Formula text being translated.
            row: Resolved (out-of-range) row number.
            column: Resolved (out-of-range) column number.
            sheet_name: Worksheet containing the formula.
            details: Additional details.
        """
        details = details or {}
        details["formula"] = formula
        details["resolved_row"] = row
        details["resolved_column"] = column
        super().__init__(
            message=(
                f"Formula reference resolves outside the sheet "
                f"(row {row}, column {column}): {formula}"
            ),
            error_code=ErrorCode.FORMULA_REFERENCE_OUT_OF_RANGE,
            sheet_name=sheet_name,
            details=details,
        )
        self.formula = formula
        self.row = row
        self.column = column
