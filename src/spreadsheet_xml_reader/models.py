"""Enumerations and pydantic models shared across the reader."""

from enum import Enum

from pydantic import BaseModel, Field


class CellDataType(str, Enum):
    """Type tag carried by every cell."""

    STRING = "string"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    ERROR = "error"
    FORMULA = "formula"
    NULL = "null"


class CustomPropertyType(str, Enum):
    """Declared type of a custom document property."""

    STRING = "string"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    DATE = "date"
    UNKNOWN = "unknown"


class PageOrientation(str, Enum):
    """Page orientation requested by a worksheet's print settings."""

    DEFAULT = "default"
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


class FormatInfo(BaseModel):
    """Result of sniffing a document prefix."""

    is_valid: bool = Field(
        ..., description="Whether every signature entry was found in the prefix"
    )
    charset: str = Field(
        default="UTF-8", description="Charset declared by the XML prolog"
    )
    missing_signatures: list[str] = Field(
        default_factory=list,
        description="Signature entries that were not found in the prefix",
    )


class WorksheetInfo(BaseModel):
    """Worksheet inventory entry produced without building the model."""

    worksheet_name: str = Field(..., description="Declared or generated sheet name")
    last_column_letter: str = Field(
        default="A", description="Letter of the last column holding data"
    )
    last_column_index: int = Field(
        default=0, description="0-based index of the last column holding data"
    )
    total_rows: int = Field(
        default=0, description="Number of rows with at least one data cell"
    )
    total_columns: int = Field(
        default=1, description="Column count implied by last_column_index"
    )
