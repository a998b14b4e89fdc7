"""Services for reading XML Spreadsheet documents."""

from spreadsheet_xml_reader.services.document_loader import (
    DocumentLoader,
    ReadOptions,
)
from spreadsheet_xml_reader.services.format_detector import FormatDetector
from spreadsheet_xml_reader.services.formula_translator import (
    FormulaReferenceTranslator,
)
from spreadsheet_xml_reader.services.reader import SpreadsheetReader
from spreadsheet_xml_reader.services.style_resolver import StyleResolver
from spreadsheet_xml_reader.services.worksheet_enumerator import WorksheetEnumerator

__all__ = [
    "DocumentLoader",
    "FormatDetector",
    "FormulaReferenceTranslator",
    "ReadOptions",
    "SpreadsheetReader",
    "StyleResolver",
    "WorksheetEnumerator",
]
