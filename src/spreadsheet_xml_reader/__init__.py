"""Spreadsheet XML Reader - loads Office 2003 XML Spreadsheet documents."""

from spreadsheet_xml_reader.services.document_loader import ReadOptions
from spreadsheet_xml_reader.services.reader import SpreadsheetReader
from spreadsheet_xml_reader.spreadsheet_document import Spreadsheet, Worksheet

__all__ = ["ReadOptions", "Spreadsheet", "SpreadsheetReader", "Worksheet"]
__version__ = "0.1.0"
