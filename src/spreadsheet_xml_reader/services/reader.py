"""Reader facade for XML Spreadsheet 2003 documents.

A read happens in two phases: the first ``PREFIX_LENGTH`` bytes are sniffed
for the format signature and declared charset, then the whole document is
parsed with that charset and handed to the requested operation.
"""

from __future__ import annotations

import uuid
import xml.etree.ElementTree as ET
from pathlib import Path

import pandas as pd

from spreadsheet_xml_reader.config import Settings
from spreadsheet_xml_reader.config import settings as default_settings
from spreadsheet_xml_reader.models import FormatInfo, WorksheetInfo
from spreadsheet_xml_reader.services.document_loader import (
    DocumentLoader,
    ReadOptions,
)
from spreadsheet_xml_reader.services.format_detector import (
    PREFIX_LENGTH,
    FormatDetector,
)
from spreadsheet_xml_reader.services.worksheet_enumerator import WorksheetEnumerator
from spreadsheet_xml_reader.services.xml_tree import parse_document
from spreadsheet_xml_reader.spreadsheet_document import Spreadsheet
from spreadsheet_xml_reader.utils.exceptions import (
    FileError,
    FileTooLargeError,
    InvalidSpreadsheetFormatError,
    SpreadsheetFileNotFoundError,
)
from spreadsheet_xml_reader.utils.logging import (
    LogContext,
    get_logger,
    set_package_log_level,
    timed_operation,
)

logger = get_logger(__name__)

IN_MEMORY_SOURCE = "<memory>"


class SpreadsheetReader:
    """Reads XML Spreadsheet documents from disk or memory.

    Example:
        reader = SpreadsheetReader()
        if reader.can_read(path):
            workbook = reader.load(path, ReadOptions(sheet_names={"Data"}))
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or default_settings
        set_package_log_level(self._settings.log_level_int, self._settings.debug)
        self._detector = FormatDetector(self._settings.default_charset)
        self._enumerator = WorksheetEnumerator()
        self._loader = DocumentLoader(date_epoch=self._settings.date_epoch)

    def can_read(self, file_path: str | Path) -> bool:
        """Return True if the file looks like an XML Spreadsheet document.

        Missing or unreadable files yield False rather than an error.
        """
        path = Path(file_path)
        if not path.is_file():
            return False
        try:
            prefix = self._read_prefix(path)
        except FileError:
            return False
        return self._detector.can_read(prefix)

    def list_worksheet_names(self, file_path: str | Path) -> list[str]:
        """List worksheet names without building the spreadsheet model."""
        root = self._open(Path(file_path))
        return self._enumerator.list_names(root)

    def list_worksheet_info(self, file_path: str | Path) -> list[WorksheetInfo]:
        """List worksheet names and data extents without loading cells."""
        root = self._open(Path(file_path))
        return self._enumerator.list_info(root)

    def load(
        self, file_path: str | Path, options: ReadOptions | None = None
    ) -> Spreadsheet:
        """Load a document into a new spreadsheet model.

        Args:
            file_path: Path to the document.
            options: Sheet selection and read filter.

        Returns:
            The loaded spreadsheet.

        Raises:
            SpreadsheetFileNotFoundError: If the file does not exist.
            FileTooLargeError: If the file exceeds the configured size limit.
            InvalidSpreadsheetFormatError: If the signature is missing or the
                document is structurally invalid.
            EncodingError: If the declared charset is unknown.
            MalformedMarkupError: If the XML cannot be parsed.
            ConversionError: If a cell value or formula cannot be converted.
        """
        path = Path(file_path)
        with LogContext(load_id=uuid.uuid4().hex[:12], source=path.name):
            root = self._open(path)
            return self._load_root(root, options)

    def load_from_content(
        self, content: bytes, options: ReadOptions | None = None
    ) -> Spreadsheet:
        """Load a document already held in memory.

        Raises the same errors as ``load``, except the file-level ones.
        """
        with LogContext(load_id=uuid.uuid4().hex[:12], source=IN_MEMORY_SOURCE):
            self._check_size(len(content), IN_MEMORY_SOURCE)
            info = self._detect(content[:PREFIX_LENGTH], IN_MEMORY_SOURCE)
            root = parse_document(content, info.charset, IN_MEMORY_SOURCE)
            return self._load_root(root, options)

    def load_as_dataframe(
        self, file_path: str | Path, sheet_name: str | None = None
    ) -> pd.DataFrame:
        """Load one worksheet as a DataFrame, using its first row as header.

        Args:
            file_path: Path to the document.
            sheet_name: Worksheet to load; the active sheet when omitted.

        Raises:
            ValueError: If ``sheet_name`` does not name a worksheet.
        """
        options = ReadOptions(sheet_names={sheet_name}) if sheet_name else None
        spreadsheet = self.load(file_path, options)

        if sheet_name is not None:
            if sheet_name not in spreadsheet.sheet_names:
                raise ValueError(f"Sheet '{sheet_name}' not found in workbook")
            sheet = spreadsheet.get_sheet(sheet_name)
        else:
            sheet = spreadsheet.active_sheet
        if sheet is None:
            return pd.DataFrame()

        data = list(sheet.iter_rows(values_only=True))
        # If first row is header use it, else create generic
        headers = data[0] if data else []
        rows = data[1:] if len(data) > 1 else []
        return pd.DataFrame(rows, columns=headers if headers else None)

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _load_root(self, root: ET.Element, options: ReadOptions | None) -> Spreadsheet:
        with timed_operation(logger, "load") as metrics:
            spreadsheet = self._loader.load(root, options, metrics)
        logger.info(
            "Loaded spreadsheet",
            sheets=len(spreadsheet.sheets),
            sheet_names=spreadsheet.sheet_names,
        )
        return spreadsheet

    def _open(self, path: Path) -> ET.Element:
        """Run both read phases against a file and return the parsed root."""
        if not path.is_file():
            raise SpreadsheetFileNotFoundError(str(path))
        self._check_size(path.stat().st_size, str(path))

        info = self._detect(self._read_prefix(path), str(path))
        try:
            content = path.read_bytes()
        except OSError as exc:
            raise FileError(
                f"Could not read {path}: {exc}", file_path=str(path)
            ) from exc
        return parse_document(content, info.charset, str(path))

    def _detect(self, prefix: bytes, source: str) -> FormatInfo:
        info = self._detector.detect(prefix)
        if not info.is_valid:
            raise InvalidSpreadsheetFormatError(
                f"{source} is an Invalid Spreadsheet file",
                missing_signatures=info.missing_signatures,
                file_path=source,
            )
        logger.debug("Detected spreadsheet format", charset=info.charset)
        return info

    def _check_size(self, size: int, source: str) -> None:
        max_size = self._settings.max_file_size_bytes
        if size > max_size:
            raise FileTooLargeError(size, max_size, file_path=source)

    @staticmethod
    def _read_prefix(path: Path) -> bytes:
        try:
            with path.open("rb") as handle:
                return handle.read(PREFIX_LENGTH)
        except OSError as exc:
            raise FileError(
                f"Could not read {path}: {exc}", file_path=str(path)
            ) from exc
