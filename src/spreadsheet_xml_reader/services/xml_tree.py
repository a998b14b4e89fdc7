"""Parsing and namespace-aware access to an XML Spreadsheet document tree."""

import codecs
import math
import re
import xml.etree.ElementTree as ET

from spreadsheet_xml_reader.utils.cell_address import MAX_COLUMNS
from spreadsheet_xml_reader.utils.exceptions import (
    EncodingError,
    InvalidSpreadsheetFormatError,
    MalformedMarkupError,
)

# Namespaces declared by documents written by the spreadsheet application
NAMESPACES: dict[str, str] = {
    # Office
    "o": "urn:schemas-microsoft-com:office:office",
    # Excel
    "x": "urn:schemas-microsoft-com:office:excel",
    # XML Spreadsheet
    "ss": "urn:schemas-microsoft-com:office:spreadsheet",
    # Spreadsheet component
    "c": "urn:schemas-microsoft-com:office:component:spreadsheet",
    # XML schema
    "s": "uuid:BDC6E3F0-6DA3-11d1-A2A3-00AA00C14882",
    # XML data type
    "dt": "uuid:C2F41010-65B3-11d1-A29F-00AA00C14882",
    # MS-persist recordset
    "rs": "urn:schemas-microsoft-com:rowset",
    # Rowset
    "z": "#RowsetSchema",
}

# Tolerates the NUL bytes of UTF-16 content between characters
_FORBIDDEN_DECLARATIONS = re.compile(
    b"|".join(
        b"\x00?".join(re.escape(bytes([ch])) for ch in marker)
        for marker in (b"<!DOCTYPE", b"<!ENTITY")
    ),
    re.IGNORECASE,
)


def qname(prefix: str, local: str) -> str:
    """Return the Clark-notation name ``{uri}local`` for a known prefix."""
    return f"{{{NAMESPACES[prefix]}}}{local}"


def ss_attr(element: ET.Element, name: str) -> str | None:
    """Read an ``ss:``-qualified attribute."""
    return element.get(qname("ss", name))


def local_name(tag: str) -> str:
    """Strip the namespace part from an element tag."""
    return tag.rsplit("}", 1)[-1]


def _invalid_attribute(
    element: ET.Element, name: str, value: str, sheet_name: str, expected: str
) -> InvalidSpreadsheetFormatError:
    element_name = local_name(element.tag)
    return InvalidSpreadsheetFormatError(
        f"Worksheet {sheet_name!r}: {element_name} ss:{name} must be {expected}, "
        f"got {value!r}",
        details={
            "sheet": sheet_name,
            "element": element_name,
            "attribute": f"ss:{name}",
            "value": value,
        },
    )


def int_attr(
    element: ET.Element,
    name: str,
    sheet_name: str,
    minimum: int = 0,
    maximum: int | None = None,
) -> int | None:
    """Read an ``ss:`` integer attribute, None when absent.

    Raises:
        InvalidSpreadsheetFormatError: If the value is not an integer within
            ``minimum``..``maximum``.
    """
    value = ss_attr(element, name)
    if value is None:
        return None
    expected = f"an integer >= {minimum}"
    if maximum is not None:
        expected = f"an integer between {minimum} and {maximum}"
    try:
        number = int(value)
    except ValueError as exc:
        raise _invalid_attribute(element, name, value, sheet_name, expected) from exc
    if number < minimum or (maximum is not None and number > maximum):
        raise _invalid_attribute(element, name, value, sheet_name, expected)
    return number


def float_attr(element: ET.Element, name: str, sheet_name: str) -> float | None:
    """Read a non-negative ``ss:`` measurement attribute, None when absent."""
    value = ss_attr(element, name)
    if value is None:
        return None
    expected = "a non-negative number"
    try:
        number = float(value)
    except ValueError as exc:
        raise _invalid_attribute(element, name, value, sheet_name, expected) from exc
    if not (math.isfinite(number) and number >= 0):
        raise _invalid_attribute(element, name, value, sheet_name, expected)
    return number


def check_column_range(
    last_column: int, element: ET.Element, sheet_name: str
) -> None:
    """Reject an element whose 0-based end column has no column letters."""
    if last_column >= MAX_COLUMNS:
        element_name = local_name(element.tag)
        raise InvalidSpreadsheetFormatError(
            f"Worksheet {sheet_name!r}: {element_name} extends past column "
            f"{MAX_COLUMNS}",
            details={"sheet": sheet_name, "element": element_name},
        )


def iter_worksheets(root: ET.Element) -> list[ET.Element]:
    return root.findall("ss:Worksheet", NAMESPACES)


def iter_rows(worksheet: ET.Element) -> list[ET.Element]:
    return worksheet.findall("ss:Table/ss:Row", NAMESPACES)


def iter_columns(worksheet: ET.Element) -> list[ET.Element]:
    return worksheet.findall("ss:Table/ss:Column", NAMESPACES)


def iter_cells(row: ET.Element) -> list[ET.Element]:
    return row.findall("ss:Cell", NAMESPACES)


def find_data(element: ET.Element) -> ET.Element | None:
    return element.find("ss:Data", NAMESPACES)


def parse_document(
    content: bytes, charset: str, file_path: str | None = None
) -> ET.Element:
    """Parse the whole document into a tree and validate its root.

    Args:
        content: Complete document bytes.
        charset: Charset detected from the prolog; overrides the parser's own
            detection so every text node is decoded with it.
        file_path: Source path, reported in errors.

    Returns:
        The ``ss:Workbook`` root element.

    Raises:
        EncodingError: If the charset is not a known codec.
        InvalidSpreadsheetFormatError: If the document declares a DOCTYPE or
            entities, or its root is not a workbook.
        MalformedMarkupError: If the XML cannot be parsed.
    """
    try:
        codecs.lookup(charset)
    except LookupError as exc:
        raise EncodingError(
            f"Unknown charset declared by document: {charset}",
            encoding=charset,
            file_path=file_path,
        ) from exc

    if _FORBIDDEN_DECLARATIONS.search(content):
        raise InvalidSpreadsheetFormatError(
            "Detected a DOCTYPE or ENTITY declaration; "
            "load aborted to prevent entity expansion attacks",
            file_path=file_path,
        )

    parser = ET.XMLParser(encoding=charset)
    try:
        parser.feed(content)
        root = parser.close()
    except ET.ParseError as exc:
        line, column = exc.position
        raise MalformedMarkupError(
            f"Unable to parse spreadsheet XML: {exc}",
            line=line,
            column=column,
            file_path=file_path,
        ) from exc

    if root.tag != qname("ss", "Workbook"):
        raise InvalidSpreadsheetFormatError(
            f"Root element is {local_name(root.tag)!r}, expected a spreadsheet "
            "Workbook",
            file_path=file_path,
        )
    return root
