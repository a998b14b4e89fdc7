"""Builds the spreadsheet model from a parsed XML Spreadsheet tree.

The loader walks the document once, in order: document properties, the style
table, then every worksheet's columns, rows and cells. Row and cell positions
follow the format's gap-filling rule: an ``ss:Index`` attribute moves the
pointer, and elements without one continue from the previous position + 1.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from collections.abc import Callable, Collection
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from openpyxl.utils.datetime import WINDOWS_EPOCH

from spreadsheet_xml_reader.models import (
    CellDataType,
    CustomPropertyType,
    PageOrientation,
)
from spreadsheet_xml_reader.services.formula_translator import (
    FormulaReferenceTranslator,
)
from spreadsheet_xml_reader.services.style_resolver import StyleResolver
from spreadsheet_xml_reader.services.xml_tree import (
    NAMESPACES,
    find_data,
    check_column_range,
    float_attr,
    int_attr,
    iter_cells,
    iter_columns,
    iter_rows,
    iter_worksheets,
    local_name,
    qname,
    ss_attr,
)
from spreadsheet_xml_reader.spreadsheet_document import (
    Cell,
    Comment,
    DocumentProperties,
    MergeRegion,
    PageSetup,
    RichText,
    Spreadsheet,
    Worksheet,
)
from spreadsheet_xml_reader.style_records import Style
from spreadsheet_xml_reader.utils.cell_address import (
    MAX_COLUMNS,
    cell_address,
    column_letter,
)
from spreadsheet_xml_reader.utils.dates import to_serial_date, to_timestamp
from spreadsheet_xml_reader.utils.exceptions import (
    ConversionError,
    FormulaReferenceError,
    InvalidSpreadsheetFormatError,
)
from spreadsheet_xml_reader.utils.logging import LoadMetrics, get_logger

logger = get_logger(__name__)

ReadFilter = Callable[[str, int, str], bool]
"""Predicate ``(column_letter, row, sheet_name) -> bool``; False skips the cell."""

DataConverter = Callable[[str], tuple[Any, CellDataType]]

# Column widths are stored in pixels; dividing yields character widths
COLUMN_WIDTH_SCALE = 5.4

DOCUMENT_TEXT_PROPERTIES: dict[str, str] = {
    "Title": "title",
    "Subject": "subject",
    "Author": "creator",
    "LastAuthor": "last_modified_by",
    "Company": "company",
    "Category": "category",
    "Manager": "manager",
    "Keywords": "keywords",
    "Description": "description",
}

DOCUMENT_TIMESTAMP_PROPERTIES: dict[str, str] = {
    "Created": "created",
    "LastSaved": "modified",
}

CUSTOM_PROPERTY_TYPES: dict[str, CustomPropertyType] = {
    "string": CustomPropertyType.STRING,
    "boolean": CustomPropertyType.BOOLEAN,
    "integer": CustomPropertyType.INTEGER,
    "float": CustomPropertyType.FLOAT,
    "dateTime.tz": CustomPropertyType.DATE,
}

_ESCAPED_NAME_CHARACTER = re.compile(r"_x([0-9a-fA-F]{4})_")


class DataKind(str, Enum):
    """Values of the ``ss:Type`` attribute of a ``Data`` element."""

    STRING = "String"
    NUMBER = "Number"
    BOOLEAN = "Boolean"
    DATETIME = "DateTime"
    ERROR = "Error"


@dataclass
class ReadOptions:
    """Options controlling which parts of a document are loaded."""

    sheet_names: Collection[str] | None = None
    read_filter: ReadFilter | None = None


def _to_boolean(text: str) -> bool:
    """Numeric text is true when non-zero; other text only when it reads "true"."""
    stripped = text.strip()
    try:
        return float(stripped) != 0
    except ValueError:
        return stripped.lower() == "true"


def _to_number(text: str) -> int | float:
    number = float(text)
    if number.is_integer():
        return int(number)
    return number


def decode_property_name(name: str) -> str:
    """Decode ``_xHHHH_`` escapes used for characters illegal in XML names."""
    return _ESCAPED_NAME_CHARACTER.sub(lambda m: chr(int(m.group(1), 16)), name)


class DocumentLoader:
    """Converts a parsed workbook tree into a ``Spreadsheet``.

    The loader keeps no state between calls: the style table is built inside
    each ``load`` and dropped when it returns.
    """

    def __init__(
        self,
        style_resolver: StyleResolver | None = None,
        formula_translator: FormulaReferenceTranslator | None = None,
        date_epoch: datetime = WINDOWS_EPOCH,
    ) -> None:
        self._style_resolver = style_resolver or StyleResolver()
        self._formula_translator = formula_translator or FormulaReferenceTranslator()
        self._date_epoch = date_epoch
        self._data_converters: dict[DataKind, DataConverter] = {
            DataKind.STRING: lambda text: (text, CellDataType.STRING),
            DataKind.NUMBER: lambda text: (_to_number(text), CellDataType.NUMERIC),
            DataKind.BOOLEAN: lambda text: (_to_boolean(text), CellDataType.BOOLEAN),
            DataKind.DATETIME: lambda text: (
                to_serial_date(text, self._date_epoch),
                CellDataType.NUMERIC,
            ),
            DataKind.ERROR: lambda text: (text, CellDataType.ERROR),
        }

    def load(
        self,
        root: ET.Element,
        options: ReadOptions | None = None,
        metrics: LoadMetrics | None = None,
    ) -> Spreadsheet:
        """Build the spreadsheet model.

        Args:
            root: The parsed ``ss:Workbook`` element.
            options: Sheet selection and read filter.
            metrics: Counters to update, if the caller is timing the load.

        Returns:
            The complete model. Nothing is returned on failure.

        Raises:
            InvalidSpreadsheetFormatError: If two worksheets share a name, or
                an index, span or size attribute is malformed or out of range.
            ConversionError: If a cell value cannot be converted to its
                declared type.
            FormulaReferenceError: If a formula reference resolves before
                row 1 or column A.
        """
        opts = options or ReadOptions()
        spreadsheet = Spreadsheet()
        self._load_properties(root, spreadsheet.properties)

        styles = self._style_resolver.resolve(root)
        if metrics is not None:
            metrics.styles_resolved = len(styles)

        for ordinal, node in enumerate(iter_worksheets(root), start=1):
            name = ss_attr(node, "Name") or f"Worksheet_{ordinal}"
            if opts.sheet_names is not None and name not in opts.sheet_names:
                continue

            sheet = Worksheet(name=name)
            try:
                spreadsheet.add_sheet(sheet)
            except ValueError as exc:
                raise InvalidSpreadsheetFormatError(str(exc)) from exc

            self._load_columns(node, sheet)
            cells_loaded = self._load_rows(node, sheet, styles, opts.read_filter)
            self._load_page_setup(node, sheet.page_setup)

            logger.debug(
                "Loaded worksheet",
                sheet=sheet.name,
                cells=cells_loaded,
                merges=len(sheet.merge_regions),
            )
            if metrics is not None:
                metrics.sheets_loaded += 1
                metrics.cells_loaded += cells_loaded
                metrics.merges_registered += len(sheet.merge_regions)

        active = root.findtext("x:ExcelWorkbook/x:ActiveSheet", namespaces=NAMESPACES)
        if active and active.strip().isdigit():
            spreadsheet.active_sheet_index = int(active)

        return spreadsheet

    # ------------------------------------------------------------------ #
    # Document properties
    # ------------------------------------------------------------------ #

    def _load_properties(self, root: ET.Element, props: DocumentProperties) -> None:
        node = root.find("o:DocumentProperties", NAMESPACES)
        if node is not None:
            for child in node:
                name = local_name(child.tag)
                text = child.text or ""
                if name in DOCUMENT_TEXT_PROPERTIES:
                    setattr(props, DOCUMENT_TEXT_PROPERTIES[name], text)
                elif name in DOCUMENT_TIMESTAMP_PROPERTIES:
                    try:
                        timestamp = to_timestamp(text)
                    except ValueError:
                        logger.debug("Ignoring unreadable timestamp", name=name)
                        continue
                    setattr(props, DOCUMENT_TIMESTAMP_PROPERTIES[name], timestamp)

        custom = root.find("o:CustomDocumentProperties", NAMESPACES)
        if custom is None:
            return
        for child in custom:
            value, property_type = self._convert_custom_property(
                child.text or "", child.get(qname("dt", "dt"))
            )
            props.set_custom_property(
                decode_property_name(local_name(child.tag)), value, property_type
            )

    @staticmethod
    def _convert_custom_property(
        text: str, declared: str | None
    ) -> tuple[Any, CustomPropertyType]:
        property_type = CUSTOM_PROPERTY_TYPES.get(declared or "")
        try:
            if property_type is CustomPropertyType.STRING:
                return text.strip(), property_type
            if property_type is CustomPropertyType.BOOLEAN:
                return _to_boolean(text), property_type
            if property_type is CustomPropertyType.INTEGER:
                return int(text.strip()), property_type
            if property_type is CustomPropertyType.FLOAT:
                return float(text.strip()), property_type
            if property_type is CustomPropertyType.DATE:
                return to_timestamp(text), property_type
        except ValueError:
            logger.debug("Keeping unconvertible custom property", declared=declared)
        return text, CustomPropertyType.UNKNOWN

    # ------------------------------------------------------------------ #
    # Worksheet layout
    # ------------------------------------------------------------------ #

    def _load_columns(self, node: ET.Element, sheet: Worksheet) -> None:
        column = 0
        for column_node in iter_columns(node):
            index = int_attr(column_node, "Index", sheet.name, 1, MAX_COLUMNS)
            if index is not None:
                column = index - 1
            span = int_attr(column_node, "Span", sheet.name) or 0
            check_column_range(column + span, column_node, sheet.name)
            width = float_attr(column_node, "Width", sheet.name)
            if width is not None:
                for offset in range(span + 1):
                    sheet.column_widths[column_letter(column + offset)] = (
                        width / COLUMN_WIDTH_SCALE
                    )
            column += span + 1

    def _load_page_setup(self, node: ET.Element, page_setup: PageSetup) -> None:
        options = node.find("x:WorksheetOptions", NAMESPACES)
        if options is None:
            return

        layout = options.find("x:PageSetup/x:Layout", NAMESPACES)
        if layout is not None:
            orientation = (layout.get(qname("x", "Orientation")) or "").lower()
            if orientation in {o.value for o in PageOrientation}:
                page_setup.orientation = PageOrientation(orientation)

        margins = options.find("x:PageSetup/x:PageMargins", NAMESPACES)
        if margins is not None:
            for side in ("Left", "Right", "Top", "Bottom"):
                value = margins.get(qname("x", side))
                if value is not None:
                    setattr(page_setup.margins, side.lower(), float(value))

        for element in ("Header", "Footer"):
            band = options.find(f"x:PageSetup/x:{element}", NAMESPACES)
            value = band.get(qname("x", "Margin")) if band is not None else None
            if value is not None:
                setattr(page_setup.margins, element.lower(), float(value))

        paper_size = options.findtext("x:Print/x:PaperSizeIndex", namespaces=NAMESPACES)
        if paper_size and paper_size.strip().isdigit():
            page_setup.paper_size = int(paper_size)

    # ------------------------------------------------------------------ #
    # Rows and cells
    # ------------------------------------------------------------------ #

    def _load_rows(
        self,
        node: ET.Element,
        sheet: Worksheet,
        styles: dict[str, Style],
        read_filter: ReadFilter | None,
    ) -> int:
        """Place every cell of the worksheet and return how many hold data."""
        cells_loaded = 0
        row = 1
        for row_node in iter_rows(node):
            index = int_attr(row_node, "Index", sheet.name, 1)
            if index is not None:
                row = index

            row_has_data = False
            column = 0
            for cell_node in iter_cells(row_node):
                index = int_attr(cell_node, "Index", sheet.name, 1, MAX_COLUMNS)
                if index is not None:
                    column = index - 1
                merge_across = int_attr(cell_node, "MergeAcross", sheet.name) or 0
                check_column_range(column + merge_across, cell_node, sheet.name)
                address = cell_address(column, row)

                # Rejected cells still occupy their merged span
                if read_filter is not None and not read_filter(
                    column_letter(column), row, sheet.name
                ):
                    column += 1 + merge_across
                    continue

                if sheet.is_merged_follower(address):
                    logger.debug("Ignoring cell inside merged range", cell=address)
                    column += 1 + merge_across
                    continue

                merge_down = int_attr(cell_node, "MergeDown", sheet.name) or 0
                if merge_across or merge_down:
                    sheet.merge_cells(
                        MergeRegion(
                            anchor=address,
                            end=cell_address(column + merge_across, row + merge_down),
                        )
                    )

                if self._load_cell(cell_node, sheet, address, column, row, styles):
                    row_has_data = True
                    cells_loaded += 1
                column += 1 + merge_across

            if row_has_data:
                style_id = ss_attr(row_node, "StyleID")
                if style_id is not None:
                    sheet.row_styles[row] = style_id
                height = float_attr(row_node, "Height", sheet.name)
                if height is not None:
                    sheet.row_heights[row] = height
            row += 1
        return cells_loaded

    def _load_cell(
        self,
        node: ET.Element,
        sheet: Worksheet,
        address: str,
        column: int,
        row: int,
        styles: dict[str, Style],
    ) -> bool:
        """Apply value, comment and style of one cell; True if it held data."""
        cell_is_set = False
        data = find_data(node)
        if data is not None:
            value, data_type = self._convert_data(data, sheet.name, address)
            formula = None
            formula_text = ss_attr(node, "Formula")
            if formula_text is not None:
                data_type = CellDataType.FORMULA
                formula = self._translate(
                    formula_text, sheet.name, address, row, column
                )
            sheet.set_cell(
                Cell(address=address, value=value, data_type=data_type, formula=formula)
            )
            cell_is_set = True

        comment_node = node.find("ss:Comment", NAMESPACES)
        if comment_node is not None:
            self._target_cell(sheet, address).comment = self._read_comment(comment_node)

        style_id = ss_attr(node, "StyleID")
        if cell_is_set and style_id is not None:
            cell = self._target_cell(sheet, address)
            cell.style_id = style_id
            style = styles.get(style_id)
            # Applied to the anchor; merged followers resolve to it
            if style is not None and not style.is_empty():
                cell.style = style

        return cell_is_set

    @staticmethod
    def _target_cell(sheet: Worksheet, address: str) -> Cell:
        """Return the cell at ``address``, creating a null placeholder if needed."""
        cell = sheet.get_cell(address)
        if cell is None:
            cell = sheet.set_cell(
                Cell(address=address, value=None, data_type=CellDataType.NULL)
            )
        return cell

    def _convert_data(
        self, data: ET.Element, sheet_name: str, address: str
    ) -> tuple[Any, CellDataType]:
        declared = ss_attr(data, "Type")
        try:
            kind = DataKind(declared)
        except ValueError:
            return None, CellDataType.NULL

        # String data may carry inline HTML formatting; keep only the text
        text = "".join(data.itertext())
        try:
            return self._data_converters[kind](text)
        except ValueError as exc:
            raise ConversionError(
                f"Cannot convert {text!r} to {kind.value} in cell {address}",
                sheet_name=sheet_name,
                details={"cell": address, "declared_type": kind.value},
            ) from exc

    def _translate(
        self, formula: str, sheet_name: str, address: str, row: int, column: int
    ) -> str:
        try:
            return self._formula_translator.translate(formula, row, column + 1)
        except FormulaReferenceError as exc:
            raise FormulaReferenceError(
                formula=exc.formula,
                row=exc.row,
                column=exc.column,
                sheet_name=sheet_name,
                details={"cell": address},
            ) from exc

    @staticmethod
    def _read_comment(node: ET.Element) -> Comment:
        author = ss_attr(node, "Author") or "unknown"
        data = find_data(node)
        # Markup inside the comment body is dropped, its text kept
        text = "".join(data.itertext()) if data is not None else ""
        return Comment(text=RichText(text), author=author)
