"""Dataclasses representing a loaded spreadsheet."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from spreadsheet_xml_reader.models import (
    CellDataType,
    CustomPropertyType,
    PageOrientation,
)
from spreadsheet_xml_reader.style_records import Style
from spreadsheet_xml_reader.utils.cell_address import cell_address, split_address


@dataclass
class RichText:
    """Comment body reduced to plain text."""

    text: str

    def __str__(self) -> str:
        return self.text


@dataclass
class Comment:
    """A note attached to a cell."""

    text: RichText
    author: str = "unknown"


@dataclass
class Cell:
    """A single cell with its type tag and optional formula, style and note.

    For formula cells ``value`` holds the cached result written by the
    producing application and ``formula`` the translated A1 formula text.
    """

    address: str
    value: Any
    data_type: CellDataType
    formula: str | None = None
    style_id: str | None = None
    style: Style | None = None
    comment: Comment | None = None

    @property
    def calculated_value(self) -> Any:
        """Cached result of a formula cell, None for other cells."""
        if self.data_type is CellDataType.FORMULA:
            return self.value
        return None

    @property
    def column(self) -> int:
        """0-based column index."""
        return split_address(self.address)[0]

    @property
    def row(self) -> int:
        """1-based row number."""
        return split_address(self.address)[1]


@dataclass(frozen=True)
class MergeRegion:
    """A rectangular range whose anchor (top-left) cell is authoritative."""

    anchor: str
    end: str

    @property
    def ref(self) -> str:
        return f"{self.anchor}:{self.end}"

    @property
    def bounds(self) -> tuple[int, int, int, int]:
        """(min_column, min_row, max_column, max_row), columns 0-based."""
        min_col, min_row = split_address(self.anchor)
        max_col, max_row = split_address(self.end)
        return min_col, min_row, max_col, max_row

    def contains(self, address: str) -> bool:
        column, row = split_address(address)
        min_col, min_row, max_col, max_row = self.bounds
        return min_col <= column <= max_col and min_row <= row <= max_row


@dataclass
class PageMargins:
    """Print margins in inches."""

    left: float = 0.7
    right: float = 0.7
    top: float = 0.75
    bottom: float = 0.75
    header: float = 0.3
    footer: float = 0.3


@dataclass
class PageSetup:
    """Print settings consumed by paginated exporters."""

    orientation: PageOrientation = PageOrientation.DEFAULT
    paper_size: int = 1
    margins: PageMargins = field(default_factory=PageMargins)


@dataclass
class Worksheet:
    """A sparse grid of cells plus sheet-level layout information."""

    name: str
    cells: dict[str, Cell] = field(default_factory=dict)
    merge_regions: list[MergeRegion] = field(default_factory=list)
    column_widths: dict[str, float] = field(default_factory=dict)
    row_heights: dict[int, float] = field(default_factory=dict)
    row_styles: dict[int, str] = field(default_factory=dict)
    page_setup: PageSetup = field(default_factory=PageSetup)
    # Every address covered by a merge region, anchors included
    _merged_addresses: dict[str, MergeRegion] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def get_cell(self, address: str) -> Cell | None:
        return self.cells.get(address)

    def set_cell(self, cell: Cell) -> Cell:
        self.cells[cell.address] = cell
        return cell

    def merge_cells(self, region: MergeRegion) -> None:
        self.merge_regions.append(region)
        min_col, min_row, max_col, max_row = region.bounds
        for row in range(min_row, max_row + 1):
            for column in range(min_col, max_col + 1):
                self._merged_addresses.setdefault(cell_address(column, row), region)

    def merge_region_at(self, address: str) -> MergeRegion | None:
        """Return the merge region covering ``address``, if any."""
        return self._merged_addresses.get(address)

    def is_merged_follower(self, address: str) -> bool:
        """Return True for a merged address that is not its region's anchor."""
        region = self.merge_region_at(address)
        return region is not None and region.anchor != address

    def value_at(self, address: str) -> Any:
        """Value shown at ``address``; merged addresses resolve to the anchor."""
        cell = self._resolve(address)
        return cell.value if cell is not None else None

    def style_at(self, address: str) -> Style | None:
        """Style shown at ``address``; merged addresses resolve to the anchor."""
        cell = self._resolve(address)
        return cell.style if cell is not None else None

    def _resolve(self, address: str) -> Cell | None:
        region = self.merge_region_at(address)
        if region is not None:
            address = region.anchor
        return self.cells.get(address)

    @property
    def max_row(self) -> int:
        """Highest 1-based row holding a cell, 0 for an empty sheet."""
        return max((cell.row for cell in self.cells.values()), default=0)

    @property
    def max_column(self) -> int:
        """Number of columns up to the last one holding a cell."""
        return max((cell.column + 1 for cell in self.cells.values()), default=0)

    def iter_rows(self, values_only: bool = True) -> Iterator[tuple[Any, ...]]:
        """Yield every row from 1 to ``max_row`` as a dense tuple."""
        width = self.max_column
        for row in range(1, self.max_row + 1):
            cells = [self.cells.get(cell_address(col, row)) for col in range(width)]
            if values_only:
                yield tuple(cell.value if cell else None for cell in cells)
            else:
                yield tuple(cells)


@dataclass
class CustomProperty:
    value: Any
    type: CustomPropertyType


@dataclass
class DocumentProperties:
    """Workbook-level metadata. Timestamps are Unix seconds."""

    title: str | None = None
    subject: str | None = None
    creator: str | None = None
    created: int | None = None
    modified: int | None = None
    last_modified_by: str | None = None
    company: str | None = None
    category: str | None = None
    manager: str | None = None
    keywords: str | None = None
    description: str | None = None
    custom_properties: dict[str, CustomProperty] = field(default_factory=dict)

    def set_custom_property(
        self, name: str, value: Any, property_type: CustomPropertyType
    ) -> None:
        self.custom_properties[name] = CustomProperty(value=value, type=property_type)

    def get_custom_property(self, name: str) -> Any:
        prop = self.custom_properties.get(name)
        return prop.value if prop is not None else None


@dataclass
class Spreadsheet:
    """A loaded workbook: ordered worksheets plus document properties."""

    sheets: list[Worksheet] = field(default_factory=list)
    properties: DocumentProperties = field(default_factory=DocumentProperties)
    active_sheet_index: int = 0

    @property
    def sheet_names(self) -> list[str]:
        return [sheet.name for sheet in self.sheets]

    @property
    def active_sheet(self) -> Worksheet | None:
        if not self.sheets:
            return None
        index = min(self.active_sheet_index, len(self.sheets) - 1)
        return self.sheets[index]

    def add_sheet(self, sheet: Worksheet) -> Worksheet:
        """Append a worksheet.

        Raises:
            ValueError: If a worksheet with the same name already exists.
        """
        if sheet.name in self.sheet_names:
            raise ValueError(f"Worksheet '{sheet.name}' already exists")
        self.sheets.append(sheet)
        return sheet

    def get_sheet(self, name: str) -> Worksheet:
        """Return the worksheet called ``name``.

        Raises:
            KeyError: If no worksheet has that name.
        """
        for sheet in self.sheets:
            if sheet.name == name:
                return sheet
        raise KeyError(f"Worksheet '{name}' not found")
