"""Worksheet inventory without building the spreadsheet model."""

import xml.etree.ElementTree as ET

from spreadsheet_xml_reader.models import WorksheetInfo
from spreadsheet_xml_reader.services.xml_tree import (
    check_column_range,
    find_data,
    int_attr,
    iter_cells,
    iter_rows,
    iter_worksheets,
    ss_attr,
)
from spreadsheet_xml_reader.utils.cell_address import MAX_COLUMNS, column_letter


class WorksheetEnumerator:
    """Lists sheet names and data extents from a parsed document tree.

    Text is already decoded with the detected charset by the parser, so names
    are returned as-is.
    """

    def list_names(self, root: ET.Element) -> list[str]:
        """Return the declared name of every worksheet, in document order."""
        return [ss_attr(sheet, "Name") or "" for sheet in iter_worksheets(root)]

    def list_info(self, root: ET.Element) -> list[WorksheetInfo]:
        """Return name and data extent for every worksheet.

        Only cells holding a ``Data`` element count: a row whose cells are
        merely styled adds nothing to ``total_rows`` and such cells do not
        move ``last_column_index``.
        """
        infos: list[WorksheetInfo] = []
        for ordinal, sheet in enumerate(iter_worksheets(root), start=1):
            name = ss_attr(sheet, "Name")
            label = name if name is not None else f"Worksheet_{ordinal}"
            last_column = 0
            total_rows = 0

            for row in iter_rows(sheet):
                column = 0
                row_has_data = False
                for cell in iter_cells(row):
                    index = int_attr(cell, "Index", label, 1, MAX_COLUMNS)
                    if index is not None:
                        column = index - 1
                    check_column_range(column, cell, label)
                    if find_data(cell) is not None:
                        last_column = max(last_column, column)
                        row_has_data = True
                    column += 1 + (int_attr(cell, "MergeAcross", label) or 0)
                if row_has_data:
                    total_rows += 1

            infos.append(
                WorksheetInfo(
                    worksheet_name=label,
                    last_column_letter=column_letter(last_column),
                    last_column_index=last_column,
                    total_rows=total_rows,
                    total_columns=last_column + 1,
                )
            )
        return infos
