"""Tests for the document loader."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Callable

import pytest
from openpyxl.utils.datetime import MAC_EPOCH

from spreadsheet_xml_reader.models import (
    CellDataType,
    CustomPropertyType,
    PageOrientation,
)
from spreadsheet_xml_reader.services.document_loader import (
    DocumentLoader,
    ReadOptions,
    decode_property_name,
)
from spreadsheet_xml_reader.spreadsheet_document import Spreadsheet
from spreadsheet_xml_reader.style_records import Fill, NumberFormat
from spreadsheet_xml_reader.utils.exceptions import (
    ConversionError,
    FormulaReferenceError,
    InvalidSpreadsheetFormatError,
)
from spreadsheet_xml_reader.utils.logging import LoadMetrics


def _sheet_body(rows: str, name: str = "S") -> str:
    return f'<Worksheet ss:Name="{name}"><Table>{rows}</Table></Worksheet>'


@pytest.fixture
def loaded(sample_root: ET.Element) -> Spreadsheet:
    return DocumentLoader().load(sample_root)


class TestDocumentProperties:
    """Tests for document and custom property loading."""

    def test_standard_properties(self, loaded: Spreadsheet) -> None:
        props = loaded.properties

        assert props.title == "Quarterly Report"
        assert props.creator == "Ada"
        assert props.last_modified_by == "Grace"
        assert props.company == "Acme"
        assert props.subject is None
        assert props.created == 1705312800
        assert props.modified == 1705408200

    def test_custom_properties(self, loaded: Spreadsheet) -> None:
        custom = loaded.properties.custom_properties

        assert custom["Project Code"].value == "PX-1"
        assert custom["Project Code"].type is CustomPropertyType.STRING
        assert custom["Approved"].value is True
        assert custom["Approved"].type is CustomPropertyType.BOOLEAN
        assert custom["Revision"].value == 7
        assert custom["Revision"].type is CustomPropertyType.INTEGER
        assert custom["Budget"].value == 1250.5
        assert custom["Budget"].type is CustomPropertyType.FLOAT
        assert custom["Due"].value == 1706745600
        assert custom["Due"].type is CustomPropertyType.DATE

    def test_unconvertible_custom_property_is_kept_raw(self, loaded: Spreadsheet) -> None:
        broken = loaded.properties.custom_properties["Broken"]

        assert broken.value == "seven"
        assert broken.type is CustomPropertyType.UNKNOWN

    def test_undeclared_custom_property_type(
        self, parse_body: Callable[[str], ET.Element]
    ) -> None:
        root = parse_body(
            '<CustomDocumentProperties xmlns="urn:schemas-microsoft-com:office:office">'
            "<Note>free text</Note>"
            "</CustomDocumentProperties>"
        )
        props = DocumentLoader().load(root).properties

        assert props.get_custom_property("Note") == "free text"
        assert props.custom_properties["Note"].type is CustomPropertyType.UNKNOWN

    @pytest.mark.parametrize(
        ("encoded", "decoded"),
        [
            ("Project_x0020_Code", "Project Code"),
            ("Cost_x0020__x0026__x0020_Tax", "Cost & Tax"),
            ("Plain", "Plain"),
        ],
    )
    def test_decode_property_name(self, encoded: str, decoded: str) -> None:
        assert decode_property_name(encoded) == decoded


class TestCellValues:
    """Tests for cell placement and value conversion."""

    def test_sample_values(self, loaded: Spreadsheet) -> None:
        summary = loaded.get_sheet("Summary")

        assert summary.value_at("A1") == "Name"
        assert summary.value_at("B2") == 10
        assert isinstance(summary.value_at("B2"), int)
        assert summary.value_at("B3") == 2.5
        assert summary.get_cell("A1").data_type is CellDataType.STRING
        assert summary.get_cell("B2").data_type is CellDataType.NUMERIC

    def test_gap_filling_and_explicit_indices(self, loaded: Spreadsheet) -> None:
        details = loaded.get_sheet("Details")

        assert details.value_at("C1") is True
        assert details.get_cell("C1").data_type is CellDataType.BOOLEAN
        assert details.get_cell("B3").value == 45306
        assert details.get_cell("D3").value == "#DIV/0!"
        assert details.get_cell("D3").data_type is CellDataType.ERROR
        assert details.get_cell("A2") is None

    def test_unindexed_rows_and_cells_follow_last_index(
        self, parse_body: Callable[[str], ET.Element]
    ) -> None:
        root = parse_body(
            _sheet_body(
                '<Row ss:Index="4"><Cell ss:Index="5"><Data ss:Type="Number">1</Data></Cell>'
                '<Cell><Data ss:Type="Number">2</Data></Cell></Row>'
                '<Row><Cell><Data ss:Type="Number">3</Data></Cell></Row>'
            )
        )
        sheet = DocumentLoader().load(root).get_sheet("S")

        assert sorted(sheet.cells) == ["A5", "E4", "F4"]

    def test_formula_cells(self, loaded: Spreadsheet) -> None:
        cell = loaded.get_sheet("Details").get_cell("C3")

        assert cell.data_type is CellDataType.FORMULA
        assert cell.formula == "=B1+B3"
        assert cell.value == 3
        assert cell.calculated_value == 3

    def test_formula_without_data_is_ignored(
        self, parse_body: Callable[[str], ET.Element]
    ) -> None:
        root = parse_body(_sheet_body('<Row><Cell ss:Formula="=1+1"/></Row>'))
        sheet = DocumentLoader().load(root).get_sheet("S")

        assert sheet.cells == {}

    def test_data_without_type_is_null(
        self, parse_body: Callable[[str], ET.Element]
    ) -> None:
        root = parse_body(_sheet_body("<Row><Cell><Data>loose</Data></Cell></Row>"))
        cell = DocumentLoader().load(root).get_sheet("S").get_cell("A1")

        assert cell is not None
        assert cell.value is None
        assert cell.data_type is CellDataType.NULL

    @pytest.mark.parametrize(
        ("text", "expected"),
        [("1", True), ("0", False), ("-1", True), ("true", True), ("false", False)],
    )
    def test_boolean_values(
        self, parse_body: Callable[[str], ET.Element], text: str, expected: bool
    ) -> None:
        root = parse_body(
            _sheet_body(f'<Row><Cell><Data ss:Type="Boolean">{text}</Data></Cell></Row>')
        )
        assert DocumentLoader().load(root).get_sheet("S").value_at("A1") is expected

    def test_rich_string_keeps_text_only(
        self, parse_body: Callable[[str], ET.Element]
    ) -> None:
        root = parse_body(
            _sheet_body(
                '<Row><Cell><ss:Data ss:Type="String"'
                ' xmlns="http://www.w3.org/TR/REC-html40">'
                "<B>Bold</B> and <I>italic</I></ss:Data></Cell></Row>"
            )
        )
        assert DocumentLoader().load(root).get_sheet("S").value_at("A1") == (
            "Bold and italic"
        )

    def test_invalid_number_raises_conversion_error(
        self, parse_body: Callable[[str], ET.Element]
    ) -> None:
        root = parse_body(
            _sheet_body('<Row><Cell><Data ss:Type="Number">abc</Data></Cell></Row>')
        )
        with pytest.raises(ConversionError) as exc_info:
            DocumentLoader().load(root)

        assert exc_info.value.sheet_name == "S"
        assert exc_info.value.details["cell"] == "A1"

    def test_date_calendar_1904(self, parse_body: Callable[[str], ET.Element]) -> None:
        root = parse_body(
            _sheet_body(
                '<Row><Cell><Data ss:Type="DateTime">1904-01-02T00:00:00.000</Data>'
                "</Cell></Row>"
            )
        )
        loader = DocumentLoader(date_epoch=MAC_EPOCH)
        assert loader.load(root).get_sheet("S").value_at("A1") == 1

    def test_out_of_range_formula_reports_sheet_and_cell(
        self, parse_body: Callable[[str], ET.Element]
    ) -> None:
        root = parse_body(
            _sheet_body(
                '<Row><Cell ss:Formula="=R[-1]C"><Data ss:Type="Number">0</Data>'
                "</Cell></Row>"
            )
        )
        with pytest.raises(FormulaReferenceError) as exc_info:
            DocumentLoader().load(root)

        assert exc_info.value.sheet_name == "S"
        assert exc_info.value.details["cell"] == "A1"


class TestMergedCells:
    """Tests for merge region registration."""

    def test_merge_across(self, loaded: Spreadsheet) -> None:
        details = loaded.get_sheet("Details")

        assert [region.ref for region in details.merge_regions] == ["A1:B1"]
        assert details.value_at("B1") == "Header"

    def test_merge_down_and_across(self, parse_body: Callable[[str], ET.Element]) -> None:
        root = parse_body(
            _sheet_body(
                '<Row><Cell ss:MergeAcross="2" ss:MergeDown="1">'
                '<Data ss:Type="String">Block</Data></Cell>'
                '<Cell><Data ss:Type="Number">4</Data></Cell></Row>'
            )
        )
        sheet = DocumentLoader().load(root).get_sheet("S")

        assert sheet.merge_regions[0].ref == "A1:C2"
        assert sheet.value_at("D1") == 4
        assert sheet.value_at("C2") == "Block"

    def test_merge_anchored_at_c_pushes_next_cell_to_f(
        self, parse_body: Callable[[str], ET.Element]
    ) -> None:
        root = parse_body(
            _sheet_body(
                '<Row><Cell ss:Index="3" ss:MergeAcross="2">'
                '<Data ss:Type="String">Wide</Data></Cell>'
                '<Cell><Data ss:Type="String">Next</Data></Cell></Row>'
            )
        )
        sheet = DocumentLoader().load(root).get_sheet("S")

        assert sheet.merge_regions[0].ref == "C1:E1"
        assert sheet.get_cell("F1").value == "Next"

    def test_data_inside_merge_region_is_ignored(
        self, parse_body: Callable[[str], ET.Element]
    ) -> None:
        root = parse_body(
            _sheet_body(
                '<Row><Cell ss:MergeDown="1"><Data ss:Type="String">Top</Data></Cell></Row>'
                '<Row><Cell><Data ss:Type="String">Hidden</Data></Cell>'
                '<Cell><Data ss:Type="String">Visible</Data></Cell></Row>'
            )
        )
        sheet = DocumentLoader().load(root).get_sheet("S")

        assert sheet.get_cell("A2") is None
        assert sheet.value_at("A2") == "Top"
        assert sheet.value_at("B2") == "Visible"

    def test_merged_range_shares_anchor_style(
        self, parse_body: Callable[[str], ET.Element]
    ) -> None:
        root = parse_body(
            '<Styles><Style ss:ID="hl"><Interior ss:Color="#FFFF00"/></Style></Styles>'
            + _sheet_body(
                '<Row><Cell ss:MergeAcross="1" ss:StyleID="hl">'
                '<Data ss:Type="String">x</Data></Cell></Row>'
            )
        )
        sheet = DocumentLoader().load(root).get_sheet("S")

        assert sheet.style_at("A1") == sheet.style_at("B1")
        assert sheet.style_at("B1").fill == Fill(color="FFFF00")


class TestComments:
    """Tests for cell comments."""

    def test_comment_only_cell_gets_placeholder(self, loaded: Spreadsheet) -> None:
        cell = loaded.get_sheet("Details").get_cell("A4")

        assert cell is not None
        assert cell.data_type is CellDataType.NULL
        assert cell.value is None
        assert str(cell.comment.text) == "Check this"
        assert cell.comment.author == "Reviewer"

    def test_comment_author_defaults_to_unknown(
        self, parse_body: Callable[[str], ET.Element]
    ) -> None:
        root = parse_body(
            _sheet_body(
                '<Row><Cell><Data ss:Type="Number">1</Data>'
                '<Comment><Data ss:Type="String">note</Data></Comment></Cell></Row>'
            )
        )
        cell = DocumentLoader().load(root).get_sheet("S").get_cell("A1")

        assert cell.value == 1
        assert cell.comment.author == "unknown"
        assert cell.comment.text.text == "note"


class TestStylesAndLayout:
    """Tests for cell styles, rows, columns and page setup."""

    def test_cell_style_applied(self, loaded: Spreadsheet) -> None:
        summary = loaded.get_sheet("Summary")
        cell = summary.get_cell("A1")

        assert cell.style_id == "s21"
        assert cell.style.font.bold is True
        assert cell.style.fill == Fill(color="FFFF00")
        assert summary.get_cell("B1").style is None

    def test_date_cell_number_format(self, loaded: Spreadsheet) -> None:
        style = loaded.get_sheet("Details").style_at("B3")
        assert style.number_format == NumberFormat(code="dd/mm/yyyy")

    def test_style_on_cell_without_data_is_not_applied(
        self, parse_body: Callable[[str], ET.Element]
    ) -> None:
        root = parse_body(
            '<Styles><Style ss:ID="b"><Font ss:Bold="1"/></Style></Styles>'
            + _sheet_body('<Row><Cell ss:StyleID="b"/></Row>')
        )
        assert DocumentLoader().load(root).get_sheet("S").cells == {}

    def test_empty_style_is_not_applied(
        self, parse_body: Callable[[str], ET.Element]
    ) -> None:
        root = parse_body(
            '<Styles><Style ss:ID="plain"/></Styles>'
            + _sheet_body(
                '<Row><Cell ss:StyleID="plain"><Data ss:Type="String">a</Data></Cell></Row>'
            )
        )
        cell = DocumentLoader().load(root).get_sheet("S").get_cell("A1")

        assert cell.style_id == "plain"
        assert cell.style is None

    def test_row_height_and_style(self, loaded: Spreadsheet) -> None:
        summary = loaded.get_sheet("Summary")

        assert summary.row_heights == {1: 20.0}
        assert summary.row_styles == {1: "s21"}

    def test_row_attributes_ignored_without_data(
        self, parse_body: Callable[[str], ET.Element]
    ) -> None:
        root = parse_body(
            _sheet_body('<Row ss:Height="30" ss:StyleID="x"><Cell/></Row>')
        )
        sheet = DocumentLoader().load(root).get_sheet("S")

        assert sheet.row_heights == {}
        assert sheet.row_styles == {}

    def test_column_widths(self, loaded: Spreadsheet) -> None:
        widths = loaded.get_sheet("Summary").column_widths

        assert set(widths) == {"A", "C", "D"}
        assert widths["A"] == pytest.approx(10.0)
        assert widths["C"] == pytest.approx(20.0)
        assert widths["D"] == pytest.approx(20.0)

    def test_page_setup(self, loaded: Spreadsheet) -> None:
        setup = loaded.get_sheet("Details").page_setup

        assert setup.orientation is PageOrientation.LANDSCAPE
        assert setup.paper_size == 9
        assert setup.margins.left == 0.5
        assert setup.margins.top == 1.0
        assert setup.margins.header == 0.4
        assert setup.margins.footer == 0.3

    def test_page_setup_defaults(self, loaded: Spreadsheet) -> None:
        setup = loaded.get_sheet("Summary").page_setup

        assert setup.orientation is PageOrientation.DEFAULT
        assert setup.paper_size == 1


class TestSheetSelection:
    """Tests for sheet filters, read filters and workbook-level results."""

    def test_all_sheets_loaded_in_order(self, loaded: Spreadsheet) -> None:
        assert loaded.sheet_names == ["Summary", "Details"]

    def test_active_sheet(self, loaded: Spreadsheet) -> None:
        assert loaded.active_sheet_index == 1
        assert loaded.active_sheet.name == "Details"

    def test_sheet_filter(self, sample_root: ET.Element) -> None:
        spreadsheet = DocumentLoader().load(
            sample_root, ReadOptions(sheet_names={"Details"})
        )
        assert spreadsheet.sheet_names == ["Details"]
        assert spreadsheet.active_sheet.name == "Details"

    def test_sheet_filter_without_match(self, sample_root: ET.Element) -> None:
        spreadsheet = DocumentLoader().load(
            sample_root, ReadOptions(sheet_names={"Missing"})
        )
        assert spreadsheet.sheets == []
        assert spreadsheet.active_sheet is None

    def test_read_filter_skips_cells_and_keeps_positions(
        self, sample_root: ET.Element
    ) -> None:
        seen: list[tuple[str, int, str]] = []

        def only_column_b(column: str, row: int, sheet_name: str) -> bool:
            seen.append((column, row, sheet_name))
            return column == "B"

        spreadsheet = DocumentLoader().load(
            sample_root,
            ReadOptions(sheet_names={"Summary"}, read_filter=only_column_b),
        )
        summary = spreadsheet.get_sheet("Summary")

        assert sorted(summary.cells) == ["B1", "B2", "B3"]
        assert summary.value_at("B2") == 10
        assert ("A1", 1, "Summary") not in seen
        assert ("A", 1, "Summary") in seen

    def test_filtered_merge_anchor_keeps_following_positions(
        self, parse_body: Callable[[str], ET.Element]
    ) -> None:
        root = parse_body(
            _sheet_body(
                '<Row><Cell ss:MergeAcross="2"><Data ss:Type="String">T</Data></Cell>'
                '<Cell><Data ss:Type="String">X</Data></Cell></Row>'
            )
        )
        loader = DocumentLoader()

        unfiltered = loader.load(root).get_sheet("S")
        filtered = loader.load(
            root, ReadOptions(read_filter=lambda column, row, sheet: column != "A")
        ).get_sheet("S")

        assert sorted(unfiltered.cells) == ["A1", "D1"]
        assert sorted(filtered.cells) == ["D1"]
        assert filtered.value_at("D1") == "X"
        assert filtered.merge_regions == []

    def test_unnamed_sheet_gets_ordinal_name(
        self, parse_body: Callable[[str], ET.Element]
    ) -> None:
        root = parse_body(_sheet_body("", name="First") + "<Worksheet><Table/></Worksheet>")
        assert DocumentLoader().load(root).sheet_names == ["First", "Worksheet_2"]

    def test_duplicate_sheet_names_rejected(
        self, parse_body: Callable[[str], ET.Element]
    ) -> None:
        root = parse_body(_sheet_body("", name="Dup") + _sheet_body("", name="Dup"))
        with pytest.raises(InvalidSpreadsheetFormatError):
            DocumentLoader().load(root)

    def test_empty_workbook(self, parse_body: Callable[[str], ET.Element]) -> None:
        spreadsheet = DocumentLoader().load(parse_body(""))

        assert spreadsheet.sheets == []
        assert spreadsheet.properties.title is None

    def test_metrics_are_updated(self, sample_root: ET.Element) -> None:
        metrics = LoadMetrics(operation="load")
        DocumentLoader().load(sample_root, metrics=metrics)

        assert metrics.sheets_loaded == 2
        # Six cells on Summary, five with data on Details
        assert metrics.cells_loaded == 11
        assert metrics.styles_resolved == 3
        assert metrics.merges_registered == 1


class TestInvalidPositionalAttributes:
    """Tests for malformed index, span and size attributes."""

    @pytest.mark.parametrize(
        ("rows", "attribute"),
        [
            ('<Row ss:Index="abc"/>', "ss:Index"),
            ('<Row ss:Index="0"/>', "ss:Index"),
            ('<Row><Cell ss:Index="abc"/></Row>', "ss:Index"),
            ('<Row><Cell ss:Index="0"/></Row>', "ss:Index"),
            ('<Row><Cell ss:Index="18279"/></Row>', "ss:Index"),
            ('<Row><Cell ss:MergeAcross="x"/></Row>', "ss:MergeAcross"),
            ('<Row><Cell ss:MergeDown="-1"/></Row>', "ss:MergeDown"),
            ('<Column ss:Span="two"/>', "ss:Span"),
            ('<Column ss:Width="wide"/>', "ss:Width"),
            (
                '<Row ss:Height="-3"><Cell><Data ss:Type="Number">1</Data></Cell></Row>',
                "ss:Height",
            ),
        ],
    )
    def test_invalid_attribute_raises_format_error(
        self,
        parse_body: Callable[[str], ET.Element],
        rows: str,
        attribute: str,
    ) -> None:
        root = parse_body(_sheet_body(rows, name="Bad"))

        with pytest.raises(InvalidSpreadsheetFormatError) as exc_info:
            DocumentLoader().load(root)

        error = exc_info.value
        assert error.details["sheet"] == "Bad"
        assert error.details["attribute"] == attribute
        assert "Bad" in error.message

    def test_merge_past_last_column(
        self, parse_body: Callable[[str], ET.Element]
    ) -> None:
        root = parse_body(
            _sheet_body('<Row><Cell ss:Index="18278" ss:MergeAcross="1"/></Row>')
        )

        with pytest.raises(InvalidSpreadsheetFormatError) as exc_info:
            DocumentLoader().load(root)

        assert exc_info.value.details == {"sheet": "S", "element": "Cell"}

    def test_column_span_past_last_column(
        self, parse_body: Callable[[str], ET.Element]
    ) -> None:
        root = parse_body(_sheet_body('<Column ss:Index="18278" ss:Span="2"/>'))

        with pytest.raises(InvalidSpreadsheetFormatError):
            DocumentLoader().load(root)

    def test_last_column_is_accepted(
        self, parse_body: Callable[[str], ET.Element]
    ) -> None:
        root = parse_body(
            _sheet_body(
                '<Row><Cell ss:Index="18278"><Data ss:Type="String">z</Data></Cell></Row>'
            )
        )
        assert DocumentLoader().load(root).get_sheet("S").value_at("ZZZ1") == "z"
