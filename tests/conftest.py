from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Callable
from pathlib import Path

import pytest

from spreadsheet_xml_reader.services.xml_tree import parse_document

PROLOG = (
    '<?xml version="1.0" encoding="{encoding}"?>\n'
    '<?mso-application progid="Excel.Sheet"?>\n'
)

WORKBOOK_OPEN = (
    '<Workbook xmlns="urn:schemas-microsoft-com:office:spreadsheet"'
    ' xmlns:o="urn:schemas-microsoft-com:office:office"'
    ' xmlns:x="urn:schemas-microsoft-com:office:excel"'
    ' xmlns:ss="urn:schemas-microsoft-com:office:spreadsheet"'
    ' xmlns:dt="uuid:C2F41010-65B3-11d1-A29F-00AA00C14882"'
    ' xmlns:html="http://www.w3.org/TR/REC-html40">'
)

SAMPLE_BODY = """
<DocumentProperties xmlns="urn:schemas-microsoft-com:office:office">
  <Title>Quarterly Report</Title>
  <Author>Ada</Author>
  <LastAuthor>Grace</LastAuthor>
  <Created>2024-01-15T10:00:00Z</Created>
  <LastSaved>2024-01-16T12:30:00Z</LastSaved>
  <Company>Acme</Company>
</DocumentProperties>
<CustomDocumentProperties xmlns="urn:schemas-microsoft-com:office:office">
  <Project_x0020_Code dt:dt="string"> PX-1 </Project_x0020_Code>
  <Approved dt:dt="boolean">1</Approved>
  <Revision dt:dt="integer">7</Revision>
  <Budget dt:dt="float">1250.5</Budget>
  <Due dt:dt="dateTime.tz">2024-02-01T00:00:00Z</Due>
  <Broken dt:dt="integer">seven</Broken>
</CustomDocumentProperties>
<ExcelWorkbook xmlns="urn:schemas-microsoft-com:office:excel">
  <ActiveSheet>1</ActiveSheet>
</ExcelWorkbook>
<Styles>
  <Style ss:ID="Default" ss:Name="Normal">
    <Alignment ss:Vertical="Bottom"/>
    <Font ss:FontName="Calibri" ss:Size="11"/>
  </Style>
  <Style ss:ID="s21">
    <Font ss:Bold="1" ss:Color="#FF0000"/>
    <Interior ss:Color="#FFFF00" ss:Pattern="Solid"/>
  </Style>
  <Style ss:ID="s22">
    <NumberFormat ss:Format="Short Date"/>
  </Style>
</Styles>
<Worksheet ss:Name="Summary">
  <Table>
    <Column ss:Width="54"/>
    <Column ss:Index="3" ss:Span="1" ss:Width="108"/>
    <Row ss:Height="20" ss:StyleID="s21">
      <Cell ss:StyleID="s21"><Data ss:Type="String">Name</Data></Cell>
      <Cell><Data ss:Type="String">Amount</Data></Cell>
    </Row>
    <Row>
      <Cell><Data ss:Type="String">Alice</Data></Cell>
      <Cell><Data ss:Type="Number">10</Data></Cell>
    </Row>
    <Row>
      <Cell><Data ss:Type="String">Bob</Data></Cell>
      <Cell><Data ss:Type="Number">2.5</Data></Cell>
    </Row>
  </Table>
</Worksheet>
<Worksheet ss:Name="Details">
  <Table>
    <Row>
      <Cell ss:MergeAcross="1"><Data ss:Type="String">Header</Data></Cell>
      <Cell><Data ss:Type="Boolean">1</Data></Cell>
    </Row>
    <Row ss:Index="3">
      <Cell ss:Index="2" ss:StyleID="s22"><Data ss:Type="DateTime">2024-01-15T00:00:00.000</Data></Cell>
      <Cell ss:Formula="=R[-2]C[-1]+RC[-1]"><Data ss:Type="Number">3</Data></Cell>
      <Cell><Data ss:Type="Error">#DIV/0!</Data></Cell>
    </Row>
    <Row>
      <Cell>
        <Comment ss:Author="Reviewer">
          <ss:Data xmlns="http://www.w3.org/TR/REC-html40"><B>Check</B> this</ss:Data>
        </Comment>
      </Cell>
    </Row>
  </Table>
  <WorksheetOptions xmlns="urn:schemas-microsoft-com:office:excel">
    <PageSetup>
      <Layout x:Orientation="Landscape"/>
      <Header x:Margin="0.4"/>
      <PageMargins x:Bottom="1" x:Left="0.5" x:Right="0.5" x:Top="1"/>
    </PageSetup>
    <Print>
      <PaperSizeIndex>9</PaperSizeIndex>
    </Print>
  </WorksheetOptions>
</Worksheet>
"""


def build_workbook(body: str, encoding: str = "UTF-8") -> bytes:
    """Wrap worksheet markup in a complete XML Spreadsheet document."""
    document = PROLOG.format(encoding=encoding) + WORKBOOK_OPEN + body + "</Workbook>"
    return document.encode(encoding)


@pytest.fixture
def workbook_xml() -> Callable[..., bytes]:
    """Builder for XML Spreadsheet documents around a body fragment."""
    return build_workbook


@pytest.fixture
def parse_body() -> Callable[[str], ET.Element]:
    """Builder returning the parsed root of a document around a body fragment."""

    def _parse(body: str) -> ET.Element:
        return parse_document(build_workbook(body), "UTF-8")

    return _parse


@pytest.fixture
def sample_content() -> bytes:
    """A two-sheet document exercising properties, styles, merges and formulas."""
    return build_workbook(SAMPLE_BODY)


@pytest.fixture
def sample_root(sample_content: bytes) -> ET.Element:
    return parse_document(sample_content, "UTF-8")


@pytest.fixture
def sample_path(tmp_path: Path, sample_content: bytes) -> Path:
    path = tmp_path / "report.xml"
    path.write_bytes(sample_content)
    return path
